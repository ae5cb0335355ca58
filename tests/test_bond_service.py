"""Tests for services.bond_service."""

from datetime import date, timedelta

import pytest

from db import BondType
from services import (
    RecordNotFoundError,
    RecordValidationError,
    create_bond,
    delete_bond,
    get_bond,
    get_bond_summary,
    get_upcoming_maturities,
    list_bonds,
    update_bond,
)


def _bond(today, days_to_maturity=365, **overrides):
    fields = dict(
        issuer="US Treasury",
        bond_type="treasury",
        face_value=10_000.0,
        coupon_rate=4.0,
        maturity_date=today + timedelta(days=days_to_maturity),
        purchase_price=9_800.0,
        purchase_date=date(2024, 3, 1),
        rating="AAA",
    )
    fields.update(overrides)
    return create_bond(**fields)


class TestCreateBond:
    def test_derived_values(self, database, today):
        bond = _bond(today)

        assert bond.bond_type == BondType.TREASURY
        assert bond.current_price == 9_800.0
        assert bond.current_value == 9_800.0
        assert bond.gain_loss == 0
        assert bond.annual_coupon == pytest.approx(400)
        assert bond.days_to_maturity == 365

    def test_fetch_returns_same_fields(self, database, today):
        created = _bond(today, notes="Ladder rung 1")
        fetched = get_bond(created.id)

        assert fetched.issuer == "US Treasury"
        assert fetched.coupon_rate == 4.0
        assert fetched.maturity_date == today + timedelta(days=365)
        assert fetched.rating == "AAA"
        assert fetched.notes == "Ladder rung 1"

    def test_maturity_must_be_in_future(self, database, today):
        with pytest.raises(RecordValidationError, match="future"):
            _bond(today, days_to_maturity=0)

    def test_invalid_type(self, database, today):
        with pytest.raises(RecordValidationError, match="Invalid bond type"):
            _bond(today, bond_type="junk")

    def test_coupon_out_of_range(self, database, today):
        with pytest.raises(RecordValidationError):
            _bond(today, coupon_rate=120)


class TestUpdateDeleteBond:
    def test_partial_update(self, database, today):
        bond = _bond(today)
        updated = update_bond(bond.id, current_price=10_100.0)

        assert updated.current_value == 10_100.0
        assert updated.gain_loss == pytest.approx(300)
        assert updated.coupon_rate == 4.0

    def test_delete(self, database, today):
        bond = _bond(today)
        delete_bond(bond.id)
        with pytest.raises(RecordNotFoundError, match="Bond not found"):
            get_bond(bond.id)

    def test_list_ordered_by_maturity(self, database, today):
        _bond(today, days_to_maturity=900, issuer="Late")
        _bond(today, days_to_maturity=30, issuer="Soon")
        assert [b.issuer for b in list_bonds()] == ["Soon", "Late"]


class TestBondSummary:
    def test_empty(self, database):
        summary = get_bond_summary()
        assert summary.total_bonds == 0
        assert summary.total_annual_income == 0
        assert summary.percentage_return == 0

    def test_totals(self, database, today):
        first = _bond(today)
        update_bond(first.id, current_price=10_290.0)
        _bond(today, issuer="Acme", bond_type=BondType.CORPORATE, face_value=5_000.0,
              coupon_rate=6.0, purchase_price=5_000.0)

        summary = get_bond_summary()
        assert summary.total_bonds == 2
        assert summary.total_invested == pytest.approx(14_800)
        assert summary.current_value == pytest.approx(15_290)
        assert summary.total_gain_loss == pytest.approx(490)
        # 10000 * 4% + 5000 * 6%
        assert summary.total_annual_income == pytest.approx(700)
        assert summary.average_coupon_rate == pytest.approx(5.0)
        assert summary.percentage_return == pytest.approx(490 / 14_800 * 100)


class TestUpcomingMaturities:
    def test_window_is_inclusive(self, database, today):
        _bond(today, days_to_maturity=1, issuer="Tomorrow")
        _bond(today, days_to_maturity=90, issuer="Edge")
        _bond(today, days_to_maturity=91, issuer="Outside")

        upcoming = get_upcoming_maturities(today=today)
        assert [m.issuer for m in upcoming] == ["Tomorrow", "Edge"]
        assert [m.days_to_maturity for m in upcoming] == [1, 90]

    def test_custom_window(self, database, today):
        _bond(today, days_to_maturity=10)
        assert get_upcoming_maturities(days=5, today=today) == []

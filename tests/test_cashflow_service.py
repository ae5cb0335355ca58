"""Tests for services.cashflow_service."""

from datetime import timedelta

import pytest

from db import CashflowType, RecurringFrequency
from services import (
    RecordNotFoundError,
    RecordValidationError,
    create_entry,
    delete_entry,
    get_cashflow_summary,
    get_category_totals,
    get_entry,
    list_entries,
    update_entry,
)
from services.cashflow_service import period_start, savings_rate


@pytest.fixture
def ledger(database, today):
    """Salary and rent this month, a car repair six weeks ago."""
    return [
        create_entry("income", "Salary", 5_000.0, "Monthly salary", today - timedelta(days=3),
                     is_recurring=True, recurring_frequency="monthly"),
        create_entry("expense", "Rent", 1_500.0, "Rent", today - timedelta(days=2), tags=["home"]),
        create_entry("expense", "Car", 500.0, "Repair", today - timedelta(days=40)),
    ]


class TestFormulas:
    def test_savings_rate(self):
        assert savings_rate(3_500, 5_000) == pytest.approx(70)

    def test_savings_rate_without_income(self):
        assert savings_rate(-200, 0) == 0

    @pytest.mark.parametrize(
        "period,days",
        [("weekly", 7), ("monthly", 30), ("quarterly", 90), ("yearly", 365), ("decade", 30)],
    )
    def test_period_start(self, today, period, days):
        assert period_start(period, today) == today - timedelta(days=days)


class TestEntryCrud:
    def test_create_and_fetch(self, ledger):
        salary = get_entry(ledger[0].id)

        assert salary.type == CashflowType.INCOME
        assert salary.amount == 5_000.0
        assert salary.is_recurring is True
        assert salary.recurring_frequency == RecurringFrequency.MONTHLY
        assert salary.tags == []
        assert get_entry(ledger[1].id).tags == ["home"]

    def test_update_only_given_fields(self, ledger):
        updated = update_entry(ledger[1].id, amount=1_550.0)
        assert updated.amount == 1_550.0
        assert updated.category == "Rent"
        assert updated.tags == ["home"]

    def test_invalid_type(self, database, today):
        with pytest.raises(RecordValidationError):
            create_entry("transfer", "Misc", 10.0, "x", today)

    def test_non_positive_amount(self, database, today):
        with pytest.raises(RecordValidationError):
            create_entry("expense", "Misc", 0, "x", today)

    def test_delete(self, ledger):
        delete_entry(ledger[2].id)
        with pytest.raises(RecordNotFoundError, match="Cashflow entry not found"):
            get_entry(ledger[2].id)


class TestListEntries:
    def test_newest_first(self, ledger):
        assert [e.category for e in list_entries()] == ["Rent", "Salary", "Car"]

    def test_type_filter(self, ledger):
        assert [e.category for e in list_entries(entry_type="expense")] == ["Rent", "Car"]

    def test_invalid_type_ignored(self, ledger):
        assert len(list_entries(entry_type="bogus")) == 3

    def test_date_range_and_paging(self, ledger, today):
        recent = list_entries(start_date=today - timedelta(days=10), end_date=today)
        assert {e.category for e in recent} == {"Salary", "Rent"}
        assert [e.category for e in list_entries(limit=1, offset=1)] == ["Salary"]


class TestCashflowSummary:
    def test_monthly(self, ledger, today):
        summary = get_cashflow_summary("monthly", today=today)

        assert summary.total_income == pytest.approx(5_000)
        assert summary.total_expenses == pytest.approx(1_500)
        assert summary.net_cashflow == pytest.approx(3_500)
        assert summary.income_count == 1
        assert summary.expense_count == 1
        assert summary.savings_rate == pytest.approx(70)

    def test_yearly_includes_older_entries(self, ledger, today):
        summary = get_cashflow_summary("yearly", today=today)
        assert summary.total_expenses == pytest.approx(2_000)
        assert summary.savings_rate == pytest.approx(60)

    def test_unknown_period_echoed(self, ledger, today):
        summary = get_cashflow_summary("decade", today=today)
        assert summary.period == "decade"
        assert summary.total_expenses == pytest.approx(1_500)

    def test_no_income(self, database, today):
        create_entry("expense", "Food", 50.0, "Lunch", today)
        assert get_cashflow_summary(today=today).savings_rate == 0


class TestCategoryTotals:
    def test_grouped_largest_first(self, ledger, today):
        create_entry("expense", "Rent", 500.0, "Parking", today)
        totals = get_category_totals(period="yearly", today=today)

        assert [(t.category, t.type) for t in totals] == [
            ("Salary", "income"),
            ("Rent", "expense"),
            ("Car", "expense"),
        ]
        rent = totals[1]
        assert rent.total_amount == pytest.approx(2_000)
        assert rent.transaction_count == 2
        assert rent.average_amount == pytest.approx(1_000)

    def test_type_filter(self, ledger, today):
        totals = get_category_totals(entry_type="income", period="yearly", today=today)
        assert [t.category for t in totals] == ["Salary"]

"""Tests for analytics.alerts."""

from datetime import date, timedelta

import pytest

from analytics import AlertEngine, AlertSeverity, AlertType, compute_alerts
from analytics.alerts import maturity_severity, movement_severity
from services import create_bond, create_stock, update_stock


def _stock(symbol, current_price, purchase_price=100.0):
    stock = create_stock(symbol, f"{symbol} Corp", 1, purchase_price, date(2024, 1, 2))
    if current_price != purchase_price:
        update_stock(stock.id, current_price=current_price)
    return stock


def _bond(issuer, today, days):
    return create_bond(issuer, "corporate", 1_000.0, 5.0, today + timedelta(days=days), 990.0, date(2024, 1, 2))


class TestSeverity:
    @pytest.mark.parametrize("days,expected", [(0, "high"), (7, "high"), (8, "medium"), (30, "medium")])
    def test_maturity(self, days, expected):
        assert maturity_severity(days).value == expected

    @pytest.mark.parametrize("pct,expected", [(20, "medium"), (-49.9, "medium"), (50, "high"), (-75, "high")])
    def test_movement(self, pct, expected):
        assert movement_severity(pct).value == expected


class TestBondMaturityAlerts:
    def test_window_and_severity(self, database, today):
        _bond("Soon", today, 7)
        _bond("Later", today, 30)
        _bond("Outside", today, 31)

        alerts = AlertEngine(today).bond_maturity_alerts()

        assert [a.data["issuer"] for a in alerts] == ["Soon", "Later"]
        assert [a.severity for a in alerts] == [AlertSeverity.HIGH, AlertSeverity.MEDIUM]
        assert alerts[0].type == AlertType.BOND_MATURITY
        assert alerts[0].data["days_to_maturity"] == 7
        assert alerts[0].message == "Bond Soon matures in 7 days"


class TestPriceMovementAlerts:
    def test_threshold_and_ordering(self, database):
        _stock("UP", 125.0)
        _stock("DOWN", 40.0)
        _stock("EDGE", 120.0)
        _stock("FLAT", 110.0)
        _stock("SAME", 100.0)

        alerts = AlertEngine().price_movement_alerts()

        assert [a.data["symbol"] for a in alerts] == ["DOWN", "UP", "EDGE"]
        down, up, edge = alerts
        assert down.type == AlertType.SIGNIFICANT_LOSS
        assert down.severity == AlertSeverity.HIGH
        assert down.message == "DOWN has lost 60.0%"
        assert up.type == AlertType.SIGNIFICANT_GAIN
        assert up.severity == AlertSeverity.MEDIUM
        assert up.message == "UP has gained 25.0%"
        assert edge.data["percentage_change"] == pytest.approx(20)

    @pytest.mark.parametrize(
        "purchase,current",
        [(1.0, 1.2), (0.5, 0.6), (10.0, 12.0), (2.5, 3.0), (0.35, 0.42), (0.35, 0.28)],
    )
    def test_exact_threshold_move_alerts(self, database, purchase, current):
        _stock("EXACT", current, purchase_price=purchase)

        alerts = AlertEngine().price_movement_alerts()

        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.MEDIUM
        assert abs(alerts[0].data["percentage_change"]) == 20.0

    def test_exact_high_threshold(self, database):
        _stock("DIME", 0.15, purchase_price=0.10)

        [alert] = AlertEngine().price_movement_alerts()

        assert alert.severity == AlertSeverity.HIGH
        assert alert.message == "DIME has gained 50.0%"
        assert alert.data["percentage_change"] == 50.0


def test_compute_alerts_lists_maturities_first(database, today):
    _stock("MOON", 300.0)
    _bond("Soon", today, 3)

    alerts = compute_alerts(today)
    assert [a.type for a in alerts] == [AlertType.BOND_MATURITY, AlertType.SIGNIFICANT_GAIN]


def test_no_alerts(database):
    assert compute_alerts() == []

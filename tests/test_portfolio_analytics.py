"""Tests for analytics.portfolio."""

from datetime import date, timedelta

import pytest

from analytics import (
    allocation_share,
    capture_snapshot,
    compute_allocation,
    compute_overview,
    compute_performance,
    list_snapshots,
    percentage_return,
)
from analytics.portfolio import PortfolioAnalyzer
from services import create_bond, create_entry, create_stock, update_bond, update_stock


@pytest.fixture
def holdings(database, today):
    """
    Stocks worth 3000 (invested 2500) and bonds worth 1000 (invested 1000).
    """
    apple = create_stock("AAPL", "Apple Inc.", 10, 150.0, today - timedelta(days=20), sector="Technology")
    update_stock(apple.id, current_price=200.0)
    create_stock("JNJ", "Johnson & Johnson", 10, 100.0, today - timedelta(days=20), sector="Healthcare")
    create_bond("City of Springfield", "municipal", 1_000.0, 3.0, today + timedelta(days=400),
                1_000.0, today - timedelta(days=200))
    create_entry("income", "Salary", 4_000.0, "Salary", today - timedelta(days=5))
    create_entry("expense", "Rent", 1_000.0, "Rent", today - timedelta(days=5))
    create_entry("expense", "Travel", 700.0, "Flights", today - timedelta(days=60))


class TestFormulas:
    def test_percentage_return(self):
        assert percentage_return(250, 1_000) == pytest.approx(25)

    def test_percentage_return_nothing_invested(self):
        assert percentage_return(100, 0) == 0

    def test_allocation_share(self):
        assert allocation_share(750, 3_000) == pytest.approx(25)
        assert allocation_share(10, 0) == 0


class TestOverview:
    def test_empty(self, database):
        overview = compute_overview()
        assert overview.total_assets == 0
        assert overview.total_return_percentage == 0
        assert overview.stocks.percentage == 0

    def test_totals(self, holdings, today):
        overview = compute_overview(today)

        assert overview.total_invested == pytest.approx(3_500)
        assert overview.total_current_value == pytest.approx(4_000)
        assert overview.total_gain_loss == pytest.approx(500)
        assert overview.total_return_percentage == pytest.approx(500 / 3_500 * 100)
        assert overview.total_assets == 3

        assert overview.stocks.count == 2
        assert overview.stocks.percentage == pytest.approx(75)
        assert overview.bonds.percentage == pytest.approx(25)
        assert overview.bonds.annual_income == pytest.approx(30)

    def test_recent_cashflow_window(self, holdings, today):
        cashflow = compute_overview(today).cashflow
        assert cashflow.recent_income == pytest.approx(4_000)
        assert cashflow.recent_expenses == pytest.approx(1_000)
        assert cashflow.net_cashflow == pytest.approx(3_000)


class TestAllocation:
    def test_asset_classes(self, holdings):
        allocation = compute_allocation()

        assert allocation.total_value == pytest.approx(4_000)
        assert [(s.name, s.percentage) for s in allocation.asset_classes] == [
            ("Stocks", pytest.approx(75)),
            ("Bonds", pytest.approx(25)),
        ]

    def test_sectors_share_of_stocks(self, holdings):
        sectors = compute_allocation().stock_sectors

        assert [s.name for s in sectors] == ["Technology", "Healthcare"]
        assert sectors[0].percentage == pytest.approx(2_000 / 3_000 * 100)
        assert sectors[1].count == 1

    def test_missing_sector_is_unknown(self, database, today):
        create_stock("XYZ", "Mystery Co", 1, 10.0, today)
        assert compute_allocation().stock_sectors[0].name == "Unknown"

    def test_bond_types(self, holdings):
        bond_types = compute_allocation().bond_types
        assert [(t.name, t.percentage, t.count) for t in bond_types] == [("municipal", 100.0, 1)]


class TestPerformance:
    def test_period_start(self):
        analyzer = PortfolioAnalyzer(date(2024, 5, 31))
        assert analyzer.period_start("1m") == date(2024, 4, 30)
        assert analyzer.period_start("1y") == date(2023, 5, 31)
        assert analyzer.period_start("bogus") == date(2023, 5, 31)
        assert analyzer.period_start("all") is None

    def test_holdings_grouped_by_purchase_date(self, holdings, today):
        performance = compute_performance("1m", today)

        assert len(performance.stocks) == 1
        point = performance.stocks[0]
        assert point.date == today - timedelta(days=20)
        assert point.invested == pytest.approx(2_500)
        assert point.current_value == pytest.approx(3_000)
        assert point.gain_loss == pytest.approx(500)
        # Bond bought 200 days ago falls outside 1m
        assert performance.bonds == []

    def test_cashflow_series_ascending(self, holdings, today):
        cashflow = compute_performance("all", today).cashflow

        assert [p.date for p in cashflow] == [today - timedelta(days=60), today - timedelta(days=5)]
        assert cashflow[0].income == 0
        assert cashflow[0].expenses == pytest.approx(700)
        assert cashflow[1].net == pytest.approx(3_000)

    def test_empty(self, database):
        performance = compute_performance()
        assert performance.period == "1y"
        assert performance.stocks == performance.bonds == performance.cashflow == []


class TestSnapshots:
    def test_capture_is_idempotent_per_day(self, holdings, today):
        first = capture_snapshot(today)
        assert first.total_portfolio_value == pytest.approx(4_000)

        update_bond(1, current_price=1_100.0)
        second = capture_snapshot(today)

        snapshots = list_snapshots()
        assert len(snapshots) == 1
        assert second.total_bonds_value == pytest.approx(1_100)
        assert snapshots[0].total_gain_loss == pytest.approx(600)

    def test_listed_oldest_first(self, holdings, today):
        capture_snapshot(today)
        capture_snapshot(today - timedelta(days=1))
        assert [s.snapshot_date for s in list_snapshots()] == [today - timedelta(days=1), today]

"""
Portfolio analytics module.

Roll-ups across stocks, bonds and cash flow:
- Gain/loss and percentage return
- Portfolio overview (invested, current value, recent cash flow)
- Asset allocation by class, stock sector and bond type
- Performance grouped by purchase / entry date
- Daily portfolio snapshots
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Sequence

import pandas as pd

from config import config
from db import PortfolioSnapshot, get_db
from db.repositories import (
    BondRepository,
    CashflowRepository,
    SnapshotRepository,
    StockRepository,
)


# Trailing windows for the performance view; anything else means 1y
PERFORMANCE_PERIODS = {
    "1m": pd.DateOffset(months=1),
    "3m": pd.DateOffset(months=3),
    "6m": pd.DateOffset(months=6),
    "1y": pd.DateOffset(years=1),
}
DEFAULT_PERFORMANCE_PERIOD = "1y"


def percentage_return(gain_loss: float, invested: float) -> float:
    """Gain/loss as a percentage of invested capital; 0 when nothing is invested."""
    return gain_loss / invested * 100 if invested > 0 else 0.0


def allocation_share(value: float, total: float) -> float:
    """Share of a total in percent; 0 when the total is empty."""
    return value / total * 100 if total > 0 else 0.0


@dataclass
class AssetClassOverview:
    """Per asset class totals within the overview."""
    count: int
    invested: float
    current_value: float
    gain_loss: float
    percentage: float
    annual_income: float | None = None


@dataclass
class CashflowOverview:
    """Recent cash flow within the overview."""
    recent_income: float
    recent_expenses: float
    net_cashflow: float


@dataclass
class PortfolioOverview:
    """Whole-portfolio totals plus per asset class breakdown."""
    total_invested: float
    total_current_value: float
    total_gain_loss: float
    total_return_percentage: float
    recent_net_cashflow: float
    total_assets: int
    stocks: AssetClassOverview
    bonds: AssetClassOverview
    cashflow: CashflowOverview


@dataclass
class AllocationSlice:
    """One slice of an allocation breakdown."""
    name: str
    value: float
    percentage: float
    count: int | None = None


@dataclass
class PortfolioAllocation:
    """Allocation by asset class, stock sector and bond type."""
    total_value: float
    asset_classes: list[AllocationSlice]
    stock_sectors: list[AllocationSlice] = field(default_factory=list)
    bond_types: list[AllocationSlice] = field(default_factory=list)


@dataclass
class HoldingPerformancePoint:
    """Invested vs current value for holdings bought on one date."""
    date: date
    invested: float
    current_value: float
    gain_loss: float


@dataclass
class CashflowPerformancePoint:
    """Income vs expenses on one date."""
    date: date
    income: float
    expenses: float
    net: float


@dataclass
class PortfolioPerformance:
    """Performance series for a trailing period."""
    period: str
    stocks: list[HoldingPerformancePoint]
    bonds: list[HoldingPerformancePoint]
    cashflow: list[CashflowPerformancePoint]


class PortfolioAnalyzer:
    """
    Computes portfolio-level roll-ups.

    All date-relative calculations take an optional reference date so
    results are reproducible; it defaults to today.
    """

    def __init__(self, today: date | None = None):
        self.today = today or date.today()

    def compute_overview(self) -> PortfolioOverview:
        """Combine stock, bond and recent cash flow totals."""
        since = self.today - timedelta(days=config.alerts.recent_cashflow_days)

        db = get_db()
        with db.session() as session:
            stocks = StockRepository(session).get_summary()
            bonds = BondRepository(session).get_summary()
            cashflow = CashflowRepository(session).get_totals(since=since)

        total_invested = stocks["total_invested"] + bonds["total_invested"]
        total_value = stocks["current_value"] + bonds["current_value"]
        total_gain_loss = stocks["total_gain_loss"] + bonds["total_gain_loss"]
        net_cashflow = cashflow["total_income"] - cashflow["total_expenses"]

        return PortfolioOverview(
            total_invested=total_invested,
            total_current_value=total_value,
            total_gain_loss=total_gain_loss,
            total_return_percentage=percentage_return(total_gain_loss, total_invested),
            recent_net_cashflow=net_cashflow,
            total_assets=stocks["total_stocks"] + bonds["total_bonds"],
            stocks=AssetClassOverview(
                count=stocks["total_stocks"],
                invested=stocks["total_invested"],
                current_value=stocks["current_value"],
                gain_loss=stocks["total_gain_loss"],
                percentage=allocation_share(stocks["current_value"], total_value),
            ),
            bonds=AssetClassOverview(
                count=bonds["total_bonds"],
                invested=bonds["total_invested"],
                current_value=bonds["current_value"],
                gain_loss=bonds["total_gain_loss"],
                percentage=allocation_share(bonds["current_value"], total_value),
                annual_income=bonds["total_annual_income"],
            ),
            cashflow=CashflowOverview(
                recent_income=cashflow["total_income"],
                recent_expenses=cashflow["total_expenses"],
                net_cashflow=net_cashflow,
            ),
        )

    def compute_allocation(self) -> PortfolioAllocation:
        """Percentage split by asset class, stock sector and bond type."""
        db = get_db()
        with db.session() as session:
            stock_repo = StockRepository(session)
            bond_repo = BondRepository(session)
            stocks_total = stock_repo.get_summary()["current_value"]
            bonds_total = bond_repo.get_summary()["current_value"]
            sectors = stock_repo.get_sector_allocation()
            bond_types = bond_repo.get_type_allocation()

        total_value = stocks_total + bonds_total
        return PortfolioAllocation(
            total_value=total_value,
            asset_classes=[
                AllocationSlice("Stocks", stocks_total, allocation_share(stocks_total, total_value)),
                AllocationSlice("Bonds", bonds_total, allocation_share(bonds_total, total_value)),
            ],
            stock_sectors=[
                AllocationSlice(
                    s["sector"], s["value"], allocation_share(s["value"], stocks_total), s["count"]
                )
                for s in sectors
            ],
            bond_types=[
                AllocationSlice(
                    t["type"], t["value"], allocation_share(t["value"], bonds_total), t["count"]
                )
                for t in bond_types
            ],
        )

    def period_start(self, period: str) -> date | None:
        """First date of a performance period; None for 'all'."""
        if period == "all":
            return None
        offset = PERFORMANCE_PERIODS.get(period, PERFORMANCE_PERIODS[DEFAULT_PERFORMANCE_PERIOD])
        return (pd.Timestamp(self.today) - offset).date()

    def compute_performance(self, period: str = DEFAULT_PERFORMANCE_PERIOD) -> PortfolioPerformance:
        """
        Group holdings by purchase date and cash flow by entry date.

        Args:
            period: 1m, 3m, 6m, 1y or all. Unknown values mean 1y.

        Returns:
            PortfolioPerformance with ascending date series.
        """
        since = self.period_start(period)

        db = get_db()
        with db.session() as session:
            stock_rows = StockRepository(session).get_purchase_rows(since)
            bond_rows = BondRepository(session).get_purchase_rows(since)
            cashflow_rows = CashflowRepository(session).get_entry_rows(since)

        return PortfolioPerformance(
            period=period,
            stocks=_holding_series(stock_rows),
            bonds=_holding_series(bond_rows),
            cashflow=_cashflow_series(cashflow_rows),
        )

    def capture_snapshot(self) -> PortfolioSnapshot:
        """Record today's totals; re-capturing on the same day overwrites."""
        db = get_db()
        with db.session() as session:
            stocks = StockRepository(session).get_summary()
            bonds = BondRepository(session).get_summary()
            return SnapshotRepository(session).upsert(
                self.today,
                total_stocks_value=stocks["current_value"],
                total_bonds_value=bonds["current_value"],
                total_portfolio_value=stocks["current_value"] + bonds["current_value"],
                total_gain_loss=stocks["total_gain_loss"] + bonds["total_gain_loss"],
            )


def _holding_series(rows: list[dict]) -> list[HoldingPerformancePoint]:
    if not rows:
        return []

    df = pd.DataFrame(rows).groupby("date", as_index=False)[["invested", "current_value"]].sum()
    df = df.sort_values("date")
    return [
        HoldingPerformancePoint(
            date=r.date,
            invested=float(r.invested),
            current_value=float(r.current_value),
            gain_loss=float(r.current_value - r.invested),
        )
        for r in df.itertuples(index=False)
    ]


def _cashflow_series(rows: list[dict]) -> list[CashflowPerformancePoint]:
    if not rows:
        return []

    df = pd.DataFrame(rows)
    pivot = (
        df.pivot_table(index="date", columns="type", values="amount", aggfunc="sum", fill_value=0.0)
        .reindex(columns=["income", "expense"], fill_value=0.0)
        .sort_index()
    )
    return [
        CashflowPerformancePoint(
            date=day,
            income=float(r["income"]),
            expenses=float(r["expense"]),
            net=float(r["income"] - r["expense"]),
        )
        for day, r in pivot.iterrows()
    ]


# Convenience functions
def compute_overview(today: date | None = None) -> PortfolioOverview:
    """Compute the portfolio overview."""
    return PortfolioAnalyzer(today).compute_overview()


def compute_allocation() -> PortfolioAllocation:
    """Compute the asset allocation breakdown."""
    return PortfolioAnalyzer().compute_allocation()


def compute_performance(period: str = DEFAULT_PERFORMANCE_PERIOD, today: date | None = None) -> PortfolioPerformance:
    """Compute performance series for a trailing period."""
    return PortfolioAnalyzer(today).compute_performance(period)


def capture_snapshot(today: date | None = None) -> PortfolioSnapshot:
    """Record today's portfolio totals."""
    return PortfolioAnalyzer(today).capture_snapshot()


def list_snapshots() -> Sequence[PortfolioSnapshot]:
    """Get all recorded snapshots, oldest first."""
    db = get_db()
    with db.session() as session:
        return SnapshotRepository(session).get_all()

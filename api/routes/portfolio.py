"""Portfolio-wide analytics endpoints."""

from dataclasses import asdict

from fastapi import APIRouter
from pydantic.alias_generators import to_camel

import analytics
from api.schemas import (
    AlertsResponse,
    AllocationResponse,
    OverviewResponse,
    PerformanceResponse,
    SnapshotListResponse,
    SnapshotOut,
)

router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


@router.get("/overview", response_model=OverviewResponse)
def portfolio_overview():
    """Totals across stocks and bonds plus the last 30 days of cash flow."""
    overview = analytics.compute_overview()
    return {
        "overview": {
            "total_invested": overview.total_invested,
            "total_current_value": overview.total_current_value,
            "total_gain_loss": overview.total_gain_loss,
            "total_return_percentage": overview.total_return_percentage,
            "recent_net_cashflow": overview.recent_net_cashflow,
            "total_assets": overview.total_assets,
        },
        "stocks": asdict(overview.stocks),
        "bonds": asdict(overview.bonds),
        "cashflow": asdict(overview.cashflow),
    }


@router.get("/performance", response_model=PerformanceResponse)
def portfolio_performance(period: str = "1y"):
    """Holdings grouped by purchase date and cash flow by entry date."""
    return analytics.compute_performance(period)


@router.get("/allocation", response_model=AllocationResponse)
def portfolio_allocation():
    allocation = analytics.compute_allocation()
    return {
        "total_value": allocation.total_value,
        "asset_classes": [
            {"name": s.name, "value": s.value, "percentage": s.percentage}
            for s in allocation.asset_classes
        ],
        "stock_sectors": [
            {"sector": s.name, "value": s.value, "percentage": s.percentage, "count": s.count}
            for s in allocation.stock_sectors
        ],
        "bond_types": [
            {"type": s.name, "value": s.value, "percentage": s.percentage, "count": s.count}
            for s in allocation.bond_types
        ],
    }


@router.get("/alerts", response_model=AlertsResponse)
def portfolio_alerts():
    """Bond maturity and significant price movement alerts."""
    return {
        "alerts": [
            {
                "type": alert.type.value,
                "severity": alert.severity.value,
                "message": alert.message,
                "data": {to_camel(key): value for key, value in alert.data.items()},
            }
            for alert in analytics.compute_alerts()
        ]
    }


@router.get("/snapshots", response_model=SnapshotListResponse)
def list_snapshots():
    return {"snapshots": analytics.list_snapshots()}


@router.post("/snapshots", response_model=SnapshotOut, status_code=201)
def capture_snapshot():
    """Record today's totals, replacing any snapshot already taken today."""
    return analytics.capture_snapshot()

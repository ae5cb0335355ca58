"""
Analytics package initialization.

Exports commonly used analytics functions for convenient imports:
    from analytics import compute_overview, compute_alerts, etc.
"""

from analytics.portfolio import (
    PortfolioAnalyzer,
    PortfolioAllocation,
    PortfolioOverview,
    PortfolioPerformance,
    allocation_share,
    capture_snapshot,
    compute_allocation,
    compute_overview,
    compute_performance,
    list_snapshots,
    percentage_return,
)
from analytics.alerts import (
    Alert,
    AlertEngine,
    AlertSeverity,
    AlertType,
    compute_alerts,
)

__all__ = [
    # Portfolio
    "PortfolioAnalyzer",
    "PortfolioAllocation",
    "PortfolioOverview",
    "PortfolioPerformance",
    "allocation_share",
    "capture_snapshot",
    "compute_allocation",
    "compute_overview",
    "compute_performance",
    "list_snapshots",
    "percentage_return",
    # Alerts
    "Alert",
    "AlertEngine",
    "AlertSeverity",
    "AlertType",
    "compute_alerts",
]

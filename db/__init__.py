"""
Database package initialization.

Exports commonly used components for convenient imports:
    from db import get_db, Stock, Bond, etc.
"""

from db.models import (
    Base,
    Bond,
    BondType,
    CashflowEntry,
    CashflowType,
    PortfolioSnapshot,
    RecurringFrequency,
    Stock,
    StockPriceHistory,
    User,
)
from db.session import (
    DatabaseManager,
    get_db,
    init_db,
)
from db.repositories import (
    BondRepository,
    CashflowRepository,
    SnapshotRepository,
    StockRepository,
    UserRepository,
)

__all__ = [
    # Models
    "Base",
    "Bond",
    "BondType",
    "CashflowEntry",
    "CashflowType",
    "PortfolioSnapshot",
    "RecurringFrequency",
    "Stock",
    "StockPriceHistory",
    "User",
    # Session management
    "DatabaseManager",
    "get_db",
    "init_db",
    # Repositories
    "BondRepository",
    "CashflowRepository",
    "SnapshotRepository",
    "StockRepository",
    "UserRepository",
]

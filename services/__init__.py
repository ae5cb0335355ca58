"""
Services layer for business logic orchestration.

Provides reusable services that are consumed by the CLI, Streamlit and FastAPI.
"""

from services.errors import RecordNotFoundError, RecordValidationError
from services.stock_service import (
    StockSummary,
    create_stock,
    delete_stock,
    get_price_history,
    get_stock,
    get_stock_summary,
    list_stocks,
    update_stock,
)
from services.bond_service import (
    BondSummary,
    UpcomingMaturity,
    create_bond,
    delete_bond,
    get_bond,
    get_bond_summary,
    get_upcoming_maturities,
    list_bonds,
    update_bond,
)
from services.cashflow_service import (
    CashflowSummary,
    CategoryTotal,
    create_entry,
    delete_entry,
    get_cashflow_summary,
    get_category_totals,
    get_entry,
    list_entries,
    update_entry,
)

__all__ = [
    # Errors
    "RecordNotFoundError",
    "RecordValidationError",
    # Stock service
    "StockSummary",
    "create_stock",
    "delete_stock",
    "get_price_history",
    "get_stock",
    "get_stock_summary",
    "list_stocks",
    "update_stock",
    # Bond service
    "BondSummary",
    "UpcomingMaturity",
    "create_bond",
    "delete_bond",
    "get_bond",
    "get_bond_summary",
    "get_upcoming_maturities",
    "list_bonds",
    "update_bond",
    # Cashflow service
    "CashflowSummary",
    "CategoryTotal",
    "create_entry",
    "delete_entry",
    "get_cashflow_summary",
    "get_category_totals",
    "get_entry",
    "list_entries",
    "update_entry",
]

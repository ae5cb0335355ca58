"""
Stock Service - Handles stock holding CRUD and summary.

This service layer provides functionality for:
- Adding, repricing, editing and removing stock holdings
- Recording price history when the current price changes
- Portfolio-level gain/loss summary for stocks
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from analytics.portfolio import percentage_return
from db import Stock, StockPriceHistory, get_db
from db.repositories import StockRepository
from services.errors import RecordNotFoundError, RecordValidationError


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("quantity", "purchase_price", "current_price", "sector", "notes")


@dataclass
class StockSummary:
    """Aggregated stock holdings metrics."""
    total_stocks: int
    total_invested: float
    current_value: float
    total_gain_loss: float
    percentage_return: float


def _require_positive(fields: dict[str, Any], names: Sequence[str]) -> None:
    for name in names:
        value = fields.get(name)
        if value is not None and value <= 0:
            raise RecordValidationError(f"{name} must be positive")


def list_stocks() -> Sequence[Stock]:
    """Get all stocks ordered by symbol."""
    db = get_db()
    with db.session() as session:
        return StockRepository(session).get_all()


def get_stock(stock_id: int) -> Stock:
    """
    Get a single stock.

    Raises:
        RecordNotFoundError: If no stock has this ID.
    """
    db = get_db()
    with db.session() as session:
        stock = StockRepository(session).get_by_id(stock_id)
        if stock is None:
            raise RecordNotFoundError("Stock", stock_id)
        return stock


def create_stock(
    symbol: str,
    company_name: str,
    quantity: float,
    purchase_price: float,
    purchase_date: date,
    sector: str | None = None,
    notes: str | None = None,
) -> Stock:
    """
    Add a stock holding. Current price starts at the purchase price.

    Raises:
        RecordValidationError: If the symbol is already held or a
            quantity/price is not positive.
    """
    symbol = symbol.strip().upper()
    _require_positive(
        {"quantity": quantity, "purchase_price": purchase_price},
        ("quantity", "purchase_price"),
    )

    db = get_db()
    with db.session() as session:
        repo = StockRepository(session)
        if repo.get_by_symbol(symbol):
            raise RecordValidationError("Stock already exists in portfolio")

        stock = repo.create(
            symbol=symbol,
            company_name=company_name,
            quantity=quantity,
            purchase_price=purchase_price,
            purchase_date=purchase_date,
            sector=sector,
            notes=notes,
        )
        logger.info(f"Added stock {symbol}: {quantity} @ {purchase_price}")
        return stock


def update_stock(stock_id: int, **fields: Any) -> Stock:
    """
    Patch a stock with the given fields only.

    A changed current_price is also appended to the price history.

    Raises:
        RecordNotFoundError: If no stock has this ID.
        RecordValidationError: If no updatable field is given.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise RecordValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if not fields:
        raise RecordValidationError("No fields to update")
    _require_positive(fields, ("quantity", "purchase_price", "current_price"))

    db = get_db()
    with db.session() as session:
        repo = StockRepository(session)
        stock = repo.get_by_id(stock_id)
        if stock is None:
            raise RecordNotFoundError("Stock", stock_id)

        new_price = fields.get("current_price")
        if new_price is not None and new_price != stock.current_price:
            repo.add_price_history(stock.id, new_price)

        repo.update(stock, **fields)
        logger.info(f"Updated stock {stock.symbol}: {', '.join(sorted(fields))}")
        return stock


def delete_stock(stock_id: int) -> None:
    """
    Remove a stock holding and its price history.

    Raises:
        RecordNotFoundError: If no stock has this ID.
    """
    db = get_db()
    with db.session() as session:
        repo = StockRepository(session)
        stock = repo.get_by_id(stock_id)
        if stock is None:
            raise RecordNotFoundError("Stock", stock_id)
        repo.delete(stock)
        logger.info(f"Deleted stock {stock.symbol}")


def get_price_history(stock_id: int) -> Sequence[StockPriceHistory]:
    """
    Get recorded price changes for a stock, newest first.

    Raises:
        RecordNotFoundError: If no stock has this ID.
    """
    db = get_db()
    with db.session() as session:
        repo = StockRepository(session)
        if repo.get_by_id(stock_id) is None:
            raise RecordNotFoundError("Stock", stock_id)
        return repo.get_price_history(stock_id)


def get_stock_summary() -> StockSummary:
    """Totals across all stock holdings."""
    db = get_db()
    with db.session() as session:
        totals = StockRepository(session).get_summary()

    return StockSummary(
        total_stocks=totals["total_stocks"],
        total_invested=totals["total_invested"],
        current_value=totals["current_value"],
        total_gain_loss=totals["total_gain_loss"],
        percentage_return=percentage_return(totals["total_gain_loss"], totals["total_invested"]),
    )

"""
Cashflow Service - Handles income/expense entries and period summaries.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Sequence

from db import CashflowEntry, CashflowType, RecurringFrequency, get_db
from db.repositories import CashflowRepository
from services.errors import RecordNotFoundError, RecordValidationError


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "category",
    "amount",
    "description",
    "date",
    "is_recurring",
    "recurring_frequency",
    "tags",
)

# Summary windows, in days back from today
PERIOD_DAYS = {
    "weekly": 7,
    "monthly": 30,
    "quarterly": 90,
    "yearly": 365,
}
DEFAULT_PERIOD_DAYS = PERIOD_DAYS["monthly"]


@dataclass
class CashflowSummary:
    """Income vs expenses over a reporting window."""
    period: str
    total_income: float
    total_expenses: float
    net_cashflow: float
    income_count: int
    expense_count: int
    savings_rate: float


@dataclass
class CategoryTotal:
    """Spending or earning total for one category."""
    category: str
    type: str
    total_amount: float
    transaction_count: int
    average_amount: float


def period_start(period: str, today: date | None = None) -> date:
    """First date of a summary window; unknown periods fall back to 30 days."""
    today = today or date.today()
    return today - timedelta(days=PERIOD_DAYS.get(period, DEFAULT_PERIOD_DAYS))


def savings_rate(net: float, income: float) -> float:
    """Net cash flow as a percentage of income; 0 when there is no income."""
    return net / income * 100 if income > 0 else 0.0


def _coerce_enums(fields: dict[str, Any]) -> dict[str, Any]:
    try:
        if fields.get("type") is not None:
            fields["type"] = CashflowType(fields["type"])
        if fields.get("recurring_frequency") is not None:
            fields["recurring_frequency"] = RecurringFrequency(fields["recurring_frequency"])
    except ValueError as e:
        raise RecordValidationError(str(e)) from None

    amount = fields.get("amount")
    if amount is not None and amount <= 0:
        raise RecordValidationError("amount must be positive")
    return fields


def parse_entry_type(value: str | None) -> CashflowType | None:
    """Map a loose type filter to CashflowType; anything else means no filter."""
    try:
        return CashflowType(value) if value else None
    except ValueError:
        return None


def list_entries(
    entry_type: CashflowType | str | None = None,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = 100,
    offset: int = 0,
) -> Sequence[CashflowEntry]:
    """Get entries, newest first. Invalid type filters are ignored."""
    if isinstance(entry_type, str):
        entry_type = parse_entry_type(entry_type)

    db = get_db()
    with db.session() as session:
        return CashflowRepository(session).list_entries(
            entry_type=entry_type,
            category=category,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )


def get_entry(entry_id: int) -> CashflowEntry:
    """
    Get a single cash flow entry.

    Raises:
        RecordNotFoundError: If no entry has this ID.
    """
    db = get_db()
    with db.session() as session:
        entry = CashflowRepository(session).get_by_id(entry_id)
        if entry is None:
            raise RecordNotFoundError("Cashflow entry", entry_id)
        return entry


def create_entry(
    type: CashflowType | str,
    category: str,
    amount: float,
    description: str,
    date: date,
    is_recurring: bool = False,
    recurring_frequency: RecurringFrequency | str | None = None,
    tags: list[str] | None = None,
) -> CashflowEntry:
    """
    Record an income or expense.

    Raises:
        RecordValidationError: On an unknown type/frequency or non-positive amount.
    """
    fields = _coerce_enums(
        {
            "type": type,
            "category": category,
            "amount": amount,
            "description": description,
            "date": date,
            "is_recurring": is_recurring,
            "recurring_frequency": recurring_frequency,
            "tags": list(tags or []),
        }
    )

    db = get_db()
    with db.session() as session:
        entry = CashflowRepository(session).create(**fields)
        logger.info(f"Added {entry.type.value} {entry.category}: {entry.amount}")
        return entry


def update_entry(entry_id: int, **fields: Any) -> CashflowEntry:
    """
    Patch a cash flow entry with the given fields only.

    Raises:
        RecordNotFoundError: If no entry has this ID.
        RecordValidationError: If no updatable field is given.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise RecordValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if not fields:
        raise RecordValidationError("No fields to update")
    fields = _coerce_enums(dict(fields))

    db = get_db()
    with db.session() as session:
        repo = CashflowRepository(session)
        entry = repo.get_by_id(entry_id)
        if entry is None:
            raise RecordNotFoundError("Cashflow entry", entry_id)
        repo.update(entry, **fields)
        logger.info(f"Updated cashflow entry {entry_id}: {', '.join(sorted(fields))}")
        return entry


def delete_entry(entry_id: int) -> None:
    """
    Remove a cash flow entry.

    Raises:
        RecordNotFoundError: If no entry has this ID.
    """
    db = get_db()
    with db.session() as session:
        repo = CashflowRepository(session)
        entry = repo.get_by_id(entry_id)
        if entry is None:
            raise RecordNotFoundError("Cashflow entry", entry_id)
        repo.delete(entry)
        logger.info(f"Deleted cashflow entry {entry_id}")


def get_cashflow_summary(period: str = "monthly", today: date | None = None) -> CashflowSummary:
    """
    Income, expenses and savings rate over a trailing window.

    Args:
        period: weekly (7d), monthly (30d), quarterly (90d) or yearly (365d).
            Unknown values use the 30-day window and are echoed back.
        today: Reference date (defaults to today)
    """
    db = get_db()
    with db.session() as session:
        totals = CashflowRepository(session).get_totals(since=period_start(period, today))

    net = totals["total_income"] - totals["total_expenses"]
    return CashflowSummary(
        period=period,
        total_income=totals["total_income"],
        total_expenses=totals["total_expenses"],
        net_cashflow=net,
        income_count=totals["income_count"],
        expense_count=totals["expense_count"],
        savings_rate=savings_rate(net, totals["total_income"]),
    )


def get_category_totals(
    entry_type: CashflowType | str | None = None,
    period: str = "monthly",
    today: date | None = None,
) -> list[CategoryTotal]:
    """Per-category totals over a trailing window, largest first."""
    if isinstance(entry_type, str):
        entry_type = parse_entry_type(entry_type)

    db = get_db()
    with db.session() as session:
        rows = CashflowRepository(session).get_category_totals(
            since=period_start(period, today),
            entry_type=entry_type,
        )
    return [CategoryTotal(**row) for row in rows]

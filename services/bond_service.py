"""
Bond Service - Handles bond holding CRUD, summary and maturity lookups.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Sequence

from analytics.portfolio import percentage_return
from config import config
from db import Bond, BondType, get_db
from db.repositories import BondRepository
from services.errors import RecordNotFoundError, RecordValidationError


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("face_value", "coupon_rate", "purchase_price", "current_price", "rating", "notes")


@dataclass
class BondSummary:
    """Aggregated bond holdings metrics."""
    total_bonds: int
    total_invested: float
    current_value: float
    total_gain_loss: float
    total_annual_income: float
    average_coupon_rate: float
    percentage_return: float


@dataclass
class UpcomingMaturity:
    """Bond maturing inside the lookahead window."""
    id: int
    issuer: str
    bond_type: BondType
    face_value: float
    maturity_date: date
    days_to_maturity: int


def _validate_amounts(fields: dict[str, Any]) -> None:
    for name in ("face_value", "purchase_price", "current_price"):
        value = fields.get(name)
        if value is not None and value <= 0:
            raise RecordValidationError(f"{name} must be positive")

    coupon = fields.get("coupon_rate")
    if coupon is not None and not 0 <= coupon <= 100:
        raise RecordValidationError("coupon_rate must be between 0 and 100")


def list_bonds() -> Sequence[Bond]:
    """Get all bonds ordered by maturity date."""
    db = get_db()
    with db.session() as session:
        return BondRepository(session).get_all()


def get_bond(bond_id: int) -> Bond:
    """
    Get a single bond.

    Raises:
        RecordNotFoundError: If no bond has this ID.
    """
    db = get_db()
    with db.session() as session:
        bond = BondRepository(session).get_by_id(bond_id)
        if bond is None:
            raise RecordNotFoundError("Bond", bond_id)
        return bond


def create_bond(
    issuer: str,
    bond_type: BondType | str,
    face_value: float,
    coupon_rate: float,
    maturity_date: date,
    purchase_price: float,
    purchase_date: date,
    rating: str | None = None,
    notes: str | None = None,
    today: date | None = None,
) -> Bond:
    """
    Add a bond holding. Current price starts at the purchase price.

    Args:
        issuer: Issuing entity name
        bond_type: One of government, corporate, municipal, treasury
        face_value: Par value of the holding
        coupon_rate: Annual coupon in percent (0-100)
        maturity_date: Must be after today
        purchase_price: Total price paid
        purchase_date: Date of purchase
        rating: Optional credit rating (e.g. "AA+")
        notes: Optional free text
        today: Reference date (defaults to today)

    Raises:
        RecordValidationError: On an unknown bond type, a non-positive amount,
            an out-of-range coupon, or a maturity date not in the future.
    """
    today = today or date.today()
    try:
        bond_type = BondType(bond_type)
    except ValueError:
        raise RecordValidationError(f"Invalid bond type: {bond_type}") from None

    _validate_amounts(
        {"face_value": face_value, "purchase_price": purchase_price, "coupon_rate": coupon_rate}
    )
    if maturity_date <= today:
        raise RecordValidationError("maturity_date must be in the future")

    db = get_db()
    with db.session() as session:
        bond = BondRepository(session).create(
            issuer=issuer,
            bond_type=bond_type,
            face_value=face_value,
            coupon_rate=coupon_rate,
            maturity_date=maturity_date,
            purchase_price=purchase_price,
            purchase_date=purchase_date,
            rating=rating,
            notes=notes,
        )
        logger.info(f"Added {bond_type.value} bond {issuer} maturing {maturity_date}")
        return bond


def update_bond(bond_id: int, **fields: Any) -> Bond:
    """
    Patch a bond with the given fields only.

    Raises:
        RecordNotFoundError: If no bond has this ID.
        RecordValidationError: If no updatable field is given.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise RecordValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if not fields:
        raise RecordValidationError("No fields to update")
    _validate_amounts(fields)

    db = get_db()
    with db.session() as session:
        repo = BondRepository(session)
        bond = repo.get_by_id(bond_id)
        if bond is None:
            raise RecordNotFoundError("Bond", bond_id)
        repo.update(bond, **fields)
        logger.info(f"Updated bond {bond.issuer}: {', '.join(sorted(fields))}")
        return bond


def delete_bond(bond_id: int) -> None:
    """
    Remove a bond holding.

    Raises:
        RecordNotFoundError: If no bond has this ID.
    """
    db = get_db()
    with db.session() as session:
        repo = BondRepository(session)
        bond = repo.get_by_id(bond_id)
        if bond is None:
            raise RecordNotFoundError("Bond", bond_id)
        repo.delete(bond)
        logger.info(f"Deleted bond {bond.issuer}")


def get_bond_summary() -> BondSummary:
    """Totals across all bond holdings."""
    db = get_db()
    with db.session() as session:
        totals = BondRepository(session).get_summary()

    return BondSummary(
        **totals,
        percentage_return=percentage_return(totals["total_gain_loss"], totals["total_invested"]),
    )


def get_upcoming_maturities(
    days: int | None = None,
    today: date | None = None,
) -> list[UpcomingMaturity]:
    """
    Get bonds maturing between today and today + days (inclusive).

    Args:
        days: Lookahead window (default config.alerts.upcoming_maturity_days)
        today: Reference date (defaults to today)
    """
    today = today or date.today()
    if days is None:
        days = config.alerts.upcoming_maturity_days

    db = get_db()
    with db.session() as session:
        bonds = BondRepository(session).get_maturing_between(today, today + timedelta(days=days))

    return [
        UpcomingMaturity(
            id=b.id,
            issuer=b.issuer,
            bond_type=b.bond_type,
            face_value=b.face_value,
            maturity_date=b.maturity_date,
            days_to_maturity=(b.maturity_date - today).days,
        )
        for b in bonds
    ]

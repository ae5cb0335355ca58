"""
Repository pattern for data access operations.

Provides a clean abstraction layer between business logic and database operations.
Every repository is scoped to the single portfolio owner (config.user.user_id).
"""

from datetime import date
from typing import Any, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from config import config
from db.models import (
    MONEY_SCALE,
    Bond,
    CashflowEntry,
    CashflowType,
    PortfolioSnapshot,
    Stock,
    StockPriceHistory,
    User,
)


def _num(value: Any) -> float:
    """Coerce a nullable SQL aggregate to float."""
    return float(value) if value is not None else 0.0


class _UserScopedRepository:
    """Base for repositories whose rows belong to the portfolio owner."""

    def __init__(self, session: Session, user_id: int | None = None):
        self.session = session
        self.user_id = user_id if user_id is not None else config.user.user_id

    def _apply(self, record: Any, fields: dict[str, Any]) -> Any:
        for key, value in fields.items():
            setattr(record, key, value)
        self.session.flush()
        return record

    def delete(self, record: Any) -> None:
        """Hard-delete a record."""
        self.session.delete(record)
        self.session.flush()


class UserRepository:
    """Repository for the single portfolio user."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        return self.session.get(User, user_id)

    def get_or_create_default(self) -> tuple[User, bool]:
        """
        Get the configured owner row, inserting it if missing.

        Returns:
            Tuple of (user, created) where created is True if new.
        """
        owner = config.user
        user = self.get_by_id(owner.user_id)
        if user:
            return user, False

        user = User(
            id=owner.user_id,
            username=owner.username,
            email=owner.email,
            password="not_used",
            first_name=owner.first_name,
            last_name=owner.last_name,
        )
        self.session.add(user)
        self.session.flush()
        return user, True


class StockRepository(_UserScopedRepository):
    """Repository for stock holdings."""

    @staticmethod
    def _price_expr():
        return func.coalesce(Stock.current_price, Stock.purchase_price)

    def get_by_id(self, stock_id: int) -> Stock | None:
        """Get stock by ID."""
        stmt = select(Stock).where(Stock.id == stock_id, Stock.user_id == self.user_id)
        return self.session.scalar(stmt)

    def get_by_symbol(self, symbol: str) -> Stock | None:
        """Get stock by ticker symbol."""
        stmt = select(Stock).where(
            Stock.user_id == self.user_id, Stock.symbol == symbol.upper()
        )
        return self.session.scalar(stmt)

    def get_all(self) -> Sequence[Stock]:
        """Get all stocks ordered by symbol."""
        stmt = select(Stock).where(Stock.user_id == self.user_id).order_by(Stock.symbol)
        return self.session.scalars(stmt).all()

    def create(self, **fields: Any) -> Stock:
        """Create a new stock, priced at its purchase price."""
        fields.setdefault("current_price", fields.get("purchase_price"))
        stock = Stock(user_id=self.user_id, **fields)
        self.session.add(stock)
        self.session.flush()  # Get the ID
        return stock

    def update(self, stock: Stock, **fields: Any) -> Stock:
        """Apply a partial field update."""
        return self._apply(stock, fields)

    def get_summary(self) -> dict[str, float]:
        """Aggregate invested and current value across all stocks."""
        price = self._price_expr()
        stmt = select(
            func.count(Stock.id).label("total_stocks"),
            func.sum(Stock.quantity * Stock.purchase_price).label("total_invested"),
            func.sum(Stock.quantity * price).label("current_value"),
            func.sum(Stock.quantity * (price - Stock.purchase_price)).label("total_gain_loss"),
        ).where(Stock.user_id == self.user_id)

        row = self.session.execute(stmt).one()
        return {
            "total_stocks": row.total_stocks or 0,
            "total_invested": _num(row.total_invested),
            "current_value": _num(row.current_value),
            "total_gain_loss": _num(row.total_gain_loss),
        }

    def get_sector_allocation(self) -> list[dict]:
        """Current value grouped by sector, largest first."""
        sector = func.coalesce(Stock.sector, "Unknown").label("sector_name")
        value = func.sum(Stock.quantity * self._price_expr()).label("value")
        stmt = (
            select(sector, value, func.count(Stock.id).label("count"))
            .where(Stock.user_id == self.user_id)
            .group_by(sector)
            .order_by(value.desc())
        )
        return [
            {"sector": r.sector_name, "value": _num(r.value), "count": r.count}
            for r in self.session.execute(stmt).all()
        ]

    def get_movers(self, min_abs_change_pct: float) -> Sequence[Stock]:
        """
        Get repriced stocks whose price moved at least the given percent.

        Stocks without a current price are excluded. Ordered by the size
        of the move, largest first.
        """
        change = func.round(
            func.abs((Stock.current_price - Stock.purchase_price) * 100.0 / Stock.purchase_price),
            MONEY_SCALE,
        )
        stmt = (
            select(Stock)
            .where(
                Stock.user_id == self.user_id,
                Stock.current_price.is_not(None),
                Stock.purchase_price > 0,
                change >= min_abs_change_pct,
            )
            .order_by(change.desc())
        )
        return self.session.scalars(stmt).all()

    def get_purchase_rows(self, since: date | None = None) -> list[dict]:
        """Invested and current value per stock, for performance analytics."""
        stmt = select(
            Stock.purchase_date,
            (Stock.quantity * Stock.purchase_price).label("invested"),
            (Stock.quantity * self._price_expr()).label("current_value"),
        ).where(Stock.user_id == self.user_id)
        if since:
            stmt = stmt.where(Stock.purchase_date >= since)

        return [
            {
                "date": r.purchase_date,
                "invested": _num(r.invested),
                "current_value": _num(r.current_value),
            }
            for r in self.session.execute(stmt).all()
        ]

    def add_price_history(self, stock_id: int, price: float) -> StockPriceHistory:
        """Record a current-price change."""
        entry = StockPriceHistory(stock_id=stock_id, price=price)
        self.session.add(entry)
        self.session.flush()
        return entry

    def get_price_history(self, stock_id: int) -> Sequence[StockPriceHistory]:
        """Get recorded prices for a stock, newest first."""
        stmt = (
            select(StockPriceHistory)
            .where(StockPriceHistory.stock_id == stock_id)
            .order_by(StockPriceHistory.recorded_at.desc(), StockPriceHistory.id.desc())
        )
        return self.session.scalars(stmt).all()


class BondRepository(_UserScopedRepository):
    """Repository for bond holdings."""

    @staticmethod
    def _value_expr():
        return func.coalesce(Bond.current_price, Bond.purchase_price)

    def get_by_id(self, bond_id: int) -> Bond | None:
        """Get bond by ID."""
        stmt = select(Bond).where(Bond.id == bond_id, Bond.user_id == self.user_id)
        return self.session.scalar(stmt)

    def get_all(self) -> Sequence[Bond]:
        """Get all bonds ordered by maturity date."""
        stmt = (
            select(Bond)
            .where(Bond.user_id == self.user_id)
            .order_by(Bond.maturity_date, Bond.id)
        )
        return self.session.scalars(stmt).all()

    def create(self, **fields: Any) -> Bond:
        """Create a new bond, priced at its purchase price."""
        fields.setdefault("current_price", fields.get("purchase_price"))
        bond = Bond(user_id=self.user_id, **fields)
        self.session.add(bond)
        self.session.flush()
        return bond

    def update(self, bond: Bond, **fields: Any) -> Bond:
        """Apply a partial field update."""
        return self._apply(bond, fields)

    def get_summary(self) -> dict[str, float]:
        """Aggregate value, gain/loss and coupon income across all bonds."""
        value = self._value_expr()
        stmt = select(
            func.count(Bond.id).label("total_bonds"),
            func.sum(Bond.purchase_price).label("total_invested"),
            func.sum(value).label("current_value"),
            func.sum(value - Bond.purchase_price).label("total_gain_loss"),
            func.sum(Bond.face_value * Bond.coupon_rate / 100.0).label("total_annual_income"),
            func.avg(Bond.coupon_rate).label("average_coupon_rate"),
        ).where(Bond.user_id == self.user_id)

        row = self.session.execute(stmt).one()
        return {
            "total_bonds": row.total_bonds or 0,
            "total_invested": _num(row.total_invested),
            "current_value": _num(row.current_value),
            "total_gain_loss": _num(row.total_gain_loss),
            "total_annual_income": _num(row.total_annual_income),
            "average_coupon_rate": _num(row.average_coupon_rate),
        }

    def get_maturing_between(self, start: date, end: date) -> Sequence[Bond]:
        """Get bonds whose maturity date falls in [start, end]."""
        stmt = (
            select(Bond)
            .where(
                Bond.user_id == self.user_id,
                Bond.maturity_date >= start,
                Bond.maturity_date <= end,
            )
            .order_by(Bond.maturity_date, Bond.id)
        )
        return self.session.scalars(stmt).all()

    def get_type_allocation(self) -> list[dict]:
        """Current value grouped by bond type, largest first."""
        value = func.sum(self._value_expr()).label("value")
        stmt = (
            select(Bond.bond_type, value, func.count(Bond.id).label("count"))
            .where(Bond.user_id == self.user_id)
            .group_by(Bond.bond_type)
            .order_by(value.desc())
        )
        return [
            {"type": r.bond_type.value, "value": _num(r.value), "count": r.count}
            for r in self.session.execute(stmt).all()
        ]

    def get_purchase_rows(self, since: date | None = None) -> list[dict]:
        """Invested and current value per bond, for performance analytics."""
        stmt = select(
            Bond.purchase_date,
            Bond.purchase_price.label("invested"),
            self._value_expr().label("current_value"),
        ).where(Bond.user_id == self.user_id)
        if since:
            stmt = stmt.where(Bond.purchase_date >= since)

        return [
            {
                "date": r.purchase_date,
                "invested": _num(r.invested),
                "current_value": _num(r.current_value),
            }
            for r in self.session.execute(stmt).all()
        ]


class CashflowRepository(_UserScopedRepository):
    """Repository for income and expense entries."""

    def get_by_id(self, entry_id: int) -> CashflowEntry | None:
        """Get cash flow entry by ID."""
        stmt = select(CashflowEntry).where(
            CashflowEntry.id == entry_id, CashflowEntry.user_id == self.user_id
        )
        return self.session.scalar(stmt)

    def list_entries(
        self,
        entry_type: CashflowType | None = None,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[CashflowEntry]:
        """Get entries with optional filters, newest first."""
        stmt = select(CashflowEntry).where(CashflowEntry.user_id == self.user_id)

        if entry_type:
            stmt = stmt.where(CashflowEntry.type == entry_type)
        if category:
            stmt = stmt.where(CashflowEntry.category == category)
        if start_date:
            stmt = stmt.where(CashflowEntry.date >= start_date)
        if end_date:
            stmt = stmt.where(CashflowEntry.date <= end_date)

        stmt = (
            stmt.order_by(
                CashflowEntry.date.desc(),
                CashflowEntry.created_at.desc(),
                CashflowEntry.id.desc(),
            )
            .limit(limit)
            .offset(offset)
        )
        return self.session.scalars(stmt).all()

    def create(self, **fields: Any) -> CashflowEntry:
        """Create a new cash flow entry."""
        if fields.get("tags") is None:
            fields["tags"] = []
        entry = CashflowEntry(user_id=self.user_id, **fields)
        self.session.add(entry)
        self.session.flush()
        return entry

    def update(self, entry: CashflowEntry, **fields: Any) -> CashflowEntry:
        """Apply a partial field update."""
        if "tags" in fields and fields["tags"] is None:
            fields["tags"] = []
        return self._apply(entry, fields)

    def get_totals(self, since: date | None = None) -> dict[str, float]:
        """Income/expense totals and counts on or after a date."""
        is_income = CashflowEntry.type == CashflowType.INCOME
        is_expense = CashflowEntry.type == CashflowType.EXPENSE
        stmt = select(
            func.sum(case((is_income, CashflowEntry.amount), else_=0)).label("total_income"),
            func.sum(case((is_expense, CashflowEntry.amount), else_=0)).label("total_expenses"),
            func.count(case((is_income, 1))).label("income_count"),
            func.count(case((is_expense, 1))).label("expense_count"),
        ).where(CashflowEntry.user_id == self.user_id)
        if since:
            stmt = stmt.where(CashflowEntry.date >= since)

        row = self.session.execute(stmt).one()
        return {
            "total_income": _num(row.total_income),
            "total_expenses": _num(row.total_expenses),
            "income_count": row.income_count or 0,
            "expense_count": row.expense_count or 0,
        }

    def get_category_totals(
        self,
        since: date | None = None,
        entry_type: CashflowType | None = None,
    ) -> list[dict]:
        """Totals grouped by (category, type), largest first."""
        total = func.sum(CashflowEntry.amount).label("total_amount")
        stmt = (
            select(
                CashflowEntry.category,
                CashflowEntry.type,
                total,
                func.count(CashflowEntry.id).label("transaction_count"),
                func.avg(CashflowEntry.amount).label("average_amount"),
            )
            .where(CashflowEntry.user_id == self.user_id)
        )
        if since:
            stmt = stmt.where(CashflowEntry.date >= since)
        if entry_type:
            stmt = stmt.where(CashflowEntry.type == entry_type)

        stmt = stmt.group_by(CashflowEntry.category, CashflowEntry.type).order_by(total.desc())
        return [
            {
                "category": r.category,
                "type": r.type.value,
                "total_amount": _num(r.total_amount),
                "transaction_count": r.transaction_count,
                "average_amount": _num(r.average_amount),
            }
            for r in self.session.execute(stmt).all()
        ]

    def get_entry_rows(self, since: date | None = None) -> list[dict]:
        """Dated income/expense amounts, for performance analytics."""
        stmt = select(CashflowEntry.date, CashflowEntry.type, CashflowEntry.amount).where(
            CashflowEntry.user_id == self.user_id
        )
        if since:
            stmt = stmt.where(CashflowEntry.date >= since)

        return [
            {"date": r.date, "type": r.type.value, "amount": _num(r.amount)}
            for r in self.session.execute(stmt).all()
        ]


class SnapshotRepository(_UserScopedRepository):
    """Repository for daily portfolio snapshots."""

    def get_by_date(self, snapshot_date: date) -> PortfolioSnapshot | None:
        stmt = select(PortfolioSnapshot).where(
            PortfolioSnapshot.user_id == self.user_id,
            PortfolioSnapshot.snapshot_date == snapshot_date,
        )
        return self.session.scalar(stmt)

    def get_all(self) -> Sequence[PortfolioSnapshot]:
        """Get all snapshots, oldest first."""
        stmt = (
            select(PortfolioSnapshot)
            .where(PortfolioSnapshot.user_id == self.user_id)
            .order_by(PortfolioSnapshot.snapshot_date)
        )
        return self.session.scalars(stmt).all()

    def upsert(self, snapshot_date: date, **totals: float) -> PortfolioSnapshot:
        """Insert or overwrite the snapshot for a date (idempotent)."""
        snapshot = self.get_by_date(snapshot_date)
        if snapshot is None:
            snapshot = PortfolioSnapshot(
                user_id=self.user_id, snapshot_date=snapshot_date, **totals
            )
            self.session.add(snapshot)
            self.session.flush()
            return snapshot
        return self._apply(snapshot, totals)

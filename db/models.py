"""
SQLAlchemy ORM Models for the Portfolio Manager.

Defines all database entities for the single-user tracker:
- Users (one fixed owner row)
- Stocks (holdings with purchase and current price)
- Bonds (fixed income with coupon and maturity)
- Cash flow entries (income and expenses)
- Stock price history and portfolio snapshots
"""

import datetime as dt
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# Monetary columns are stored as fixed-point and read back as floats.
# Derived percentages are rounded to the same scale before comparison.
MONEY_SCALE = 4
Money = Numeric(15, MONEY_SCALE, asdecimal=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class BondType(str, Enum):
    """Closed set of bond categories."""
    GOVERNMENT = "government"
    CORPORATE = "corporate"
    MUNICIPAL = "municipal"
    TREASURY = "treasury"


class CashflowType(str, Enum):
    """Direction of a cash flow entry."""
    INCOME = "income"
    EXPENSE = "expense"


class RecurringFrequency(str, Enum):
    """Recurrence interval for repeating cash flow entries."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class User(Base):
    """
    Portfolio owner.

    The system is single-user: exactly one row (see config.user) is
    created at start-up and every other record references it.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username!r})>"


class Stock(Base):
    """
    Equity holding.

    One row per symbol. current_price is NULL until it is set; the
    purchase price is used for valuation until then.
    """
    __tablename__ = "stocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float] = mapped_column(Money, nullable=False)
    purchase_price: Mapped[float] = mapped_column(Money, nullable=False)
    current_price: Mapped[Optional[float]] = mapped_column(Money)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    sector: Mapped[Optional[str]] = mapped_column(String(100))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    # Relationships
    price_history: Mapped[list["StockPriceHistory"]] = relationship(
        "StockPriceHistory", back_populates="stock", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "symbol", name="uq_stocks_user_symbol"),
        CheckConstraint("quantity >= 0", name="ck_stocks_quantity"),
        CheckConstraint("purchase_price >= 0", name="ck_stocks_purchase_price"),
        CheckConstraint("current_price IS NULL OR current_price >= 0", name="ck_stocks_current_price"),
        Index("idx_stocks_sector", "sector"),
        Index("idx_stocks_purchase_date", "purchase_date"),
    )

    @property
    def effective_price(self) -> float:
        """Current price, falling back to purchase price."""
        return self.current_price if self.current_price is not None else self.purchase_price

    @property
    def invested_value(self) -> float:
        return self.quantity * self.purchase_price

    @property
    def current_value(self) -> float:
        return self.quantity * self.effective_price

    @property
    def unrealized_gain_loss(self) -> float:
        return self.quantity * (self.effective_price - self.purchase_price)

    @property
    def percentage_change(self) -> float:
        """Price change vs purchase price, in percent."""
        if not self.purchase_price:
            return 0.0
        change = (self.effective_price - self.purchase_price) / self.purchase_price * 100
        return round(change, MONEY_SCALE)

    def __repr__(self) -> str:
        return f"<Stock(id={self.id}, symbol={self.symbol}, quantity={self.quantity})>"


class StockPriceHistory(Base):
    """Current-price changes recorded when a stock is repriced."""
    __tablename__ = "stock_price_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stock_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False
    )
    price: Mapped[float] = mapped_column(Money, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    stock: Mapped["Stock"] = relationship("Stock", back_populates="price_history")

    __table_args__ = (
        Index("idx_price_history_stock_date", "stock_id", "recorded_at"),
    )

    def __repr__(self) -> str:
        return f"<StockPriceHistory(stock_id={self.stock_id}, price={self.price})>"


class Bond(Base):
    """
    Fixed income holding.

    purchase_price and current_price are totals for the position,
    not per-unit quotes.
    """
    __tablename__ = "bonds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    issuer: Mapped[str] = mapped_column(String(255), nullable=False)
    bond_type: Mapped[BondType] = mapped_column(
        SQLEnum(BondType, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    face_value: Mapped[float] = mapped_column(Money, nullable=False)
    coupon_rate: Mapped[float] = mapped_column(Numeric(7, 4, asdecimal=False), nullable=False)
    maturity_date: Mapped[date] = mapped_column(Date, nullable=False)
    purchase_price: Mapped[float] = mapped_column(Money, nullable=False)
    current_price: Mapped[Optional[float]] = mapped_column(Money)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    rating: Mapped[Optional[str]] = mapped_column(String(10))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("face_value >= 0", name="ck_bonds_face_value"),
        CheckConstraint("coupon_rate >= 0 AND coupon_rate <= 100", name="ck_bonds_coupon_rate"),
        CheckConstraint("purchase_price >= 0", name="ck_bonds_purchase_price"),
        CheckConstraint("current_price IS NULL OR current_price >= 0", name="ck_bonds_current_price"),
        Index("idx_bonds_user_maturity", "user_id", "maturity_date"),
    )

    @property
    def current_value(self) -> float:
        return self.current_price if self.current_price is not None else self.purchase_price

    @property
    def gain_loss(self) -> float:
        return self.current_value - self.purchase_price

    @property
    def annual_coupon(self) -> float:
        return self.face_value * self.coupon_rate / 100

    @property
    def days_to_maturity(self) -> int:
        return (self.maturity_date - date.today()).days

    def __repr__(self) -> str:
        return f"<Bond(id={self.id}, issuer={self.issuer!r}, maturity={self.maturity_date})>"


class CashflowEntry(Base):
    """Single income or expense record."""
    __tablename__ = "cashflow"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[CashflowType] = mapped_column(
        SQLEnum(CashflowType, native_enum=False, length=10, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[float] = mapped_column(Money, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurring_frequency: Mapped[Optional[RecurringFrequency]] = mapped_column(
        SQLEnum(
            RecurringFrequency,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        )
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_cashflow_amount"),
        Index("idx_cashflow_user_date", "user_id", "date"),
        Index("idx_cashflow_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<CashflowEntry(id={self.id}, type={self.type}, amount={self.amount})>"


class PortfolioSnapshot(Base):
    """
    Point-in-time portfolio totals, one per user per day.

    Captured on demand; re-capturing on the same day overwrites the row.
    """
    __tablename__ = "portfolio_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_stocks_value: Mapped[float] = mapped_column(Money, nullable=False, default=0.0)
    total_bonds_value: Mapped[float] = mapped_column(Money, nullable=False, default=0.0)
    total_portfolio_value: Mapped[float] = mapped_column(Money, nullable=False)
    total_gain_loss: Mapped[float] = mapped_column(Money, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "snapshot_date", name="uq_snapshots_user_date"),
    )

    def __repr__(self) -> str:
        return f"<PortfolioSnapshot(date={self.snapshot_date}, value={self.total_portfolio_value})>"

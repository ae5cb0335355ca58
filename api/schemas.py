"""
Pydantic models for API request/response validation.

JSON uses camelCase keys; request bodies also accept snake_case.
Unknown request fields are rejected.
"""

import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from db.models import BondType, CashflowType, RecurringFrequency


class CamelModel(BaseModel):
    """Response base: camelCase aliases, readable from ORM objects and dataclasses."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RequestModel(CamelModel):
    """Request base: strict about unknown fields."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly provided with a non-null value, snake_case keyed."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class MessageResponse(BaseModel):
    message: str


# ----------------------------------------------------------------------------
# Stocks
# ----------------------------------------------------------------------------

class StockCreate(RequestModel):
    symbol: str = Field(min_length=1, max_length=10)
    company_name: str = Field(min_length=1, max_length=255)
    quantity: float = Field(gt=0)
    purchase_price: float = Field(gt=0)
    purchase_date: dt.date
    sector: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, value: str) -> str:
        return value.upper()


class StockUpdate(RequestModel):
    quantity: Optional[float] = Field(None, gt=0)
    purchase_price: Optional[float] = Field(None, gt=0)
    current_price: Optional[float] = Field(None, gt=0)
    sector: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class StockOut(CamelModel):
    id: int
    symbol: str
    company_name: str
    quantity: float
    purchase_price: float
    current_price: Optional[float]
    current_value: float
    unrealized_gain_loss: float
    percentage_change: float
    purchase_date: dt.date
    sector: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class StockListResponse(CamelModel):
    stocks: List[StockOut]


class StockEnvelope(CamelModel):
    stock: StockOut


class StockMutationResponse(StockEnvelope):
    message: str


class StockSummaryOut(CamelModel):
    total_stocks: int
    total_invested: float
    current_value: float
    total_gain_loss: float
    percentage_return: float


class PricePointOut(CamelModel):
    price: float
    recorded_at: dt.datetime


class PriceHistoryResponse(CamelModel):
    stock_id: int
    history: List[PricePointOut]


# ----------------------------------------------------------------------------
# Bonds
# ----------------------------------------------------------------------------

class BondCreate(RequestModel):
    issuer: str = Field(min_length=1, max_length=255)
    bond_type: BondType
    face_value: float = Field(gt=0)
    coupon_rate: float = Field(ge=0, le=100)
    maturity_date: dt.date
    purchase_price: float = Field(gt=0)
    purchase_date: dt.date
    rating: Optional[str] = Field(None, max_length=10)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("maturity_date")
    @classmethod
    def maturity_in_future(cls, value: dt.date) -> dt.date:
        if value <= dt.date.today():
            raise ValueError("must be a future date")
        return value


class BondUpdate(RequestModel):
    face_value: Optional[float] = Field(None, gt=0)
    coupon_rate: Optional[float] = Field(None, ge=0, le=100)
    purchase_price: Optional[float] = Field(None, gt=0)
    current_price: Optional[float] = Field(None, gt=0)
    rating: Optional[str] = Field(None, max_length=10)
    notes: Optional[str] = Field(None, max_length=1000)


class BondOut(CamelModel):
    id: int
    issuer: str
    bond_type: BondType
    face_value: float
    coupon_rate: float
    maturity_date: dt.date
    purchase_price: float
    current_price: Optional[float]
    current_value: float
    gain_loss: float
    days_to_maturity: int
    annual_coupon: float
    purchase_date: dt.date
    rating: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class BondListResponse(CamelModel):
    bonds: List[BondOut]


class BondEnvelope(CamelModel):
    bond: BondOut


class BondMutationResponse(BondEnvelope):
    message: str


class BondSummaryOut(CamelModel):
    total_bonds: int
    total_invested: float
    current_value: float
    total_gain_loss: float
    total_annual_income: float
    average_coupon_rate: float
    percentage_return: float


class UpcomingMaturityOut(CamelModel):
    id: int
    issuer: str
    bond_type: BondType
    face_value: float
    maturity_date: dt.date
    days_to_maturity: int


class UpcomingMaturitiesResponse(CamelModel):
    upcoming_maturities: List[UpcomingMaturityOut]


# ----------------------------------------------------------------------------
# Cash flow
# ----------------------------------------------------------------------------

def _check_tags(value: Optional[List[str]]) -> Optional[List[str]]:
    if value and any(len(tag) > 50 for tag in value):
        raise ValueError("tags must be at most 50 characters each")
    return value


class CashflowCreate(RequestModel):
    type: CashflowType
    category: str = Field(min_length=1, max_length=100)
    amount: float = Field(gt=0)
    description: str = Field(min_length=1, max_length=255)
    date: dt.date
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def short_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_tags(value)


class CashflowUpdate(RequestModel):
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[dt.date] = None
    is_recurring: Optional[bool] = None
    recurring_frequency: Optional[RecurringFrequency] = None
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def short_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_tags(value)


class CashflowOut(CamelModel):
    id: int
    type: CashflowType
    category: str
    amount: float
    description: str
    date: dt.date
    is_recurring: bool
    recurring_frequency: Optional[RecurringFrequency] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class CashflowListResponse(CamelModel):
    cashflows: List[CashflowOut]


class CashflowEnvelope(CamelModel):
    cashflow: CashflowOut


class CashflowMutationResponse(CashflowEnvelope):
    message: str


class CashflowSummaryOut(CamelModel):
    period: str
    total_income: float
    total_expenses: float
    net_cashflow: float
    income_count: int
    expense_count: int
    savings_rate: float


class CategoryTotalOut(CamelModel):
    category: str
    type: str
    total_amount: float
    transaction_count: int
    average_amount: float


class CategoriesResponse(CamelModel):
    categories: List[CategoryTotalOut]


# ----------------------------------------------------------------------------
# Portfolio
# ----------------------------------------------------------------------------

class OverviewTotalsOut(CamelModel):
    total_invested: float
    total_current_value: float
    total_gain_loss: float
    total_return_percentage: float
    recent_net_cashflow: float
    total_assets: int


class StockClassOut(CamelModel):
    count: int
    invested: float
    current_value: float
    gain_loss: float
    percentage: float


class BondClassOut(StockClassOut):
    annual_income: float


class CashflowOverviewOut(CamelModel):
    recent_income: float
    recent_expenses: float
    net_cashflow: float


class OverviewResponse(CamelModel):
    overview: OverviewTotalsOut
    stocks: StockClassOut
    bonds: BondClassOut
    cashflow: CashflowOverviewOut


class HoldingPointOut(CamelModel):
    date: dt.date
    invested: float
    current_value: float
    gain_loss: float = Field(serialization_alias="return")


class CashflowPointOut(CamelModel):
    date: dt.date
    income: float
    expenses: float
    net: float


class PerformanceResponse(CamelModel):
    period: str
    stocks: List[HoldingPointOut]
    bonds: List[HoldingPointOut]
    cashflow: List[CashflowPointOut]


class AssetClassSliceOut(CamelModel):
    name: str
    value: float
    percentage: float


class SectorSliceOut(CamelModel):
    sector: str
    value: float
    percentage: float
    count: int


class BondTypeSliceOut(CamelModel):
    type: str
    value: float
    percentage: float
    count: int


class AllocationResponse(CamelModel):
    total_value: float
    asset_classes: List[AssetClassSliceOut]
    stock_sectors: List[SectorSliceOut]
    bond_types: List[BondTypeSliceOut]


class AlertOut(CamelModel):
    type: str
    severity: str
    message: str
    data: dict[str, Any]


class AlertsResponse(CamelModel):
    alerts: List[AlertOut]


class SnapshotOut(CamelModel):
    id: int
    snapshot_date: dt.date
    total_stocks_value: float
    total_bonds_value: float
    total_portfolio_value: float
    total_gain_loss: float


class SnapshotListResponse(CamelModel):
    snapshots: List[SnapshotOut]


# ----------------------------------------------------------------------------
# Auth & health
# ----------------------------------------------------------------------------

class UserOut(CamelModel):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str


class VerifyResponse(CamelModel):
    user: UserOut


class HealthResponse(CamelModel):
    status: str
    timestamp: dt.datetime
    mode: str

"""Stock holding endpoints."""

from fastapi import APIRouter

import services
from api.schemas import (
    MessageResponse,
    PriceHistoryResponse,
    StockCreate,
    StockEnvelope,
    StockListResponse,
    StockMutationResponse,
    StockSummaryOut,
    StockUpdate,
)

router = APIRouter(prefix="/stocks", tags=["Stocks"])


@router.get("", response_model=StockListResponse)
@router.get("/", response_model=StockListResponse, include_in_schema=False)
def list_stocks():
    """All stock holdings ordered by symbol."""
    return {"stocks": services.list_stocks()}


@router.get("/summary", response_model=StockSummaryOut)
def stock_summary():
    return services.get_stock_summary()


@router.get("/{stock_id}", response_model=StockEnvelope)
def get_stock(stock_id: int):
    return {"stock": services.get_stock(stock_id)}


@router.get("/{stock_id}/price-history", response_model=PriceHistoryResponse)
def price_history(stock_id: int):
    """Recorded current-price changes, newest first."""
    return {"stock_id": stock_id, "history": services.get_price_history(stock_id)}


@router.post("", response_model=StockMutationResponse, status_code=201)
@router.post("/", response_model=StockMutationResponse, status_code=201, include_in_schema=False)
def create_stock(payload: StockCreate):
    stock = services.create_stock(**payload.model_dump())
    return {"message": "Stock added successfully", "stock": stock}


@router.put("/{stock_id}", response_model=StockMutationResponse)
def update_stock(stock_id: int, payload: StockUpdate):
    stock = services.update_stock(stock_id, **payload.changes())
    return {"message": "Stock updated successfully", "stock": stock}


@router.delete("/{stock_id}", response_model=MessageResponse)
def delete_stock(stock_id: int):
    services.delete_stock(stock_id)
    return {"message": "Stock deleted successfully"}

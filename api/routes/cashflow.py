"""Cash flow ledger endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

import services
from api.schemas import (
    CashflowCreate,
    CashflowEnvelope,
    CashflowListResponse,
    CashflowMutationResponse,
    CashflowSummaryOut,
    CategoriesResponse,
    CashflowUpdate,
    MessageResponse,
)

router = APIRouter(prefix="/cashflow", tags=["Cashflow"])


@router.get("", response_model=CashflowListResponse)
@router.get("/", response_model=CashflowListResponse, include_in_schema=False)
def list_cashflow(
    type: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    limit: int = Query(100, ge=1),
    offset: int = Query(0, ge=0),
):
    """
    Ledger entries, newest first.

    An unrecognised `type` is ignored rather than rejected.
    """
    entries = services.list_entries(
        entry_type=type,
        category=category,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return {"cashflows": entries}


@router.get("/summary", response_model=CashflowSummaryOut)
def cashflow_summary(period: str = "monthly"):
    """Totals over weekly, monthly, quarterly or yearly trailing windows."""
    return services.get_cashflow_summary(period)


@router.get("/categories", response_model=CategoriesResponse)
def cashflow_categories(type: Optional[str] = None, period: str = "monthly"):
    return {"categories": services.get_category_totals(entry_type=type, period=period)}


@router.get("/{entry_id}", response_model=CashflowEnvelope)
def get_cashflow(entry_id: int):
    return {"cashflow": services.get_entry(entry_id)}


@router.post("", response_model=CashflowMutationResponse, status_code=201)
@router.post("/", response_model=CashflowMutationResponse, status_code=201, include_in_schema=False)
def create_cashflow(payload: CashflowCreate):
    entry = services.create_entry(**payload.model_dump())
    return {"message": "Cashflow entry added successfully", "cashflow": entry}


@router.put("/{entry_id}", response_model=CashflowMutationResponse)
def update_cashflow(entry_id: int, payload: CashflowUpdate):
    entry = services.update_entry(entry_id, **payload.changes())
    return {"message": "Cashflow entry updated successfully", "cashflow": entry}


@router.delete("/{entry_id}", response_model=MessageResponse)
def delete_cashflow(entry_id: int):
    services.delete_entry(entry_id)
    return {"message": "Cashflow entry deleted successfully"}

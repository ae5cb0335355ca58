"""Bond holding endpoints."""

from fastapi import APIRouter

import services
from api.schemas import (
    BondCreate,
    BondEnvelope,
    BondListResponse,
    BondMutationResponse,
    BondSummaryOut,
    BondUpdate,
    MessageResponse,
    UpcomingMaturitiesResponse,
)

router = APIRouter(prefix="/bonds", tags=["Bonds"])


@router.get("", response_model=BondListResponse)
@router.get("/", response_model=BondListResponse, include_in_schema=False)
def list_bonds():
    """All bonds ordered by maturity date."""
    return {"bonds": services.list_bonds()}


@router.get("/summary", response_model=BondSummaryOut)
def bond_summary():
    return services.get_bond_summary()


@router.get("/upcoming-maturities", response_model=UpcomingMaturitiesResponse)
def upcoming_maturities():
    """Bonds maturing within the next 90 days, soonest first."""
    return {"upcoming_maturities": services.get_upcoming_maturities()}


@router.get("/{bond_id}", response_model=BondEnvelope)
def get_bond(bond_id: int):
    return {"bond": services.get_bond(bond_id)}


@router.post("", response_model=BondMutationResponse, status_code=201)
@router.post("/", response_model=BondMutationResponse, status_code=201, include_in_schema=False)
def create_bond(payload: BondCreate):
    bond = services.create_bond(**payload.model_dump())
    return {"message": "Bond added successfully", "bond": bond}


@router.put("/{bond_id}", response_model=BondMutationResponse)
def update_bond(bond_id: int, payload: BondUpdate):
    bond = services.update_bond(bond_id, **payload.changes())
    return {"message": "Bond updated successfully", "bond": bond}


@router.delete("/{bond_id}", response_model=MessageResponse)
def delete_bond(bond_id: int):
    services.delete_bond(bond_id)
    return {"message": "Bond deleted successfully"}

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from lending.models.admin import Admin
from lending.services.auth import get_current_admin
from lending.services.desk import LendingDesk, get_desk, ledger_lock
from lending.schemas.patron import (
    PatronCreate,
    PatronResponse,
    ReactivateRequest,
    UnregisterCheckResponse,
)

router = APIRouter(prefix="/api/patrons", tags=["Patrons"])

@router.post("/", response_model=PatronResponse, status_code=status.HTTP_201_CREATED)
async def register_patron(
    patron_data: PatronCreate,
    desk: LendingDesk = Depends(get_desk)
):
    """Register a new patron."""
    with ledger_lock:
        patron = desk.patrons.register(patron_data.name, patron_data.email, patron_data.phone_number)
    return PatronResponse(**patron.to_dict())

@router.get("/", response_model=List[PatronResponse])
async def list_patrons(
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    desk: LendingDesk = Depends(get_desk)
):
    """List patrons, optionally only active or inactive ones."""
    return [PatronResponse(**p.to_dict()) for p in desk.patrons.list_patrons(active)]

@router.get("/{patron_id}", response_model=PatronResponse)
async def get_patron(patron_id: str, desk: LendingDesk = Depends(get_desk)):
    """Get patron details including held loans and borrowing flag."""
    return PatronResponse(**desk.patrons.get(patron_id).to_dict())

@router.get("/{patron_id}/unregister-check", response_model=UnregisterCheckResponse)
async def check_unregister(patron_id: str, desk: LendingDesk = Depends(get_desk)):
    """Check whether a patron can be unregistered."""
    check = desk.patrons.check_unregister(patron_id)
    return UnregisterCheckResponse(
        allowed=check.allowed,
        message=check.message,
        heldLoans=check.held_loans,
        unpaidTotal=check.unpaid_total,
    )

@router.post("/{patron_id}/unregister", response_model=PatronResponse)
async def unregister_patron(
    patron_id: str,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Unregister a patron with no held items and no unpaid fines (admin only)."""
    with ledger_lock:
        patron = desk.patrons.unregister(patron_id)
    return PatronResponse(**patron.to_dict())

@router.post("/{patron_id}/deactivate", response_model=PatronResponse)
async def deactivate_patron(
    patron_id: str,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Deactivate a patron account (admin only)."""
    with ledger_lock:
        patron = desk.patrons.deactivate(patron_id)
    return PatronResponse(**patron.to_dict())

@router.post("/{patron_id}/reactivate", response_model=PatronResponse)
async def reactivate_patron(
    patron_id: str,
    request: Optional[ReactivateRequest] = None,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Reactivate a patron account (admin only)."""
    check_fines = request.check_fines if request else True
    with ledger_lock:
        patron = desk.patrons.reactivate(patron_id, check_fines=check_fines)
    return PatronResponse(**patron.to_dict())

from fastapi import APIRouter, Depends, status
from typing import List
from lending.models.admin import Admin
from lending.services.auth import get_current_admin
from lending.services.desk import LendingDesk, get_desk, ledger_lock
from lending.services.fine_policy import FlatFinePolicy, to_amount
from lending.services.reports import fine_breakdown
from lending.utils.timezone import today as library_today
from lending.schemas.fine import (
    ManualFineCreate,
    LoanFineCreate,
    PaymentRequest,
    FineResponse,
    PaymentResponse,
    FineBreakdownResponse,
    PolicyCreate,
    PolicyResponse,
)

router = APIRouter(prefix="/api/fines", tags=["Fines"])

@router.post("/", response_model=FineResponse, status_code=status.HTTP_201_CREATED)
async def apply_manual_fine(
    fine_data: ManualFineCreate,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Apply a fine not tied to a loan (admin only)."""
    with ledger_lock:
        fine = desk.ledger.apply_manual_fine(fine_data.patron_id, fine_data.amount, fine_data.reason)
    return FineResponse(**fine.to_dict())

@router.post("/loan", response_model=FineResponse, status_code=status.HTTP_201_CREATED)
async def apply_loan_fine(
    fine_data: LoanFineCreate,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Apply the flat fine for a patron's loan (admin only)."""
    with ledger_lock:
        fine = desk.ledger.apply_fine(fine_data.patron_id, fine_data.loan_id, fine_data.reason)
    return FineResponse(**fine.to_dict())

@router.post("/{fine_id}/pay", response_model=PaymentResponse)
async def pay_fine(
    fine_id: str,
    payment: PaymentRequest,
    desk: LendingDesk = Depends(get_desk)
):
    """Pay towards a fine; any overpayment is reported as a refund."""
    with ledger_lock:
        result = desk.pay_fine(fine_id, payment.amount, payment.today or library_today())
    return PaymentResponse(
        fine=FineResponse(**result.fine.to_dict()),
        amountApplied=float(result.amount_applied),
        refund=float(result.refund),
        remainingBalance=float(result.remaining_balance),
        fullyPaid=result.fully_paid,
        borrowingRestored=result.borrowing_restored,
        message=result.message,
    )

@router.get("/patron/{patron_id}", response_model=List[FineResponse])
async def get_patron_fines(patron_id: str, desk: LendingDesk = Depends(get_desk)):
    """All fines (paid and unpaid) for a patron."""
    desk.patrons.get(patron_id)
    return [FineResponse(**fine.to_dict()) for fine in desk.ledger.fines_for_patron(patron_id)]

@router.get("/patron/{patron_id}/breakdown", response_model=FineBreakdownResponse)
async def get_fine_breakdown(patron_id: str, desk: LendingDesk = Depends(get_desk)):
    """Unpaid fines grouped by media type."""
    desk.patrons.get(patron_id)
    breakdown = fine_breakdown(desk.ledger, patron_id)
    return FineBreakdownResponse(
        patronId=patron_id,
        byMediaType={k: float(v) for k, v in breakdown.totals.items()},
        countByMediaType=breakdown.counts,
        manualTotal=float(breakdown.manual_total),
        total=float(breakdown.total),
    )

@router.get("/policies", response_model=List[PolicyResponse])
async def list_policies(desk: LendingDesk = Depends(get_desk)):
    """Registered flat-fine policies."""
    return [
        PolicyResponse(mediaType=t, flatFine=float(desk.registry.flat_fine(t)))
        for t in desk.registry.media_types()
    ]

@router.post("/policies", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def register_policy(
    policy_data: PolicyCreate,
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Register or replace the flat fine for a media type (admin only)."""
    media_type = policy_data.media_type.strip().upper()
    with ledger_lock:
        desk.registry.register(media_type, FlatFinePolicy(media_type, to_amount(policy_data.flat_fine)))
    return PolicyResponse(mediaType=media_type, flatFine=float(desk.registry.flat_fine(media_type)))

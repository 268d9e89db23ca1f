from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from datetime import date
from lending.services.desk import LendingDesk, get_desk, ledger_lock
from lending.services.reports import overdue_summary
from lending.schemas.fine import FineResponse
from lending.schemas.loan import (
    BorrowRequest,
    ReturnRequest,
    LoanResponse,
    ReturnResponse,
    OverdueItemResponse,
    OverdueSummaryResponse,
)
from lending.utils.timezone import today as library_today

router = APIRouter(prefix="/api/loans", tags=["Loans"])

@router.post("/borrow", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
async def borrow_media(
    request: BorrowRequest,
    desk: LendingDesk = Depends(get_desk)
):
    """Borrow a media item.
    Overdue fines are reconciled before eligibility is checked."""
    with ledger_lock:
        loan = desk.borrow(
            request.patron_id,
            request.media_id,
            request.media_type,
            request.today or library_today(),
        )
    return LoanResponse(**loan.to_dict())

@router.post("/{loan_id}/return", response_model=ReturnResponse)
async def return_media(
    loan_id: str,
    request: Optional[ReturnRequest] = None,
    desk: LendingDesk = Depends(get_desk)
):
    """Return a loan; a late return gets the media type's flat fine."""
    current_date = request.today if request and request.today else library_today()
    with ledger_lock:
        result = desk.return_item(loan_id, current_date)
    return ReturnResponse(
        loan=LoanResponse(**result.loan.to_dict()),
        overdueDays=result.overdue_days,
        fine=FineResponse(**result.fine.to_dict()) if result.fine else None,
        fineError=result.fine_error,
    )

@router.post("/reconcile/{patron_id}", response_model=List[FineResponse])
async def reconcile_overdue_fines(
    patron_id: str,
    today: Optional[date] = Query(None, description="Date to reconcile against"),
    desk: LendingDesk = Depends(get_desk)
):
    """Apply or correct fines for the patron's overdue loans."""
    with ledger_lock:
        fines = desk.reconcile(patron_id, today or library_today())
    return [FineResponse(**fine.to_dict()) for fine in fines]

@router.get("/overdue", response_model=List[LoanResponse])
async def get_overdue_loans(
    today: Optional[date] = Query(None),
    desk: LendingDesk = Depends(get_desk)
):
    """All overdue loans in the library."""
    loans = desk.loans.overdue_loans(today or library_today())
    return [LoanResponse(**loan.to_dict()) for loan in loans]

@router.get("/patron/{patron_id}", response_model=List[LoanResponse])
async def get_patron_loans(
    patron_id: str,
    active_only: bool = Query(False),
    desk: LendingDesk = Depends(get_desk)
):
    """Loan history (or only active loans) for a patron."""
    desk.patrons.get(patron_id)
    if active_only:
        loans = desk.loans.active_loans(patron_id, library_today())
    else:
        loans = desk.loans.loans_for_patron(patron_id)
    return [LoanResponse(**loan.to_dict()) for loan in loans]

@router.get("/patron/{patron_id}/overdue-summary", response_model=OverdueSummaryResponse)
async def get_overdue_summary(
    patron_id: str,
    today: Optional[date] = Query(None),
    desk: LendingDesk = Depends(get_desk)
):
    """Overdue items held by a patron with the flat fine for each."""
    with ledger_lock:
        summary = overdue_summary(desk.loans, patron_id, today or library_today())
    return OverdueSummaryResponse(
        patronId=summary.patron_id,
        reportDate=summary.report_date,
        items=[
            OverdueItemResponse(
                loanId=item.loan_id,
                mediaId=item.media_id,
                mediaType=item.media_type,
                overdueDays=item.overdue_days,
                fine=float(item.fine),
            )
            for item in summary.items
        ],
        totalFine=float(summary.total_fine),
    )

@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(loan_id: str, desk: LendingDesk = Depends(get_desk)):
    """Get specific loan details."""
    return LoanResponse(**desk.loans.get_loan(loan_id).to_dict())

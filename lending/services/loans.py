"""Loan lifecycle: borrow, return and overdue reconciliation.

A loan is ACTIVE until it is returned, then RETURNED for good.  Being
overdue is not a stored state transition; the ``overdue`` flag is
recomputed from the caller-supplied date every time it is checked.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from lending.errors import (
    AccountInactive,
    AlreadyReturned,
    InvalidIdentifier,
    LoanNotFound,
    MediaNotFound,
    MediaUnavailable,
    NotEligible,
    PatronNotFound,
    PolicyNotFound,
    ValidationError,
)
from lending.models.fine import Fine
from lending.models.loan import Loan
from lending.models.patron import Patron
from lending.services.catalog import MediaCatalog
from lending.services.eligibility import check_eligibility
from lending.services.fines import FineLedger

logger = logging.getLogger(__name__)


@dataclass
class ReturnResult:
    loan: Loan
    overdue_days: int = 0
    fine: Optional[Fine] = None
    fine_error: Optional[str] = None

    @property
    def late(self) -> bool:
        return self.overdue_days > 0


class LoanManager:
    def __init__(self, db: Session, catalog: MediaCatalog, ledger: FineLedger):
        self.db = db
        self.catalog = catalog
        self.ledger = ledger

    # ---- queries

    def get_loan(self, loan_id: str) -> Loan:
        if not loan_id or not loan_id.strip():
            raise InvalidIdentifier("Loan ID cannot be empty")
        loan = self.db.query(Loan).filter(Loan.loan_id == loan_id.strip()).first()
        if loan is None:
            raise LoanNotFound(f"Loan {loan_id} not found")
        return loan

    def loans_for_patron(self, patron_id: str) -> List[Loan]:
        return self.db.query(Loan).filter(Loan.patron_id == patron_id).order_by(Loan.loan_id).all()

    def active_loans(self, patron_id: str, today: Optional[date] = None) -> List[Loan]:
        loans = self.db.query(Loan).filter(
            Loan.patron_id == patron_id,
            Loan.return_date.is_(None),
        ).order_by(Loan.loan_id).all()
        if today is not None:
            for loan in loans:
                loan.check_overdue(today)
        return loans

    def overdue_loans(self, today: date) -> List[Loan]:
        """Every un-returned loan past its due date, library-wide.

        Read only: the overdue flags are refreshed on the returned objects
        but not committed.
        """
        loans = self.db.query(Loan).filter(
            Loan.return_date.is_(None),
            Loan.due_date < today,
        ).order_by(Loan.due_date.asc()).all()
        for loan in loans:
            loan.check_overdue(today)
        return loans

    # ---- borrow

    def borrow(self, patron_id: str, media_id: str, media_type: str, today: date) -> Loan:
        patron = self._get_patron(patron_id)
        if not patron.active:
            logger.warning(f"Borrow denied, patron {patron.patron_id} is inactive")
            raise AccountInactive("Patron account is not active. Please contact an administrator.")
        if not media_id or not media_id.strip():
            raise InvalidIdentifier("Media ID cannot be empty")
        media_type = (media_type or "").upper()

        # Fines must reflect today's state before the gate reads the cached flag
        self.check_and_apply_overdue_fines(patron.patron_id, today)

        decision = check_eligibility(
            patron.active,
            patron.can_borrow,
            self.active_loans(patron.patron_id),
            today,
        )
        if not decision.allowed:
            logger.warning(f"Borrow denied for patron {patron.patron_id}: {decision.reason.value}")
            raise NotEligible(decision)

        item = self.catalog.find_item(media_id.strip(), media_type)
        if item is None:
            raise MediaNotFound(f"{media_type} not found with ID: {media_id}")
        if not item.available:
            raise MediaUnavailable(f"{media_type} {media_id} is already borrowed")

        loan = Loan(
            loan_id=self._next_loan_id(),
            patron_id=patron.patron_id,
            media_identifier=item.identifier,
            media_type=item.media_type,
            borrow_date=today,
            due_date=today + timedelta(days=self.catalog.loan_period_days(item.media_type)),
            overdue=False,
        )
        self.db.add(loan)
        item.available = False
        patron.held_loans.append(loan)
        self.db.commit()
        self.db.refresh(loan)

        logger.info(f"Loan {loan.loan_id}: patron {patron.patron_id} borrowed {item.media_type} {item.identifier}, due {loan.due_date}")
        return loan

    # ---- return

    def return_item(self, loan_id: str, today: date) -> ReturnResult:
        loan = self.get_loan(loan_id)
        if loan.return_date is not None:
            raise AlreadyReturned(f"Loan {loan.loan_id} was already returned on {loan.return_date}")
        if today < loan.borrow_date:
            raise ValidationError(f"Return date {today} is before borrow date {loan.borrow_date}")

        loan.return_date = today
        loan.overdue = False
        self.catalog.set_available(loan.media_identifier, True, loan.media_type)
        patron = loan.patron
        if patron is not None and loan in patron.held_loans:
            patron.held_loans.remove(loan)
        self.db.commit()
        logger.info(f"Loan {loan.loan_id} returned on {today}")

        result = ReturnResult(loan=loan)
        if today > loan.due_date:
            result.overdue_days = (today - loan.due_date).days
            reason = f"overdue return: {loan.media_type} (Loan: {loan.loan_id}) - {result.overdue_days} days overdue"
            try:
                result.fine = self.ledger.apply_fine(loan.patron_id, loan.loan_id, reason)
            except PolicyNotFound as e:
                logger.warning(f"No fine applied for late loan {loan.loan_id}: {e}")
                result.fine_error = str(e)
        return result

    # ---- reconciliation

    def check_and_apply_overdue_fines(self, patron_id: str, today: date) -> List[Fine]:
        """Make sure every overdue un-returned loan carries exactly one unpaid fine."""
        patron = self._get_patron(patron_id)
        fines: List[Fine] = []
        for loan in self.active_loans(patron.patron_id, today):
            if not loan.overdue:
                continue
            days = loan.overdue_days(today)
            reason = f"Overdue {loan.media_type} (Loan: {loan.loan_id}) - {days} days overdue"
            try:
                fines.append(self.ledger.apply_fine(patron.patron_id, loan.loan_id, reason))
            except PolicyNotFound as e:
                logger.warning(f"Skipping overdue loan {loan.loan_id}: {e}")
        self.ledger.resync(patron)
        return fines

    # ---- helpers

    def _get_patron(self, patron_id: str) -> Patron:
        if not patron_id or not patron_id.strip():
            raise InvalidIdentifier("Patron ID cannot be empty")
        patron = self.db.query(Patron).filter(Patron.patron_id == patron_id.strip()).first()
        if patron is None:
            raise PatronNotFound(f"Patron {patron_id} not found")
        return patron

    def _next_loan_id(self) -> str:
        self.db.flush()
        count = self.db.query(func.count(Loan.loan_id)).scalar() or 0
        return f"L{count + 1:04d}"

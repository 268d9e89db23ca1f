"""Fine ledger and payment processing.

The ledger owns every Fine row.  It guarantees at most one unpaid fine per
loan, applies payments (reporting any overpayment as a refund) and keeps
the patron's cached ``can_borrow`` flag equal to "no unpaid balance".
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from lending.config import settings
from lending.errors import (
    FineAlreadyPaid,
    FineNotFound,
    InvalidAmount,
    InvalidIdentifier,
    InvalidPolicyAmount,
    LoanNotFound,
    LoanNotReturned,
    LoanOwnershipMismatch,
    PatronNotFound,
)
from lending.models.fine import Fine
from lending.models.loan import Loan
from lending.models.patron import Patron
from lending.services.fine_policy import FineStrategyRegistry, ZERO, to_amount
from lending.services.notifications import EventType, NotificationEvent, NotificationSubject

logger = logging.getLogger(__name__)


class PaidFinePolicy(str, Enum):
    NEW_CHARGE = "new_charge"
    KEEP_CLOSED = "keep_closed"


@dataclass
class PaymentResult:
    fine: Fine
    amount_applied: Decimal
    refund: Decimal
    remaining_balance: Decimal
    fully_paid: bool
    borrowing_restored: bool
    message: str


class FineLedger:
    def __init__(
        self,
        db: Session,
        registry: FineStrategyRegistry,
        subject: Optional[NotificationSubject] = None,
        paid_fine_policy: Optional[str] = None,
    ):
        self.db = db
        self.registry = registry
        self.subject = subject or NotificationSubject()
        self.paid_fine_policy = PaidFinePolicy(paid_fine_policy or settings.paid_fine_policy)

    # ---- lookups

    def get_fine(self, fine_id: str) -> Fine:
        if not fine_id or not fine_id.strip():
            raise InvalidIdentifier("Fine ID cannot be empty")
        fine = self.db.query(Fine).filter(Fine.fine_id == fine_id.strip()).first()
        if fine is None:
            raise FineNotFound(f"Fine {fine_id} not found")
        return fine

    def fines_for_patron(self, patron_id: str) -> List[Fine]:
        return self.db.query(Fine).filter(Fine.patron_id == patron_id).order_by(Fine.fine_id).all()

    def unpaid_fines(self, patron_id: str) -> List[Fine]:
        self.db.flush()
        return self.db.query(Fine).filter(
            Fine.patron_id == patron_id,
            Fine.paid.is_(False),
        ).order_by(Fine.fine_id).all()

    def total_unpaid(self, patron_id: str) -> Decimal:
        return sum((fine.remaining_balance for fine in self.unpaid_fines(patron_id)), ZERO)

    def fines_for_loan(self, loan_id: str) -> List[Fine]:
        self.db.flush()
        return self.db.query(Fine).filter(Fine.loan_id == loan_id).order_by(Fine.fine_id).all()

    def find_fine_for_loan(self, loan_id: str) -> Optional[Fine]:
        """The loan's unpaid fine if it has one, otherwise its latest paid fine."""
        fines = self.fines_for_loan(loan_id)
        unpaid = [f for f in fines if not f.paid]
        if unpaid:
            return unpaid[0]
        return fines[-1] if fines else None

    # ---- fine creation

    def apply_fine(self, patron_id: str, loan_id: str, reason: str) -> Fine:
        """Apply the flat fine for an overdue loan.

        Returns the loan's existing unpaid fine (its amount corrected to the
        current policy) instead of creating a duplicate.
        """
        patron = self._get_patron(patron_id)
        if not loan_id or not loan_id.strip():
            raise InvalidIdentifier("Loan ID cannot be empty")
        loan = self.db.query(Loan).filter(Loan.loan_id == loan_id.strip()).first()
        if loan is None:
            raise LoanNotFound(f"Loan {loan_id} not found")
        if loan.patron_id != patron.patron_id:
            raise LoanOwnershipMismatch(f"Loan {loan.loan_id} does not belong to patron {patron.patron_id}")

        amount = self.registry.flat_fine(loan.media_type)
        if amount <= 0:
            raise InvalidPolicyAmount(f"Invalid fine amount for media type: {loan.media_type}")

        existing = self.find_fine_for_loan(loan.loan_id)
        if existing is not None and not existing.paid:
            if Decimal(existing.amount) != amount:
                logger.info(f"Correcting fine {existing.fine_id} for loan {loan.loan_id}: {existing.amount} -> {amount}")
                existing.amount = amount
                if Decimal(existing.paid_amount) >= amount:
                    existing.paid_amount = amount
                    existing.paid = True
            self.resync(patron)
            return existing
        if existing is not None and self.paid_fine_policy == PaidFinePolicy.KEEP_CLOSED:
            logger.info(f"Loan {loan.loan_id} already has paid fine {existing.fine_id}; not charging again")
            self.resync(patron)
            return existing
        if existing is not None:
            logger.warning(f"Fine {existing.fine_id} for loan {loan.loan_id} already paid; creating new fine")

        return self._create_fine(patron, amount, reason, loan_id=loan.loan_id)

    def apply_manual_fine(self, patron_id: str, amount, reason: str) -> Fine:
        """Apply a fine that is not tied to any loan."""
        patron = self._get_patron(patron_id)
        if amount is None or to_amount(amount) <= 0:
            raise InvalidAmount("Fine amount must be positive")
        return self._create_fine(patron, to_amount(amount), reason)

    def _create_fine(self, patron: Patron, amount: Decimal, reason: str, loan_id: Optional[str] = None) -> Fine:
        fine = Fine(
            fine_id=self._next_fine_id(),
            patron_id=patron.patron_id,
            loan_id=loan_id,
            amount=amount,
            paid_amount=ZERO,
            paid=False,
            reason=reason,
        )
        self.db.add(fine)
        patron.can_borrow = False
        self.db.commit()
        self.db.refresh(fine)

        logger.info(f"Fine {fine.fine_id} of {amount} applied to patron {patron.patron_id}: {reason}")
        self.subject.notify(NotificationEvent(
            patron=patron,
            event_type=EventType.FINE_APPLIED,
            message=f"A fine of ${amount:.2f} has been applied to your account for: {reason}",
            related_fine=fine,
        ))
        return fine

    # ---- payments

    def validate_payment(self, fine_id: str, amount) -> Tuple[Fine, Decimal]:
        """Check a payment without touching any state; returns the fine and amount."""
        if amount is None or to_amount(amount) <= 0:
            raise InvalidAmount("Payment amount must be positive")
        payment = to_amount(amount)

        fine = self.get_fine(fine_id)
        if fine.paid:
            raise FineAlreadyPaid(f"Fine {fine.fine_id} is already paid")
        if fine.loan_id:
            loan = self.db.query(Loan).filter(Loan.loan_id == fine.loan_id).first()
            if loan is not None and loan.is_active:
                raise LoanNotReturned(
                    f"Cannot pay fine for loan {loan.loan_id} because the item is not returned yet. "
                    "Please return the item first."
                )
        return fine, payment

    def pay_fine(self, fine_id: str, amount) -> PaymentResult:
        fine, payment = self.validate_payment(fine_id, amount)

        remaining = fine.remaining_balance
        if payment > remaining:
            applied = remaining
            refund = payment - remaining
            fine.paid_amount = Decimal(fine.amount)
        else:
            applied = payment
            refund = ZERO
            fine.paid_amount = Decimal(fine.paid_amount) + payment
        fine.paid = Decimal(fine.paid_amount) >= Decimal(fine.amount)

        patron = self._get_patron(fine.patron_id)
        restored = self.sync_borrowing(patron)
        self.db.commit()

        if fine.paid:
            message = f"Fine {fine.fine_id} fully paid."
        else:
            message = f"Payment applied. Remaining balance: ${fine.remaining_balance:.2f}"
        if refund > 0:
            message += f" Refund issued: ${refund:.2f}"
        logger.info(f"Payment of {payment} applied to fine {fine.fine_id} (refund {refund})")

        if fine.paid:
            self.subject.notify(NotificationEvent(
                patron=patron,
                event_type=EventType.FINE_PAID,
                message=f"Fine {fine.fine_id} has been fully paid. Amount: ${Decimal(fine.amount):.2f}",
                related_fine=fine,
            ))
        if restored:
            self._notify_restored(patron)

        return PaymentResult(
            fine=fine,
            amount_applied=applied,
            refund=refund,
            remaining_balance=fine.remaining_balance,
            fully_paid=fine.paid,
            borrowing_restored=restored,
            message=message,
        )

    # ---- eligibility sync

    def sync_borrowing(self, patron: Patron) -> bool:
        """Set ``can_borrow`` from the unpaid total; True if it flipped to allowed."""
        can_borrow_now = self.total_unpaid(patron.patron_id) == 0
        if patron.can_borrow == can_borrow_now:
            return False
        patron.can_borrow = can_borrow_now
        if can_borrow_now:
            logger.info(f"All fines paid, patron {patron.patron_id} may borrow again")
            return True
        logger.warning(f"Patron {patron.patron_id} cannot borrow due to unpaid fines")
        return False

    def resync(self, patron: Patron) -> bool:
        """Sync and commit the flag, announcing restored borrowing after the commit."""
        restored = self.sync_borrowing(patron)
        self.db.commit()
        if restored:
            self._notify_restored(patron)
        return restored

    def _notify_restored(self, patron: Patron) -> None:
        self.subject.notify(NotificationEvent(
            patron=patron,
            event_type=EventType.BORROWING_RESTORED,
            message="All fines have been paid. Borrowing privileges restored.",
        ))

    # ---- helpers

    def _get_patron(self, patron_id: str) -> Patron:
        if not patron_id or not patron_id.strip():
            raise InvalidIdentifier("Patron ID cannot be empty")
        patron = self.db.query(Patron).filter(Patron.patron_id == patron_id.strip()).first()
        if patron is None:
            raise PatronNotFound(f"Patron {patron_id} not found")
        return patron

    def _next_fine_id(self) -> str:
        self.db.flush()
        count = self.db.query(func.count(Fine.fine_id)).scalar() or 0
        return f"F{count + 1:04d}"

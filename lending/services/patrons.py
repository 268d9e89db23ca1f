import logging
from dataclasses import dataclass
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from lending.errors import (
    InvalidIdentifier,
    PatronHasOutstandingItems,
    PatronNotFound,
    ValidationError,
)
from lending.models.patron import Patron
from lending.services.fines import FineLedger

logger = logging.getLogger(__name__)


@dataclass
class UnregisterCheck:
    allowed: bool
    message: str
    held_loans: int = 0
    unpaid_total: float = 0.0


class PatronService:
    def __init__(self, db: Session, ledger: FineLedger):
        self.db = db
        self.ledger = ledger

    def register(self, name: str, email: str, phone_number: Optional[str] = None) -> Patron:
        if not name or not name.strip():
            raise ValidationError("Patron name cannot be empty")
        if not email or "@" not in email:
            raise ValidationError("A valid email address is required")
        self.db.flush()
        count = self.db.query(func.count(Patron.patron_id)).scalar() or 0
        patron = Patron(
            patron_id=f"P{count + 1:03d}",
            name=name.strip(),
            email=email.strip(),
            phone_number=phone_number,
            active=True,
            can_borrow=True,
        )
        self.db.add(patron)
        self.db.commit()
        self.db.refresh(patron)
        logger.info(f"Registered patron {patron.patron_id}: {patron.name}")
        return patron

    def get(self, patron_id: str) -> Patron:
        if not patron_id or not patron_id.strip():
            raise InvalidIdentifier("Patron ID cannot be empty")
        patron = self.db.query(Patron).filter(Patron.patron_id == patron_id.strip()).first()
        if patron is None:
            raise PatronNotFound(f"Patron {patron_id} not found")
        return patron

    def list_patrons(self, active: Optional[bool] = None) -> List[Patron]:
        query = self.db.query(Patron)
        if active is not None:
            query = query.filter(Patron.active.is_(active))
        return query.order_by(Patron.patron_id).all()

    def check_unregister(self, patron_id: str) -> UnregisterCheck:
        """A patron can only leave with nothing on loan and nothing owed."""
        patron = self.get(patron_id)
        held = len(patron.held_loans)
        unpaid = self.ledger.total_unpaid(patron.patron_id)
        if held:
            return UnregisterCheck(False, f"Patron {patron.patron_id} still holds {held} item(s).", held, float(unpaid))
        if unpaid > 0:
            return UnregisterCheck(False, f"Patron {patron.patron_id} has unpaid fines of ${unpaid:.2f}.", held, float(unpaid))
        return UnregisterCheck(True, f"Patron {patron.patron_id} can be unregistered.")

    def unregister(self, patron_id: str) -> Patron:
        check = self.check_unregister(patron_id)
        if not check.allowed:
            raise PatronHasOutstandingItems(check.message)
        return self.deactivate(patron_id)

    def deactivate(self, patron_id: str) -> Patron:
        patron = self.get(patron_id)
        patron.active = False
        self.db.commit()
        logger.info(f"Patron {patron.patron_id} deactivated")
        return patron

    def reactivate(self, patron_id: str, check_fines: bool = True) -> Patron:
        patron = self.get(patron_id)
        if check_fines:
            unpaid = self.ledger.total_unpaid(patron.patron_id)
            if unpaid > 0:
                raise PatronHasOutstandingItems(
                    f"Patron {patron.patron_id} has unpaid fines of ${unpaid:.2f}; pay them before reactivation."
                )
        patron.active = True
        self.ledger.resync(patron)
        logger.info(f"Patron {patron.patron_id} reactivated")
        return patron

"""Facade wiring the lending collaborators around one database session."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from lending.config import settings
from lending.database import get_db
from lending.services.catalog import MediaCatalog
from lending.services.fine_policy import FineStrategyRegistry, fine_registry
from lending.services.fines import FineLedger, PaymentResult
from lending.services.loans import LoanManager
from lending.services.mailer import EmailService
from lending.services.notifications import (
    ConsoleNotifier,
    EmailNotifier,
    FileLoggerNotifier,
    NotificationSubject,
    Observer,
)
from lending.services.patrons import PatronService

logger = logging.getLogger(__name__)

# Serialises mutations when the API runs handlers on a thread pool
ledger_lock = threading.RLock()

# Email goes out on its own thread so SMTP never holds up a ledger mutation
_email_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="email")


def default_observers() -> List[Observer]:
    observers: List[Observer] = []
    if settings.console_notifications:
        observers.append(ConsoleNotifier())
    if settings.fine_log_file:
        observers.append(FileLoggerNotifier(settings.fine_log_file))
    email_service = EmailService()
    if email_service.enabled:
        observers.append(EmailNotifier(email_service, executor=_email_executor))
    return observers


# Shared across sessions; observers attached at runtime stay attached
notification_subject = NotificationSubject(default_observers())


class LendingDesk:
    def __init__(
        self,
        db: Session,
        registry: Optional[FineStrategyRegistry] = None,
        subject: Optional[NotificationSubject] = None,
        paid_fine_policy: Optional[str] = None,
    ):
        self.db = db
        self.registry = registry if registry is not None else fine_registry
        self.subject = subject if subject is not None else notification_subject
        self.catalog = MediaCatalog(db)
        self.ledger = FineLedger(db, self.registry, self.subject, paid_fine_policy)
        self.loans = LoanManager(db, self.catalog, self.ledger)
        self.patrons = PatronService(db, self.ledger)

    def borrow(self, patron_id: str, media_id: str, media_type: str, today: date):
        return self.loans.borrow(patron_id, media_id, media_type, today)

    def return_item(self, loan_id: str, today: date):
        return self.loans.return_item(loan_id, today)

    def reconcile(self, patron_id: str, today: date):
        return self.loans.check_and_apply_overdue_fines(patron_id, today)

    def pay_fine(self, fine_id: str, amount, today: Optional[date] = None) -> PaymentResult:
        """Pay a fine after reconciling its patron, so paying off one fine
        cannot restore borrowing while another overdue item is still out.

        A rejected payment leaves the ledger untouched.
        """
        fine, _ = self.ledger.validate_payment(fine_id, amount)
        if today is not None:
            self.loans.check_and_apply_overdue_fines(fine.patron_id, today)
        return self.ledger.pay_fine(fine_id, amount)


def get_desk(db: Session = Depends(get_db)) -> LendingDesk:
    return LendingDesk(db)

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List
from lending.services.loans import LoanManager
from lending.services.mailer import EmailService

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Overdue Item Reminder"


class ReminderService:
    def __init__(self, manager: LoanManager, email_service: EmailService):
        self.manager = manager
        self.email_service = email_service

    def send_overdue_reminders(self, today: date) -> Dict[str, int]:
        """Email every patron holding overdue items; returns sent counts per patron."""
        by_patron: Dict[str, List] = defaultdict(list)
        for loan in self.manager.overdue_loans(today):
            by_patron[loan.patron_id].append(loan)

        sent: Dict[str, int] = {}
        for patron_id, loans in by_patron.items():
            patron = loans[0].patron
            body = (
                f"Dear {patron.name},\n\n"
                f"You have {len(loans)} overdue item(s). Please return them as soon as possible "
                "to avoid additional fines.\n\nBest regards,\nLibrary Lending Desk"
            )
            try:
                self.email_service.send_email(patron.email, REMINDER_SUBJECT, body)
                sent[patron_id] = len(loans)
                logger.info(f"Overdue reminder sent to {patron.name} ({patron_id})")
            except Exception as e:
                logger.error(f"Failed to send reminder to {patron.name} ({patron_id}): {e}")
        return sent

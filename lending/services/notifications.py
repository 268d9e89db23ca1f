"""Lifecycle event notification.

Observers are plain objects with a ``handle(event)`` method.  Delivery is
synchronous, in attachment order, and best-effort: an observer that raises
is logged and skipped, it never undoes the ledger change that produced the
event.
"""
import logging
import sys
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

from lending.utils.timezone import now_local

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    FINE_APPLIED = "FINE_APPLIED"
    FINE_PAID = "FINE_PAID"
    BORROWING_RESTORED = "BORROWING_RESTORED"


@dataclass
class NotificationEvent:
    patron: object
    event_type: EventType
    message: str
    related_fine: Optional[object] = None


class Observer(Protocol):
    def handle(self, event: NotificationEvent) -> None:
        ...


class NotificationSubject:
    def __init__(self, observers: Optional[List[Observer]] = None):
        self._observers: List[Observer] = list(observers or [])

    @property
    def observers(self) -> List[Observer]:
        return list(self._observers)

    def attach(self, observer: Observer) -> None:
        if observer is None:
            raise ValueError("Observer cannot be None")
        if observer not in self._observers:
            self._observers.append(observer)
            logger.debug(f"Observer attached: {type(observer).__name__}")

    def detach(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)
            logger.debug(f"Observer detached: {type(observer).__name__}")

    def notify(self, event: NotificationEvent) -> None:
        for observer in list(self._observers):
            try:
                observer.handle(event)
            except Exception:
                logger.error(
                    f"Observer {type(observer).__name__} failed on {event.event_type.value}",
                    exc_info=True,
                )


def _describe(event: NotificationEvent) -> str:
    patron_id = getattr(event.patron, "patron_id", "?")
    return f"[{event.event_type.value}] patron={patron_id} - {event.message}"


class ConsoleNotifier:
    """Prints events to a stream (stdout by default)."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def handle(self, event: NotificationEvent) -> None:
        print(_describe(event), file=self.stream)


class FileLoggerNotifier:
    """Appends one timestamped line per event to an audit file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def handle(self, event: NotificationEvent) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(f"{now_local().isoformat()} {_describe(event)}\n")


class EmailNotifier:
    """Adapter sending events through an email service.

    With an executor the send happens in the background so a slow SMTP
    server cannot stall the caller; failures are logged either way.
    """

    SUBJECTS = {
        EventType.FINE_APPLIED: "Library fine applied",
        EventType.FINE_PAID: "Library fine paid",
        EventType.BORROWING_RESTORED: "Borrowing privileges restored",
    }

    def __init__(self, email_service, executor: Optional[Executor] = None):
        self.email_service = email_service
        self.executor = executor

    def handle(self, event: NotificationEvent) -> None:
        to = getattr(event.patron, "email", None)
        if not to:
            logger.warning(f"No email address for patron, skipping {event.event_type.value}")
            return
        name = getattr(event.patron, "name", "patron")
        subject = self.SUBJECTS.get(event.event_type, "Library notification")
        body = f"Dear {name},\n\n{event.message}\n\nBest regards,\nLibrary Lending Desk"
        if self.executor is None:
            self._send(to, subject, body)
        else:
            self.executor.submit(self._send, to, subject, body)

    def _send(self, to: str, subject: str, body: str) -> None:
        try:
            self.email_service.send_email(to, subject, body)
        except Exception:
            logger.error(f"Failed to send notification email to {to}", exc_info=True)

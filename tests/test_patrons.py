from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from lending.errors import PatronHasOutstandingItems, PatronNotFound, ValidationError
from lending.services.reminders import ReminderService
from lending.services.reports import fine_breakdown, overdue_summary

from conftest import DAY0


def days(n):
    return DAY0 + timedelta(days=n)


def test_register_assigns_ids(library):
    patron = library.patrons.register("Carol", "carol@example.com")
    assert patron.patron_id == "P003"
    assert patron.active and patron.can_borrow


def test_register_requires_email(library):
    with pytest.raises(ValidationError):
        library.patrons.register("Carol", "not-an-email")


def test_get_unknown_patron(library):
    with pytest.raises(PatronNotFound):
        library.patrons.get("P404")


def test_list_active_and_inactive(library):
    library.patrons.deactivate("P002")
    assert [p.patron_id for p in library.patrons.list_patrons(active=True)] == ["P001"]
    assert [p.patron_id for p in library.patrons.list_patrons(active=False)] == ["P002"]


def test_unregister_blocked_while_holding_items(library):
    library.borrow("P001", "B1", "BOOK", DAY0)

    check = library.patrons.check_unregister("P001")

    assert check.allowed is False
    assert check.held_loans == 1
    with pytest.raises(PatronHasOutstandingItems):
        library.patrons.unregister("P001")


def test_unregister_blocked_by_unpaid_fines(library):
    library.ledger.apply_manual_fine("P001", 3, "lost card")
    check = library.patrons.check_unregister("P001")
    assert check.allowed is False
    assert check.unpaid_total == 3.0


def test_unregister_deactivates(library):
    patron = library.patrons.unregister("P002")
    assert patron.active is False


def test_reactivate_checks_fines(library):
    library.ledger.apply_manual_fine("P001", 3, "lost card")
    library.patrons.deactivate("P001")

    with pytest.raises(PatronHasOutstandingItems):
        library.patrons.reactivate("P001")

    patron = library.patrons.reactivate("P001", check_fines=False)
    assert patron.active is True
    assert patron.can_borrow is False


def test_fine_breakdown_by_media_type(library):
    library.borrow("P001", "B1", "BOOK", DAY0)
    library.borrow("P001", "CD1", "CD", DAY0)
    library.reconcile("P001", days(30))
    library.ledger.apply_manual_fine("P001", 2, "late fee")

    breakdown = fine_breakdown(library.ledger, "P001")

    assert breakdown.totals == {"BOOK": Decimal("10.00"), "CD": Decimal("20.00")}
    assert breakdown.counts == {"BOOK": 1, "CD": 1}
    assert breakdown.manual_total == Decimal("2.00")
    assert breakdown.total == Decimal("32.00")


def test_overdue_summary(library):
    library.borrow("P001", "B1", "BOOK", DAY0)
    library.borrow("P001", "CD1", "CD", DAY0)

    summary = overdue_summary(library.loans, "P001", days(10))

    assert [item.media_type for item in summary.items] == ["CD"]
    assert summary.items[0].overdue_days == 3
    assert summary.total_fine == Decimal("20.00")
    assert len(library.ledger.unpaid_fines("P001")) == 1


def test_overdue_reminders_grouped_per_patron(library):
    library.borrow("P001", "B1", "BOOK", DAY0)
    library.borrow("P001", "CD1", "CD", DAY0)
    library.borrow("P002", "B2", "BOOK", DAY0)
    email_service = MagicMock()

    sent = ReminderService(library.loans, email_service).send_overdue_reminders(days(30))

    assert sent == {"P001": 2, "P002": 1}
    assert email_service.send_email.call_count == 2


def test_reminder_failure_skips_patron(library):
    library.borrow("P001", "CD1", "CD", DAY0)
    email_service = MagicMock()
    email_service.send_email.side_effect = OSError("smtp unreachable")

    sent = ReminderService(library.loans, email_service).send_overdue_reminders(days(30))

    assert sent == {}

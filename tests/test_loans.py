from datetime import timedelta
from decimal import Decimal

import pytest

from lending.errors import (
    AccountInactive,
    AlreadyReturned,
    LoanNotFound,
    MediaNotFound,
    MediaUnavailable,
    NotEligible,
    PatronNotFound,
)
from lending.models.fine import Fine
from lending.services.eligibility import DenialReason
from lending.services.fine_policy import FlatFinePolicy

from conftest import DAY0


def days(n):
    return DAY0 + timedelta(days=n)


def test_borrow_book_sets_due_date_and_availability(library):
    loan = library.borrow("P001", "B1", "BOOK", DAY0)

    assert loan.loan_id == "L0001"
    assert loan.due_date == days(28)
    assert loan.return_date is None
    assert library.catalog.find_item("B1", "BOOK").available is False
    assert library.patrons.get("P001").held_loan_ids == ["L0001"]


def test_borrow_cd_has_seven_day_period(library):
    loan = library.borrow("P001", "CD1", "cd", DAY0)
    assert loan.due_date == days(7)
    assert loan.media_type == "CD"


def test_loan_ids_are_sequential(library):
    first = library.borrow("P001", "B1", "BOOK", DAY0)
    second = library.borrow("P002", "B2", "BOOK", DAY0)
    assert (first.loan_id, second.loan_id) == ("L0001", "L0002")


def test_borrow_unknown_patron(library):
    with pytest.raises(PatronNotFound):
        library.borrow("P999", "B1", "BOOK", DAY0)


def test_borrow_inactive_patron(library):
    library.patrons.deactivate("P001")
    with pytest.raises(AccountInactive):
        library.borrow("P001", "B1", "BOOK", DAY0)


def test_borrow_unknown_media(library):
    with pytest.raises(MediaNotFound):
        library.borrow("P001", "NOPE", "BOOK", DAY0)


def test_borrow_wrong_type_is_not_found(library):
    with pytest.raises(MediaNotFound):
        library.borrow("P001", "B1", "CD", DAY0)


def test_borrow_unavailable_media(library):
    library.borrow("P001", "B1", "BOOK", DAY0)
    with pytest.raises(MediaUnavailable):
        library.borrow("P002", "B1", "BOOK", days(1))


def test_borrow_reconciles_before_gate(library, recorder):
    library.borrow("P001", "B1", "BOOK", DAY0)

    with pytest.raises(NotEligible) as exc:
        library.borrow("P001", "B2", "BOOK", days(35))

    assert exc.value.decision.reason == DenialReason.UNPAID_FINES
    assert len(library.ledger.fines_for_patron("P001")) == 1
    assert recorder.types() == ["FINE_APPLIED"]


def test_overdue_item_blocks_without_policy(library, registry):
    library.catalog.add_item("D1", "DVD", "Alien", "Ridley Scott")
    library.borrow("P001", "D1", "DVD", DAY0)

    with pytest.raises(NotEligible) as exc:
        library.borrow("P001", "B1", "BOOK", days(40))

    # No DVD policy, so no fine, but the held overdue item still blocks
    assert exc.value.decision.reason == DenialReason.OVERDUE_ITEMS_OUTSTANDING
    assert library.ledger.fines_for_patron("P001") == []


def test_return_on_time(library):
    loan = library.borrow("P001", "B1", "BOOK", DAY0)

    result = library.return_item(loan.loan_id, days(28))

    assert result.late is False
    assert result.fine is None
    assert loan.return_date == days(28)
    assert loan.status == "returned"
    assert library.catalog.find_item("B1", "BOOK").available is True
    assert library.patrons.get("P001").held_loan_ids == []


def test_return_unknown_loan(library):
    with pytest.raises(LoanNotFound):
        library.return_item("L9999", DAY0)


def test_return_twice(library):
    loan = library.borrow("P001", "B1", "BOOK", DAY0)
    library.return_item(loan.loan_id, days(3))
    with pytest.raises(AlreadyReturned):
        library.return_item(loan.loan_id, days(4))


def test_returned_loans_remain_as_history(library):
    loan = library.borrow("P001", "B1", "BOOK", DAY0)
    library.return_item(loan.loan_id, days(3))
    assert [l.loan_id for l in library.loans.loans_for_patron("P001")] == [loan.loan_id]


def test_scenario_a_reconciliation_creates_one_book_fine(library, recorder):
    library.borrow("P001", "B1", "BOOK", DAY0)

    fines = library.reconcile("P001", days(35))

    assert len(fines) == 1
    assert fines[0].amount == Decimal("10.00")
    assert fines[0].loan_id == "L0001"
    assert library.patrons.get("P001").can_borrow is False
    assert recorder.types() == ["FINE_APPLIED"]


def test_reconciliation_is_idempotent(library, db):
    library.borrow("P001", "B1", "BOOK", DAY0)

    library.reconcile("P001", days(35))
    library.reconcile("P001", days(36))

    assert db.query(Fine).filter(Fine.loan_id == "L0001").count() == 1


def test_due_today_is_not_overdue(library):
    loan = library.borrow("P001", "B1", "BOOK", DAY0)

    assert library.reconcile("P001", days(28)) == []
    assert loan.overdue is False
    assert library.patrons.get("P001").can_borrow is True


def test_reconciliation_corrects_amount_to_current_policy(library, registry):
    library.borrow("P001", "B1", "BOOK", DAY0)
    fine = library.reconcile("P001", days(35))[0]

    registry.register("BOOK", FlatFinePolicy("BOOK", Decimal("12.00")))
    library.reconcile("P001", days(36))

    assert fine.amount == Decimal("12.00")
    assert len(library.ledger.fines_for_patron("P001")) == 1


def test_flat_fine_does_not_depend_on_days_overdue(library):
    short = library.borrow("P001", "B1", "BOOK", DAY0)
    long = library.borrow("P002", "B2", "BOOK", DAY0)

    a = library.return_item(short.loan_id, days(29))
    b = library.return_item(long.loan_id, days(200))

    assert a.fine.amount == b.fine.amount == Decimal("10.00")


def test_scenario_c_return_keeps_reconciled_fine(library):
    library.borrow("P001", "B1", "BOOK", DAY0)
    library.reconcile("P001", days(35))

    result = library.return_item("L0001", days(35))

    assert result.overdue_days == 7
    assert result.fine.fine_id == "F0001"
    assert len(library.ledger.fines_for_patron("P001")) == 1


def test_scenario_e_late_cd_return_gets_flat_fine(library, recorder):
    library.borrow("P001", "CD1", "CD", DAY0)

    result = library.return_item("L0001", days(10))

    assert result.overdue_days == 3
    assert result.fine.amount == Decimal("20.00")
    assert library.patrons.get("P001").can_borrow is False
    assert recorder.types() == ["FINE_APPLIED"]


def test_late_return_without_policy_reports_error(library):
    library.catalog.add_item("D1", "DVD", "Alien", "Ridley Scott")
    library.borrow("P001", "D1", "DVD", DAY0)

    result = library.return_item("L0001", days(40))

    assert result.fine is None
    assert "DVD" in result.fine_error
    assert result.loan.return_date == days(40)


def test_overdue_loans_library_wide(library):
    library.borrow("P001", "B1", "BOOK", DAY0)
    library.borrow("P002", "CD1", "CD", DAY0)

    overdue = library.loans.overdue_loans(days(10))

    assert [l.loan_id for l in overdue] == ["L0002"]


def test_overdue_loans_listing_is_read_only(library):
    library.borrow("P002", "CD1", "CD", DAY0)

    overdue = library.loans.overdue_loans(days(10))
    assert overdue[0].overdue is True

    library.db.rollback()
    assert library.loans.get_loan("L0001").overdue is False

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional


class DenialReason(str, Enum):
    ACCOUNT_INACTIVE = "AccountInactive"
    UNPAID_FINES = "UnpaidFines"
    OVERDUE_ITEMS_OUTSTANDING = "OverdueItemsOutstanding"


@dataclass(frozen=True)
class EligibilityDecision:
    allowed: bool
    reason: Optional[DenialReason] = None
    message: str = "Patron may borrow"


def check_eligibility(active: bool, can_borrow: bool, held_loans: Iterable, today: Optional[date] = None) -> EligibilityDecision:
    """Decide whether a patron may start a new loan.

    ``held_loans`` are the patron's un-returned loans.  When ``today`` is
    given the overdue predicate is evaluated against it, otherwise the
    loans' stored ``overdue`` flag is used.  Each condition denies on its
    own; the order only picks which reason is reported.
    """
    if not active:
        return EligibilityDecision(
            False, DenialReason.ACCOUNT_INACTIVE,
            "Patron account is not active. Please contact an administrator.",
        )
    if not can_borrow:
        return EligibilityDecision(
            False, DenialReason.UNPAID_FINES,
            "Patron has unpaid fines. Please pay all fines before borrowing.",
        )
    for loan in held_loans:
        overdue = loan.is_overdue_on(today) if today is not None else loan.overdue
        if overdue:
            return EligibilityDecision(
                False, DenialReason.OVERDUE_ITEMS_OUTSTANDING,
                "Patron has overdue items. Please return them before borrowing.",
            )
    return EligibilityDecision(True)

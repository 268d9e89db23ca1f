from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List
from lending.models.loan import Loan
from lending.services.fine_policy import ZERO
from lending.services.fines import FineLedger
from lending.services.loans import LoanManager
from lending.errors import PolicyNotFound


@dataclass
class FineBreakdown:
    patron_id: str
    totals: Dict[str, Decimal] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)
    manual_total: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return sum(self.totals.values(), ZERO) + self.manual_total


@dataclass
class OverdueItem:
    loan_id: str
    media_id: str
    media_type: str
    overdue_days: int
    fine: Decimal


@dataclass
class OverdueSummary:
    patron_id: str
    report_date: date
    items: List[OverdueItem] = field(default_factory=list)

    @property
    def total_fine(self) -> Decimal:
        return sum((item.fine for item in self.items), ZERO)


def fine_breakdown(ledger: FineLedger, patron_id: str) -> FineBreakdown:
    """Unpaid balance per media type; manual fines are kept apart."""
    breakdown = FineBreakdown(patron_id=patron_id)
    for fine in ledger.unpaid_fines(patron_id):
        if fine.loan is None:
            breakdown.manual_total += fine.remaining_balance
            continue
        media_type = fine.loan.media_type
        breakdown.totals[media_type] = breakdown.totals.get(media_type, ZERO) + fine.remaining_balance
        breakdown.counts[media_type] = breakdown.counts.get(media_type, 0) + 1
    return breakdown


def overdue_summary(manager: LoanManager, patron_id: str, today: date) -> OverdueSummary:
    # Reconcile first so the summary matches the ledger
    manager.check_and_apply_overdue_fines(patron_id, today)
    summary = OverdueSummary(patron_id=patron_id, report_date=today)
    for loan in manager.active_loans(patron_id, today):
        if loan.overdue:
            summary.items.append(_overdue_item(manager, loan, today))
    return summary


def _overdue_item(manager: LoanManager, loan: Loan, today: date) -> OverdueItem:
    try:
        fine = manager.ledger.registry.calculate(loan.media_type, loan.overdue_days(today))
    except PolicyNotFound:
        fine = ZERO
    return OverdueItem(
        loan_id=loan.loan_id,
        media_id=loan.media_identifier,
        media_type=loan.media_type,
        overdue_days=loan.overdue_days(today),
        fine=fine,
    )

"""Error taxonomy for the lending engine.

Every failure carries a stable ``code`` (used by API clients) and a
human-readable message.  Errors are raised before any state is mutated.
"""
from typing import Optional


class LendingError(Exception):
    """Base class for all lending engine errors."""
    code = "LendingError"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self):
        return self.message


# Validation errors

class ValidationError(LendingError):
    code = "ValidationError"

class InvalidIdentifier(ValidationError):
    code = "InvalidIdentifier"

class InvalidAmount(ValidationError):
    code = "InvalidAmount"

class InvalidPolicyAmount(ValidationError):
    code = "InvalidPolicyAmount"


# Not-found errors

class NotFoundError(LendingError):
    code = "NotFound"

class PatronNotFound(NotFoundError):
    code = "PatronNotFound"

class LoanNotFound(NotFoundError):
    code = "LoanNotFound"

class FineNotFound(NotFoundError):
    code = "FineNotFound"

class MediaNotFound(NotFoundError):
    code = "MediaNotFound"


# State-conflict errors

class ConflictError(LendingError):
    code = "Conflict"

class AccountInactive(ConflictError):
    code = "AccountInactive"

class NotEligible(ConflictError):
    """Borrowing denied by the eligibility gate; ``decision`` holds the reason."""
    code = "NotEligible"

    def __init__(self, decision):
        super().__init__(decision.message)
        self.decision = decision

class MediaUnavailable(ConflictError):
    code = "MediaUnavailable"

class AlreadyReturned(ConflictError):
    code = "AlreadyReturned"

class FineAlreadyPaid(ConflictError):
    code = "FineAlreadyPaid"

class LoanNotReturned(ConflictError):
    code = "LoanNotReturned"

class LoanOwnershipMismatch(ConflictError):
    code = "LoanOwnershipMismatch"

class PatronHasOutstandingItems(ConflictError):
    code = "PatronHasOutstandingItems"


# Policy errors

class PolicyError(LendingError):
    code = "PolicyError"

class PolicyNotFound(PolicyError):
    code = "PolicyNotFound"

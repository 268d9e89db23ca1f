"""Flat-fine policies keyed by media type.

A policy maps one media type to a fixed overdue penalty.  New media types
are supported by constructing a policy and registering it; existing
policies are never touched.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from lending.config import settings
from lending.errors import InvalidAmount, PolicyNotFound, ValidationError
from lending.models.media import BOOK, CD

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def to_amount(value) -> Decimal:
    """Normalise a number to a two-decimal Decimal.

    Raises InvalidAmount for values that are not finite numbers or do not fit
    the amount columns.
    """
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidAmount(f"Amount must be a finite number, got {value}")
        amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise InvalidAmount(f"Invalid amount: {value}")
    if abs(amount) > MAX_AMOUNT:
        raise InvalidAmount(f"Amount {value} exceeds the maximum of {MAX_AMOUNT}")
    return amount


@dataclass(frozen=True)
class FlatFinePolicy:
    media_type: str
    flat_fine: Decimal

    def calculate(self, overdue_days: int) -> Decimal:
        # overdue_days is kept for per-day policies; a flat fine ignores it
        return self.flat_fine if overdue_days > 0 else ZERO


class FineStrategyRegistry:
    def __init__(self, policies: Optional[Dict[str, FlatFinePolicy]] = None):
        self._policies: Dict[str, FlatFinePolicy] = dict(policies or {})

    @classmethod
    def default(cls) -> "FineStrategyRegistry":
        registry = cls()
        registry.register(BOOK, FlatFinePolicy(BOOK, to_amount(settings.book_flat_fine)))
        registry.register(CD, FlatFinePolicy(CD, to_amount(settings.cd_flat_fine)))
        return registry

    def register(self, media_type: str, policy: FlatFinePolicy) -> None:
        """Add or replace the policy for a media type."""
        if policy is None:
            raise ValidationError("Fine policy cannot be empty")
        if not media_type or not media_type.strip():
            raise ValidationError("Media type cannot be empty")
        key = media_type.strip().upper()
        if key in self._policies:
            logger.info(f"Replacing fine policy for {key}")
        self._policies[key] = policy
        logger.info(f"Registered fine policy for {key}: flat {policy.flat_fine}")

    def get(self, media_type: str) -> FlatFinePolicy:
        policy = self._policies.get((media_type or "").upper())
        if policy is None:
            raise PolicyNotFound(f"No fine policy registered for media type: {media_type}")
        return policy

    def flat_fine(self, media_type: str) -> Decimal:
        return self.get(media_type).flat_fine

    def calculate(self, media_type: str, overdue_days: int) -> Decimal:
        return self.get(media_type).calculate(overdue_days)

    def media_types(self):
        return sorted(self._policies)

    def __contains__(self, media_type: str) -> bool:
        return (media_type or "").upper() in self._policies


# Process-wide registry; runtime registrations survive across requests
fine_registry = FineStrategyRegistry.default()

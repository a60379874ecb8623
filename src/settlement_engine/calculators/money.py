"""Keyed money rounding.

Every (scope, field) pair rounds with one policy for the life of the
process. Policies are resolved from a fixed mapping supplied at startup,
so the per-key cache only memoizes resolution and never changes a result.

Rounding is half away from zero (``ROUND_HALF_UP`` in ``decimal`` terms).
Floats are converted through their shortest repr, so ``2.675`` is treated
as the decimal ``2.675`` and rounds to ``2.68``.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from settlement_engine.calculators.types import RoundingKey

logger = logging.getLogger(__name__)

Number = Union[Decimal, float, int]

DEFAULT_PRECISION = 2

# ISO 4217 minor units that differ from the default of 2
CURRENCY_PRECISION: dict[str, int] = {
    "BIF": 0,
    "CLP": 0,
    "ISK": 0,
    "JPY": 0,
    "KRW": 0,
    "PYG": 0,
    "VND": 0,
    "BHD": 3,
    "IQD": 3,
    "JOD": 3,
    "KWD": 3,
    "OMR": 3,
    "TND": 3,
}


class InvalidAmountError(ValueError):
    """Raised when an amount cannot be rounded (NaN, infinity, overflow)."""

    def __init__(self, key: RoundingKey | None, value: object):
        self.key = key
        self.value = value
        super().__init__(f"Unable to round amount {value!r} for key {key}")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal, rejecting non-finite values."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidAmountError(None, value)
        result = Decimal(repr(value))
    else:
        result = Decimal(value)

    if not result.is_finite():
        raise InvalidAmountError(None, value)
    return result


def round_half_up(value: Number, places: int = DEFAULT_PRECISION) -> Decimal:
    """Round to ``places`` decimals, half away from zero."""
    amount = to_decimal(value)
    try:
        return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountError(None, value) from None


@dataclass(frozen=True)
class RoundingPolicy:
    """Precision a rounding slot quantizes to."""

    precision: int = DEFAULT_PRECISION

    def __post_init__(self) -> None:
        if not 0 <= self.precision <= 8:
            raise ValueError(f"precision must be between 0 and 8, got {self.precision}")

    def quantize(self, value: Number) -> Decimal:
        return round_half_up(value, self.precision)


@dataclass(frozen=True)
class RoundingPolicyResolver:
    """Resolves the rounding policy for a key from a fixed mapping.

    Lookup order:
    1. ``overrides[(scope_id, field_key)]``
    2. ``overrides[(None, field_key)]``
    3. ``default_precision``
    """

    default_precision: int = DEFAULT_PRECISION
    overrides: dict[tuple[str | None, str], int] = field(default_factory=dict)

    def resolve(self, key: RoundingKey) -> RoundingPolicy:
        precision = self.overrides.get(
            (key.scope_id, key.field_key),
            self.overrides.get((None, key.field_key), self.default_precision),
        )
        return RoundingPolicy(precision=precision)


class MoneyRounder:
    """Rounds amounts through per-key cached policies.

    The cache is guarded by a single non-reentrant lock. Resolution happens
    inside the lock, so concurrent first calls for the same key all end up
    with the one slot that was stored first.

    Usage:
        rounder = MoneyRounder()
        rounder.round(RoundingKey(merchant_id, "gross_total_amount"), 100.005)
        # Decimal("100.01")
    """

    def __init__(self, resolver: RoundingPolicyResolver | None = None) -> None:
        self.resolver = resolver or RoundingPolicyResolver()
        self._slots: dict[RoundingKey, RoundingPolicy] = {}
        self._lock = threading.Lock()

    def round(self, key: RoundingKey, value: Number) -> Decimal:
        """Round ``value`` with the policy configured for ``key``.

        Raises:
            InvalidAmountError: If value is NaN or infinite. The cache is
                not touched in that case.
        """
        try:
            amount = to_decimal(value)
        except InvalidAmountError:
            logger.error(
                "Unable to round amount",
                extra={"rounding_key": str(key), "rounding_value": repr(value)},
            )
            raise InvalidAmountError(key, value) from None

        policy = self._slot(key)
        try:
            return policy.quantize(amount)
        except InvalidAmountError:
            logger.error(
                "Unable to round amount",
                extra={"rounding_key": str(key), "rounding_value": repr(value)},
            )
            raise InvalidAmountError(key, value) from None

    def policy_for(self, key: RoundingKey) -> RoundingPolicy | None:
        """Return the cached policy for a key, or None if never rounded."""
        with self._lock:
            return self._slots.get(key)

    def cached_keys(self) -> int:
        with self._lock:
            return len(self._slots)

    def _slot(self, key: RoundingKey) -> RoundingPolicy:
        with self._lock:
            policy = self._slots.get(key)
            if policy is None:
                policy = self._slots.setdefault(key, self.resolver.resolve(key))
            return policy


@dataclass(frozen=True)
class MoneyValue:
    """An amount in a currency."""

    amount: Decimal
    currency: str

    @property
    def precision(self) -> int:
        return CURRENCY_PRECISION.get(self.currency.upper(), DEFAULT_PRECISION)

    def rounded(self) -> MoneyValue:
        """Return the amount rounded to the currency's minor units."""
        return MoneyValue(round_half_up(self.amount, self.precision), self.currency)

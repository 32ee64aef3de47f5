"""
Platform fee / seller earnings split.

Single source of truth for fee math at checkout and at reporting time.
All amounts are integers in the smallest currency unit (cents).

    platform_fee    = round_half_up(gross_cents * rate)
    seller_earnings = gross_cents - platform_fee

so platform_fee + seller_earnings == gross_cents exactly.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from numbers import Number
from typing import Optional, Union

from marketplace_core.platform.audit import SYSTEM_ACTOR, AuditAction, AuditLogger

logger = logging.getLogger(__name__)

Rate = Union[Decimal, float, int, str]

DEFAULT_PLATFORM_FEE_RATE = Decimal("0.15")


class FeeValidationError(ValueError):
    """Invalid gross amount or fee rate."""


@dataclass(frozen=True)
class FeeSplit:
    gross_cents: int
    platform_fee_cents: int
    seller_earnings_cents: int
    rate: Decimal


def _to_rate(rate: Rate) -> Decimal:
    if isinstance(rate, bool):
        raise FeeValidationError("rate must be a number, got bool")
    if isinstance(rate, Decimal):
        value = rate
    elif isinstance(rate, (Number, str)):
        # str() first so 0.15 is not widened to its binary expansion
        try:
            value = Decimal(str(rate).strip())
        except InvalidOperation:
            raise FeeValidationError(f"rate is not a number: {rate!r}")
    else:
        raise FeeValidationError(f"rate must be a number, got {type(rate).__name__}")
    if not value.is_finite() or not Decimal(0) <= value <= Decimal(1):
        raise FeeValidationError(f"rate must be within [0, 1], got {rate!r}")
    return value


def _to_gross(gross_cents: int) -> int:
    if isinstance(gross_cents, bool) or not isinstance(gross_cents, int):
        raise FeeValidationError(f"gross_cents must be an integer, got {type(gross_cents).__name__}")
    if gross_cents < 0:
        raise FeeValidationError(f"gross_cents must be non-negative, got {gross_cents}")
    return gross_cents


def rate_from_percent(percent: Union[Decimal, float, int, str]) -> Decimal:
    """15 -> Decimal("0.15")."""
    try:
        return _to_rate(Decimal(str(percent).strip()) / Decimal(100))
    except InvalidOperation:
        raise FeeValidationError(f"percent is not a number: {percent!r}")


def rate_from_basis_points(bps: int) -> Decimal:
    """150 -> Decimal("0.015")."""
    if isinstance(bps, bool) or not isinstance(bps, int):
        raise FeeValidationError(f"basis points must be an integer, got {bps!r}")
    return _to_rate(Decimal(bps) / Decimal(10000))


def platform_fee(gross_cents: int, rate: Rate) -> int:
    """Platform fee in cents, rounded half away from zero."""
    gross = _to_gross(gross_cents)
    value = _to_rate(rate)
    with localcontext() as ctx:
        # Enough digits for the exact product, however large the gross
        ctx.prec = max(28, len(str(gross)) + len(value.as_tuple().digits) + 2)
        fee = (Decimal(gross) * value).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(fee)


def seller_earnings(gross_cents: int, rate: Rate) -> int:
    """Seller earnings in cents: gross minus the platform fee."""
    return _to_gross(gross_cents) - platform_fee(gross_cents, rate)


def split_payment(gross_cents: int, rate: Rate) -> FeeSplit:
    fee = platform_fee(gross_cents, rate)
    return FeeSplit(
        gross_cents=gross_cents,
        platform_fee_cents=fee,
        seller_earnings_cents=gross_cents - fee,
        rate=_to_rate(rate),
    )


class FeeCalculator:
    """Fee math bound to the configured platform rate."""

    def __init__(self, rate: Rate = DEFAULT_PLATFORM_FEE_RATE, *, audit_logger: Optional[AuditLogger] = None):
        self.rate = _to_rate(rate)
        self._audit = audit_logger

    def platform_fee(self, gross_cents: int) -> int:
        return platform_fee(gross_cents, self.rate)

    def seller_earnings(self, gross_cents: int) -> int:
        return seller_earnings(gross_cents, self.rate)

    def split(
        self,
        gross_cents: int,
        *,
        actor_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> FeeSplit:
        """
        Split a gross payment and record the computation.

        Args:
            gross_cents: Gross amount in cents
            actor_id: Who triggered the settlement (defaults to "system")
            subject_id: Purchase or payment identifier, if known
        """
        result = split_payment(gross_cents, self.rate)
        if self._audit is not None:
            self._audit.record(
                actor_id or SYSTEM_ACTOR,
                AuditAction.FEE_COMPUTE,
                "payment",
                subject_id,
                {
                    "gross_cents": result.gross_cents,
                    "platform_fee_cents": result.platform_fee_cents,
                    "seller_earnings_cents": result.seller_earnings_cents,
                    "rate": str(result.rate),
                },
            )
        return result

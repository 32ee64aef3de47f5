"""Payment split between the platform and the content owner."""

from marketplace_core.billing.fees import (
    DEFAULT_PLATFORM_FEE_RATE,
    FeeCalculator,
    FeeSplit,
    FeeValidationError,
    platform_fee,
    rate_from_basis_points,
    rate_from_percent,
    seller_earnings,
    split_payment,
)

__all__ = [
    "DEFAULT_PLATFORM_FEE_RATE",
    "FeeCalculator",
    "FeeSplit",
    "FeeValidationError",
    "platform_fee",
    "rate_from_basis_points",
    "rate_from_percent",
    "seller_earnings",
    "split_payment",
]

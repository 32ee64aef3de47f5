"""
Entitlement evaluation for marketplace resources.

This module provides:
- EntitlementEvaluator: is_active_member / is_eligible_creator / can_download
- EntitlementDecision: internal decision with reason, for audit
- MarketplaceReader / SqlMarketplaceReader: storage read interface

All checks fail closed: a storage error is a denial.
"""

from marketplace_core.entitlements.errors import (
    STORAGE_ERROR_CODE,
    EntitlementError,
    StorageReadError,
)
from marketplace_core.entitlements.models import (
    EntitlementDecision,
    ProfileRecord,
    ResourceRecord,
)
from marketplace_core.entitlements.service import EntitlementEvaluator
from marketplace_core.entitlements.store import MarketplaceReader, SqlMarketplaceReader

__all__ = [
    "STORAGE_ERROR_CODE",
    "EntitlementError",
    "StorageReadError",
    "EntitlementDecision",
    "ProfileRecord",
    "ResourceRecord",
    "EntitlementEvaluator",
    "MarketplaceReader",
    "SqlMarketplaceReader",
]

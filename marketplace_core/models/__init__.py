"""
Database models read by the access core.

Profiles, resources and purchases are owned by other parts of the
marketplace; audit events live in marketplace_core.platform.audit.
"""

from marketplace_core.models.base import TimestampMixin, UUIDPrimaryKeyMixin
from marketplace_core.models.profile import MembershipStatus, Profile
from marketplace_core.models.purchase import Purchase, PurchaseStatus
from marketplace_core.models.resource import Resource

__all__ = [
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "MembershipStatus",
    "Profile",
    "Purchase",
    "PurchaseStatus",
    "Resource",
]

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

from marketplace_core.models.profile import MembershipStatus

DecisionReason = Literal[
    "active_member",
    "creator_enabled",
    "owner",
    "purchase",
    "invalid_request",
    "profile_missing",
    "membership_inactive",
    "creator_disabled",
    "no_purchase",
    "storage_error",
]


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes from storage as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ProfileRecord:
    """Read-only view of a profile row."""

    profile_id: str
    user_id: str
    membership_status: str
    membership_period_end: Optional[datetime] = None
    creator_enabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "membership_period_end", ensure_utc(self.membership_period_end))

    def membership_is_current(self, now: datetime) -> bool:
        """Active status and a period end that is absent or strictly after now."""
        if self.membership_status != MembershipStatus.ACTIVE.value:
            return False
        if self.membership_period_end is None:
            return True
        return self.membership_period_end > now


@dataclass(frozen=True)
class ResourceRecord:
    """Read-only view of a resource row."""

    resource_id: str
    owner_profile_id: str
    storage_path: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class EntitlementDecision:
    """
    Outcome of one entitlement check.

    A storage failure is a denied decision with reason "storage_error";
    callers of the boolean API never see the difference.
    """

    allowed: bool
    reason: DecisionReason
    error_code: Optional[str] = None
    profile_id: Optional[str] = None

    @property
    def storage_failed(self) -> bool:
        return self.reason == "storage_error"


def allow(reason: DecisionReason, *, profile_id: Optional[str] = None) -> EntitlementDecision:
    return EntitlementDecision(allowed=True, reason=reason, profile_id=profile_id)


def deny(
    reason: DecisionReason,
    *,
    error_code: Optional[str] = None,
    profile_id: Optional[str] = None,
) -> EntitlementDecision:
    return EntitlementDecision(allowed=False, reason=reason, error_code=error_code, profile_id=profile_id)

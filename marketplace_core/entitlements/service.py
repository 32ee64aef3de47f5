"""
Entitlement evaluation: membership -> ownership -> purchase. Fails closed.

Every check re-reads storage. Any exception raised by the reader becomes a
denied decision with reason "storage_error"; the boolean API never raises.
"""

import logging
from typing import Optional

from marketplace_core.entitlements.errors import STORAGE_ERROR_CODE
from marketplace_core.entitlements.models import (
    EntitlementDecision,
    ProfileRecord,
    allow,
    deny,
)
from marketplace_core.entitlements.store import MarketplaceReader
from marketplace_core.models.purchase import PurchaseStatus
from marketplace_core.utils import Clock, utc_now

logger = logging.getLogger(__name__)


def _normalize_id(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()


class _StorageFailure(Exception):
    pass


class EntitlementEvaluator:
    """Decides whether a user may act on or download a resource."""

    def __init__(self, reader: MarketplaceReader, *, clock: Clock = utc_now) -> None:
        self._reader = reader
        self._clock = clock

    # -- boolean decision API -------------------------------------------------

    def is_active_member(self, user_id: str) -> bool:
        return self.evaluate_membership(user_id).allowed

    def is_eligible_creator(self, user_id: str) -> bool:
        return self.evaluate_creator(user_id).allowed

    def can_download(self, user_id: str, resource_id: str) -> bool:
        return self.evaluate_download(user_id, resource_id).allowed

    # -- decisions with reasons -----------------------------------------------

    def evaluate_membership(self, user_id: str) -> EntitlementDecision:
        user_id = _normalize_id(user_id)
        if not user_id:
            return deny("invalid_request")
        try:
            profile = self._load_profile(user_id)
        except _StorageFailure:
            return deny("storage_error", error_code=STORAGE_ERROR_CODE)
        return self._membership_decision(profile)

    def evaluate_creator(self, user_id: str) -> EntitlementDecision:
        """Creator eligibility requires a current membership on every call."""
        user_id = _normalize_id(user_id)
        if not user_id:
            return deny("invalid_request")
        try:
            profile = self._load_profile(user_id)
        except _StorageFailure:
            return deny("storage_error", error_code=STORAGE_ERROR_CODE)

        membership = self._membership_decision(profile)
        if not membership.allowed:
            return membership
        if not profile.creator_enabled:
            return deny("creator_disabled", profile_id=profile.profile_id)
        return allow("creator_enabled", profile_id=profile.profile_id)

    def evaluate_download(self, user_id: str, resource_id: str) -> EntitlementDecision:
        """
        Decide download access, in this order:

        1. Not an active member -> deny (owners and buyers included)
        2. No profile -> deny
        3. Owner of the resource -> allow
        4. At least one succeeded purchase -> allow, otherwise deny
        """
        user_id = _normalize_id(user_id)
        resource_id = _normalize_id(resource_id)
        if not user_id or not resource_id:
            return deny("invalid_request")

        try:
            profile = self._load_profile(user_id)
            membership = self._membership_decision(profile)
            if not membership.allowed:
                return membership
            if profile is None or not profile.profile_id:
                return deny("profile_missing")

            resource = self._call("get_resource", self._reader.get_resource, resource_id)
            if resource is not None and resource.owner_profile_id == profile.profile_id:
                return allow("owner", profile_id=profile.profile_id)

            purchases = self._call(
                "count_purchases",
                self._reader.count_purchases,
                profile.profile_id,
                resource_id,
                PurchaseStatus.SUCCEEDED.value,
            )
        except _StorageFailure:
            return deny("storage_error", error_code=STORAGE_ERROR_CODE)

        if purchases > 0:
            return allow("purchase", profile_id=profile.profile_id)
        return deny("no_purchase", profile_id=profile.profile_id)

    # -- internals ------------------------------------------------------------

    def _membership_decision(self, profile: Optional[ProfileRecord]) -> EntitlementDecision:
        if profile is None:
            return deny("profile_missing")
        if not profile.membership_is_current(self._clock()):
            return deny("membership_inactive", profile_id=profile.profile_id)
        return allow("active_member", profile_id=profile.profile_id)

    def _load_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return self._call("get_profile", self._reader.get_profile, user_id)

    def _call(self, lookup: str, fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            logger.exception(
                "Entitlement storage lookup failed; denying",
                extra={"lookup": lookup, "error_code": STORAGE_ERROR_CODE, "error_type": type(e).__name__},
            )
            raise _StorageFailure(lookup) from e

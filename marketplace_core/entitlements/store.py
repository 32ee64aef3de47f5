"""
Storage read interface used by the entitlement evaluator.

Point lookups by exact key only; no joins, no range scans. Each call goes
to storage, there is no cache.
"""

from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace_core.entitlements.errors import StorageReadError
from marketplace_core.entitlements.models import ProfileRecord, ResourceRecord
from marketplace_core.models import Profile, Purchase, Resource


class MarketplaceReader(Protocol):
    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        ...

    def get_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        ...

    def count_purchases(self, buyer_profile_id: str, resource_id: str, status: str) -> int:
        ...


class SqlMarketplaceReader:
    """MarketplaceReader backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        try:
            row = self.db.execute(
                select(
                    Profile.id,
                    Profile.user_id,
                    Profile.membership_status,
                    Profile.membership_current_period_end,
                    Profile.is_creator_enabled,
                ).where(Profile.user_id == user_id)
            ).first()
        except Exception as e:
            raise StorageReadError("profile by user_id", cause=e) from e

        if row is None:
            return None
        return ProfileRecord(
            profile_id=row.id,
            user_id=row.user_id,
            membership_status=row.membership_status,
            membership_period_end=row.membership_current_period_end,
            creator_enabled=bool(row.is_creator_enabled),
        )

    def get_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        try:
            row = self.db.execute(
                select(Resource.id, Resource.owner_id, Resource.storage_path, Resource.title)
                .where(Resource.id == resource_id)
            ).first()
        except Exception as e:
            raise StorageReadError("resource by id", cause=e) from e

        if row is None:
            return None
        return ResourceRecord(
            resource_id=row.id,
            owner_profile_id=row.owner_id,
            storage_path=row.storage_path,
            title=row.title,
        )

    def count_purchases(self, buyer_profile_id: str, resource_id: str, status: str) -> int:
        try:
            count = self.db.execute(
                select(func.count(Purchase.id)).where(
                    Purchase.buyer_id == buyer_profile_id,
                    Purchase.resource_id == resource_id,
                    Purchase.status == status,
                )
            ).scalar_one()
        except Exception as e:
            raise StorageReadError("purchases by buyer, resource and status", cause=e) from e
        return int(count or 0)

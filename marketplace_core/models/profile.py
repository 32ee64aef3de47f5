"""
Profile model.

One row per user identity. Membership columns are written by the billing
webhook reconciliation flow; this package only reads them.
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, String

from marketplace_core.db_base import Base
from marketplace_core.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    NONE = "none"


class Profile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "profiles"

    # External identity (auth provider user id); id is the internal profile id
    user_id = Column(String(255), nullable=False, unique=True, index=True)
    membership_status = Column(String(20), nullable=False, default=MembershipStatus.NONE.value)
    membership_current_period_end = Column(DateTime(timezone=True), nullable=True)
    is_creator_enabled = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, user_id={self.user_id}, membership_status={self.membership_status})>"

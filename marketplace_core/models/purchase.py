"""
Purchase model.

Rows are created by the checkout/webhook flow. A purchase with status
succeeded grants permanent download rights for (buyer_id, resource_id).
"""

import enum

from sqlalchemy import Column, ForeignKey, Index, Integer, String

from marketplace_core.db_base import Base
from marketplace_core.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class PurchaseStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class Purchase(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "purchases"

    buyer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    resource_id = Column(String(36), ForeignKey("resources.id"), nullable=False)
    status = Column(String(20), nullable=False, default=PurchaseStatus.PENDING.value)
    amount_cents = Column(Integer, nullable=False, default=0)
    platform_fee_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="usd")

    __table_args__ = (
        Index("ix_purchases_buyer_resource_status", "buyer_id", "resource_id", "status"),
    )

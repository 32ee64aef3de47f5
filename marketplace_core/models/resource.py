"""Resource model (purchasable content item, read-only here)."""

from sqlalchemy import Column, ForeignKey, String

from marketplace_core.db_base import Base
from marketplace_core.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class Resource(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "resources"

    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    storage_path = Column(String(1024), nullable=True)

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, owner_id={self.owner_id})>"

"""Shared model mixins."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String


def generate_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """created_at / updated_at columns (UTC)."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )


class UUIDPrimaryKeyMixin:
    id = Column(String(36), primary_key=True, default=generate_uuid)

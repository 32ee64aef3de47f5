"""
Audit trail for the marketplace access core.

CRITICAL REQUIREMENTS:
- Audit events are append-only (no UPDATE/DELETE)
- Every entitlement decision and every token issuance writes an event
- Secrets, tokens and contact details are redacted before persistence
- A failed write MUST NOT fail the action it describes; the event goes to
  the fallback logger instead

Audited actions:
- Download decisions (allow / deny) and redemptions
- Download token issuance and rejection
- Fee computations at settlement time
- Creator eligibility checks
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, FrozenSet, Optional, Protocol, Union

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

from marketplace_core.db_base import Base

logger = logging.getLogger(__name__)
fallback_logger = logging.getLogger("audit.fallback")

SYSTEM_ACTOR = "system"
ANONYMOUS_ACTOR = "anonymous"


class AuditAction(str, Enum):
    """Normalized audit action names."""

    DOWNLOAD_ALLOW = "download.allow"
    DOWNLOAD_DENY = "download.deny"
    DOWNLOAD_REDEEM = "download.redeem"
    TOKEN_ISSUE = "token.issue"
    TOKEN_REJECT = "token.reject"
    FEE_COMPUTE = "fee.compute"
    CREATOR_CHECK = "creator.check"


class PIIRedactor:
    """
    Redacts sensitive fields from audit metadata before persistence.

    Redacted values are replaced with "[REDACTED]" so the metadata keeps
    its shape.
    """

    REDACTED_FIELDS: FrozenSet[str] = frozenset({
        "token",
        "download_token",
        "access_token",
        "refresh_token",
        "jwt",
        "secret",
        "signing_secret",
        "api_key",
        "password",
        "authorization",
        "email",
        "phone",
        "card_number",
        "bank_account",
    })

    REDACTION_MARKER = "[REDACTED]"

    @classmethod
    def redact(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict):
            return data
        return cls._redact_dict(data)

    @classmethod
    def _redact_dict(cls, d: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in d.items():
            lower_key = str(key).lower()
            if lower_key in cls.REDACTED_FIELDS:
                result[key] = cls._redact_value(lower_key, value)
            elif isinstance(value, dict):
                result[key] = cls._redact_dict(value)
            elif isinstance(value, list):
                result[key] = cls._redact_list(value)
            else:
                result[key] = value
        return result

    @classmethod
    def _redact_value(cls, key: str, value: Any) -> str:
        # Keep the domain of an email for support lookups
        if key == "email" and isinstance(value, str) and "@" in value:
            return f"***@{value.split('@', 1)[1]}"
        return cls.REDACTION_MARKER

    @classmethod
    def _redact_list(cls, lst: list[Any]) -> list[Any]:
        result = []
        for item in lst:
            if isinstance(item, dict):
                result.append(cls._redact_dict(item))
            elif isinstance(item, list):
                result.append(cls._redact_list(item))
            else:
                result.append(item)
        return result


class AuditEventRecord(Base):
    """
    Audit event row.

    CRITICAL: This table is append-only. Rows are inserted, never updated
    or deleted.
    """
    __tablename__ = "audit_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    actor_id = Column(String(255), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    subject_type = Column(String(100), nullable=False)
    subject_id = Column(String(255), nullable=True)
    event_metadata = Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_audit_events_subject", "subject_type", "subject_id"),
        Index("ix_audit_events_actor_created", "actor_id", "created_at"),
    )


@dataclass
class AuditEvent:
    """
    Audit event data structure, built before it is written.

    Metadata is redacted by to_dict().
    """
    actor_id: str
    action: Union[AuditAction, str]
    subject_type: str
    subject_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def action_name(self) -> str:
        return self.action.value if isinstance(self.action, AuditAction) else str(self.action)

    def to_dict(self) -> dict[str, Any]:
        """Column values for insertion, with metadata redacted."""
        return {
            "id": self.event_id,
            "actor_id": self.actor_id,
            "action": self.action_name,
            "subject_type": self.subject_type,
            "subject_id": self.subject_id,
            "event_metadata": PIIRedactor.redact(self.metadata),
            "created_at": self.created_at,
        }


class AuditWriter(Protocol):
    """Storage write interface: single-row insert of one audit event."""

    def insert(self, event: AuditEvent) -> None:
        ...


class SqlAuditWriter:
    """Writes audit events through a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, event: AuditEvent) -> None:
        try:
            self.db.add(AuditEventRecord(**event.to_dict()))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class AuditLogger:
    """
    Best-effort recorder of security and financial actions.

    record() never raises. When the writer fails, the event is written to
    the audit.fallback logger together with the failure reason.
    """

    def __init__(self, writer: Optional[AuditWriter] = None):
        self._writer = writer

    def record(
        self,
        actor_id: str,
        action: Union[AuditAction, str],
        subject_type: str,
        subject_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Append one audit event.

        Args:
            actor_id: Who performed the action (user id, "system" or "anonymous")
            action: Normalized action name, e.g. "download.allow"
            subject_type: Kind of subject, e.g. "resource"
            subject_id: Identifier of the subject, if any
            metadata: Free-form context; redacted before persistence
        """
        try:
            event = AuditEvent(
                actor_id=actor_id or ANONYMOUS_ACTOR,
                action=action,
                subject_type=subject_type,
                subject_id=subject_id,
                metadata=dict(metadata or {}),
            )
        except Exception:
            logger.exception("Failed to build audit event", extra={"action": str(action)})
            return

        if self._writer is None:
            _write_fallback_log(event, "no audit writer configured")
            return

        try:
            self._writer.insert(event)
        except Exception as e:
            _write_fallback_log(event, str(e))
            return

        logger.info(
            "Audit event recorded",
            extra={
                "audit_id": event.event_id,
                "actor_id": event.actor_id,
                "action": event.action_name,
                "subject_type": event.subject_type,
                "subject_id": event.subject_id,
            },
        )


def _write_fallback_log(event: AuditEvent, error_reason: str) -> None:
    """Write an audit event to the fallback logger when the primary store fails."""
    fallback_entry = {
        "event_id": event.event_id,
        "actor_id": event.actor_id,
        "action": event.action_name,
        "subject_type": event.subject_type,
        "subject_id": event.subject_id,
        "created_at": event.created_at.isoformat(),
        "metadata": PIIRedactor.redact(event.metadata),
        "fallback_reason": error_reason,
    }
    try:
        fallback_logger.error(
            "Audit log fallback",
            extra={"audit_entry": json.dumps(fallback_entry, default=str)},
        )
    except Exception:
        logger.exception("Audit fallback logging failed", extra={"event_id": event.event_id})

"""Cross-cutting platform concerns: audit trail and API error shapes."""

from marketplace_core.platform.audit import (
    ANONYMOUS_ACTOR,
    SYSTEM_ACTOR,
    AuditAction,
    AuditEvent,
    AuditEventRecord,
    AuditLogger,
    AuditWriter,
    PIIRedactor,
    SqlAuditWriter,
)

__all__ = [
    "ANONYMOUS_ACTOR",
    "SYSTEM_ACTOR",
    "AuditAction",
    "AuditEvent",
    "AuditEventRecord",
    "AuditLogger",
    "AuditWriter",
    "PIIRedactor",
    "SqlAuditWriter",
]

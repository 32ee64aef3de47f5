"""
Audit logging tests.

CRITICAL: audit recording is best effort. A failed write must never raise
into the caller and must leave a trace in the fallback logger.
"""

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import select

from conftest import FailingWriter, RecordingWriter
from marketplace_core.platform.audit import (
    AuditAction,
    AuditEvent,
    AuditEventRecord,
    AuditLogger,
    PIIRedactor,
    SqlAuditWriter,
)


# ============================================================================
# TEST SUITE: AUDIT EVENT
# ============================================================================

class TestAuditEvent:

    def test_event_has_required_fields(self):
        before = datetime.now(timezone.utc)
        event = AuditEvent(
            actor_id="user-1",
            action=AuditAction.DOWNLOAD_ALLOW,
            subject_type="resource",
            subject_id="res-1",
            metadata={"reason": "purchase"},
        )
        after = datetime.now(timezone.utc)

        assert event.action_name == "download.allow"
        assert before <= event.created_at <= after
        assert event.event_id

    def test_to_dict_maps_columns(self):
        event = AuditEvent(actor_id="user-1", action="token.issue", subject_type="resource")
        row = event.to_dict()

        assert row["action"] == "token.issue"
        assert row["subject_id"] is None
        assert row["event_metadata"] == {}
        assert row["id"] == event.event_id

    def test_action_names_are_normalized(self):
        assert {a.value for a in AuditAction} >= {
            "download.allow",
            "download.deny",
            "token.issue",
        }


# ============================================================================
# TEST SUITE: REDACTION
# ============================================================================

class TestPIIRedactor:

    def test_tokens_and_secrets_redacted(self):
        redacted = PIIRedactor.redact({
            "token": "eyJhbGciOi...",
            "nested": {"Secret": "s3cr3t", "jti": "abc"},
            "items": [{"password": "pw"}, "plain"],
        })

        assert redacted["token"] == "[REDACTED]"
        assert redacted["nested"] == {"Secret": "[REDACTED]", "jti": "abc"}
        assert redacted["items"] == [{"password": "[REDACTED]"}, "plain"]

    def test_email_keeps_domain(self):
        assert PIIRedactor.redact({"email": "jane@example.com"}) == {"email": "***@example.com"}

    def test_input_not_mutated(self):
        original = {"token": "abc"}
        PIIRedactor.redact(original)
        assert original == {"token": "abc"}


# ============================================================================
# TEST SUITE: AUDIT LOGGER
# ============================================================================

class TestAuditLogger:

    def test_record_writes_event(self):
        writer = RecordingWriter()
        AuditLogger(writer).record("user-1", AuditAction.DOWNLOAD_DENY, "resource", "res-1", {"reason": "no_purchase"})

        assert len(writer.events) == 1
        event = writer.events[0]
        assert (event.actor_id, event.action_name, event.subject_type, event.subject_id) == (
            "user-1", "download.deny", "resource", "res-1",
        )
        assert event.metadata == {"reason": "no_purchase"}

    def test_optional_fields_may_be_omitted(self):
        writer = RecordingWriter()
        AuditLogger(writer).record("user-1", "token.reject", "download_token")

        assert writer.events[0].subject_id is None
        assert writer.events[0].metadata == {}

    def test_writer_failure_is_swallowed(self, caplog):
        writer = FailingWriter()
        logger = AuditLogger(writer)

        with caplog.at_level(logging.ERROR, logger="audit.fallback"):
            result = logger.record("user-1", AuditAction.TOKEN_ISSUE, "resource", "res-1", {"token": "secret-token"})

        assert result is None
        assert writer.attempts == 1
        fallback = [r for r in caplog.records if r.name == "audit.fallback"]
        assert len(fallback) == 1
        entry = json.loads(fallback[0].audit_entry)
        assert entry["action"] == "token.issue"
        assert entry["fallback_reason"] == "audit store unavailable"
        assert entry["metadata"]["token"] == "[REDACTED]"

    def test_missing_writer_goes_to_fallback(self, caplog):
        with caplog.at_level(logging.ERROR, logger="audit.fallback"):
            AuditLogger().record("user-1", AuditAction.DOWNLOAD_ALLOW, "resource", "res-1")
        assert any(r.name == "audit.fallback" for r in caplog.records)

    def test_blank_actor_recorded_as_anonymous(self):
        writer = RecordingWriter()
        AuditLogger(writer).record("", AuditAction.TOKEN_REJECT, "download_token")
        assert writer.events[0].actor_id == "anonymous"


# ============================================================================
# TEST SUITE: SQL WRITER
# ============================================================================

class TestSqlAuditWriter:

    def test_event_persisted_with_redacted_metadata(self, db_session):
        AuditLogger(SqlAuditWriter(db_session)).record(
            "user-1",
            AuditAction.TOKEN_ISSUE,
            "resource",
            "res-1",
            {"jti": "abc", "download_token": "eyJ..."},
        )

        rows = db_session.execute(select(AuditEventRecord)).scalars().all()
        assert len(rows) == 1
        row = rows[0]
        assert row.action == "token.issue"
        assert row.actor_id == "user-1"
        assert row.subject_id == "res-1"
        assert row.event_metadata == {"jti": "abc", "download_token": "[REDACTED]"}
        assert row.created_at is not None

    def test_null_subject_accepted(self, db_session):
        AuditLogger(SqlAuditWriter(db_session)).record("anonymous", AuditAction.TOKEN_REJECT, "download_token")
        row = db_session.execute(select(AuditEventRecord)).scalar_one()
        assert row.subject_id is None

    def test_commit_failure_rolls_back_and_falls_back(self, db_session, monkeypatch, caplog):
        def boom():
            raise RuntimeError("database is down")

        rollbacks = []
        monkeypatch.setattr(db_session, "commit", boom)
        monkeypatch.setattr(db_session, "rollback", lambda: rollbacks.append(True))

        with caplog.at_level(logging.ERROR, logger="audit.fallback"):
            AuditLogger(SqlAuditWriter(db_session)).record("user-1", AuditAction.DOWNLOAD_ALLOW, "resource", "res-1")

        assert rollbacks == [True]
        assert any(r.name == "audit.fallback" for r in caplog.records)

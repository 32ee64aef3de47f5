"""
Shared pytest fixtures.

- FakeReader: dict-backed MarketplaceReader with failure injection
- fixed clock helpers
- in-memory SQLite session with all tables created
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import marketplace_core.models  # noqa: F401  registers tables
import marketplace_core.platform.audit  # noqa: F401  registers audit_events
from marketplace_core.db_base import Base
from marketplace_core.downloads.tokens import DownloadTokenConfig, DownloadTokenService
from marketplace_core.entitlements.models import ProfileRecord, ResourceRecord
from marketplace_core.platform.audit import AuditEvent

TEST_SECRET = "test-download-secret-with-at-least-32-chars"
FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeReader:
    """In-memory MarketplaceReader."""

    def __init__(self):
        self.profiles: dict[str, ProfileRecord] = {}
        self.resources: dict[str, ResourceRecord] = {}
        self.purchases: list[tuple[str, str, str]] = []
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    def add_profile(
        self,
        user_id: str,
        *,
        profile_id: Optional[str] = None,
        status: str = "active",
        period_end: Optional[datetime] = None,
        creator_enabled: bool = False,
    ) -> ProfileRecord:
        record = ProfileRecord(
            profile_id=profile_id or f"profile-{user_id}",
            user_id=user_id,
            membership_status=status,
            membership_period_end=period_end,
            creator_enabled=creator_enabled,
        )
        self.profiles[user_id] = record
        return record

    def add_resource(self, resource_id: str, owner_profile_id: str, storage_path: Optional[str] = None):
        self.resources[resource_id] = ResourceRecord(
            resource_id=resource_id,
            owner_profile_id=owner_profile_id,
            storage_path=storage_path,
        )

    def add_purchase(self, buyer_profile_id: str, resource_id: str, status: str = "succeeded"):
        self.purchases.append((buyer_profile_id, resource_id, status))

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise ConnectionError(f"{name} unavailable")

    def get_profile(self, user_id):
        self._maybe_fail("get_profile")
        return self.profiles.get(user_id)

    def get_resource(self, resource_id):
        self._maybe_fail("get_resource")
        return self.resources.get(resource_id)

    def count_purchases(self, buyer_profile_id, resource_id, status):
        self._maybe_fail("count_purchases")
        return sum(
            1 for p in self.purchases if p == (buyer_profile_id, resource_id, status)
        )


class RecordingWriter:
    """AuditWriter that keeps events in memory."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def insert(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> list[str]:
        return [e.action_name for e in self.events]


class FailingWriter:
    """AuditWriter simulating a storage outage."""

    def __init__(self):
        self.attempts = 0

    def insert(self, event: AuditEvent) -> None:
        self.attempts += 1
        raise ConnectionError("audit store unavailable")


class MutableClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def reader():
    return FakeReader()


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def token_config():
    return DownloadTokenConfig(secret=TEST_SECRET)


@pytest.fixture
def token_service(token_config, clock):
    return DownloadTokenService(token_config, clock=clock)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

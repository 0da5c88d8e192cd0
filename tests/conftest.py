"""Pytest configuration and fixtures."""

from __future__ import annotations

import copy
import os
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

ROOT = Path(__file__).resolve().parents[1]

# Add package to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECURITY_SANITIZE_ERRORS", "true")

from case_tracker.core.config import WorkflowConfig  # noqa: E402
from case_tracker.services.case_service import CaseService  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


# =============================================================================
# In-memory repositories
# =============================================================================


class InMemoryStore:
    """Rows for users, cases and escalations, plus a deterministic clock."""

    def __init__(self):
        self.users: dict[int, dict[str, Any]] = {}
        self.cases: dict[int, dict[str, Any]] = {}
        self.escalations: dict[int, dict[str, Any]] = {}
        self._ids = {"users": 0, "cases": 0, "escalations": 0}
        self._ticks = 0

    def now(self) -> datetime:
        self._ticks += 1
        return BASE_TIME + timedelta(seconds=self._ticks)

    def next_id(self, table: str) -> int:
        self._ids[table] += 1
        return self._ids[table]

    def snapshot(self) -> tuple:
        return copy.deepcopy((self.users, self.cases, self.escalations))

    def restore(self, snapshot: tuple) -> None:
        self.users, self.cases, self.escalations = copy.deepcopy(snapshot)

    def add_user(self, username: str, role: str) -> dict[str, Any]:
        now = self.now()
        user = {
            "id": self.next_id("users"),
            "username": username,
            "email": f"{username}@example.com",
            "role": role,
            "created_at": now,
            "updated_at": now,
        }
        self.users[user["id"]] = user
        return dict(user)


class _Savepoint:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self._snapshot: tuple | None = None

    async def __aenter__(self):
        self._snapshot = self.store.snapshot()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.store.restore(self._snapshot)
        return False


class FakeSession:
    """Stands in for AsyncSession; begin_nested() rolls the store back on error."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.savepoints = 0

    def begin_nested(self) -> _Savepoint:
        self.savepoints += 1
        return _Savepoint(self.store)


class FakeUserRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, user_id):
        user = self.store.users.get(user_id)
        return dict(user) if user else None

    async def get_role(self, user_id):
        user = self.store.users.get(user_id)
        return user["role"] if user else None

    async def get_by_username(self, username):
        return next((dict(u) for u in self.store.users.values() if u["username"] == username), None)

    async def get_by_email(self, email):
        return next((dict(u) for u in self.store.users.values() if u["email"] == email), None)

    async def list(self, role=None, limit=100):
        users = [dict(u) for u in self.store.users.values() if role is None or u["role"] == role]
        return users[:limit]

    async def create(self, username, email, role):
        taken = any(
            u["username"] == username or u["email"] == email for u in self.store.users.values()
        )
        if taken:
            return None
        now = self.store.now()
        user = {
            "id": self.store.next_id("users"),
            "username": username,
            "email": email,
            "role": role,
            "created_at": now,
            "updated_at": now,
        }
        self.store.users[user["id"]] = user
        return dict(user)


class FakeCaseRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, case_id, for_update=False):
        case = self.store.cases.get(case_id)
        return dict(case) if case else None

    async def get_by_txid(self, txid):
        return next((dict(c) for c in self.store.cases.values() if c["txid"] == txid), None)

    async def list(self, status=None, priority=None, assigned_to=None, created_by=None, txid=None):
        filters = {
            "status": status,
            "priority": priority,
            "assigned_to": assigned_to,
            "created_by": created_by,
            "txid": txid,
        }
        cases = [
            dict(c)
            for c in self.store.cases.values()
            if all(value is None or c[key] == value for key, value in filters.items())
        ]
        return sorted(cases, key=lambda c: (c["created_at"], c["id"]), reverse=True)

    async def create(self, txid, description, priority, created_by):
        if any(c["txid"] == txid for c in self.store.cases.values()):
            return None
        now = self.store.now()
        case = {
            "id": self.store.next_id("cases"),
            "txid": txid,
            "description": description,
            "status": "open",
            "priority": priority,
            "assigned_to": None,
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
        }
        self.store.cases[case["id"]] = case
        return dict(case)

    async def update(self, case_id, fields):
        case = self.store.cases.get(case_id)
        if case is None:
            return None
        txid = fields.get("txid")
        if txid is not None and any(
            c["txid"] == txid and c["id"] != case_id for c in self.store.cases.values()
        ):
            raise IntegrityError(
                "UPDATE fraud_cases.cases",
                {},
                Exception('duplicate key value violates unique constraint "cases_txid_key"'),
            )
        case.update(fields)
        case["updated_at"] = self.store.now()
        return dict(case)


class FakeEscalationRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(
        self,
        case_id,
        escalated_by,
        previous_status,
        new_status,
        previous_priority,
        new_priority,
        reason,
        escalated_to=None,
    ):
        record = {
            "id": self.store.next_id("escalations"),
            "case_id": case_id,
            "escalated_by": escalated_by,
            "escalated_to": escalated_to,
            "previous_status": previous_status,
            "new_status": new_status,
            "previous_priority": previous_priority,
            "new_priority": new_priority,
            "reason": reason,
            "created_at": self.store.now(),
        }
        self.store.escalations[record["id"]] = record
        return dict(record)

    async def list_by_case(self, case_id):
        records = [dict(r) for r in self.store.escalations.values() if r["case_id"] == case_id]
        return sorted(records, key=lambda r: r["id"])


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_session():
    """Mock async database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def users(store) -> dict[str, dict[str, Any]]:
    """One user per role, plus a second analyst.

    ``investigator`` and ``analyst`` play A and B of the lifecycle walkthrough.
    """
    return {
        "admin": store.add_user("alice", "admin"),
        "investigator": store.add_user("ivan", "investigator"),
        "analyst": store.add_user("ana", "analyst"),
        "viewer": store.add_user("victor", "viewer"),
        "other_analyst": store.add_user("olga", "analyst"),
    }


@pytest.fixture
def workflow() -> WorkflowConfig:
    return WorkflowConfig(min_reason_length=10, min_description_length=10)


@pytest.fixture
def fake_session(store) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def case_service(fake_session, store, workflow) -> CaseService:
    """CaseService wired to the in-memory repositories."""
    service = CaseService(fake_session, workflow=workflow)
    service.repo = FakeCaseRepository(store)
    service.users = FakeUserRepository(store)
    service.escalations = FakeEscalationRepository(store)
    return service


@pytest.fixture
def fake_user_repository(store) -> FakeUserRepository:
    return FakeUserRepository(store)

import os
from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from babysense.main import app  # noqa: E402
from babysense.supabase import UserContext, get_user_context  # noqa: E402

FROZEN_NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class FrozenDateTime(datetime):
    @classmethod
    def now(cls, tz=None):
        return FROZEN_NOW if tz is None else FROZEN_NOW.astimezone(tz)


class FakeSupabase:
    def __init__(self, *, select_queue=None, insert_queue=None, update_queue=None, insert_error=None):
        self.select_queue = {
            table: list(items) for table, items in (select_queue or {}).items()
        }
        self.insert_queue = {
            table: list(items) for table, items in (insert_queue or {}).items()
        }
        self.update_queue = {
            table: list(items) for table, items in (update_queue or {}).items()
        }
        self.insert_error = insert_error
        self.calls = []

    async def select(self, table, params):
        self.calls.append(("select", table, params))
        queue = self.select_queue.get(table)
        if queue:
            return queue.pop(0)
        return []

    async def insert(self, table, payload, *, params=None):
        self.calls.append(("insert", table, payload, params))
        if self.insert_error is not None:
            raise self.insert_error
        queue = self.insert_queue.get(table)
        if queue:
            return queue.pop(0)
        return []

    async def update(self, table, payload, params):
        self.calls.append(("update", table, payload, params))
        queue = self.update_queue.get(table)
        if queue:
            return queue.pop(0)
        return []

    async def delete(self, table, params):
        self.calls.append(("delete", table, params))

    def calls_for(self, method, table):
        return [call for call in self.calls if call[0] == method and call[1] == table]


@pytest.fixture
def fake_supabase():
    return FakeSupabase


@pytest.fixture
def user_context():
    def _build(supabase) -> UserContext:
        return UserContext(
            user_id=str(uuid4()),
            user_email="test@example.com",
            access_token="test-token",
            supabase=supabase,
        )

    return _build


@pytest.fixture
def frozen_now(monkeypatch):
    for module in ("activities", "babies", "cry", "reminders", "tips"):
        monkeypatch.setattr(f"babysense.routes.{module}.datetime", FrozenDateTime)
    return FROZEN_NOW


@pytest.fixture
def api(user_context):
    """Builds a TestClient whose requests run as a user backed by ``supabase``."""

    def _build(supabase, overrides=None):
        context = user_context(supabase)
        app.dependency_overrides[get_user_context] = lambda: context
        for dependency, replacement in (overrides or {}).items():
            app.dependency_overrides[dependency] = replacement
        return TestClient(app)

    yield _build
    app.dependency_overrides.clear()

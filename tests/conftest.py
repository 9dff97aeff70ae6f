"""
Pytest configuration and shared fixtures.
"""

import itertools
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytz

from worktrack.errors import BackendError
from worktrack.models.profile import Profile, Role
from worktrack.utils.datetime_utils import parse_timestamp

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

SESSION_START = datetime(2026, 1, 15, 9, 0, tzinfo=pytz.UTC)


def ts(minutes: int = 0) -> str:
    """ISO timestamp `minutes` after the test session start."""
    return (SESSION_START + timedelta(minutes=minutes)).isoformat()


class FakeChannel:
    def __init__(self, name: str, table: str, events, callback: Callable):
        self.name = name
        self.table = table
        self.events = list(events)
        self.callback = callback


class FakeBackend:
    """
    In-memory stand-in for SupabaseBackend.

    Tables are lists of row dicts. Set `fail[<operation>]` to make the
    matching call raise BackendError, e.g. fail["select comments"].
    """

    def __init__(self):
        self.bucket = "order-files"
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "profiles": [],
            "orders": [],
            "comments": [],
            "order_files": [],
        }
        self.objects: Dict[str, bytes] = {}
        self.channels: List[FakeChannel] = []
        self.removed_channels: List[FakeChannel] = []
        self.fail: Dict[str, str] = {}
        self.session_token: Optional[str] = None
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)

    def _check(self, operation: str) -> None:
        if operation in self.fail:
            raise BackendError(operation, self.fail[operation])

    async def connect(self):
        return self

    async def authenticate(self, access_token: str, refresh_token: str) -> None:
        self.calls.append(("authenticate", access_token, refresh_token))
        self._check("authenticate")
        self.session_token = access_token

    async def sign_out(self) -> None:
        self.calls.append(("sign out",))
        self.session_token = None

    # Row queries

    async def select_rows(
        self,
        table: str,
        columns: str = "*",
        eq: Optional[Dict[str, Any]] = None,
        gt: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        self.calls.append(("select", table, eq, gt))
        self._check(f"select {table}")

        rows = [dict(r) for r in self.tables[table]]
        for column, value in (eq or {}).items():
            rows = [r for r in rows if r.get(column) == value]
        for column, value in (gt or {}).items():
            bound = parse_timestamp(value)
            rows = [r for r in rows if parse_timestamp(r.get(column)) > bound]
        if order_by:
            rows.sort(key=lambda r: str(r.get(order_by) or ""), reverse=descending)
        if limit:
            rows = rows[:limit]

        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return rows

    async def fetch_by_id(self, table: str, row_id: str, columns: str = "*"):
        rows = await self.select_rows(table, columns, eq={"id": row_id}, limit=1)
        return rows[0] if rows else None

    # Mutations

    async def insert_row(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("insert", table, payload))
        self._check(f"insert {table}")
        row = {"id": f"{table}-{next(self._ids)}", "created_at": ts(30), **payload}
        self.tables[table].append(row)
        return dict(row)

    async def update_row(self, table: str, row_id: str, payload: Dict[str, Any]):
        self.calls.append(("update", table, row_id, payload))
        self._check(f"update {table}")
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(payload)
                return dict(row)
        return None

    # Change feed

    async def subscribe(self, channel_name: str, table: str, events, callback):
        self._check(f"subscribe {table}")
        channel = FakeChannel(channel_name, table, events, callback)
        self.channels.append(channel)
        return channel

    async def unsubscribe(self, channel) -> None:
        self.channels.remove(channel)
        self.removed_channels.append(channel)

    def channel_for(self, table: str) -> FakeChannel:
        return next(c for c in self.channels if c.table == table)

    # Storage

    async def upload_object(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        self.calls.append(("upload", path, content_type))
        self._check("upload")
        if path in self.objects:
            raise BackendError("upload", "The resource already exists")
        self.objects[path] = content

    async def create_signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        self._check("signed url")
        return f"https://storage.test/{self.bucket}/{path}?token=abc"


# ==================== PROFILES ====================

@pytest.fixture
def admin_profile():
    return Profile(id="admin-1", email="admin@worktrack.test", full_name="Ada Admin", role=Role.ADMIN)


@pytest.fixture
def staff_profile():
    return Profile(id="staff-1", email="sam@worktrack.test", full_name="Sam Staff", role=Role.STAFF)


@pytest.fixture
def client_profile():
    return Profile(id="client-1", email="cora@client.test", full_name="Cora Client", role=Role.CLIENT)


@pytest.fixture
def other_client_profile():
    return Profile(id="client-2", email="olly@client.test", full_name=None, role=Role.CLIENT)


@pytest.fixture
def profiles(admin_profile, staff_profile, client_profile, other_client_profile):
    return [admin_profile, staff_profile, client_profile, other_client_profile]


# ==================== ROWS ====================

def make_order_row(order_id: str, code: str, status: str = "not_started", client_id: str = "client-1", **extra):
    row = {
        "id": order_id,
        "order_code": code,
        "title": f"Order {code}",
        "description": None,
        "business_type": "it_services",
        "status": status,
        "priority": "normal",
        "currency_code": "USD",
        "estimated_budget": 500,
        "actual_budget": None,
        "due_date": None,
        "client_id": client_id,
        "assigned_to": "staff-1",
        "created_by": "admin-1",
        "created_at": ts(-60),
        "updated_at": ts(-60),
    }
    row.update(extra)
    return row


@pytest.fixture
def order_rows():
    return [
        make_order_row("order-1", "ORD-20260115-AAAA", "in_progress", "client-1"),
        make_order_row("order-2", "ORD-20260115-BBBB", "not_started", "client-2"),
    ]


@pytest.fixture
def backend(profiles, order_rows):
    """Fake backend seeded with four profiles and two orders."""
    fake = FakeBackend()
    fake.tables["profiles"] = [p.model_dump(mode="json") for p in profiles]
    fake.tables["orders"] = [dict(r) for r in order_rows]
    return fake

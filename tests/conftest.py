"""Shared pytest configuration and fixtures for tests."""

import asyncio
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from daylist.core.exceptions import PersistenceError
from daylist.core.models import Todo, TodoDraft
from daylist.core.repository import TodoRepository


# Fixed "now" for session tests: Saturday 2026-02-07, 09:00 UTC
FIXED_NOW = datetime(2026, 2, 7, 9, 0, tzinfo=timezone.utc)


class FakeRepository(TodoRepository):
    """
    In-memory TodoRepository with failure injection.

    Attributes:
        fail_ids: Todo ids whose patch/soft_delete calls raise PersistenceError
        fail_methods: Method names that always raise PersistenceError
        crash_ids: Todo ids whose patch calls raise RuntimeError
        echo_inserts: When False, insert() stores the row but returns None
        insert_gate: When set to an asyncio.Event, insert() waits on it
        patches: (todo_id, fields) of every successful patch
    """

    def __init__(self, todos=(), group_order: Optional[List[str]] = None, echo_inserts: bool = True):
        self.rows: Dict[str, Todo] = {t.id: t for t in todos}
        self.group_order = list(group_order) if group_order is not None else None
        self.echo_inserts = echo_inserts
        self.fail_ids = set()
        self.fail_methods = set()
        self.crash_ids = set()
        self.insert_gate: Optional[asyncio.Event] = None
        self.insert_started = False
        self.patches: List[tuple] = []
        self.soft_deleted: List[str] = []
        self.group_order_writes: List[List[str]] = []
        self.purge_cutoffs: List[datetime] = []
        self._counter = 0

    def _check(self, method: str, todo_id: Optional[str] = None) -> None:
        if method in self.fail_methods or (todo_id is not None and todo_id in self.fail_ids):
            raise PersistenceError(f"{method} failed", todo_id=todo_id)

    async def fetch_all(self, user_id: str) -> List[Todo]:
        self._check("fetch_all")
        return sorted(self.rows.values(), key=lambda t: t.order)

    async def insert(self, user_id: str, draft: TodoDraft) -> Optional[Todo]:
        self.insert_started = True
        if self.insert_gate is not None:
            await self.insert_gate.wait()
        self._check("insert")
        self._counter += 1
        todo = Todo.from_draft(f"new-{self._counter}", draft)
        self.rows[todo.id] = todo
        return todo if self.echo_inserts else None

    async def patch(self, todo_id: str, fields: Dict[str, Any]) -> None:
        if todo_id in self.crash_ids:
            raise RuntimeError(f"patch crashed for {todo_id}")
        self._check("patch", todo_id)
        self.rows[todo_id] = replace(self.rows[todo_id], **fields)
        self.patches.append((todo_id, dict(fields)))

    async def soft_delete(self, todo_id: str) -> None:
        self._check("soft_delete", todo_id)
        self.rows[todo_id] = replace(
            self.rows[todo_id], deleted_at=datetime.now(timezone.utc).isoformat()
        )
        self.soft_deleted.append(todo_id)

    async def purge_older_than(self, user_id: str, cutoff: datetime) -> None:
        self._check("purge_older_than")
        self.purge_cutoffs.append(cutoff)
        self.rows = {
            todo_id: t for todo_id, t in self.rows.items()
            if not (t.deleted_at and datetime.fromisoformat(t.deleted_at) < cutoff)
        }

    async def get_group_order(self, user_id: str) -> List[str]:
        self._check("get_group_order")
        return list(self.group_order or [])

    async def set_group_order(self, user_id: str, order: List[str]) -> None:
        self._check("set_group_order")
        self.group_order = list(order)
        self.group_order_writes.append(list(order))


@pytest.fixture
def make_todo():
    """Factory for Todo objects with sensible defaults."""

    def _make(todo_id: str, order: int = 0, group: str = "", category: str = "today", **fields) -> Todo:
        return Todo(
            id=todo_id,
            summary=fields.pop("summary", f"Todo {todo_id}"),
            order=order,
            group=group,
            category=category,
            **fields,
        )

    return _make


@pytest.fixture
def fixed_clock():
    """Clock returning FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def temp_home(monkeypatch, tmp_path):
    """Point DAYLIST_HOME at a temporary directory."""
    monkeypatch.setenv("DAYLIST_HOME", str(tmp_path))
    monkeypatch.setenv("DAYLIST_USER", "tester")
    yield tmp_path


def assert_dense(todos) -> None:
    """Assert every (category, group) bucket of live todos is ordered 0..n-1."""
    buckets: Dict[tuple, List[int]] = {}
    for todo in todos:
        if todo.is_live:
            buckets.setdefault(todo.bucket_key, []).append(todo.order)
    for key, orders in buckets.items():
        assert sorted(orders) == list(range(len(orders))), f"bucket {key} not dense: {orders}"


@pytest.fixture
def dense():
    return assert_dense

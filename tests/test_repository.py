"""
SQLite repository tests.

Tests:
- Insert and fetch with column mapping
- Patch and soft delete, including missing rows
- Purge of old soft-deleted rows
- Group order upsert
- User isolation
"""

import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from daylist.core.exceptions import PersistenceError
from daylist.core.models import TodoDraft
from daylist.core.repository import SQLiteTodoRepository, to_column_payload


@pytest.fixture
def repo(tmp_path):
    """Repository on a temporary database file."""
    return SQLiteTodoRepository(tmp_path / "test.db")


# --- Column payload ---

def test_column_payload_maps_names_and_nulls():
    """Test field names map to columns and empty optionals become NULL."""
    payload = to_column_payload({"group": "", "order": 3, "due_date": "", "summary": "x"})
    assert payload == {"group_name": None, "order_num": 3, "due_date": None, "summary": "x"}


def test_column_payload_ignores_unknown_fields():
    """Test fields without a column are dropped."""
    assert to_column_payload({"id": "a", "deleted_at": "x"}) == {}


# --- Todos ---

@pytest.mark.asyncio
async def test_insert_and_fetch(repo):
    """Test inserting a draft returns a stored todo with an id."""
    created = await repo.insert("me", TodoDraft(summary="Buy milk", group="Home", order=0))

    assert created is not None
    assert created.id
    assert created.summary == "Buy milk"
    assert created.group == "Home"

    todos = await repo.fetch_all("me")
    assert [t.id for t in todos] == [created.id]


@pytest.mark.asyncio
async def test_fetch_orders_by_order(repo):
    """Test fetch_all returns todos sorted by order."""
    await repo.insert("me", TodoDraft(summary="second", order=1))
    await repo.insert("me", TodoDraft(summary="first", order=0))

    todos = await repo.fetch_all("me")

    assert [t.summary for t in todos] == ["first", "second"]


@pytest.mark.asyncio
async def test_ungrouped_round_trip(repo):
    """Test the empty group is stored as NULL and read back as ''."""
    created = await repo.insert("me", TodoDraft(summary="x"))

    with sqlite3.connect(repo.db_path) as conn:
        group_name = conn.execute(
            "SELECT group_name FROM todos WHERE id = ?", (created.id,)
        ).fetchone()[0]

    assert group_name is None
    assert created.group == ""
    assert created.due_date == ""


@pytest.mark.asyncio
async def test_patch(repo):
    """Test patching a subset of fields."""
    created = await repo.insert("me", TodoDraft(summary="x"))

    await repo.patch(created.id, {"order": 4, "group": "Work", "completed": True})

    (todo,) = await repo.fetch_all("me")
    assert todo.order == 4
    assert todo.group == "Work"
    assert todo.completed is True
    assert todo.summary == "x"


@pytest.mark.asyncio
async def test_patch_missing_todo_raises(repo):
    """Test patching an unknown id raises PersistenceError."""
    with pytest.raises(PersistenceError):
        await repo.patch("missing", {"order": 1})


@pytest.mark.asyncio
async def test_invalid_category_raises_persistence_error(repo):
    """Test database constraint errors surface as PersistenceError."""
    created = await repo.insert("me", TodoDraft(summary="x"))
    with pytest.raises(PersistenceError):
        await repo.patch(created.id, {"category": "someday"})


@pytest.mark.asyncio
async def test_soft_delete(repo):
    """Test soft delete sets deleted_at and keeps the row."""
    created = await repo.insert("me", TodoDraft(summary="x"))

    await repo.soft_delete(created.id)

    (todo,) = await repo.fetch_all("me")
    assert todo.deleted_at is not None
    assert not todo.is_live


@pytest.mark.asyncio
async def test_soft_delete_missing_raises(repo):
    """Test soft-deleting an unknown id raises PersistenceError."""
    with pytest.raises(PersistenceError):
        await repo.soft_delete("missing")


@pytest.mark.asyncio
async def test_purge_older_than(repo):
    """Test only rows deleted before the cutoff are removed."""
    old = await repo.insert("me", TodoDraft(summary="old"))
    recent = await repo.insert("me", TodoDraft(summary="recent"))
    keep = await repo.insert("me", TodoDraft(summary="live"))
    await repo.soft_delete(recent.id)

    long_ago = (datetime.now(timezone.utc) - timedelta(days=400)).isoformat()
    with sqlite3.connect(repo.db_path) as conn:
        conn.execute("UPDATE todos SET deleted_at = ? WHERE id = ?", (long_ago, old.id))

    await repo.purge_older_than("me", datetime.now(timezone.utc) - timedelta(days=365))

    remaining = {t.id for t in await repo.fetch_all("me")}
    assert remaining == {recent.id, keep.id}


@pytest.mark.asyncio
async def test_users_are_isolated(repo):
    """Test each user only sees their own todos."""
    await repo.insert("alice", TodoDraft(summary="a"))
    await repo.insert("bob", TodoDraft(summary="b"))

    assert [t.summary for t in await repo.fetch_all("alice")] == ["a"]
    assert [t.summary for t in await repo.fetch_all("bob")] == ["b"]


# --- Group order ---

@pytest.mark.asyncio
async def test_group_order_defaults_empty(repo):
    """Test a user without a saved order gets []."""
    assert await repo.get_group_order("me") == []


@pytest.mark.asyncio
async def test_group_order_upsert(repo):
    """Test saving the group order twice replaces it."""
    await repo.set_group_order("me", ["Work", "Home"])
    await repo.set_group_order("me", ["Home", "Work", "Errands"])

    assert await repo.get_group_order("me") == ["Home", "Work", "Errands"]
    assert await repo.get_group_order("other") == []

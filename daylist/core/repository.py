"""
FILE: daylist/core/repository.py
PURPOSE: Persistence interface and its SQLite implementation
EXPORTS:
  - TodoRepository (abstract async interface)
  - SQLiteTodoRepository
  - FIELD_TO_COLUMN, to_column_payload(fields) -> dict
  - DB_DIR, DB_PATH (default database location)
DEPENDENCIES:
  - sqlite3, asyncio, json, uuid (stdlib)
  - daylist.core.models (Todo, TodoDraft)
  - daylist.core.exceptions (PersistenceError)
NOTES:
  - Database stored at ~/.daylist/daylist.db unless a path is given
  - Schema is created on first connection (CREATE TABLE IF NOT EXISTS)
  - Every blocking call runs in a worker thread on its own connection
  - sqlite3 errors surface as PersistenceError
  - fetch_all returns soft-deleted rows too; callers filter them
"""

import asyncio
import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Todo, TodoDraft
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Database file location (cross-platform)
DB_DIR = Path.home() / ".daylist"
DB_PATH = DB_DIR / "daylist.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS todos (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    summary TEXT NOT NULL,
    description TEXT,
    completed INTEGER NOT NULL DEFAULT 0,
    category TEXT NOT NULL CHECK(category IN ('today', 'backlog')),
    due_date TEXT,
    starred INTEGER NOT NULL DEFAULT 0,
    repeat_days INTEGER NOT NULL DEFAULT 0,
    group_name TEXT,
    priority TEXT NOT NULL DEFAULT '',
    order_num INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    deleted_at TEXT,
    recurring_parent_id TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_todos_user ON todos (user_id, order_num);

CREATE TABLE IF NOT EXISTS user_group_orders (
    user_id TEXT PRIMARY KEY,
    group_order TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

# Maps Todo field names to their column names
FIELD_TO_COLUMN = {
    "summary": "summary",
    "description": "description",
    "completed": "completed",
    "category": "category",
    "due_date": "due_date",
    "starred": "starred",
    "repeat_days": "repeat_days",
    "group": "group_name",
    "priority": "priority",
    "order": "order_num",
    "completed_at": "completed_at",
    "recurring_parent_id": "recurring_parent_id",
}

# Fields stored as NULL when empty
NULLABLE_FIELDS = {"due_date", "group", "completed_at", "recurring_parent_id"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_column_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert Todo fields into a column payload.

    Only fields present in `fields` and known to FIELD_TO_COLUMN are included.
    """
    payload = {}
    for name, column in FIELD_TO_COLUMN.items():
        if name in fields:
            value = fields[name]
            payload[column] = (value or None) if name in NULLABLE_FIELDS else value
    return payload


class TodoRepository(ABC):
    """Row store consumed by the coordinator. All methods are coroutines."""

    @abstractmethod
    async def fetch_all(self, user_id: str) -> List[Todo]:
        """All todos of a user ordered by order, soft-deleted ones included."""

    @abstractmethod
    async def insert(self, user_id: str, draft: TodoDraft) -> Optional[Todo]:
        """Store a new todo and return it with its assigned id."""

    @abstractmethod
    async def patch(self, todo_id: str, fields: Dict[str, Any]) -> None:
        """Update some fields of one todo. All or nothing."""

    @abstractmethod
    async def soft_delete(self, todo_id: str) -> None:
        """Set deleted_at to now."""

    @abstractmethod
    async def purge_older_than(self, user_id: str, cutoff: datetime) -> None:
        """Permanently remove todos soft-deleted before `cutoff`."""

    @abstractmethod
    async def get_group_order(self, user_id: str) -> List[str]:
        """Saved group order, or [] when the user has none."""

    @abstractmethod
    async def set_group_order(self, user_id: str, order: List[str]) -> None:
        """Replace the saved group order."""


class SQLiteTodoRepository(TodoRepository):
    """TodoRepository backed by a local SQLite file."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else DB_PATH

    def get_connection(self) -> sqlite3.Connection:
        """
        Open a connection to the database.

        Creates the parent directory and the schema if needed.
        Enables row_factory for dict-like row access.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.executescript(SCHEMA_SQL)
        return conn

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            logger.debug("SQLite call %s failed: %s", func.__name__, e)
            raise PersistenceError(f"Database error: {e}") from e

    # --- Todos ---

    def _fetch_all(self, user_id: str) -> List[Todo]:
        with closing(self.get_connection()) as conn:
            rows = conn.execute(
                "SELECT * FROM todos WHERE user_id = ? ORDER BY order_num ASC, created_at ASC",
                (user_id,),
            ).fetchall()
        return [Todo.from_row(row) for row in rows]

    def _insert(self, user_id: str, draft: TodoDraft) -> Optional[Todo]:
        todo_id = uuid.uuid4().hex
        payload = to_column_payload(draft.to_dict())
        columns = ["id", "user_id", "created_at", *payload.keys()]
        values = [todo_id, user_id, _now(), *payload.values()]
        placeholders = ", ".join("?" for _ in columns)

        with closing(self.get_connection()) as conn:
            with conn:
                conn.execute(
                    f"INSERT INTO todos ({', '.join(columns)}) VALUES ({placeholders})",
                    values,
                )
            row = conn.execute("SELECT * FROM todos WHERE id = ?", (todo_id,)).fetchone()
        return Todo.from_row(row) if row else None

    def _patch(self, todo_id: str, fields: Dict[str, Any]) -> None:
        payload = to_column_payload(fields)
        if not payload:
            return

        assignments = ", ".join(f"{column} = ?" for column in payload)
        with closing(self.get_connection()) as conn:
            with conn:
                cursor = conn.execute(
                    f"UPDATE todos SET {assignments} WHERE id = ?",
                    (*payload.values(), todo_id),
                )
        if cursor.rowcount == 0:
            raise PersistenceError(f"Todo {todo_id} does not exist", todo_id=todo_id)

    def _soft_delete(self, todo_id: str) -> None:
        with closing(self.get_connection()) as conn:
            with conn:
                cursor = conn.execute(
                    "UPDATE todos SET deleted_at = ? WHERE id = ?", (_now(), todo_id)
                )
        if cursor.rowcount == 0:
            raise PersistenceError(f"Todo {todo_id} does not exist", todo_id=todo_id)

    def _purge_older_than(self, user_id: str, cutoff: datetime) -> None:
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=timezone.utc)
        with closing(self.get_connection()) as conn:
            with conn:
                cursor = conn.execute(
                    """
                    DELETE FROM todos
                    WHERE user_id = ? AND deleted_at IS NOT NULL AND deleted_at < ?
                    """,
                    (user_id, cutoff.astimezone(timezone.utc).isoformat()),
                )
        if cursor.rowcount:
            logger.info("Purged %d deleted todo(s) for %s", cursor.rowcount, user_id)

    async def fetch_all(self, user_id: str) -> List[Todo]:
        return await self._run(self._fetch_all, user_id)

    async def insert(self, user_id: str, draft: TodoDraft) -> Optional[Todo]:
        return await self._run(self._insert, user_id, draft)

    async def patch(self, todo_id: str, fields: Dict[str, Any]) -> None:
        await self._run(self._patch, todo_id, fields)

    async def soft_delete(self, todo_id: str) -> None:
        await self._run(self._soft_delete, todo_id)

    async def purge_older_than(self, user_id: str, cutoff: datetime) -> None:
        await self._run(self._purge_older_than, user_id, cutoff)

    # --- Group order ---

    def _get_group_order(self, user_id: str) -> List[str]:
        with closing(self.get_connection()) as conn:
            row = conn.execute(
                "SELECT group_order FROM user_group_orders WHERE user_id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return []
        return list(json.loads(row["group_order"]))

    def _set_group_order(self, user_id: str, order: List[str]) -> None:
        with closing(self.get_connection()) as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO user_group_orders (user_id, group_order, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        group_order = excluded.group_order,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, json.dumps(list(order)), _now()),
                )

    async def get_group_order(self, user_id: str) -> List[str]:
        return await self._run(self._get_group_order, user_id)

    async def set_group_order(self, user_id: str, order: List[str]) -> None:
        await self._run(self._set_group_order, user_id, order)

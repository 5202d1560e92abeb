"""
FILE: daylist/core/models.py
PURPOSE: Domain models for todos and the display-group mapping
EXPORTS:
  - Todo (dataclass)
  - TodoDraft (dataclass)
  - display_group(group) -> str
  - stored_group(display_name) -> str
  - priority_value(priority) -> int
  - next_priority(priority) -> str
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - Todo.from_row() converts SQLite rows
  - Dates are ISO-8601 strings ("" for no due date, None for unset timestamps)
  - display_group/stored_group are the only places "Ungrouped" is mapped
"""

from dataclasses import dataclass, asdict
from typing import Optional, Tuple
import json

from .constants import UNGROUPED, PRIORITY_VALUES, PRIORITY_CYCLE, DEFAULT_CATEGORY


def display_group(group: str) -> str:
    """Normalize a stored group value to its display name."""
    return group or UNGROUPED


def stored_group(display_name: str) -> str:
    """Convert a display group name back to the stored value."""
    return "" if display_name == UNGROUPED else display_name


def priority_value(priority: str) -> int:
    """Numeric priority for sorting. Higher = more urgent."""
    return PRIORITY_VALUES.get(priority, 0)


def next_priority(priority: str) -> str:
    """Cycle "" -> ! -> !! -> !!! -> ""."""
    try:
        index = PRIORITY_CYCLE.index(priority)
    except ValueError:
        index = -1
    return PRIORITY_CYCLE[(index + 1) % len(PRIORITY_CYCLE)]


@dataclass
class TodoDraft:
    """A todo that has not been stored yet (no id)."""

    summary: str
    description: str = ""
    completed: bool = False
    category: str = DEFAULT_CATEGORY
    due_date: str = ""
    starred: bool = False
    repeat_days: int = 0
    group: str = ""
    priority: str = ""
    order: int = 0
    completed_at: Optional[str] = None
    recurring_parent_id: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Todo:
    """A todo with scheduling metadata and its position inside its group."""

    id: str
    summary: str
    description: str = ""
    completed: bool = False
    category: str = DEFAULT_CATEGORY
    due_date: str = ""
    starred: bool = False
    repeat_days: int = 0
    group: str = ""
    priority: str = ""
    order: int = 0
    completed_at: Optional[str] = None
    deleted_at: Optional[str] = None
    recurring_parent_id: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.deleted_at is None

    @property
    def display_group(self) -> str:
        return display_group(self.group)

    @property
    def bucket_key(self) -> Tuple[str, str]:
        """(category, group) pair inside which order is dense."""
        return (self.category, self.group)

    @classmethod
    def from_draft(cls, todo_id: str, draft: TodoDraft) -> "Todo":
        return cls(id=todo_id, **draft.to_dict())

    @classmethod
    def from_row(cls, row) -> "Todo":
        """Convert SQLite row to Todo object."""
        return cls(
            id=row["id"],
            summary=row["summary"],
            description=row["description"] or "",
            completed=bool(row["completed"]),
            category=row["category"],
            due_date=row["due_date"] or "",
            starred=bool(row["starred"]),
            repeat_days=row["repeat_days"] or 0,
            group=row["group_name"] or "",
            priority=row["priority"] or "",
            order=row["order_num"],
            completed_at=row["completed_at"] or None,
            deleted_at=row["deleted_at"] or None,
            recurring_parent_id=row["recurring_parent_id"] or None,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize todo to JSON string."""
        return json.dumps(asdict(self), indent=2)

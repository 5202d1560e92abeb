"""
Model tests.

Tests:
- Display group mapping ("" <-> "Ungrouped")
- Priority values and the priority cycle
- Todo.from_row conversion of SQLite-style rows
- JSON serialization
"""

import json
import sys
from pathlib import Path

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from daylist.core.constants import UNGROUPED
from daylist.core.models import (
    Todo,
    TodoDraft,
    display_group,
    next_priority,
    priority_value,
    stored_group,
)


# --- Display group ---

def test_empty_group_displays_as_ungrouped():
    """Test that an empty stored group shows as Ungrouped."""
    assert display_group("") == UNGROUPED
    assert display_group("Work") == "Work"


def test_ungrouped_is_stored_empty():
    """Test that the Ungrouped display name is stored as ''."""
    assert stored_group(UNGROUPED) == ""
    assert stored_group("Work") == "Work"


def test_group_mapping_round_trip():
    """Test that stored -> display -> stored is the identity."""
    for group in ("", "Work", "Home"):
        assert stored_group(display_group(group)) == group


def test_todo_display_group_property(make_todo):
    """Test Todo.display_group and bucket_key."""
    todo = make_todo("a", category="backlog")
    assert todo.display_group == UNGROUPED
    assert todo.bucket_key == ("backlog", "")


# --- Priority ---

def test_priority_values_rank_urgency():
    """Test that more exclamation marks mean a higher value."""
    assert priority_value("") < priority_value("!") < priority_value("!!") < priority_value("!!!")


def test_unknown_priority_sorts_as_none():
    """Test that an unknown priority counts as no priority."""
    assert priority_value("?") == priority_value("")


def test_next_priority_cycles():
    """Test the '' -> ! -> !! -> !!! -> '' cycle."""
    assert next_priority("") == "!"
    assert next_priority("!") == "!!"
    assert next_priority("!!") == "!!!"
    assert next_priority("!!!") == ""


# --- Conversion ---

def test_from_row_maps_columns():
    """Test converting a database row with NULLs and integer flags."""
    row = {
        "id": "abc",
        "summary": "Water plants",
        "description": None,
        "completed": 1,
        "category": "today",
        "due_date": None,
        "starred": 0,
        "repeat_days": 3,
        "group_name": None,
        "priority": "!!",
        "order_num": 4,
        "completed_at": "2026-02-07",
        "deleted_at": None,
        "recurring_parent_id": None,
    }

    todo = Todo.from_row(row)

    assert todo.id == "abc"
    assert todo.completed is True
    assert todo.starred is False
    assert todo.description == ""
    assert todo.due_date == ""
    assert todo.group == ""
    assert todo.order == 4
    assert todo.completed_at == "2026-02-07"
    assert todo.deleted_at is None
    assert todo.is_live


def test_from_draft_keeps_fields():
    """Test building a Todo from a draft and an id."""
    draft = TodoDraft(summary="Plan trip", category="backlog", group="Home", order=2)
    todo = Todo.from_draft("x1", draft)

    assert todo.id == "x1"
    assert todo.summary == "Plan trip"
    assert todo.bucket_key == ("backlog", "Home")
    assert todo.order == 2
    assert todo.deleted_at is None


def test_to_json(make_todo):
    """Test JSON serialization uses field names."""
    todo = make_todo("a", order=1, group="Work", starred=True)
    data = json.loads(todo.to_json())

    assert data["id"] == "a"
    assert data["group"] == "Work"
    assert data["order"] == 1
    assert data["starred"] is True

"""
Recurrence tests.

Tests:
- Next due date calendar arithmetic
- Spawning the child of a completed recurring todo
- At most one live child per parent
- Retracting the child on un-completion
"""

import sys
from datetime import date
from pathlib import Path

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from daylist.core.recurrence import (
    RecurrenceState,
    child_to_retract,
    next_due_date,
    recurrence_state,
    spawn_child,
)


# --- Due dates ---

def test_next_due_date_week():
    """Test a weekly todo completed on 2026-02-07 is next due 2026-02-14."""
    assert next_due_date(date(2026, 2, 7), 7) == date(2026, 2, 14)


def test_next_due_date_rolls_over_month_and_year():
    """Test calendar rollover."""
    assert next_due_date(date(2026, 1, 30), 3) == date(2026, 2, 2)
    assert next_due_date(date(2026, 12, 30), 5) == date(2027, 1, 4)


def test_next_due_date_leap_year():
    """Test February 29th in a leap year."""
    assert next_due_date(date(2028, 2, 28), 1) == date(2028, 2, 29)
    assert next_due_date(date(2027, 2, 28), 1) == date(2027, 3, 1)


# --- Spawning ---

def test_spawn_child_fields(make_todo):
    """Test the child copies the parent and resets completion and star."""
    parent = make_todo(
        "p",
        0,
        "Home",
        summary="Water plants",
        description="All of them",
        repeat_days=7,
        starred=True,
        priority="!",
        completed=True,
        completed_at="2026-02-07",
        due_date="2026-02-07",
    )
    todos = [parent, make_todo("s", 1, "Home")]

    draft = spawn_child(todos, parent, date(2026, 2, 7))

    assert draft is not None
    assert draft.summary == "Water plants"
    assert draft.description == "All of them"
    assert draft.due_date == "2026-02-14"
    assert draft.recurring_parent_id == "p"
    assert draft.completed is False
    assert draft.completed_at is None
    assert draft.starred is False
    assert draft.priority == "!"
    assert draft.repeat_days == 7
    assert draft.group == "Home"
    assert draft.order == 2


def test_no_spawn_for_non_recurring(make_todo):
    """Test a todo without repeat_days spawns nothing."""
    parent = make_todo("p", 0, completed=True)
    assert spawn_child([parent], parent, date(2026, 2, 7)) is None


def test_no_second_live_child(make_todo):
    """Test a parent with a live child spawns nothing more."""
    parent = make_todo("p", 0, repeat_days=1, completed=True)
    child = make_todo("c", 1, repeat_days=1, recurring_parent_id="p")

    assert spawn_child([parent, child], parent, date(2026, 2, 7)) is None
    assert recurrence_state([parent, child], parent) == RecurrenceState.SPAWNED


def test_deleted_child_allows_new_spawn(make_todo):
    """Test a soft-deleted child no longer counts."""
    parent = make_todo("p", 0, repeat_days=1, completed=True)
    child = make_todo(
        "c", 1, repeat_days=1, recurring_parent_id="p", deleted_at="2026-02-07T00:00:00+00:00"
    )

    assert recurrence_state([parent, child], parent) == RecurrenceState.ACTIVE
    assert spawn_child([parent, child], parent, date(2026, 2, 7)) is not None


# --- Retracting ---

def test_child_to_retract(make_todo):
    """Test un-completing a parent finds exactly its child."""
    parent = make_todo("p", 0, repeat_days=7)
    other_child = make_todo("x", 1, repeat_days=7, recurring_parent_id="other")
    child = make_todo("c", 2, repeat_days=7, recurring_parent_id="p")

    assert child_to_retract([parent, other_child, child], parent) is child


def test_nothing_to_retract_for_non_recurring(make_todo):
    """Test a parent whose repeat was switched off keeps its child."""
    parent = make_todo("p", 0)
    child = make_todo("c", 1, recurring_parent_id="p")
    assert child_to_retract([parent, child], parent) is None

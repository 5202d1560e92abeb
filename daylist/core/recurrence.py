"""
FILE: daylist/core/recurrence.py
PURPOSE: Spawn and retract the follow-up todo of a recurring todo
EXPORTS:
  - RecurrenceState (enum)
  - next_due_date(completion_date, repeat_days) -> date
  - find_live_child(todos, parent_id) -> Optional[Todo]
  - recurrence_state(todos, parent) -> RecurrenceState
  - spawn_child(todos, parent, completion_date) -> Optional[TodoDraft]
  - child_to_retract(todos, parent) -> Optional[Todo]
DEPENDENCIES:
  - datetime (stdlib)
  - daylist.core.ordering (next_order)
NOTES:
  - Only todos with repeat_days > 0 take part
  - A parent has at most one live child, found through recurring_parent_id
"""

from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence

from .models import Todo, TodoDraft
from .ordering import next_order


class RecurrenceState(Enum):
    ACTIVE = "active"
    SPAWNED = "spawned"


def next_due_date(completion_date: date, repeat_days: int) -> date:
    """Calendar-day addition; rolls over months and years."""
    return completion_date + timedelta(days=repeat_days)


def find_live_child(todos: Iterable[Todo], parent_id: str) -> Optional[Todo]:
    return next(
        (t for t in todos if t.recurring_parent_id == parent_id and t.is_live),
        None,
    )


def recurrence_state(todos: Iterable[Todo], parent: Todo) -> RecurrenceState:
    if find_live_child(todos, parent.id) is None:
        return RecurrenceState.ACTIVE
    return RecurrenceState.SPAWNED


def spawn_child(
    todos: Sequence[Todo],
    parent: Todo,
    completion_date: date,
) -> Optional[TodoDraft]:
    """
    Draft the next occurrence of a recurring todo that was just completed.

    Args:
        todos: Full todo set, used for sibling order and the existing-child check
        parent: The todo being completed
        completion_date: Date the parent was completed

    Returns:
        TodoDraft for the child, or None if the parent does not repeat or
        already has a live child

    Notes:
        - Child goes to the end of the parent's (category, group) bucket
        - Child is never starred and never completed
    """
    if parent.repeat_days <= 0:
        return None
    if find_live_child(todos, parent.id) is not None:
        return None

    return TodoDraft(
        summary=parent.summary,
        description=parent.description,
        completed=False,
        category=parent.category,
        due_date=next_due_date(completion_date, parent.repeat_days).isoformat(),
        starred=False,
        repeat_days=parent.repeat_days,
        group=parent.group,
        priority=parent.priority,
        order=next_order(todos, parent.category, parent.group),
        recurring_parent_id=parent.id,
    )


def child_to_retract(todos: Iterable[Todo], parent: Todo) -> Optional[Todo]:
    """The live child to soft-delete when a recurring parent is un-completed."""
    if parent.repeat_days <= 0:
        return None
    return find_live_child(todos, parent.id)

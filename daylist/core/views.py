"""
FILE: daylist/core/views.py
PURPOSE: Pure projections of the todo set into what each view displays
EXPORTS:
  - group_rank(display_name, group_order) -> float
  - by_priority_group_order(group_order) -> sort key
  - today_view(todos, group_order, today) -> TodayView
  - backlog_view(todos, group_order) -> BacklogView
  - deleted_view(todos, now, window_days) -> List[Todo]
  - TodayView, BacklogView, GroupSection (dataclasses)
  - VIEW_TITLES (display title per view name)
DEPENDENCIES:
  - datetime, math (stdlib)
  - daylist.core.models (Todo, display_group, priority_value)
NOTES:
  - No function here mutates a todo; order only changes through ordering.py
  - Sorting relies on Python's stable sort for insertion-order tie breaks
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from .constants import DELETED_WINDOW_DAYS, NEXT_UP_LIMIT
from .models import Todo, display_group, priority_value

VIEW_TODAY = "today"
VIEW_BACKLOG = "backlog"
VIEW_DELETED = "deleted"

# Titles shown above each view
VIEW_TITLES = {
    VIEW_TODAY: "Today",
    VIEW_BACKLOG: "Backlog",
    VIEW_DELETED: "Recently deleted",
}


@dataclass
class TodayView:
    """The four mutually exclusive buckets of the Today dashboard."""

    starred_due: List[Todo] = field(default_factory=list)
    scheduled: List[Todo] = field(default_factory=list)
    next_up: List[Todo] = field(default_factory=list)
    completed_today: List[Todo] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.starred_due or self.scheduled or self.next_up or self.completed_today)

    def sections(self) -> List[Tuple[str, List[Todo]]]:
        return [
            ("Starred & Due", self.starred_due),
            ("Scheduled", self.scheduled),
            ("Next Up", self.next_up),
            ("Completed Today", self.completed_today),
        ]


@dataclass
class GroupSection:
    name: str
    todos: List[Todo] = field(default_factory=list)


@dataclass
class BacklogView:
    active: List[GroupSection] = field(default_factory=list)
    completed: List[GroupSection] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.active or self.completed)


def group_rank(display_name: str, group_order: Sequence[str]) -> float:
    """Position of a group in the saved order; infinity when it has none."""
    try:
        return group_order.index(display_name)
    except ValueError:
        return math.inf


def by_priority_group_order(group_order: Sequence[str]) -> Callable[[Todo], tuple]:
    """
    Sort key for the canonical view ordering.

    Priority descending, then group rank ascending, then order ascending.
    """
    order = list(group_order)

    def key(todo: Todo) -> tuple:
        return (
            -priority_value(todo.priority),
            group_rank(display_group(todo.group), order),
            todo.order,
        )

    return key


def _is_due(todo: Todo, today: date) -> bool:
    return bool(todo.due_date) and todo.due_date <= today.isoformat()


def today_view(todos: Iterable[Todo], group_order: Sequence[str], today: date) -> TodayView:
    """
    Build the Today dashboard.

    Args:
        todos: Full todo set (deleted todos are skipped)
        group_order: Saved group order for tie breaks
        today: The local calendar date

    Notes:
        - Due means due today or overdue
        - Next Up lists incomplete undated todos, starred first, capped at three
        - Completed Today sorts by display group name, then order
    """
    live = [t for t in todos if t.is_live]
    key = by_priority_group_order(group_order)
    today_str = today.isoformat()

    due = [t for t in live if not t.completed and _is_due(t, today)]
    undated = [t for t in live if not t.completed and not t.due_date]
    done = [t for t in live if t.completed and t.completed_at == today_str]

    return TodayView(
        starred_due=sorted((t for t in due if t.starred), key=key),
        scheduled=sorted((t for t in due if not t.starred), key=key),
        next_up=sorted(undated, key=lambda t: (not t.starred, key(t)))[:NEXT_UP_LIMIT],
        completed_today=sorted(done, key=lambda t: (display_group(t.group), t.order)),
    )


def _sections(todos: List[Todo], group_order: Sequence[str]) -> List[GroupSection]:
    grouped: Dict[str, List[Todo]] = {}
    for todo in todos:
        grouped.setdefault(display_group(todo.group), []).append(todo)

    sections = [
        GroupSection(name=name, todos=sorted(members, key=lambda t: t.order))
        for name, members in grouped.items()
    ]
    sections.sort(key=lambda s: group_rank(s.name, group_order))
    return sections


def backlog_view(todos: Iterable[Todo], group_order: Sequence[str]) -> BacklogView:
    """Group live todos by display group, active groups first, then completed ones."""
    live = [t for t in todos if t.is_live]
    order = list(group_order)
    return BacklogView(
        active=_sections([t for t in live if not t.completed], order),
        completed=_sections([t for t in live if t.completed], order),
    )


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def deleted_view(
    todos: Iterable[Todo],
    now: datetime,
    window_days: int = DELETED_WINDOW_DAYS,
) -> List[Todo]:
    """Todos soft-deleted within the last `window_days` of `now`."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    window = timedelta(days=window_days)
    return [
        t for t in todos
        if t.deleted_at and now - _parse_timestamp(t.deleted_at) <= window
    ]

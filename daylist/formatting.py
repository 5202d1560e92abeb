"""
FILE: daylist/formatting.py
PURPOSE: Shared formatting utilities for CLI output
EXPORTS:
  - TodoFormatter: Class for formatting todos and views
  - short_id(todo_id) -> str
DEPENDENCIES:
  - rich (for table formatting)
  - json (for JSON serialization)
  - daylist.core.models, daylist.core.views
NOTES:
  - Centralized formatting logic for consistency
  - Group names shown here always go through display_group
"""

import json
from typing import Any, Dict, List, Optional

from rich.console import Group
from rich.table import Table
from rich.text import Text

from .core.models import Todo, display_group
from .core.views import (
    VIEW_BACKLOG,
    VIEW_DELETED,
    VIEW_TITLES,
    VIEW_TODAY,
    BacklogView,
    TodayView,
)

SHORT_ID_LENGTH = 8

SECTION_STYLES = {
    "Starred & Due": "bold yellow",
    "Scheduled": "bold white",
    "Next Up": "bold cyan",
    "Completed Today": "bold green",
}


def short_id(todo_id: str) -> str:
    return todo_id[:SHORT_ID_LENGTH]


class TodoFormatter:
    """Centralized todo display formatting."""

    @staticmethod
    def create_table(
        todos: List[Todo],
        title: Optional[str] = None,
        show_group: bool = True,
        title_style: str = "bold cyan",
        dim: bool = False,
    ) -> Table:
        """
        Create Rich table for todos.

        Args:
            todos: Todos to display, already sorted
            title: Table title
            show_group: Whether to show the group column
            title_style: Style of the title
            dim: Render the whole table dimmed (completed sections)

        Returns:
            Rich Table object ready for display
        """
        table = Table(
            title=title,
            title_style=title_style,
            title_justify="left",
            show_header=True,
            header_style="bold cyan",
            style="dim" if dim else "none",
        )
        table.add_column("ID", style="cyan", width=SHORT_ID_LENGTH, no_wrap=True)
        table.add_column("", width=2)
        table.add_column("Summary", style="white")
        table.add_column("Pri", style="red", width=3)
        table.add_column("Due", style="magenta", width=10)
        if show_group:
            table.add_column("Group", style="yellow")

        for todo in todos:
            marker = "[green]✓[/green]" if todo.completed else "○"
            summary = Text(todo.summary)
            if todo.starred:
                summary = Text("★ ", style="yellow") + summary
            if todo.repeat_days:
                summary.append(f" ↻{todo.repeat_days}d", style="dim")
            if todo.completed:
                summary.stylize("strike")

            row = [short_id(todo.id), marker, summary, todo.priority, todo.due_date or "-"]
            if show_group:
                row.append(Text(display_group(todo.group)))
            table.add_row(*row)

        return table

    @staticmethod
    def today(view: TodayView) -> Group:
        """Render the four Today sections, skipping empty ones."""
        tables = [
            TodoFormatter.create_table(
                todos,
                title=name,
                title_style=SECTION_STYLES.get(name, "bold"),
                dim=name == "Completed Today",
            )
            for name, todos in view.sections()
            if todos
        ]
        return Group(Text(VIEW_TITLES[VIEW_TODAY], style="bold underline"), *tables)

    @staticmethod
    def backlog(view: BacklogView) -> Group:
        """Render active groups, then completed groups dimmed."""
        renderables = [Text(VIEW_TITLES[VIEW_BACKLOG], style="bold underline")]
        renderables += [
            TodoFormatter.create_table(section.todos, title=section.name, show_group=False)
            for section in view.active
        ]
        if view.completed:
            renderables.append(Text("\nCompleted", style="dim bold"))
            renderables.extend(
                TodoFormatter.create_table(
                    section.todos,
                    title=section.name,
                    show_group=False,
                    title_style="dim",
                    dim=True,
                )
                for section in view.completed
            )
        return Group(*renderables)

    @staticmethod
    def deleted(todos: List[Todo]) -> Table:
        table = Table(title=VIEW_TITLES[VIEW_DELETED], show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=SHORT_ID_LENGTH, no_wrap=True)
        table.add_column("Summary", style="dim strike")
        table.add_column("Deleted", style="dim")
        for todo in todos:
            table.add_row(short_id(todo.id), todo.summary, (todo.deleted_at or "")[:10])
        return table

    @staticmethod
    def to_json_dict(todo: Todo) -> Dict[str, Any]:
        """Convert single todo to JSON-serializable dict."""
        data = todo.to_dict()
        data["display_group"] = display_group(todo.group)
        return data

    @staticmethod
    def to_json_array(todos: List[Todo]) -> str:
        return json.dumps([TodoFormatter.to_json_dict(t) for t in todos], indent=2)

    @staticmethod
    def today_json(view: TodayView) -> str:
        return json.dumps(
            {
                name: [TodoFormatter.to_json_dict(t) for t in todos]
                for name, todos in view.sections()
            },
            indent=2,
        )

    @staticmethod
    def backlog_json(view: BacklogView) -> str:
        def sections(items):
            return [
                {"group": s.name, "todos": [TodoFormatter.to_json_dict(t) for t in s.todos]}
                for s in items
            ]

        return json.dumps(
            {"active": sections(view.active), "completed": sections(view.completed)},
            indent=2,
        )

    @staticmethod
    def to_raw_lines(todos: List[Todo]) -> List[str]:
        """
        Convert todo list to plain text lines.

        Returns:
            List of formatted strings, one per todo
        """
        lines = []
        for todo in todos:
            status_marker = "x" if todo.completed else " "
            lines.append(f"{short_id(todo.id)}: [{status_marker}] {todo.summary}")
        return lines

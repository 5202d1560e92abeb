"""
FILE: daylist/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .todos import (
    add,
    done,
    rm,
    edit,
    pri,
    star,
    show,
    mv,
)
from .views import (
    today,
    backlog,
    deleted,
)
from .groups import (
    group_ls,
    group_mv,
    group_rename,
)
from .system import (
    version,
)

__all__ = [
    "add",
    "done",
    "rm",
    "edit",
    "pri",
    "star",
    "show",
    "mv",
    "today",
    "backlog",
    "deleted",
    "group_ls",
    "group_mv",
    "group_rename",
    "version",
]

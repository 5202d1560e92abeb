"""
FILE: daylist/cli/main.py
PURPOSE: Typer-based CLI for one-shot todo commands
EXPORTS:
  - app (Typer application)
  - group_app (Typer sub-application for group commands)
  - main() (entry point)
  - run_action(action) -> result of the action
  - report_result(result, message) -> None
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - daylist.core.coordinator (TodoSession)
  - daylist.core.repository (SQLiteTodoRepository)
  - daylist.config (Settings)
NOTES:
  - Every command loads a fresh session, runs one action and prints the outcome
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from .. import __version__
from ..config import Settings
from ..logger import setup_logging
from ..core.coordinator import MutationResult, TodoSession
from ..core.exceptions import DaylistError
from ..core.repository import SQLiteTodoRepository

T = TypeVar("T")

# Typer app setup
app = typer.Typer(
    name="daylist",
    help="Personal todo tracker with a Today dashboard and ordered groups",
    add_completion=False,
    no_args_is_help=True,
)

# Group sub-command group
group_app = typer.Typer(
    name="group",
    help="Group ordering and naming commands",
)
app.add_typer(group_app, name="group")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)


@app.callback()
def configure():
    """Personal todo tracker with a Today dashboard and ordered groups."""
    setup_logging(Settings.from_env().log_level)


def open_session(settings: Optional[Settings] = None) -> TodoSession:
    """Build a session on the configured SQLite database."""
    settings = settings or Settings.from_env()
    repository = SQLiteTodoRepository(settings.db_path)
    return TodoSession(repository, settings.user_id)


def run_action(action: Callable[[TodoSession], Awaitable[T]]) -> T:
    """
    Load a session and run one coroutine against it.

    Raises:
        typer.Exit: With code 1 if the action raises a DaylistError
    """

    async def _run():
        session = open_session()
        await session.load()
        return await action(session)

    try:
        return asyncio.run(_run())
    except DaylistError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def report_result(result: MutationResult, message: str) -> None:
    """Print the outcome of a mutation; exit 1 if any write failed."""
    if not result.applied:
        console.print("[dim]Nothing to change[/dim]")
        return

    for failure in result.failures:
        error_console.print(
            f"[yellow]Warning:[/yellow] could not save {failure.action}"
            f"{' for ' + failure.todo_id[:8] if failure.todo_id else ''}: {failure.error}"
        )
    if result.failures:
        raise typer.Exit(1)

    console.print(message)


# Import command modules to register commands with app
# Commands are decorated with @app.command() in their modules
from .commands import (  # noqa: E402
    # Todo commands
    add,
    done,
    rm,
    edit,
    pri,
    star,
    show,
    mv,
    # View commands
    today,
    backlog,
    deleted,
    # Group commands
    group_ls,
    group_mv,
    group_rename,
    # System commands
    version,
)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()

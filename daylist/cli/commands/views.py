"""
FILE: daylist/cli/commands/views.py
PURPOSE: View commands (today, backlog, deleted)
"""

import typer

from ..main import app, console, run_action
from ...formatting import TodoFormatter


@app.command()
def today(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show the Today dashboard.

    Sections: Starred & Due, Scheduled (due today or overdue), Next Up
    (top three undated todos) and Completed Today.

    Example:
        daylist today
        daylist today --json
    """

    async def _today(session):
        return session.today()

    view = run_action(_today)

    if json_output:
        typer.echo(TodoFormatter.today_json(view))
    elif raw:
        for name, todos in view.sections():
            for line in TodoFormatter.to_raw_lines(todos):
                typer.echo(f"{name}\t{line}")
    elif view.is_empty:
        console.print("[dim]Nothing for today. Add one with 'daylist add'[/dim]")
    else:
        console.print(TodoFormatter.today(view))


@app.command()
def backlog(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show all todos grouped by group, in your group order.

    Example:
        daylist backlog
    """

    async def _backlog(session):
        return session.backlog()

    view = run_action(_backlog)

    if json_output:
        typer.echo(TodoFormatter.backlog_json(view))
    elif raw:
        for section in view.active + view.completed:
            for line in TodoFormatter.to_raw_lines(section.todos):
                typer.echo(f"{section.name}\t{line}")
    elif view.is_empty:
        console.print("[dim]No todos yet. Add one with 'daylist add --backlog'[/dim]")
    else:
        console.print(TodoFormatter.backlog(view))


@app.command()
def deleted(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show todos deleted in the last 30 days.

    Example:
        daylist deleted
    """

    async def _deleted(session):
        return session.deleted()

    todos = run_action(_deleted)

    if json_output:
        typer.echo(TodoFormatter.to_json_array(todos))
    elif not todos:
        console.print("[dim]No recently deleted todos[/dim]")
    else:
        console.print(TodoFormatter.deleted(todos))

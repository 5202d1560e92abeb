"""
FILE: daylist/cli/commands/groups.py
PURPOSE: Group commands (group ls, group mv, group rename)
"""

import json

import typer
from rich.markup import escape
from rich.table import Table

from ..main import group_app, console, run_action, report_result
from ...core.views import group_rank


@group_app.command("ls")
def group_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List groups in display order with their open todo counts.

    Example:
        daylist group ls
    """

    async def _groups(session):
        return session.backlog(), session.group_order

    view, order = run_action(_groups)

    counts = {}
    for section in view.active:
        counts[section.name] = len(section.todos)
    for section in view.completed:
        counts.setdefault(section.name, 0)
    names = sorted(counts, key=lambda name: group_rank(name, order))

    if json_output:
        typer.echo(json.dumps([{"group": n, "open": counts[n]} for n in names], indent=2))
        return

    if not names:
        console.print("[dim]No groups yet[/dim]")
        return

    table = Table(title="Groups", show_header=True, header_style="bold cyan")
    table.add_column("#", style="cyan", width=3)
    table.add_column("Group", style="yellow")
    table.add_column("Open", style="magenta", justify="right")
    for position, name in enumerate(names, start=1):
        table.add_row(str(position), escape(name), str(counts[name]))
    console.print(table)


@group_app.command("mv")
def group_mv(
    group: str = typer.Argument(..., help="Group to move"),
    target: str = typer.Argument(..., help="Group to place it next to"),
    after: bool = typer.Option(False, "--after", help="Place after the target instead of before"),
):
    """
    Move a group before (or after) another group.

    Example:
        daylist group mv Personal Work
        daylist group mv Errands Work --after
    """

    async def _move(session):
        return await session.move_group(group, target, insert_after=after)

    result = run_action(_move)
    where = "after" if after else "before"
    report_result(
        result,
        f"[green]✓ Moved group[/green] {escape(group)} {where} {escape(target)}",
    )


@group_app.command("rename")
def group_rename(
    old_name: str = typer.Argument(..., help="Current group name"),
    new_name: str = typer.Argument(..., help="New group name"),
):
    """
    Rename a group on all its todos.

    Example:
        daylist group rename Work Job
    """

    async def _rename(session):
        return await session.rename_group(old_name, new_name)

    result = run_action(_rename)
    report_result(
        result,
        f"[green]✓ Renamed group[/green] {escape(old_name)} → {escape(new_name.strip())}",
    )

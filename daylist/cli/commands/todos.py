"""
FILE: daylist/cli/commands/todos.py
PURPOSE: Todo commands (add, done, rm, edit, pri, star, show, mv)
"""

import json
from typing import Optional

import typer
from rich.markup import escape
from rich.panel import Panel

from ..main import app, console, error_console, run_action, report_result
from ...core.constants import CATEGORY_BACKLOG, CATEGORY_TODAY
from ...core.exceptions import InvalidInputError
from ...core.models import display_group, next_priority, stored_group
from ...core.recurrence import RecurrenceState, recurrence_state
from ...formatting import TodoFormatter, short_id


@app.command()
def add(
    summary: str = typer.Argument(..., help="Todo summary"),
    backlog: bool = typer.Option(False, "--backlog", "-b", help="Add to the backlog instead of today"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new todo at the end of the ungrouped list.

    Example:
        daylist add "Water the plants"
        daylist add "Plan trip" --backlog
    """
    category = CATEGORY_BACKLOG if backlog else CATEGORY_TODAY

    async def _add(session):
        return await session.add(summary, category)

    result = run_action(_add)
    todo = result.todo

    if result.ok and todo is not None and json_output:
        typer.echo(todo.to_json())
    elif result.ok and todo is not None and raw:
        typer.echo(f"{todo.id}: {todo.summary}")
    else:
        report_result(
            result,
            f"[green]✓ Added [bold]{short_id(todo.id) if todo else '?'}[/bold]:[/green] "
            f"{escape(summary.strip())}",
        )


@app.command()
def done(
    todo_id: str = typer.Argument(..., help="Todo ID (or unique prefix)"),
):
    """
    Toggle completion of a todo.

    Completing a repeating todo schedules its next occurrence;
    un-completing it removes that occurrence again.

    Example:
        daylist done 3fa9
    """

    async def _toggle(session):
        todo = session.resolve(todo_id)
        return await session.toggle(todo.id)

    result = run_action(_toggle)
    todo = result.todo
    if todo is None:
        report_result(result, "")
        return

    verb = "Completed" if todo.completed else "Reopened"
    message = f"[green]✓ {verb}:[/green] {escape(todo.summary)}"
    if result.spawned is not None:
        message += f"\n[dim]Next occurrence due {result.spawned.due_date}[/dim]"
    if result.retracted is not None:
        message += "\n[dim]Removed the scheduled next occurrence[/dim]"
    report_result(result, message)


@app.command()
def rm(
    todo_id: str = typer.Argument(..., help="Todo ID (or unique prefix)"),
):
    """
    Delete a todo. It stays in 'daylist deleted' for 30 days.

    Example:
        daylist rm 3fa9
    """

    async def _delete(session):
        todo = session.resolve(todo_id)
        return await session.delete(todo.id)

    result = run_action(_delete)
    summary = result.todo.summary if result.todo else todo_id
    report_result(result, f"[green]✓ Deleted:[/green] {escape(summary)}")


@app.command()
def edit(
    todo_id: str = typer.Argument(..., help="Todo ID (or unique prefix)"),
    summary: Optional[str] = typer.Option(None, "--summary", "-s", help="New summary"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="New description"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date YYYY-MM-DD ('' to clear)"),
    starred: Optional[bool] = typer.Option(None, "--star/--no-star", help="Star or unstar"),
    repeat: Optional[int] = typer.Option(None, "--repeat", "-r", help="Repeat every N days (0 = never)"),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Group name ('Ungrouped' to clear)"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="Priority: '', '!', '!!' or '!!!'"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="today or backlog"),
):
    """
    Update fields of a todo.

    Example:
        daylist edit 3fa9 --due 2026-02-14 --star
        daylist edit 3fa9 --group Work --priority '!!'
    """
    fields = {
        "summary": summary,
        "description": description,
        "due_date": due,
        "starred": starred,
        "repeat_days": repeat,
        "priority": priority,
        "category": category,
    }
    fields = {name: value for name, value in fields.items() if value is not None}
    if group is not None:
        fields["group"] = stored_group(group.strip())

    if not fields:
        error_console.print("[red]Error:[/red] Nothing to update. See 'daylist edit --help'")
        raise typer.Exit(1)

    async def _update(session):
        todo = session.resolve(todo_id)
        return await session.update(todo.id, **fields)

    result = run_action(_update)
    summary_text = result.todo.summary if result.todo else todo_id
    report_result(result, f"[green]✓ Updated:[/green] {escape(summary_text)}")


@app.command()
def pri(
    todo_id: str = typer.Argument(..., help="Todo ID (or unique prefix)"),
):
    """
    Cycle the priority of a todo: none, !, !!, !!!, none.

    Example:
        daylist pri 3fa9
    """

    async def _cycle(session):
        todo = session.resolve(todo_id)
        return await session.update(todo.id, priority=next_priority(todo.priority))

    result = run_action(_cycle)
    todo = result.todo
    label = (todo.priority or "none") if todo else "?"
    report_result(result, f"[green]✓ Priority:[/green] {escape(label)}")


@app.command()
def star(
    todo_id: str = typer.Argument(..., help="Todo ID (or unique prefix)"),
):
    """
    Toggle the star of a todo.

    Example:
        daylist star 3fa9
    """

    async def _star(session):
        todo = session.resolve(todo_id)
        return await session.update(todo.id, starred=not todo.starred)

    result = run_action(_star)
    todo = result.todo
    verb = "Starred" if todo and todo.starred else "Unstarred"
    report_result(result, f"[green]✓ {verb}:[/green] {escape(todo.summary if todo else todo_id)}")


@app.command()
def show(
    todo_id: str = typer.Argument(..., help="Todo ID (or unique prefix)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show full details of a todo.

    Example:
        daylist show 3fa9
    """

    async def _show(session):
        todo = session.resolve(todo_id)
        return todo, recurrence_state(session.todos, todo)

    todo, state = run_action(_show)

    if json_output:
        typer.echo(json.dumps(TodoFormatter.to_json_dict(todo), indent=2))
        return

    lines = [
        f"[bold]{escape(todo.summary)}[/bold]",
        "",
        f"[cyan]ID:[/cyan]        {todo.id}",
        f"[cyan]Category:[/cyan]  {todo.category}",
        f"[cyan]Group:[/cyan]     {escape(display_group(todo.group))}",
        f"[cyan]Priority:[/cyan]  {todo.priority or '-'}",
        f"[cyan]Starred:[/cyan]   {'yes' if todo.starred else 'no'}",
        f"[cyan]Due:[/cyan]       {todo.due_date or '-'}",
        f"[cyan]Repeat:[/cyan]    {f'every {todo.repeat_days} day(s)' if todo.repeat_days else 'never'}",
        f"[cyan]Status:[/cyan]    {'done on ' + todo.completed_at if todo.completed and todo.completed_at else 'open'}",
    ]
    if todo.repeat_days and state == RecurrenceState.SPAWNED:
        lines.append("[cyan]Next:[/cyan]      scheduled")
    if todo.recurring_parent_id:
        lines.append(f"[cyan]Repeats:[/cyan]   {short_id(todo.recurring_parent_id)}")
    if todo.deleted_at:
        lines.append(f"[red]Deleted:[/red]   {todo.deleted_at[:10]}")
    if todo.description:
        lines.extend(["", escape(todo.description)])

    console.print(Panel("\n".join(lines), title=short_id(todo.id), expand=False))


@app.command()
def mv(
    todo_id: str = typer.Argument(..., help="Todo to move"),
    target_id: Optional[str] = typer.Argument(None, help="Todo to drop it onto"),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Drop into this group instead of onto a todo"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category of --group (default: unchanged)"),
):
    """
    Move a todo, like dragging it in a list.

    Dropping onto a todo in the same group reorders; dropping onto a todo
    in another group moves it there at that position. With --group the
    todo goes to the top of that group.

    Example:
        daylist mv 3fa9 b71c
        daylist mv 3fa9 --group Home --category backlog
    """
    if (target_id is None) == (group is None):
        error_console.print("[red]Error:[/red] Give either a target todo or --group")
        raise typer.Exit(1)

    async def _move(session):
        todo = session.resolve(todo_id)
        if target_id is not None:
            target = session.resolve(target_id)
            if target.id == todo.id:
                raise InvalidInputError("Cannot move a todo onto itself")
            return await session.move(todo.id, target.id)
        return await session.move_to_group(todo.id, group.strip(), category)

    result = run_action(_move)
    if result.todo is None:
        report_result(result, "")
        return
    todo = result.todo
    report_result(
        result,
        f"[green]✓ Moved:[/green] {escape(todo.summary)} "
        f"[dim]→ {escape(display_group(todo.group))} ({todo.category}) #{todo.order + 1}[/dim]",
    )

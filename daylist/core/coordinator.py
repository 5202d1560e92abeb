"""
FILE: daylist/core/coordinator.py
PURPOSE: Optimistic mutation of the live todo set with persistence and rollback
EXPORTS:
  - TodoSession (class)
  - TodoSnapshot, MutationResult, PersistenceFailure (dataclasses)
DEPENDENCIES:
  - asyncio (stdlib)
  - daylist.core.ordering, daylist.core.recurrence, daylist.core.views
  - daylist.core.repository (TodoRepository)
  - daylist.core.exceptions (InvalidInputError, PersistenceError, TodoNotFoundError)
NOTES:
  - TodoSession is the only writer of the in-memory snapshot
  - Every action: apply locally, await the repository, revert touched fields on failure
  - Batch writes run concurrently; each failure is reverted and reported on its own
  - No cancellation of in-flight writes; last write wins per field
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .constants import (
    DEFAULT_CATEGORY,
    PURGE_AFTER_DAYS,
    VALID_CATEGORIES,
    VALID_PRIORITIES,
)
from .exceptions import InvalidInputError, PersistenceError, TodoNotFoundError
from .models import Todo, TodoDraft
from .ordering import (
    BATCH_FIELDS,
    changed_fields,
    densify,
    move_across_group,
    move_group,
    move_todo,
    next_order,
    rename_group,
)
from .recurrence import child_to_retract, find_live_child, spawn_child
from .repository import TodoRepository
from .views import BacklogView, TodayView, backlog_view, deleted_view, today_view

logger = logging.getLogger(__name__)

# Fields a caller may change through TodoSession.update()
UPDATABLE_FIELDS = (
    "summary",
    "description",
    "category",
    "due_date",
    "starred",
    "repeat_days",
    "group",
    "priority",
)


@dataclass(frozen=True)
class TodoSnapshot:
    """Immutable view of the session state at one version."""

    version: int
    todos: Tuple[Todo, ...]
    group_order: Tuple[str, ...]


@dataclass
class PersistenceFailure:
    action: str
    todo_id: Optional[str]
    error: Exception


@dataclass
class MutationResult:
    """
    Outcome of one user action.

    Attributes:
        action: Action name ('toggle', 'move', ...)
        applied: False when the action was a no-op (unknown id, invalid gesture)
        todo: The todo the action centred on, as it stands afterwards
        persisted: Ids whose writes succeeded
        failures: One entry per failed repository call
        spawned: Child created by a recurring completion
        retracted: Child soft-deleted by a recurring un-completion
    """

    action: str
    applied: bool = True
    todo: Optional[Todo] = None
    persisted: List[str] = field(default_factory=list)
    failures: List[PersistenceFailure] = field(default_factory=list)
    spawned: Optional[Todo] = None
    retracted: Optional[Todo] = None

    @property
    def ok(self) -> bool:
        return self.applied and not self.failures


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _matches_draft(todo: Todo, draft: TodoDraft) -> bool:
    return (
        todo.summary == draft.summary
        and todo.category == draft.category
        and todo.group == draft.group
        and todo.order == draft.order
    )


def validate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize updatable todo fields.

    Raises:
        InvalidInputError: On unknown fields or invalid values
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidInputError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    clean = dict(fields)
    if "summary" in clean:
        clean["summary"] = (clean["summary"] or "").strip()
        if not clean["summary"]:
            raise InvalidInputError("Todo summary cannot be empty")
    if "description" in clean:
        clean["description"] = (clean["description"] or "").strip()
    if "category" in clean and clean["category"] not in VALID_CATEGORIES:
        raise InvalidInputError(
            f"Invalid category '{clean['category']}'. Must be one of: {', '.join(VALID_CATEGORIES)}"
        )
    if "priority" in clean and clean["priority"] not in VALID_PRIORITIES:
        raise InvalidInputError(
            f"Invalid priority '{clean['priority']}'. Must be one of: "
            + ", ".join(repr(p) for p in VALID_PRIORITIES)
        )
    if "due_date" in clean:
        due = (clean["due_date"] or "").strip()
        if due:
            try:
                due = date.fromisoformat(due).isoformat()
            except ValueError:
                raise InvalidInputError(f"Invalid due date '{due}'. Use YYYY-MM-DD")
        clean["due_date"] = due
    if "repeat_days" in clean:
        try:
            repeat = int(clean["repeat_days"] or 0)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Invalid repeat interval '{clean['repeat_days']}'")
        if repeat < 0:
            raise InvalidInputError("Repeat interval cannot be negative")
        clean["repeat_days"] = repeat
    if "starred" in clean:
        clean["starred"] = bool(clean["starred"])
    if "group" in clean:
        clean["group"] = (clean["group"] or "").strip()
    return clean


class TodoSession:
    """
    Owns one user's in-memory todo set and group order.

    Args:
        repository: Persistence backend
        user_id: Owner of the rows
        clock: Returns the current timezone-aware time (injectable for tests)
        on_failure: Called with each PersistenceFailure as it happens
    """

    def __init__(
        self,
        repository: TodoRepository,
        user_id: str,
        clock: Optional[Callable[[], datetime]] = None,
        on_failure: Optional[Callable[[PersistenceFailure], None]] = None,
    ):
        self._repository = repository
        self.user_id = user_id
        self._clock = clock or _local_now
        self._on_failure = on_failure
        self._todos: List[Todo] = []
        self._group_order: List[str] = []
        self._version = 0
        self._pending_spawns: Set[str] = set()

    # --- State ---

    @property
    def version(self) -> int:
        return self._version

    @property
    def todos(self) -> List[Todo]:
        return list(self._todos)

    @property
    def group_order(self) -> List[str]:
        return list(self._group_order)

    def snapshot(self) -> TodoSnapshot:
        return TodoSnapshot(self._version, tuple(self._todos), tuple(self._group_order))

    def find(self, todo_id: str) -> Optional[Todo]:
        return next((t for t in self._todos if t.id == todo_id), None)

    def get(self, todo_id: str) -> Todo:
        todo = self.find(todo_id)
        if todo is None:
            raise TodoNotFoundError(todo_id)
        return todo

    def resolve(self, prefix: str) -> Todo:
        """
        Find a todo by id or unique id prefix.

        Raises:
            TodoNotFoundError: No todo matches
            InvalidInputError: More than one todo matches
        """
        prefix = prefix.strip()
        exact = self.find(prefix)
        if exact is not None:
            return exact
        matches = [t for t in self._todos if prefix and t.id.startswith(prefix)]
        if not matches:
            raise TodoNotFoundError(prefix)
        if len(matches) > 1:
            raise InvalidInputError(f"Id prefix '{prefix}' matches {len(matches)} todos")
        return matches[0]

    def _commit(
        self,
        todos: Optional[Iterable[Todo]] = None,
        group_order: Optional[Iterable[str]] = None,
    ) -> None:
        if todos is not None:
            self._todos = list(todos)
        if group_order is not None:
            self._group_order = list(group_order)
        self._version += 1

    def _revert_fields(self, todo_id: str, fields: Dict[str, Any]) -> None:
        self._commit(replace(t, **fields) if t.id == todo_id else t for t in self._todos)

    def _revert_changes(self, before: Sequence[Todo], changes: Dict[str, Dict[str, Any]]) -> None:
        previous = {t.id: t for t in before}
        reverted = []
        for todo in self._todos:
            if todo.id in changes and todo.id in previous:
                prior = previous[todo.id]
                todo = replace(todo, **{name: getattr(prior, name) for name in changes[todo.id]})
            reverted.append(todo)
        self._commit(reverted)

    def _report(self, result: MutationResult, todo_id: Optional[str], error: Exception) -> None:
        failure = PersistenceFailure(result.action, todo_id, error)
        result.failures.append(failure)
        logger.error("Failed to persist %s for %s: %s", result.action, todo_id or self.user_id, error)
        if self._on_failure is not None:
            self._on_failure(failure)

    def _today(self) -> date:
        return self._clock().date()

    def _timestamp(self) -> str:
        return self._clock().astimezone(timezone.utc).isoformat()

    # --- Views ---

    def today(self) -> TodayView:
        return today_view(self._todos, self._group_order, self._today())

    def backlog(self) -> BacklogView:
        return backlog_view(self._todos, self._group_order)

    def deleted(self) -> List[Todo]:
        return deleted_view(self._todos, self._clock())

    # --- Loading ---

    async def load(self) -> TodoSnapshot:
        """
        Purge old deletions, then load todos and the group order.

        Raises:
            PersistenceError: If the todos cannot be fetched

        Notes:
            - A failed purge or group order read is logged and ignored
        """
        cutoff = self._clock() - timedelta(days=PURGE_AFTER_DAYS)
        try:
            await self._repository.purge_older_than(self.user_id, cutoff)
        except PersistenceError as e:
            logger.warning("Skipping purge of old deleted todos: %s", e)

        todos, group_order = await asyncio.gather(
            self._repository.fetch_all(self.user_id),
            self._load_group_order(),
        )
        self._commit(todos, group_order)
        return self.snapshot()

    async def _load_group_order(self) -> List[str]:
        try:
            return await self._repository.get_group_order(self.user_id)
        except PersistenceError as e:
            logger.warning("Using empty group order: %s", e)
            return []

    async def _refresh(self, result: MutationResult) -> None:
        try:
            todos = await self._repository.fetch_all(self.user_id)
        except PersistenceError as e:
            self._report(result, None, e)
            return
        self._commit(todos)

    # --- Batch persistence ---

    async def _persist_batch(
        self,
        result: MutationResult,
        before: Sequence[Todo],
        after: Sequence[Todo],
        fields: Sequence[str] = BATCH_FIELDS,
    ) -> None:
        """
        Write every record whose `fields` differ between the snapshots.

        Writes run concurrently. A failed write reverts only that record's
        changed fields; the others keep their new values.
        """
        changes = changed_fields(before, after, fields)
        if not changes:
            return

        ids = list(changes)
        outcomes = await asyncio.gather(
            *(self._repository.patch(todo_id, changes[todo_id]) for todo_id in ids),
            return_exceptions=True,
        )

        unexpected = None
        for todo_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, PersistenceError):
                self._revert_changes(before, {todo_id: changes[todo_id]})
                self._report(result, todo_id, outcome)
            elif isinstance(outcome, BaseException):
                unexpected = unexpected or outcome
            else:
                result.persisted.append(todo_id)
        if unexpected is not None:
            raise unexpected

    # --- Actions ---

    async def add(self, summary: str, category: str = DEFAULT_CATEGORY) -> MutationResult:
        """
        Create a todo at the end of the category's ungrouped bucket.

        Raises:
            InvalidInputError: If summary is blank or category is invalid

        Notes:
            - The repository assigns the id; the returned record is adopted
            - If the repository echoes nothing, the full set is re-fetched
        """
        clean = validate_fields({"summary": summary, "category": category})
        result = MutationResult("add")
        draft = TodoDraft(
            summary=clean["summary"],
            category=clean["category"],
            order=next_order(self._todos, clean["category"], ""),
        )

        try:
            created = await self._repository.insert(self.user_id, draft)
        except PersistenceError as e:
            self._report(result, None, e)
            return result

        if created is None:
            known = {t.id for t in self._todos}
            await self._refresh(result)
            created = next(
                (
                    t for t in reversed(self._todos)
                    if t.id not in known and t.is_live and _matches_draft(t, draft)
                ),
                None,
            )
        else:
            self._commit(self._todos + [created])

        result.todo = created
        if created is not None:
            result.persisted.append(created.id)
        return result

    async def toggle(self, todo_id: str) -> MutationResult:
        """
        Flip completion, then spawn or retract the recurring child.

        Notes:
            - completed_at is today's date when completing, cleared otherwise
            - Recurrence only runs after the completion write succeeds
        """
        result = MutationResult("toggle")
        todo = self.find(todo_id)
        if todo is None or not todo.is_live:
            logger.debug("Ignoring toggle of unknown todo %s", todo_id)
            result.applied = False
            return result

        completing = not todo.completed
        today = self._today()
        changes = {
            "completed": completing,
            "completed_at": today.isoformat() if completing else None,
        }
        self._commit(replace(t, **changes) if t.id == todo_id else t for t in self._todos)
        result.todo = self.find(todo_id)

        try:
            await self._repository.patch(todo_id, changes)
        except PersistenceError as e:
            self._revert_fields(
                todo_id, {"completed": todo.completed, "completed_at": todo.completed_at}
            )
            self._report(result, todo_id, e)
            result.todo = self.find(todo_id)
            return result
        result.persisted.append(todo_id)

        if todo.repeat_days > 0:
            if completing:
                await self._spawn(result, todo_id, today)
            else:
                await self._retract(result, todo_id)
        return result

    async def _spawn(self, result: MutationResult, parent_id: str, completion_date: date) -> None:
        if parent_id in self._pending_spawns:
            return
        parent = self.find(parent_id)
        if parent is None:
            return
        draft = spawn_child(self._todos, parent, completion_date)
        if draft is None:
            return

        self._pending_spawns.add(parent_id)
        try:
            created = await self._repository.insert(self.user_id, draft)
        except PersistenceError as e:
            self._report(result, parent_id, e)
            return
        finally:
            self._pending_spawns.discard(parent_id)

        if created is None:
            await self._refresh(result)
            created = find_live_child(self._todos, parent_id)
        else:
            self._commit(self._todos + [created])

        if created is None:
            return
        result.spawned = created
        result.persisted.append(created.id)

        parent = self.find(parent_id)
        if parent is not None and not parent.completed:
            # Un-completed while the insert was in flight
            await self._retract(result, parent_id)

    async def _retract(self, result: MutationResult, parent_id: str) -> None:
        parent = self.find(parent_id)
        child = child_to_retract(self._todos, parent) if parent else None
        if child is None:
            return
        if await self._soft_delete(result, child):
            result.retracted = self.find(child.id)

    async def _soft_delete(self, result: MutationResult, todo: Todo) -> bool:
        """Soft-delete one todo and close the gap it leaves in its bucket."""
        before = self._todos
        deleted_at = self._timestamp()
        after = [replace(t, deleted_at=deleted_at) if t.id == todo.id else t for t in before]
        after = densify(after, todo.category, todo.group)
        self._commit(after)

        try:
            await self._repository.soft_delete(todo.id)
        except PersistenceError as e:
            changes = changed_fields(before, after, ("order", "deleted_at"))
            self._revert_changes(before, changes)
            self._report(result, todo.id, e)
            return False

        result.persisted.append(todo.id)
        siblings = [t for t in after if t.id != todo.id]
        await self._persist_batch(result, before, siblings, ("order",))
        return True

    async def delete(self, todo_id: str) -> MutationResult:
        """Soft-delete a todo; it stays visible in the deleted view for a while."""
        result = MutationResult("delete")
        todo = self.find(todo_id)
        if todo is None or not todo.is_live:
            logger.debug("Ignoring delete of unknown todo %s", todo_id)
            result.applied = False
            return result

        await self._soft_delete(result, todo)
        result.todo = self.find(todo_id)
        return result

    async def update(self, todo_id: str, **fields: Any) -> MutationResult:
        """
        Change editable fields of one todo.

        Args:
            todo_id: Todo to update
            **fields: Any of UPDATABLE_FIELDS; group takes the stored value

        Raises:
            InvalidInputError: On unknown fields or invalid values

        Notes:
            - A category or group change moves the todo to the end of its new
              bucket and renumbers the old one
        """
        clean = validate_fields(fields)
        result = MutationResult("update")
        todo = self.find(todo_id)
        if todo is None or not todo.is_live:
            logger.debug("Ignoring update of unknown todo %s", todo_id)
            result.applied = False
            return result

        changes = {name: value for name, value in clean.items() if getattr(todo, name) != value}
        if not changes:
            result.applied = False
            result.todo = todo
            return result

        before = self._todos
        updated = replace(todo, **changes)
        bucket_changed = updated.bucket_key != todo.bucket_key
        if bucket_changed:
            updated = replace(updated, order=next_order(before, updated.category, updated.group))
            changes["order"] = updated.order

        after = [updated if t.id == todo_id else t for t in before]
        if bucket_changed:
            after = densify(after, todo.category, todo.group)
        self._commit(after)
        result.todo = updated

        try:
            await self._repository.patch(todo_id, changes)
        except PersistenceError as e:
            self._revert_changes(before, changed_fields(before, after, tuple(changes)))
            self._report(result, todo_id, e)
            result.todo = self.find(todo_id)
            return result
        result.persisted.append(todo_id)

        if bucket_changed:
            siblings = [t for t in after if t.id != todo_id]
            await self._persist_batch(result, before, siblings, ("order",))
        return result

    async def _apply_move(self, result: MutationResult, dragged_id: str, after: List[Todo]) -> MutationResult:
        before = self._todos
        if not changed_fields(before, after):
            result.applied = False
            return result

        self._commit(after)
        await self._persist_batch(result, before, after)
        result.todo = self.find(dragged_id)
        return result

    async def move(self, dragged_id: str, target_id: str) -> MutationResult:
        """Drop a todo onto another todo (same group reorder or cross-group move)."""
        result = MutationResult("move")
        return await self._apply_move(result, dragged_id, move_todo(self._todos, dragged_id, target_id))

    async def move_to_group(
        self,
        dragged_id: str,
        group_display: str,
        category: Optional[str] = None,
    ) -> MutationResult:
        """Drop a todo on a group with no target todo; it lands first in that bucket."""
        if category is not None and category not in VALID_CATEGORIES:
            raise InvalidInputError(
                f"Invalid category '{category}'. Must be one of: {', '.join(VALID_CATEGORIES)}"
            )
        result = MutationResult("move")
        after = move_across_group(self._todos, dragged_id, None, group_display, category)
        return await self._apply_move(result, dragged_id, after)

    async def move_group(
        self,
        dragged_group: str,
        target_group: str,
        insert_after: bool = False,
    ) -> MutationResult:
        """Reorder groups; the whole group order is written back."""
        result = MutationResult("move_group")
        before = list(self._group_order)
        after = move_group(before, dragged_group, target_group, insert_after)
        if after == before:
            result.applied = False
            return result

        self._commit(group_order=after)
        try:
            await self._repository.set_group_order(self.user_id, after)
        except PersistenceError as e:
            self._commit(group_order=before)
            self._report(result, None, e)
        return result

    async def rename_group(self, old_display: str, new_display: str) -> MutationResult:
        """
        Rename a group on every live todo and in the group order.

        Notes:
            - All writes run concurrently
            - If any write fails, both the todos and the group order revert
        """
        result = MutationResult("rename_group")
        before_todos = self._todos
        before_order = list(self._group_order)
        after_todos, after_order = rename_group(before_todos, before_order, old_display, new_display)

        changes = changed_fields(before_todos, after_todos, ("group", "order"))
        order_changed = after_order != before_order
        if not changes and not order_changed:
            result.applied = False
            return result

        self._commit(after_todos, after_order)

        ids = list(changes)
        calls = [self._repository.patch(todo_id, changes[todo_id]) for todo_id in ids]
        if order_changed:
            calls.append(self._repository.set_group_order(self.user_id, after_order))
        outcomes = await asyncio.gather(*calls, return_exceptions=True)

        failed = False
        unexpected = None
        for index, outcome in enumerate(outcomes):
            todo_id = ids[index] if index < len(ids) else None
            if isinstance(outcome, PersistenceError):
                failed = True
                self._report(result, todo_id, outcome)
            elif isinstance(outcome, BaseException):
                failed = True
                unexpected = unexpected or outcome
            elif todo_id is not None:
                result.persisted.append(todo_id)

        if failed:
            self._revert_changes(before_todos, changes)
            self._commit(group_order=before_order)
        if unexpected is not None:
            raise unexpected
        return result

"""
FILE: daylist/core/ordering.py
PURPOSE: Dense ordering of todos inside a bucket and of groups inside the group order
EXPORTS:
  - bucket(todos, category, group) -> List[Todo]
  - next_order(todos, category, group) -> int
  - densify(todos, category, group) -> List[Todo]
  - reorder_within_group(todos, dragged_id, target_id) -> List[Todo]
  - move_across_group(todos, dragged_id, target_id, target_group_display, target_category) -> List[Todo]
  - move_todo(todos, dragged_id, target_id) -> List[Todo]
  - move_group(order, dragged_group, target_group, insert_after) -> List[str]
  - rename_group(todos, order, old_display, new_display) -> (List[Todo], List[str])
  - changed_fields(before, after, fields) -> Dict[str, Dict[str, Any]]
DEPENDENCIES:
  - dataclasses.replace (stdlib)
  - daylist.core.models (Todo, stored_group, display_group)
NOTES:
  - Every function is pure: inputs are never mutated, new Todo objects are returned
  - Invalid gestures (self-drop, unknown id) return the input unchanged
  - A bucket is the set of live todos sharing (category, group)
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Todo, display_group, stored_group

logger = logging.getLogger(__name__)

BATCH_FIELDS = ("order", "group", "category")


def _find(todos: Iterable[Todo], todo_id: Optional[str]) -> Optional[Todo]:
    return next((t for t in todos if t.id == todo_id), None)


def bucket(todos: Iterable[Todo], category: str, group: str) -> List[Todo]:
    """
    Live todos in a (category, group) bucket, sorted by order.

    Args:
        todos: Full todo set
        category: Bucket category
        group: Stored group value ("" for ungrouped)
    """
    members = [
        t for t in todos
        if t.is_live and t.category == category and t.group == group
    ]
    return sorted(members, key=lambda t: t.order)


def next_order(todos: Iterable[Todo], category: str, group: str) -> int:
    """Order value for an item appended to the end of a bucket."""
    members = bucket(todos, category, group)
    if not members:
        return 0
    return max(t.order for t in members) + 1


def _renumber(todos: Sequence[Todo], sequence: Sequence[Todo]) -> List[Todo]:
    """
    Replace each member of `sequence` in `todos` with a copy ordered by its index.

    Members of `sequence` may carry other field changes (group, category);
    those are kept. Records outside the sequence are returned untouched.
    """
    positions = {t.id: (index, t) for index, t in enumerate(sequence)}
    result = []
    for todo in todos:
        if todo.id in positions:
            index, updated = positions[todo.id]
            todo = updated if updated.order == index else replace(updated, order=index)
        result.append(todo)
    return result


def densify(todos: Sequence[Todo], category: str, group: str) -> List[Todo]:
    """Renumber a bucket to 0..n-1, keeping its relative order."""
    return _renumber(todos, bucket(todos, category, group))


def reorder_within_group(
    todos: Sequence[Todo],
    dragged_id: str,
    target_id: str,
) -> List[Todo]:
    """
    Move a todo onto another todo in the same bucket.

    The dragged todo is taken out of the bucket's order-sorted sequence and
    reinserted at the target's original index, so dragging A onto C in
    [A, B, C] yields [B, C, A]. The whole bucket is then renumbered.

    Returns:
        New todo list. Unchanged if the gesture is invalid.
    """
    if dragged_id == target_id:
        return list(todos)

    dragged = _find(todos, dragged_id)
    target = _find(todos, target_id)
    if dragged is None or target is None or not (dragged.is_live and target.is_live):
        logger.debug("Ignoring reorder of %s onto %s: unknown todo", dragged_id, target_id)
        return list(todos)
    if dragged.bucket_key != target.bucket_key:
        logger.debug("Ignoring reorder of %s onto %s: different groups", dragged_id, target_id)
        return list(todos)

    sequence = bucket(todos, *dragged.bucket_key)
    ids = [t.id for t in sequence]
    drag_index = ids.index(dragged_id)
    target_index = ids.index(target_id)

    moved = sequence.pop(drag_index)
    sequence.insert(target_index, moved)
    return _renumber(todos, sequence)


def move_across_group(
    todos: Sequence[Todo],
    dragged_id: str,
    target_id: Optional[str],
    target_group_display: str,
    target_category: Optional[str] = None,
) -> List[Todo]:
    """
    Move a todo into another (category, group) bucket.

    Args:
        todos: Full todo set
        dragged_id: Todo being moved
        target_id: Todo it was dropped onto, or None when dropped on an empty bucket
        target_group_display: Display name of the destination group
        target_category: Destination category when there is no target todo
            (defaults to the dragged todo's category)

    Notes:
        - Destination index k is the target's index in its bucket (0 without a target)
        - Destination members at index >= k shift down by one
        - The dragged todo takes group, category and order = k
        - The source bucket is renumbered without the dragged todo
    """
    dragged = _find(todos, dragged_id)
    if dragged is None or not dragged.is_live:
        logger.debug("Ignoring move of unknown todo %s", dragged_id)
        return list(todos)

    target = None
    if target_id is not None:
        target = _find(todos, target_id)
        if target is None or not target.is_live:
            logger.debug("Ignoring move onto unknown todo %s", target_id)
            return list(todos)

    group = stored_group(target_group_display)
    category = target.category if target else (target_category or dragged.category)

    if target is not None and target.group != group:
        logger.debug(
            "Ignoring move onto %s: it is not in group %r", target_id, target_group_display
        )
        return list(todos)

    if (category, group) == dragged.bucket_key:
        if target is None:
            return list(todos)
        return reorder_within_group(todos, dragged_id, target_id)

    destination = bucket(todos, category, group)
    index = 0
    if target is not None:
        index = [t.id for t in destination].index(target.id)

    destination.insert(index, replace(dragged, group=group, category=category))
    source = [t for t in bucket(todos, *dragged.bucket_key) if t.id != dragged_id]

    result = _renumber(todos, destination)
    return _renumber(result, source)


def move_todo(todos: Sequence[Todo], dragged_id: str, target_id: str) -> List[Todo]:
    """Drop one todo onto another, reordering or moving across groups as needed."""
    dragged = _find(todos, dragged_id)
    target = _find(todos, target_id)
    if dragged is None or target is None or dragged_id == target_id:
        return list(todos)

    if dragged.bucket_key == target.bucket_key:
        return reorder_within_group(todos, dragged_id, target_id)
    return move_across_group(todos, dragged_id, target_id, target.display_group)


def move_group(
    order: Sequence[str],
    dragged_group: str,
    target_group: str,
    insert_after: bool = False,
) -> List[str]:
    """
    Move a group name before or after another one in the group order.

    Names missing from the order are appended first (dragged, then target),
    so a group with no explicit position starts out last.
    """
    if dragged_group == target_group:
        return list(order)

    result = list(order)
    if dragged_group not in result:
        result.append(dragged_group)
    if target_group not in result:
        result.append(target_group)

    drag_index = result.index(dragged_group)
    target_index = result.index(target_group)

    result.pop(drag_index)
    insert_index = target_index + 1 if insert_after else target_index
    if drag_index < target_index:
        # Removal shifted the target left by one
        insert_index -= 1
    result.insert(insert_index, dragged_group)
    return result


def rename_group(
    todos: Sequence[Todo],
    order: Sequence[str],
    old_display: str,
    new_display: str,
) -> Tuple[List[Todo], List[str]]:
    """
    Rename a group on every live todo and in the group order.

    Returns:
        (todos, order) - both unchanged if the new name is blank or identical

    Notes:
        - Renaming onto an existing group merges: renamed todos go after the
          existing members of each category's bucket
        - The old name keeps its position in the group order; a merge drops it
    """
    new_display = new_display.strip()
    if not new_display or new_display == old_display:
        return list(todos), list(order)

    new_group = stored_group(new_display)
    renamed = [t for t in todos if t.is_live and display_group(t.group) == old_display]

    result = list(todos)
    categories = []
    for todo in renamed:
        if todo.category not in categories:
            categories.append(todo.category)

    for category in categories:
        existing = bucket(result, category, new_group)
        moving = sorted(
            (t for t in renamed if t.category == category), key=lambda t: t.order
        )
        sequence = existing + [replace(t, group=new_group) for t in moving]
        result = _renumber(result, sequence)

    if new_display in order:
        new_order = [g for g in order if g != old_display]
    else:
        new_order = [new_display if g == old_display else g for g in order]
    return result, new_order


def changed_fields(
    before: Iterable[Todo],
    after: Iterable[Todo],
    fields: Sequence[str] = BATCH_FIELDS,
) -> Dict[str, Dict[str, Any]]:
    """
    Minimal per-record diff between two snapshots.

    Returns:
        {todo_id: {field: new_value}} for records present in both snapshots
        whose listed fields differ. Records with no change are omitted.
    """
    previous = {t.id: t for t in before}
    changes: Dict[str, Dict[str, Any]] = {}
    for todo in after:
        prev = previous.get(todo.id)
        if prev is None:
            continue
        diff = {
            name: getattr(todo, name)
            for name in fields
            if getattr(prev, name) != getattr(todo, name)
        }
        if diff:
            changes[todo.id] = diff
    return changes

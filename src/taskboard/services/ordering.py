"""Pure ordering functions used to plan a drop.

Nothing here touches the store. A ``DropPlan`` describes the status change
and the new order of every affected column. The engine turns it into
writes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..models import Board, DropTarget


@dataclass
class DropPlan:
    """Outcome of a drop, before anything is persisted."""

    task_id: str
    origin_status: str  # Stored status of the dragged task
    origin_column: str  # Column group that displayed the dragged task
    destination: str  # Column key the task ends up in
    # Affected column key -> task ids in their new order (index == position).
    # The destination column comes first.
    orders: dict[str, list[str]] = field(default_factory=dict)

    @property
    def status_changed(self) -> bool:
        """Whether the task's stored status must be rewritten."""
        return self.origin_status != self.destination


def move_within(order: list[str], task_id: str, target_id: str) -> list[str]:
    """Move ``task_id`` to the index currently held by ``target_id``.

    Array-move semantics: the item is removed from its old index and
    inserted at the target's old index, so dropping an item onto a later
    sibling places it after that sibling.
    """
    result = list(order)
    old_index = result.index(task_id)
    new_index = result.index(target_id)
    result.insert(new_index, result.pop(old_index))
    return result


def insert_before(order: list[str], task_id: str, target_id: str | None) -> list[str]:
    """Insert ``task_id`` at the index of ``target_id`` (append when None)."""
    result = [t for t in order if t != task_id]
    if target_id is None or target_id not in result:
        result.append(task_id)
    else:
        result.insert(result.index(target_id), task_id)
    return result


def move_to_end(order: list[str], task_id: str) -> list[str]:
    """Move ``task_id`` to the end of its own column."""
    return insert_before(order, task_id, None)


def renumber(order: list[str]) -> dict[str, int]:
    """Contiguous positions 0..n-1 in list order."""
    return {task_id: position for position, task_id in enumerate(order)}


def resolve_column(board: Board, target: DropTarget) -> str | None:
    """Column key a drop target belongs to, or None if it is not on the board.

    A task target resolves to the column that displays it, which is its
    status unless that status is stale.
    """
    if target.kind == "task":
        return board.column_of(target.id)
    if target.id in board.groups:
        return target.id
    return None


def plan_drop(board: Board, task_id: str, target: DropTarget | None) -> DropPlan | None:
    """
    Plan the result of dropping ``task_id`` on ``target``.

    Returns None when the drop changes nothing: no target, the task was
    dropped on itself, the target is not on the board, or the task would
    end up at its current index in its current column with its status
    unchanged.
    """
    if target is None:
        return None
    if target.kind == "task" and target.id == task_id:
        return None

    origin_column = board.column_of(task_id)
    if origin_column is None:
        return None
    destination = resolve_column(board, target)
    if destination is None:
        return None

    origin_status = next(t.status for t in board.groups[origin_column] if t.id == task_id)
    source_order = board.order_of(origin_column)
    target_id = target.id if target.kind == "task" else None

    plan = DropPlan(
        task_id=task_id,
        origin_status=origin_status,
        origin_column=origin_column,
        destination=destination,
    )

    if destination == origin_column:
        if target_id is not None:
            new_order = move_within(source_order, task_id, target_id)
        else:
            new_order = move_to_end(source_order, task_id)

        if new_order == source_order and not plan.status_changed:
            return None
        plan.orders[destination] = new_order
        return plan

    plan.orders[destination] = insert_before(board.order_of(destination), task_id, target_id)
    plan.orders[origin_column] = [t for t in source_order if t != task_id]
    return plan

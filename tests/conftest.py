"""Shared fixtures: an in-memory store that records every call."""

from typing import Any

import pytest

from taskboard.errors import StoreError, StoreNotFoundError
from taskboard.models import Column, ColumnDraft, Task


def make_column(key: str, position: int, board_id: str = "b1") -> Column:
    """Build a column whose id is derived from its key."""
    return Column(
        id=f"col-{key}",
        board_id=board_id,
        key=key,
        name=key.replace("_", " ").title(),
        position=position,
    )


def make_task(task_id: str, status: str, position: int, **fields: Any) -> Task:
    """Build a task on board b1."""
    fields.setdefault("title", f"Task {task_id}")
    return Task(id=task_id, board_id="b1", status=status, position=position, **fields)


class FakeStore:
    """
    In-memory task store and column registry.

    ``calls`` records every mutating call in order. Set ``fail_on_write``
    to the index of the ``update_task_fields`` call that should fail.
    """

    def __init__(self, columns: list[Column], tasks: list[Task]) -> None:
        self.columns = {c.id: c for c in columns}
        self.tasks = {t.id: t for t in tasks}
        self.calls: list[tuple[str, Any, Any]] = []
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.fail_on_write: int | None = None
        self.fail_load = False
        self.fail_reassign = False
        self.fail_delete = False
        self.loads = 0
        self._write_count = 0

    # --- Task store ---

    async def get_tasks(self, board_id: str) -> list[Task]:
        self.loads += 1
        if self.fail_load:
            raise StoreError("connection reset")
        return [t for t in self.tasks.values() if t.board_id == board_id]

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> None:
        index = self._write_count
        self._write_count += 1
        self.calls.append(("update_task_fields", task_id, dict(fields)))
        if self.fail_on_write is not None and index == self.fail_on_write:
            raise StoreError("permission denied for table tasks")
        if task_id not in self.tasks:
            raise StoreNotFoundError(f"Task not found: {task_id}")
        self.tasks[task_id] = self.tasks[task_id].model_copy(update=fields)
        self.writes.append((task_id, dict(fields)))

    async def bulk_reassign_status(self, board_id: str, from_key: str, to_key: str) -> int:
        self.calls.append(("bulk_reassign_status", from_key, to_key))
        if self.fail_reassign:
            raise StoreError("statement timeout")
        moved = 0
        for task_id, task in list(self.tasks.items()):
            if task.board_id == board_id and task.status == from_key:
                self.tasks[task_id] = task.model_copy(update={"status": to_key})
                moved += 1
        return moved

    # --- Column registry ---

    async def get_columns(self, board_id: str) -> list[Column]:
        return sorted(
            (c for c in self.columns.values() if c.board_id == board_id),
            key=lambda c: (c.position, c.id),
        )

    async def count_columns(self, board_id: str) -> int:
        return len(await self.get_columns(board_id))

    async def create_column(self, board_id: str, draft: ColumnDraft, position: int) -> Column:
        self.calls.append(("create_column", draft.key, position))
        column = Column(
            id=f"col-{draft.key}",
            board_id=board_id,
            key=draft.key,
            name=draft.name,
            icon=draft.icon,
            color=draft.color,
            position=position,
        )
        self.columns[column.id] = column
        return column

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> Column:
        self.calls.append(("update_column", column_id, dict(fields)))
        if column_id not in self.columns:
            raise StoreNotFoundError(f"Column not found: {column_id}")
        self.columns[column_id] = self.columns[column_id].model_copy(update=fields)
        return self.columns[column_id]

    async def delete_column(self, column_id: str) -> None:
        self.calls.append(("delete_column", column_id, None))
        if self.fail_delete:
            raise StoreError("statement timeout")
        self.columns.pop(column_id, None)

    async def close(self) -> None:
        pass

    # --- Helpers ---

    def positions(self, status: str) -> list[tuple[str, int]]:
        """(task id, position) pairs of a status, in position order."""
        tasks = [t for t in self.tasks.values() if t.status == status]
        return [(t.id, t.position) for t in sorted(tasks, key=lambda t: (t.position, t.id))]


@pytest.fixture
def store() -> FakeStore:
    """Board b1 with columns todo/doing/done and tasks A, B, C in todo."""
    columns = [make_column("todo", 0), make_column("doing", 1), make_column("done", 2)]
    tasks = [make_task("A", "todo", 0), make_task("B", "todo", 1), make_task("C", "todo", 2)]
    return FakeStore(columns, tasks)

"""Board state models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .column import Column
from .task import Task


def order_key(task: Task) -> tuple[int, str]:
    """Sort key for tasks within a column: position, ties broken by id."""
    return (task.position, task.id)


class Board(BaseModel):
    """Full board state with tasks grouped by column key.

    ``columns`` holds the column records in display order and ``groups``
    maps each column key to its ordered tasks. Every task appears in
    exactly one group.
    """

    columns: list[Column] = Field(default_factory=list)
    groups: dict[str, list[Task]] = Field(default_factory=dict)

    @classmethod
    def from_tasks(cls, tasks: list[Task], columns: list[Column]) -> Board:
        """
        Create Board from tasks, grouping by status.

        Tasks whose status matches no column key are shown in the first
        column. Their stored status is left untouched.
        """
        ordered_columns = sorted(columns, key=lambda c: (c.position, c.id))
        board = cls(columns=ordered_columns)

        # Initialize all columns, even empty ones
        for col in ordered_columns:
            board.groups[col.key] = []

        if not ordered_columns:
            return board

        first_key = ordered_columns[0].key
        for task in tasks:
            if task.status in board.groups:
                board.groups[task.status].append(task)
            else:
                # Unknown status - place in first column
                board.groups[first_key].append(task)

        for group in board.groups.values():
            group.sort(key=order_key)

        return board

    @property
    def column_keys(self) -> list[str]:
        """Column keys in display order."""
        return [col.key for col in self.columns]

    def get_column(self, key: str) -> list[Task]:
        """Get tasks for a specific column."""
        return self.groups.get(key, [])

    def column_of(self, task_id: str) -> str | None:
        """Key of the column group that displays the task, or None."""
        for key, tasks in self.groups.items():
            if any(t.id == task_id for t in tasks):
                return key
        return None

    def order_of(self, key: str) -> list[str]:
        """Task ids of a column in display order."""
        return [t.id for t in self.groups.get(key, [])]

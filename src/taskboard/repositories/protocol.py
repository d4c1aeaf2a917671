"""Repository protocols for the task store and column registry."""

from typing import Any, Protocol

from ..models import Column, ColumnDraft, Task


class TaskStoreProtocol(Protocol):
    """Interface for task storage backends.

    The store is the source of truth for tasks. Every method is a
    suspension point; callers await each call before issuing the next
    when ordering matters.

    All methods raise ``StoreError`` (or a subclass) on transport errors
    and constraint violations.
    """

    async def get_tasks(self, board_id: str) -> list[Task]:
        """Load all tasks of a board.

        Args:
            board_id: The owning board

        Returns:
            Tasks with the ``assigned_to_email`` display field resolved.
        """
        ...

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to one task.

        Args:
            task_id: The task identifier
            fields: Partial field set, e.g. ``{"status": "doing"}`` or
                ``{"position": 2}``
        """
        ...

    async def bulk_reassign_status(self, board_id: str, from_key: str, to_key: str) -> int:
        """Move every task of a board with status ``from_key`` to ``to_key``.

        Returns:
            Number of tasks reassigned (0 if the backend cannot tell).
        """
        ...


class ColumnRegistryProtocol(Protocol):
    """Interface for board column storage backends."""

    async def get_columns(self, board_id: str) -> list[Column]:
        """Load the columns of a board ordered by position."""
        ...

    async def count_columns(self, board_id: str) -> int:
        """Count the columns of a board."""
        ...

    async def create_column(self, board_id: str, draft: ColumnDraft, position: int) -> Column:
        """Insert a new column.

        Args:
            board_id: The owning board
            draft: Column metadata; ``draft.key`` must be set
            position: Display position of the new column

        Returns:
            The created column record.

        Raises:
            ColumnLimitError: If the board already holds the maximum number
                of columns and the backend enforces it.
        """
        ...

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> Column:
        """Update column display metadata and return the updated record."""
        ...

    async def delete_column(self, column_id: str) -> None:
        """Delete a column record.

        Note:
            Does not touch tasks; callers reassign them first.
        """
        ...


class BoardRepositoryProtocol(TaskStoreProtocol, ColumnRegistryProtocol, Protocol):
    """A backend that provides both the task store and the column registry."""

    async def close(self) -> None:
        """Release backend resources."""
        ...

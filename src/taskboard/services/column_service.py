"""Service for board column administration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import (
    ColumnLimitError,
    ColumnNotFoundError,
    DuplicateColumnKeyError,
    LastColumnError,
)
from ..models import MAX_COLUMNS_PER_BOARD, Column, ColumnChanges, ColumnDraft
from ..repositories import ColumnRegistryProtocol, TaskStoreProtocol
from ..utils import column_key

logger = logging.getLogger(__name__)


@dataclass
class ColumnDeletion:
    """Result of deleting a column."""

    column: Column
    fallback_key: str  # Status the column's tasks were moved to
    reassigned: int  # Number of tasks moved


class ColumnService:
    """Service for creating, editing and deleting board columns.

    Raises domain errors; callers at the operation boundary convert them
    to user-facing messages.
    """

    def __init__(
        self,
        task_store: TaskStoreProtocol,
        column_registry: ColumnRegistryProtocol,
        max_columns: int = MAX_COLUMNS_PER_BOARD,
    ) -> None:
        self.task_store = task_store
        self.column_registry = column_registry
        self.max_columns = max_columns

    async def create_column(self, board_id: str, draft: ColumnDraft) -> Column:
        """
        Create a column at the end of the board.

        The column count is checked before anything is written. The check
        and the insert are separate calls, so the backend is expected to
        enforce the cap as well.

        Raises:
            ColumnLimitError: The board already has ``max_columns`` columns
            DuplicateColumnKeyError: The key is already used on this board
        """
        count = await self.column_registry.count_columns(board_id)
        if count >= self.max_columns:
            logger.warning(
                "create_column rejected: board %s has %d columns (max %d)",
                board_id,
                count,
                self.max_columns,
            )
            raise ColumnLimitError(board_id, self.max_columns)

        key = draft.key or column_key(draft.name)
        existing = await self.column_registry.get_columns(board_id)
        if any(col.key == key for col in existing):
            logger.debug("create_column rejected: duplicate key %s on %s", key, board_id)
            raise DuplicateColumnKeyError(key)

        position = max((col.position for col in existing), default=-1) + 1
        column = await self.column_registry.create_column(
            board_id, draft.model_copy(update={"key": key}), position
        )
        logger.info("Column created: %s (board=%s, key=%s)", column.id, board_id, key)
        return column

    async def update_column(self, column_id: str, changes: ColumnChanges) -> Column:
        """Update a column's display metadata. The key never changes."""
        fields = changes.as_fields()
        column = await self.column_registry.update_column(column_id, fields)
        logger.info("Column updated: %s (%s)", column_id, ", ".join(sorted(fields)))
        return column

    async def delete_column(self, board_id: str, column_id: str) -> ColumnDeletion:
        """
        Delete a column after moving its tasks to the fallback column.

        The fallback is the lowest-position remaining column. Tasks are
        reassigned first; if that fails the column is not deleted, so no
        task is left with a status that matches no column. If the delete
        itself fails the column stays with zero tasks and the error is
        raised for a retry.

        Raises:
            ColumnNotFoundError: No such column on the board
            LastColumnError: The board has no other column to fall back to
            StoreError: Reassignment or deletion failed
        """
        columns = await self.column_registry.get_columns(board_id)
        column = next((c for c in columns if c.id == column_id), None)
        if column is None:
            raise ColumnNotFoundError(f"Column not found: {column_id}")

        remaining = [c for c in columns if c.id != column_id]
        if not remaining:
            raise LastColumnError("The last column of a board cannot be deleted")
        fallback = min(remaining, key=lambda c: (c.position, c.id))

        reassigned = await self.task_store.bulk_reassign_status(board_id, column.key, fallback.key)
        logger.info(
            "Tasks reassigned: %d (%s -> %s) on board %s",
            reassigned,
            column.key,
            fallback.key,
            board_id,
        )

        await self.column_registry.delete_column(column_id)
        logger.info("Column deleted: %s (board=%s, key=%s)", column_id, board_id, column.key)
        return ColumnDeletion(column=column, fallback_key=fallback.key, reassigned=reassigned)

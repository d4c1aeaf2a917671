"""Repository backed by the hosted relational store's table API."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import ColumnLimitError, StoreConflictError, StoreError, StoreNotFoundError
from ..models import MAX_COLUMNS_PER_BOARD, Column, ColumnDraft, Task
from ..store import StoreClient

logger = logging.getLogger(__name__)


class RestRepository:
    """
    Task store and column registry over PostgREST tables.

    Tables:
    - ``board_columns``: one row per column, ordered by ``position``
    - ``tasks``: one row per task, ``status`` holds a column key
    - ``user_roles``: ``user_id`` -> ``email``, used to resolve assignees

    The column cap is expected to be enforced server-side as well (a
    trigger raising "Maximum of N columns allowed per board"); that error
    is reported as ``ColumnLimitError``.
    """

    COLUMNS_TABLE = "board_columns"
    TASKS_TABLE = "tasks"
    USERS_TABLE = "user_roles"

    def __init__(self, client: StoreClient, max_columns: int = MAX_COLUMNS_PER_BOARD) -> None:
        """
        Initialize repository.

        Args:
            client: Store client used for every call
            max_columns: Column cap, used to recognize server-side rejections
        """
        self._client = client
        self.max_columns = max_columns

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()

    # --- Column Operations ---

    async def get_columns(self, board_id: str) -> list[Column]:
        """Load the columns of a board ordered by position."""
        rows = await self._client.select(
            self.COLUMNS_TABLE,
            {"board_id": f"eq.{board_id}", "order": "position.asc"},
        )
        return [Column.model_validate(row) for row in rows]

    async def count_columns(self, board_id: str) -> int:
        """Count the columns of a board."""
        return await self._client.count(self.COLUMNS_TABLE, {"board_id": f"eq.{board_id}"})

    async def create_column(self, board_id: str, draft: ColumnDraft, position: int) -> Column:
        """Insert a column row."""
        if draft.key is None:
            raise ValueError("ColumnDraft.key must be set before insertion")

        row = {
            "board_id": board_id,
            "key": draft.key,
            "name": draft.name,
            "icon": draft.icon,
            "color": draft.color,
            "position": position,
        }
        try:
            created = await self._client.insert(self.COLUMNS_TABLE, row)
        except StoreConflictError as e:
            if _is_column_limit_error(e):
                raise ColumnLimitError(board_id, self.max_columns) from e
            raise
        return Column.model_validate(created)

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> Column:
        """Update column metadata."""
        rows = await self._client.update(self.COLUMNS_TABLE, {"id": f"eq.{column_id}"}, fields)
        if not rows:
            raise StoreNotFoundError(f"Column not found: {column_id}")
        return Column.model_validate(rows[0])

    async def delete_column(self, column_id: str) -> None:
        """Delete a column row."""
        await self._client.delete(self.COLUMNS_TABLE, {"id": f"eq.{column_id}"})

    # --- Task Operations ---

    async def get_tasks(self, board_id: str) -> list[Task]:
        """Load the tasks of a board and resolve assignee emails."""
        rows = await self._client.select(
            self.TASKS_TABLE,
            {"board_id": f"eq.{board_id}", "order": "position.asc"},
        )

        assignee_ids = sorted({row["assigned_to"] for row in rows if row.get("assigned_to")})
        emails: dict[str, str] = {}
        if assignee_ids:
            users = await self._client.select(
                self.USERS_TABLE,
                {"select": "user_id,email", "user_id": f"in.({','.join(assignee_ids)})"},
            )
            emails = {user["user_id"]: user["email"] for user in users}

        tasks: list[Task] = []
        for row in rows:
            assignee = row.get("assigned_to")
            email = emails.get(assignee) if assignee else None
            tasks.append(Task.model_validate({**row, "assigned_to_email": email}))
        return tasks

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> None:
        """Patch one task row."""
        rows = await self._client.update(self.TASKS_TABLE, {"id": f"eq.{task_id}"}, fields)
        if not rows:
            # Row-level security hides rows the user cannot write
            raise StoreNotFoundError(f"Task not found or not writable: {task_id}")

    async def bulk_reassign_status(self, board_id: str, from_key: str, to_key: str) -> int:
        """Move every task of a board from one status to another."""
        rows = await self._client.update(
            self.TASKS_TABLE,
            {"board_id": f"eq.{board_id}", "status": f"eq.{from_key}"},
            {"status": to_key},
        )
        return len(rows)


def _is_column_limit_error(error: StoreError) -> bool:
    message = str(error).lower()
    return "column" in message and ("maximum" in message or "limit" in message)

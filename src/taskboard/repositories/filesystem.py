"""Filesystem-based repository for boards, columns and tasks."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any

import frontmatter
import yaml
from pydantic import ValidationError

from ..errors import (
    ColumnLimitError,
    DuplicateColumnKeyError,
    StoreConflictError,
    StoreError,
    StoreNotFoundError,
)
from ..models import (
    DEFAULT_COLUMNS,
    MAX_COLUMNS_PER_BOARD,
    STATUS_INBOX,
    Column,
    ColumnDraft,
    Task,
)
from ..utils import now_utc

logger = logging.getLogger(__name__)


class FilesystemRepository:
    """
    Repository for boards stored on the filesystem.

    Each board is a directory under ``root``:

        <root>/<board_id>/columns.yaml      column records in display order
        <root>/<board_id>/tasks/<id>.md     one task per file, YAML front matter

    Every read-modify-write of columns.yaml holds one lock, and creation
    re-checks the column cap and key uniqueness under it, so concurrent
    column changes in the same process cannot overwrite each other.
    Task updates are resolved against the board the task was loaded from.
    File I/O runs in a worker thread.
    """

    COLUMNS_YAML = "columns.yaml"
    TASKS_DIR = "tasks"

    def __init__(self, root: Path, max_columns: int = MAX_COLUMNS_PER_BOARD) -> None:
        """
        Initialize repository.

        Args:
            root: Directory holding one sub-directory per board
            max_columns: Column cap enforced on creation
        """
        self.root = root
        self.max_columns = max_columns
        self._column_lock = asyncio.Lock()
        self._task_boards: dict[str, str] = {}  # Task id -> board it was loaded from

    # --- Board Operations ---

    def board_dir(self, board_id: str) -> Path:
        """Directory of a board."""
        return self.root / board_id

    async def ensure_board(self, board_id: str) -> None:
        """Create the board directory and seed default columns if missing."""
        await self._run(self._ensure_board, board_id)

    async def close(self) -> None:
        """Nothing to release for the filesystem backend."""
        return None

    # --- Column Operations ---

    async def get_columns(self, board_id: str) -> list[Column]:
        """Load the columns of a board ordered by position."""
        columns = await self._run(self._read_columns, board_id)
        return sorted(columns, key=lambda c: (c.position, c.id))

    async def count_columns(self, board_id: str) -> int:
        """Count the columns of a board."""
        columns = await self._run(self._read_columns, board_id)
        return len(columns)

    async def create_column(self, board_id: str, draft: ColumnDraft, position: int) -> Column:
        """Append a column record to columns.yaml."""
        if draft.key is None:
            raise ValueError("ColumnDraft.key must be set before insertion")

        async with self._column_lock:
            columns = await self._run(self._read_columns, board_id)
            if len(columns) >= self.max_columns:
                raise ColumnLimitError(board_id, self.max_columns)
            if any(c.key == draft.key for c in columns):
                raise DuplicateColumnKeyError(draft.key)

            now = now_utc()
            column = Column(
                id=uuid.uuid4().hex,
                board_id=board_id,
                key=draft.key,
                name=draft.name,
                icon=draft.icon,
                color=draft.color,
                position=position,
                created_at=now,
                updated_at=now,
            )
            columns.append(column)
            await self._run(self._write_columns, board_id, columns)

        logger.debug("Column written: %s (board=%s, key=%s)", column.id, board_id, column.key)
        return column

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> Column:
        """Update column metadata in columns.yaml."""
        async with self._column_lock:
            board_id = await self._run(self._find_column_board, column_id)
            columns = await self._run(self._read_columns, board_id)

            for i, column in enumerate(columns):
                if column.id == column_id:
                    columns[i] = Column.model_validate(
                        {**column.model_dump(), **fields, "updated_at": now_utc()}
                    )
                    await self._run(self._write_columns, board_id, columns)
                    return columns[i]

        raise StoreNotFoundError(f"Column not found: {column_id}")

    async def delete_column(self, column_id: str) -> None:
        """Remove a column record from columns.yaml."""
        async with self._column_lock:
            board_id = await self._run(self._find_column_board, column_id)
            columns = await self._run(self._read_columns, board_id)
            remaining = [c for c in columns if c.id != column_id]
            await self._run(self._write_columns, board_id, remaining)

    # --- Task Operations ---

    async def get_tasks(self, board_id: str) -> list[Task]:
        """Load all task files of a board.

        Records which board each task was loaded from, so later updates
        by task id land in that board's directory.
        """
        tasks = await self._run(self._read_tasks, board_id)
        for task in tasks:
            self._task_boards[task.id] = board_id
        return tasks

    async def get_task(self, task_id: str) -> Task | None:
        """Load a single task by ID."""
        path = await self._run(self._find_task_file, task_id)
        if path is None:
            return None
        return await self._run(self._parse_task_file, path)

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> None:
        """Rewrite a task file with the given fields changed.

        Raises:
            StoreNotFoundError: No file for the task
            StoreConflictError: The task was never loaded and the id exists
                on more than one board
        """
        path = await self._run(self._find_task_file, task_id)
        if path is None:
            raise StoreNotFoundError(f"Task not found: {task_id}")

        task = await self._run(self._parse_task_file, path)
        updated = Task.model_validate({**task.model_dump(), **fields, "updated_at": now_utc()})
        await self._run(self._write_task_file, path, updated)

    async def bulk_reassign_status(self, board_id: str, from_key: str, to_key: str) -> int:
        """Rewrite every task file of a board whose status is ``from_key``."""
        return await self._run(self._reassign, board_id, from_key, to_key)

    async def create_task(
        self,
        board_id: str,
        title: str,
        status: str = STATUS_INBOX,
        **fields: Any,
    ) -> Task:
        """
        Create a task at the end of its column.

        Not part of the store protocol: tasks are normally created by the
        task details surface. Used by the CLI for local boards.
        """
        tasks = await self.get_tasks(board_id)
        position = sum(1 for t in tasks if t.status == status)
        now = now_utc()
        task = Task(
            id=uuid.uuid4().hex[:12],
            board_id=board_id,
            title=title,
            status=status,
            position=position,
            created_at=now,
            updated_at=now,
            **fields,
        )
        path = self.board_dir(board_id) / self.TASKS_DIR / f"{task.id}.md"
        await self._run(self._write_task_file, path, task)
        self._task_boards[task.id] = board_id
        logger.info("Task created: %s (board=%s, status=%s)", task.id, board_id, status)
        return task

    # --- Internals (run in a worker thread) ---

    async def _run(self, func, *args):
        """Run blocking file I/O off the event loop, mapping I/O errors."""
        try:
            return await asyncio.to_thread(func, *args)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.error("Filesystem store error in %s: %s", func.__name__, e)
            raise StoreError(f"Filesystem store error: {e}") from e

    def _ensure_board(self, board_id: str) -> None:
        tasks_dir = self.board_dir(board_id) / self.TASKS_DIR
        tasks_dir.mkdir(parents=True, exist_ok=True)

        columns_path = self.board_dir(board_id) / self.COLUMNS_YAML
        if columns_path.exists():
            return

        now = now_utc()
        columns = [
            Column(
                id=uuid.uuid4().hex,
                board_id=board_id,
                key=key,
                name=name,
                color=color,
                position=position,
                created_at=now,
                updated_at=now,
            )
            for position, (key, name, color) in enumerate(DEFAULT_COLUMNS)
        ]
        self._write_columns(board_id, columns)
        logger.info("Board seeded with default columns: %s", board_id)

    def _read_columns(self, board_id: str) -> list[Column]:
        columns_path = self.board_dir(board_id) / self.COLUMNS_YAML
        if not columns_path.exists():
            return []

        with columns_path.open() as f:
            data = yaml.safe_load(f) or {}

        return [Column(board_id=board_id, **item) for item in data.get("columns", [])]

    def _write_columns(self, board_id: str, columns: list[Column]) -> None:
        columns_path = self.board_dir(board_id) / self.COLUMNS_YAML
        columns_path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": 1,
            "columns": [
                c.model_dump(mode="json", exclude={"board_id"}, exclude_none=True)
                for c in columns
            ],
        }
        # Write to a temp file and rename so readers never see a partial file
        tmp_path = columns_path.with_suffix(".yaml.tmp")
        with tmp_path.open("w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        tmp_path.replace(columns_path)

    def _find_column_board(self, column_id: str) -> str:
        if self.root.exists():
            for board_path in sorted(self.root.iterdir()):
                if not board_path.is_dir():
                    continue
                if any(c.id == column_id for c in self._read_columns(board_path.name)):
                    return board_path.name
        raise StoreNotFoundError(f"Column not found: {column_id}")

    def _read_tasks(self, board_id: str) -> list[Task]:
        tasks_dir = self.board_dir(board_id) / self.TASKS_DIR
        if not tasks_dir.exists():
            return []

        tasks: list[Task] = []
        for path in sorted(tasks_dir.glob("*.md")):
            tasks.append(self._parse_task_file(path))
        return tasks

    def _find_task_file(self, task_id: str) -> Path | None:
        board_id = self._task_boards.get(task_id)
        if board_id is not None:
            path = self.board_dir(board_id) / self.TASKS_DIR / f"{task_id}.md"
            return path if path.exists() else None

        if not self.root.exists():
            return None
        matches = sorted(self.root.glob(f"*/{self.TASKS_DIR}/{task_id}.md"))
        if len(matches) > 1:
            boards = ", ".join(p.parent.parent.name for p in matches)
            raise StoreConflictError(f"Task id {task_id} exists on several boards: {boards}")
        return matches[0] if matches else None

    def _parse_task_file(self, path: Path) -> Task:
        post = frontmatter.load(path)
        metadata = dict(post.metadata)
        metadata.setdefault("board_id", path.parent.parent.name)
        return Task.from_frontmatter(path.stem, metadata, post.content)

    def _write_task_file(self, path: Path, task: Task) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        post = frontmatter.Post(task.description or "")
        post.metadata = task.to_frontmatter()
        # sort_keys=False preserves original key order
        tmp_path = path.with_suffix(".md.tmp")
        with tmp_path.open("w") as f:
            f.write(frontmatter.dumps(post, sort_keys=False))
        tmp_path.replace(path)

    def _reassign(self, board_id: str, from_key: str, to_key: str) -> int:
        count = 0
        now = now_utc()
        for task in self._read_tasks(board_id):
            if task.status != from_key:
                continue
            task.status = to_key
            task.updated_at = now
            path = self.board_dir(board_id) / self.TASKS_DIR / f"{task.id}.md"
            self._write_task_file(path, task)
            count += 1
        return count

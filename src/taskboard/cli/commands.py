"""Command implementations for the taskboard CLI."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..errors import StoreError
from ..models import ColumnDraft, DropTarget, Outcome
from ..repositories import FilesystemRepository, RestRepository
from ..services import BoardEngine, ColumnService, FilterService
from ..store import Session, SessionManager, StoreClient
from .output import detail, error, header, info, success

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_engine(settings: Settings) -> AsyncIterator[BoardEngine]:
    """Build the configured repository and yield a loaded engine."""
    http: httpx.AsyncClient | None = None

    if settings.backend == "rest":
        http = httpx.AsyncClient(timeout=30.0)
        manager = None
        if settings.access_token:
            manager = SessionManager(
                Session(settings.access_token, settings.refresh_token),
                http,
                auth_url=f"{settings.base_url}/auth/v1",
                api_key=settings.api_key or "",
            )
        client = StoreClient(settings.base_url, settings.api_key or "", session=manager, http=http)
        repo: FilesystemRepository | RestRepository = RestRepository(
            client, max_columns=settings.max_columns
        )
    else:
        repo = FilesystemRepository(settings.board_root, max_columns=settings.max_columns)
        await repo.ensure_board(settings.board_id)

    logger.debug("Using %s backend for board %s", settings.backend, settings.board_id)
    engine = BoardEngine(
        settings.board_id,
        repo,
        repo,
        ColumnService(repo, repo, max_columns=settings.max_columns),
    )
    try:
        await engine.load()
        yield engine
    finally:
        await repo.close()
        if http is not None:
            await http.aclose()


async def run_show(engine: BoardEngine, expression: str | None = None) -> int:
    """Print the board column by column."""
    filters = FilterService()
    filter_ = filters.parse(expression or "")
    board = engine.board

    for column in board.columns:
        tasks = filters.apply(board.get_column(column.key), filter_)
        header(f"{column.icon} {column.name} [{column.key}] ({len(tasks)})")
        for task in tasks:
            info(f"{task.display_title}  ({task.id}, {task.priority})")
            if task.assigned_to_email or task.assigned_to:
                detail(f"assigned to {task.assigned_to_email or task.assigned_to}")
    return 0


async def run_move(
    engine: BoardEngine,
    task_id: str,
    onto: str | None = None,
    column: str | None = None,
) -> int:
    """Drop a task onto another task or onto a column."""
    target = engine.resolve_target(onto or column)
    expected = "column" if column is not None else "task"
    if target is None or target.kind != expected:
        error(f"Unknown drop target: {onto or column}")
        return 1
    if task_id not in engine.tasks:
        error(f"Unknown task: {task_id}")
        return 1

    result = await engine.move_task(task_id, target)
    if result.outcome == Outcome.NOOP:
        info("Nothing to change")
        return 0
    if not result.ok:
        error(result.message or "Move failed")
        return 1

    if result.status_changed:
        success(f"Moved {task_id}: {result.from_status} -> {result.to_status}")
    else:
        success(f"Reordered {task_id} in {result.to_status}")
    detail(f"{len(result.writes)} writes")
    return 0


async def run_add_column(
    engine: BoardEngine,
    name: str,
    icon: str | None = None,
    color: str | None = None,
) -> int:
    """Create a column at the end of the board."""
    fields = {"name": name}
    if icon:
        fields["icon"] = icon
    if color:
        fields["color"] = color
    try:
        draft = ColumnDraft(**fields)
    except ValidationError as e:
        error(f"Invalid column: {e.errors()[0]['msg']}")
        return 1

    result = await engine.create_column(draft)
    if not result.ok:
        error(result.message or "Could not create column")
        return 1
    success(result.message or f"Column '{name}' created")
    return 0


async def run_delete_column(engine: BoardEngine, key: str) -> int:
    """Delete a column by key, moving its tasks to the first column."""
    column = next((c for c in engine.columns if c.key == key), None)
    if column is None:
        error(f"Unknown column: {key}")
        return 1

    result = await engine.delete_column(column.id)
    if not result.ok:
        error(result.message or "Could not delete column")
        return 1
    success(result.message or f"Column '{key}' deleted")
    return 0


async def run_add_task(engine: BoardEngine, title: str, status: str | None = None) -> int:
    """Create a task on a filesystem board."""
    repo = engine.task_store
    if not isinstance(repo, FilesystemRepository):
        error("add-task is only available for the filesystem backend")
        return 1

    keys = [c.key for c in engine.columns]
    status = status or (keys[0] if keys else None)
    if status not in keys:
        error(f"Unknown column: {status}")
        return 1

    try:
        task = await repo.create_task(engine.board_id, title, status=status)
    except StoreError as e:
        error(str(e))
        return 1
    success(f"Task created: {task.id} in {status}")
    return 0

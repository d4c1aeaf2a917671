"""Board event models.

Every event the engine records is one variant of a discriminated union
keyed by ``type``. Each variant carries its own typed payload, so event
consumers can narrow with ``isinstance()`` or match on ``event.type``.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from ..utils import now_utc


class EventLevel(str, Enum):
    """Severity of a board event."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class _BaseEvent(BaseModel):
    board_id: str
    level: EventLevel = EventLevel.INFO
    timestamp: datetime = Field(default_factory=now_utc)


class DragStarted(_BaseEvent):
    type: Literal["drag_started"] = "drag_started"
    task_id: str
    status: str
    position: int


class HoverChanged(_BaseEvent):
    type: Literal["hover_changed"] = "hover_changed"
    task_id: str
    column_key: str | None  # None when the pointer left every drop target


class DragCancelled(_BaseEvent):
    type: Literal["drag_cancelled"] = "drag_cancelled"
    task_id: str


class StatusChanged(_BaseEvent):
    type: Literal["status_changed"] = "status_changed"
    task_id: str
    from_status: str
    to_status: str


class PositionsCommitted(_BaseEvent):
    level: EventLevel = EventLevel.SUCCESS
    type: Literal["positions_committed"] = "positions_committed"
    column_key: str
    task_ids: list[str]  # In their new order; index == position


class CommitFailed(_BaseEvent):
    level: EventLevel = EventLevel.ERROR
    type: Literal["commit_failed"] = "commit_failed"
    task_id: str
    attempted: dict[str, Any]  # The write that failed
    error: str
    writes_completed: int


class ColumnCreated(_BaseEvent):
    level: EventLevel = EventLevel.SUCCESS
    type: Literal["column_created"] = "column_created"
    column_id: str
    key: str


class ColumnDeleted(_BaseEvent):
    level: EventLevel = EventLevel.SUCCESS
    type: Literal["column_deleted"] = "column_deleted"
    column_id: str
    key: str
    fallback_key: str
    tasks_reassigned: int


class BoardReloaded(_BaseEvent):
    type: Literal["board_reloaded"] = "board_reloaded"
    column_count: int
    task_count: int


class OperationFailed(_BaseEvent):
    level: EventLevel = EventLevel.ERROR
    type: Literal["operation_failed"] = "operation_failed"
    operation: str  # e.g. "create_column", "reload"
    error: str


BoardEvent = Annotated[
    DragStarted
    | HoverChanged
    | DragCancelled
    | StatusChanged
    | PositionsCommitted
    | CommitFailed
    | ColumnCreated
    | ColumnDeleted
    | BoardReloaded
    | OperationFailed,
    Field(discriminator="type"),
]

board_event_adapter: TypeAdapter[BoardEvent] = TypeAdapter(BoardEvent)


def parse_event(data: dict) -> BoardEvent:
    """Parse a serialized event back into its variant."""
    return board_event_adapter.validate_python(data)

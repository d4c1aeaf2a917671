"""Data models."""

from .board import Board, order_key
from .column import (
    DEFAULT_COLUMNS,
    MAX_COLUMNS_PER_BOARD,
    Column,
    ColumnChanges,
    ColumnDraft,
)
from .events import (
    BoardEvent,
    BoardReloaded,
    ColumnCreated,
    ColumnDeleted,
    CommitFailed,
    DragCancelled,
    DragStarted,
    EventLevel,
    HoverChanged,
    OperationFailed,
    PositionsCommitted,
    StatusChanged,
    parse_event,
)
from .gesture import (
    CommitResult,
    DropTarget,
    GesturePhase,
    OperationResult,
    Outcome,
    Write,
)
from .task import (
    PRIORITIES,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    STATUS_INBOX,
    Task,
)

__all__ = [
    "DEFAULT_COLUMNS",
    "MAX_COLUMNS_PER_BOARD",
    "PRIORITIES",
    "PRIORITY_HIGH",
    "PRIORITY_LOW",
    "PRIORITY_MEDIUM",
    "STATUS_INBOX",
    "Board",
    "BoardEvent",
    "BoardReloaded",
    "Column",
    "ColumnChanges",
    "ColumnCreated",
    "ColumnDeleted",
    "ColumnDraft",
    "CommitFailed",
    "CommitResult",
    "DragCancelled",
    "DragStarted",
    "DropTarget",
    "EventLevel",
    "GesturePhase",
    "HoverChanged",
    "OperationFailed",
    "OperationResult",
    "Outcome",
    "PositionsCommitted",
    "StatusChanged",
    "Task",
    "Write",
    "order_key",
    "parse_event",
]

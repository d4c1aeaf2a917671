"""Drag gesture and commit result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel


class GesturePhase(str, Enum):
    """Phase of the drag gesture currently handled by the engine."""

    IDLE = "idle"
    DRAGGING = "dragging"  # A task card has been picked up
    HOVER_RESOLVED = "hover_resolved"  # Pointer is over a task or column
    COMMITTING = "committing"  # Released, persistence in progress
    ROLLED_BACK = "rolled_back"  # Commit failed, recovering by reload


class DropTarget(BaseModel):
    """Element under the pointer: another task card or a column drop-zone."""

    kind: Literal["task", "column"]
    id: str  # Task id for "task", column key for "column"

    @classmethod
    def task(cls, task_id: str) -> "DropTarget":
        return cls(kind="task", id=task_id)

    @classmethod
    def column(cls, key: str) -> "DropTarget":
        return cls(kind="column", id=key)


class Outcome(str, Enum):
    """How a gesture or column operation ended."""

    NOOP = "noop"  # Nothing to persist
    COMMITTED = "committed"  # Every write succeeded
    FAILED = "failed"  # A write failed; board reloaded or stale


@dataclass
class Write:
    """A single persistence call issued during a commit sequence."""

    task_id: str
    fields: dict[str, object]


@dataclass
class CommitResult:
    """Result of releasing a drag gesture."""

    outcome: Outcome
    task_id: str | None = None
    from_status: str | None = None
    to_status: str | None = None
    writes: list[Write] = field(default_factory=list)  # Writes that succeeded
    message: str | None = None  # User-facing, non-technical

    @property
    def ok(self) -> bool:
        """Whether the gesture finished without a failed write."""
        return self.outcome != Outcome.FAILED

    @property
    def status_changed(self) -> bool:
        """Whether the gesture moved the task to another column."""
        return self.from_status is not None and self.from_status != self.to_status


@dataclass
class OperationResult:
    """Result of a board-level operation (reload, column create/update/delete)."""

    outcome: Outcome
    message: str | None = None  # User-facing, non-technical
    column_id: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return self.outcome != Outcome.FAILED

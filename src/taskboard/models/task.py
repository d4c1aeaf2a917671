"""Task domain model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils import parse_datetime

# Default status for new tasks and default fallback column
STATUS_INBOX = "inbox"

PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)


class Task(BaseModel):
    """A schedulable work item on a board.

    The ordering engine only reads and writes ``status`` and ``position``.
    Everything else is passed through unchanged, including fields this
    model does not declare.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    board_id: str | None = None
    title: str = ""
    description: str | None = None
    status: str = STATUS_INBOX  # Column key
    position: int = Field(default=0, ge=0)  # Rank within the status group
    priority: str = PRIORITY_MEDIUM
    assigned_to: str | None = None
    assigned_to_email: str | None = None  # Resolved by the store, read-only
    start_date: datetime | None = None
    finish_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("start_date", "finish_date", "created_at", "updated_at", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> datetime | None:
        """Accept ISO strings (with 'Z' suffix) and plain dates."""
        return parse_datetime(v)

    @property
    def display_title(self) -> str:
        """Title for display - uses ID if title not set."""
        return self.title or self.id

    @property
    def passthrough(self) -> dict[str, Any]:
        """Extra fields carried from the store that the model does not declare."""
        return dict(self.model_extra or {})

    def to_frontmatter(self) -> dict:
        """Convert to dict suitable for YAML front matter."""
        data: dict = {}
        if self.board_id:
            data["board_id"] = self.board_id
        if self.title:
            data["title"] = self.title
        data["status"] = self.status
        data["position"] = self.position
        data["priority"] = self.priority
        if self.assigned_to:
            data["assigned_to"] = self.assigned_to
        if self.assigned_to_email:
            data["assigned_to_email"] = self.assigned_to_email
        for name in ("start_date", "finish_date", "created_at", "updated_at"):
            value = getattr(self, name)
            if value:
                data[name] = value.isoformat()
        data.update(self.passthrough)
        return data

    @classmethod
    def from_frontmatter(cls, task_id: str, metadata: dict, body: str) -> "Task":
        """Create Task from parsed front matter.

        The file name is the task id and the markdown body holds the
        description.
        """
        data = dict(metadata)
        data["id"] = task_id
        data["description"] = body or None
        return cls(**data)

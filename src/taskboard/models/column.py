"""Board column models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..utils import parse_datetime

MAX_COLUMNS_PER_BOARD = 10

DEFAULT_COLOR = "#94A3B8"
DEFAULT_ICON = "📋"


def _validate_key(value: str) -> str:
    """Validate a column key is lowercase alphanumeric with underscores."""
    if not value:
        raise ValueError("Column key cannot be empty")
    if not value[0].isalpha():
        raise ValueError("Column key must start with a letter")
    if not all(c.isalnum() or c == "_" for c in value):
        raise ValueError("Column key must be alphanumeric with underscores only")
    if value != value.lower():
        raise ValueError("Column key must be lowercase")
    return value


def _validate_color(v: str) -> str:
    """Validate color is a hex code."""
    if not v.startswith("#"):
        raise ValueError("Color must be a hex code (e.g., #94A3B8)")
    hex_part = v[1:]
    if len(hex_part) not in (3, 6):
        raise ValueError("Hex color must be 3 or 6 characters (e.g., #fff or #ffffff)")
    if not all(c in "0123456789abcdefABCDEF" for c in hex_part):
        raise ValueError("Invalid hex color code")
    return v


class Column(BaseModel):
    """A board-scoped status bucket.

    ``key`` is the value stored in ``Task.status`` and never changes after
    creation. ``position`` is the display order of the column on the board.
    """

    id: str
    board_id: str
    key: str
    name: str = Field(..., min_length=1)
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    position: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate column key format."""
        return _validate_key(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """Validate color is a hex code."""
        return _validate_color(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> datetime | None:
        return parse_datetime(v)


class ColumnDraft(BaseModel):
    """Metadata for a column that has not been created yet.

    If ``key`` is omitted it is derived from ``name``.
    """

    name: str = Field(..., min_length=1, max_length=80)
    key: str | None = None
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str | None) -> str | None:
        """Validate column key format when given."""
        if v is None:
            return v
        return _validate_key(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """Validate color is a hex code."""
        return _validate_color(v)


class ColumnChanges(BaseModel):
    """Editable column metadata. The key is not editable."""

    name: str | None = Field(default=None, min_length=1, max_length=80)
    icon: str | None = None
    color: str | None = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        """Validate color is a hex code when given."""
        if v is None:
            return v
        return _validate_color(v)

    def as_fields(self) -> dict[str, Any]:
        """Only the fields that were actually set."""
        return self.model_dump(exclude_none=True)


DEFAULT_COLUMNS: tuple[tuple[str, str, str], ...] = (
    # (key, name, color)
    ("inbox", "Inbox", "#9CA3AF"),
    ("todo", "To Do", "#3B82F6"),
    ("doing", "Doing", "#F59E0B"),
    ("done", "Done", "#10B981"),
)

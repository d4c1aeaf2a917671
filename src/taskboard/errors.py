"""Exception hierarchy for taskboard."""


class TaskboardError(Exception):
    """Base exception for all taskboard errors."""

    pass


# --- Store errors ---


class StoreError(TaskboardError):
    """A persistence call failed (transport, permission, or constraint)."""

    pass


class StoreAuthError(StoreError):
    """Authentication failed or the session could not be refreshed."""

    pass


class StoreForbiddenError(StoreError):
    """Permission denied by the store's row-level security."""

    pass


class StoreNotFoundError(StoreError):
    """Resource not found."""

    pass


class StoreConflictError(StoreError):
    """The store rejected a write because of a constraint."""

    pass


# --- Column administration ---


class ColumnError(TaskboardError):
    """Base exception for column administration errors."""

    pass


class ColumnLimitError(ColumnError):
    """The board already holds the maximum number of columns."""

    def __init__(self, board_id: str, limit: int) -> None:
        super().__init__(f"Maximum of {limit} columns allowed per board")
        self.board_id = board_id
        self.limit = limit


class DuplicateColumnKeyError(ColumnError):
    """A column with the same key already exists on the board."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"A column with key '{key}' already exists. Please choose a different name."
        )
        self.key = key


class ColumnNotFoundError(ColumnError):
    """The column does not exist on the board."""

    pass


class LastColumnError(ColumnError):
    """The only remaining column cannot be deleted."""

    pass


# --- Gestures ---


class GestureError(TaskboardError):
    """A drag gesture was driven out of order or referenced an unknown task."""

    pass

"""Services."""

from .board_engine import BoardEngine
from .column_service import ColumnDeletion, ColumnService
from .filter_service import Filter, FilterService
from .ordering import DropPlan, insert_before, move_to_end, move_within, plan_drop, renumber

__all__ = [
    "BoardEngine",
    "ColumnDeletion",
    "ColumnService",
    "DropPlan",
    "Filter",
    "FilterService",
    "insert_before",
    "move_to_end",
    "move_within",
    "plan_drop",
    "renumber",
]

"""Repository layer for data access."""

from .filesystem import FilesystemRepository
from .protocol import BoardRepositoryProtocol, ColumnRegistryProtocol, TaskStoreProtocol
from .rest import RestRepository

__all__ = [
    "BoardRepositoryProtocol",
    "ColumnRegistryProtocol",
    "FilesystemRepository",
    "RestRepository",
    "TaskStoreProtocol",
]

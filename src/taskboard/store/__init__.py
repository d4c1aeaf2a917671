"""Remote store access (PostgREST tables and auth sessions)."""

from .client import StoreClient
from .session import Session, SessionManager

__all__ = [
    "Session",
    "SessionManager",
    "StoreClient",
]

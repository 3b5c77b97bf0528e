"""Repository protocol definitions for domain layer."""

from .local_store import LocalStore
from .remote_store import RemoteStore, SyncResult

__all__ = ["LocalStore", "RemoteStore", "SyncResult"]

"""Concrete repository implementations using SQLModel."""

from .local_store import SQLModelLocalStore
from .remote_store import SQLModelRemoteStore

__all__ = ["SQLModelLocalStore", "SQLModelRemoteStore"]

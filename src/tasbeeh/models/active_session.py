"""In-progress tally snapshot kept only in the local store."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from .common import utcnow


class ActiveSession(SQLModel):
    """Uncommitted count/goal parked for one counter."""

    counter_id: str
    count: int = 0
    goal: Optional[int] = None
    timestamp: datetime = Field(default_factory=utcnow)

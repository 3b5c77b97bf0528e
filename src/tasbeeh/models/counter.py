"""Counter (tally target) table."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from .common import new_id, utcnow


class Counter(SQLModel, table=True):
    """A named tally, usually one devotional phrase."""

    __tablename__: ClassVar[str] = "counters"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    name: str = Field(nullable=False, max_length=120)
    color: str = Field(default="green", max_length=32)
    icon: str = Field(default="leaf", max_length=32)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )

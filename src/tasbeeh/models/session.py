"""Completed counting sessions."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from .common import new_id, utcnow


class CounterSession(SQLModel, table=True):
    """Immutable record of one completed or manually logged counting run."""

    __tablename__: ClassVar[str] = "sessions"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    counter_id: str = Field(nullable=False, index=True, max_length=64)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    count: int = Field(nullable=False)
    goal: Optional[int] = Field(default=None)
    completed: bool = Field(default=False, nullable=False)
    date: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )

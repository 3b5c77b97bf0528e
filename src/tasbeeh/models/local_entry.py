"""Key/value rows backing the local store."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

from .common import utcnow


class LocalEntry(SQLModel, table=True):
    """One JSON document stored under a fixed key."""

    __tablename__: ClassVar[str] = "local_entry"

    key: str = Field(primary_key=True, max_length=64)
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

"""Per-day aggregate of session counts."""

from __future__ import annotations

import datetime as dt
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from .common import new_id, utcnow


class DailyStat(SQLModel, table=True):
    """Sum of all session counts recorded on one calendar day."""

    __tablename__: ClassVar[str] = "daily_stats"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_stats_user_date"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    total_count: int = Field(default=0, nullable=False)
    date: dt.date = Field(nullable=False, index=True)
    created_at: dt.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

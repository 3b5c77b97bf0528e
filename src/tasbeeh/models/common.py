"""Identifier and timestamp helpers shared by the models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import uuid4


def new_id() -> str:
    """Return a collision-resistant identifier for locally created rows."""

    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_of(value: datetime | date) -> date:
    """Return the UTC calendar day a timestamp falls on.

    Every daily aggregate is keyed by this value, locally and remotely.
    """

    if isinstance(value, datetime):
        return as_utc(value).date()
    return value


__all__ = ["as_utc", "day_of", "new_id", "utcnow"]

"""Local store backed by a SQLModel key/value table."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import ValidationError
from sqlmodel import SQLModel, select

from ...constants.defaults import (
    ACTIVE_SESSION_KEY,
    COUNTERS_KEY,
    DARK_MODE_KEY,
    SESSIONS_KEY,
    STATS_KEY,
)
from ...models import ActiveSession, Counter, CounterSession, DailyStat, LocalEntry
from ...models.common import utcnow
from ..database import SessionFactory

logger = logging.getLogger("tasbeeh.local_store")

ModelT = TypeVar("ModelT", bound=SQLModel)


class SQLModelLocalStore:
    """JSON documents keyed by name, persisted synchronously."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    # Raw key/value access
    def get_json(self, key: str) -> Any:
        with self.session_factory() as session:
            entry = session.exec(select(LocalEntry).where(LocalEntry.key == key)).first()
            raw = entry.value if entry else None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed local document", extra={"key": key})
            return None

    def set_json(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, ensure_ascii=False)
        with self.session_factory() as session:
            entry = session.exec(select(LocalEntry).where(LocalEntry.key == key)).first()
            if entry:
                entry.value = encoded
                entry.updated_at = utcnow()
            else:
                entry = LocalEntry(key=key, value=encoded)
            session.add(entry)
            session.commit()

    def delete(self, key: str) -> None:
        with self.session_factory() as session:
            entry = session.exec(select(LocalEntry).where(LocalEntry.key == key)).first()
            if entry:
                session.delete(entry)
                session.commit()

    def _load_list(self, key: str, model: Type[ModelT]) -> list[ModelT]:
        data = self.get_json(key)
        if not isinstance(data, list):
            if data is not None:
                logger.warning("Expected a list in local document", extra={"key": key})
            return []
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError:
            logger.warning("Ignoring invalid local document", extra={"key": key}, exc_info=True)
            return []

    def _save_list(self, key: str, rows: list[ModelT]) -> None:
        self.set_json(key, [row.model_dump(mode="json") for row in rows])

    # Counters
    def get_counters(self) -> list[Counter]:
        return self._load_list(COUNTERS_KEY, Counter)

    def save_counters(self, counters: list[Counter]) -> None:
        self._save_list(COUNTERS_KEY, counters)

    # Sessions (most recent first)
    def get_sessions(self) -> list[CounterSession]:
        return self._load_list(SESSIONS_KEY, CounterSession)

    def save_sessions(self, sessions: list[CounterSession]) -> None:
        self._save_list(SESSIONS_KEY, sessions)

    # Daily stats
    def get_stats(self) -> list[DailyStat]:
        return self._load_list(STATS_KEY, DailyStat)

    def save_stats(self, stats: list[DailyStat]) -> None:
        self._save_list(STATS_KEY, stats)

    # Active session slots, one per counter
    def _active_slots(self) -> dict[str, Any]:
        data = self.get_json(ACTIVE_SESSION_KEY)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Expected a mapping in active session document")
            return {}
        return data

    def get_active_session(self, counter_id: str) -> Optional[ActiveSession]:
        entry = self._active_slots().get(counter_id)
        if entry is None:
            return None
        try:
            return ActiveSession.model_validate({**entry, "counter_id": counter_id})
        except (TypeError, ValidationError):
            logger.warning(
                "Ignoring invalid active session entry", extra={"counter_id": counter_id}, exc_info=True
            )
            return None

    def save_active_session(self, counter_id: str, count: int, goal: Optional[int]) -> ActiveSession:
        active = ActiveSession(counter_id=counter_id, count=count, goal=goal)
        slots = self._active_slots()
        slots[counter_id] = active.model_dump(mode="json", exclude={"counter_id"})
        self.set_json(ACTIVE_SESSION_KEY, slots)
        return active

    def clear_active_session(self, counter_id: Optional[str] = None) -> None:
        """Remove one counter's in-progress entry, or every entry when no id is given."""

        if counter_id is None:
            self.delete(ACTIVE_SESSION_KEY)
            return
        slots = self._active_slots()
        if slots.pop(counter_id, None) is None:
            return
        if slots:
            self.set_json(ACTIVE_SESSION_KEY, slots)
        else:
            self.delete(ACTIVE_SESSION_KEY)

    # Presentation preferences
    def get_dark_mode(self) -> bool:
        return self.get_json(DARK_MODE_KEY) is True

    def save_dark_mode(self, enabled: bool) -> None:
        self.set_json(DARK_MODE_KEY, bool(enabled))


__all__ = ["SQLModelLocalStore"]

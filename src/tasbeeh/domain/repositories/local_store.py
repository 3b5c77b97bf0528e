"""Local store protocol."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ...models import ActiveSession, Counter, CounterSession, DailyStat


class LocalStore(Protocol):
    """Synchronous key/value persistence for one device."""

    def get_json(self, key: str) -> Any:
        """Return the decoded document stored under ``key`` or ``None``."""
        ...

    def set_json(self, key: str, value: Any) -> None:
        """Encode and store ``value`` under ``key``."""
        ...

    def delete(self, key: str) -> None:
        ...

    def get_counters(self) -> list[Counter]:
        ...

    def save_counters(self, counters: list[Counter]) -> None:
        ...

    def get_sessions(self) -> list[CounterSession]:
        ...

    def save_sessions(self, sessions: list[CounterSession]) -> None:
        ...

    def get_stats(self) -> list[DailyStat]:
        ...

    def save_stats(self, stats: list[DailyStat]) -> None:
        ...

    def get_active_session(self, counter_id: str) -> Optional[ActiveSession]:
        """Return the persisted in-progress state if it belongs to ``counter_id``."""
        ...

    def save_active_session(self, counter_id: str, count: int, goal: Optional[int]) -> ActiveSession:
        ...

    def clear_active_session(self, counter_id: Optional[str] = None) -> None:
        """Drop one counter's in-progress entry, or all of them."""
        ...

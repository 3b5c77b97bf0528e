"""Remote store protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Protocol

from ...models import Counter, CounterSession, DailyStat
from ..identity import Identity


@dataclass
class SyncResult:
    """Everything a bulk sync read returns for one identity."""

    counters: list[Counter] = field(default_factory=list)
    sessions: list[CounterSession] = field(default_factory=list)
    stats: list[DailyStat] = field(default_factory=list)


class RemoteStore(Protocol):
    """Best-effort CRUD facade over the hosted relational backend.

    Write methods never raise; failures come back as ``None``/``False``.
    """

    def sync(self, identity: Identity) -> SyncResult:
        ...

    def create_counter(self, counter: Counter, identity: Identity) -> Optional[Counter]:
        ...

    def update_counter(self, counter_id: str, updates: dict[str, Any], identity: Identity) -> bool:
        ...

    def delete_counter(self, counter_id: str, identity: Identity) -> bool:
        ...

    def create_session(self, session_row: CounterSession, identity: Identity) -> Optional[CounterSession]:
        ...

    def delete_session(self, session_id: str, identity: Identity) -> bool:
        ...

    def upsert_daily_stat(self, stat: DailyStat, identity: Identity) -> bool:
        """Add ``stat.total_count`` to the row for ``stat.date`` or insert it."""
        ...

    def adjust_daily_stat(self, day: date, delta: int, identity: Identity) -> bool:
        """Add ``delta`` to the row for ``day``, deleting it when the total drops to zero."""
        ...

"""SQLModel implementation of the remote store adapter."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ...constants.defaults import SESSION_SYNC_LIMIT, STATS_SYNC_LIMIT
from ...domain.identity import Identity
from ...domain.repositories.remote_store import SyncResult
from ...models import Counter, CounterSession, DailyStat
from ...models.common import as_utc, day_of
from ..database import SessionFactory

logger = logging.getLogger("tasbeeh.remote_store")

T = TypeVar("T")

COUNTER_UPDATABLE_FIELDS = frozenset({"name", "color", "icon"})


class RemoteUnavailableError(RuntimeError):
    """Raised by ``sync`` when none of the reads reached the backend."""


def _normalize_counter(row: Counter) -> Counter:
    row.created_at = as_utc(row.created_at)
    return row


def _normalize_session(row: CounterSession) -> CounterSession:
    row.date = as_utc(row.date)
    row.created_at = as_utc(row.created_at)
    return row


def _normalize_stat(row: DailyStat) -> DailyStat:
    row.created_at = as_utc(row.created_at)
    return row


class SQLModelRemoteStore:
    """CRUD + bulk sync against the hosted ``counters``/``sessions``/``daily_stats`` tables."""

    def __init__(self, session_factory: SessionFactory, *, sync_workers: int = 3):
        self.session_factory = session_factory
        self.sync_workers = sync_workers

    # Bulk read
    def sync(self, identity: Identity) -> SyncResult:
        """Run the three reads concurrently; a failed read yields an empty list."""

        readers: dict[str, Callable[[Identity], list[Any]]] = {
            "counters": self.fetch_counters,
            "sessions": self.fetch_sessions,
            "stats": self.fetch_stats,
        }
        results: dict[str, list[Any]] = {}
        failures: list[str] = []
        with ThreadPoolExecutor(max_workers=self.sync_workers, thread_name_prefix="TasbeehSync") as pool:
            futures = {name: pool.submit(reader, identity) for name, reader in readers.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception:
                    logger.error(f"Error fetching {name}", exc_info=True)
                    results[name] = []
                    failures.append(name)

        if len(failures) == len(readers):
            raise RemoteUnavailableError("Remote store unreachable: every sync read failed")

        return SyncResult(
            counters=results["counters"],
            sessions=results["sessions"],
            stats=results["stats"],
        )

    def fetch_counters(self, identity: Identity) -> list[Counter]:
        with self.session_factory() as session:
            statement = (
                select(Counter)
                .where(Counter.user_id == identity.user_id)
                .order_by(Counter.created_at)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
        return [_normalize_counter(row) for row in rows]

    def fetch_sessions(self, identity: Identity) -> list[CounterSession]:
        with self.session_factory() as session:
            statement = (
                select(CounterSession)
                .where(CounterSession.user_id == identity.user_id)
                .order_by(CounterSession.created_at.desc())  # type: ignore[attr-defined]
                .limit(SESSION_SYNC_LIMIT)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
        return [_normalize_session(row) for row in rows]

    def fetch_stats(self, identity: Identity) -> list[DailyStat]:
        with self.session_factory() as session:
            statement = (
                select(DailyStat)
                .where(DailyStat.user_id == identity.user_id)
                .order_by(DailyStat.date.desc())  # type: ignore[attr-defined]
                .limit(STATS_SYNC_LIMIT)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
        return [_normalize_stat(row) for row in rows]

    # Counters
    def create_counter(self, counter: Counter, identity: Identity) -> Optional[Counter]:
        """Insert a counter; the backend assigns an id when none is supplied."""

        row = Counter.model_validate(counter.model_dump(exclude_none=True))
        row.user_id = identity.user_id
        try:
            with self.session_factory() as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                session.expunge(row)
        except SQLAlchemyError:
            logger.error("Error saving counter", extra={"counter_id": counter.id}, exc_info=True)
            return None
        return _normalize_counter(row)

    def update_counter(self, counter_id: str, updates: dict[str, Any], identity: Identity) -> bool:
        changes = {k: v for k, v in updates.items() if k in COUNTER_UPDATABLE_FIELDS}
        try:
            with self.session_factory() as session:
                row = self._owned_counter(session, counter_id, identity)
                if row is None:
                    logger.warning("Counter not found for update", extra={"counter_id": counter_id})
                    return False
                for field_name, value in changes.items():
                    setattr(row, field_name, value)
                session.add(row)
                session.commit()
        except SQLAlchemyError:
            logger.error("Error updating counter", extra={"counter_id": counter_id}, exc_info=True)
            return False
        return True

    def delete_counter(self, counter_id: str, identity: Identity) -> bool:
        try:
            with self.session_factory() as session:
                row = self._owned_counter(session, counter_id, identity)
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError:
            logger.error("Error deleting counter", extra={"counter_id": counter_id}, exc_info=True)
            return False
        return True

    def _owned_counter(self, session: Session, counter_id: str, identity: Identity) -> Optional[Counter]:
        return session.exec(
            select(Counter).where(Counter.id == counter_id, Counter.user_id == identity.user_id)
        ).first()

    # Sessions
    def create_session(self, session_row: CounterSession, identity: Identity) -> Optional[CounterSession]:
        row = CounterSession.model_validate(session_row.model_dump(exclude_none=True))
        row.user_id = identity.user_id
        try:
            with self.session_factory() as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                session.expunge(row)
        except SQLAlchemyError:
            logger.error("Error saving session", extra={"session_id": session_row.id}, exc_info=True)
            return None
        return _normalize_session(row)

    def delete_session(self, session_id: str, identity: Identity) -> bool:
        try:
            with self.session_factory() as session:
                row = session.exec(
                    select(CounterSession).where(
                        CounterSession.id == session_id,
                        CounterSession.user_id == identity.user_id,
                    )
                ).first()
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError:
            logger.error("Error deleting session", extra={"session_id": session_id}, exc_info=True)
            return False
        return True

    # Daily stats
    def _stat_for_day(self, session: Session, day: date, identity: Identity) -> Optional[DailyStat]:
        """Find the row with ``day <= date < day + 1`` for this user."""
        return session.exec(
            select(DailyStat)
            .where(DailyStat.user_id == identity.user_id)
            .where(DailyStat.date >= day)
            .where(DailyStat.date < day + timedelta(days=1))
        ).first()

    def upsert_daily_stat(self, stat: DailyStat, identity: Identity) -> bool:
        """Additive upsert: existing totals grow by ``stat.total_count``."""

        day = day_of(stat.date)
        try:
            with self.session_factory() as session:
                existing = self._stat_for_day(session, day, identity)
                if existing is not None:
                    existing.total_count += stat.total_count
                    session.add(existing)
                else:
                    session.add(
                        DailyStat(
                            user_id=identity.user_id,
                            total_count=stat.total_count,
                            date=day,
                            created_at=stat.created_at,
                        )
                    )
                session.commit()
        except SQLAlchemyError:
            logger.error("Error upserting daily stat", extra={"day": day.isoformat()}, exc_info=True)
            return False
        return True

    def adjust_daily_stat(self, day: date, delta: int, identity: Identity) -> bool:
        day = day_of(day)
        try:
            with self.session_factory() as session:
                existing = self._stat_for_day(session, day, identity)
                if existing is None:
                    return True
                new_total = existing.total_count + delta
                if new_total <= 0:
                    session.delete(existing)
                else:
                    existing.total_count = new_total
                    session.add(existing)
                session.commit()
        except SQLAlchemyError:
            logger.error(
                "Error adjusting daily stat",
                extra={"day": day.isoformat(), "delta": delta},
                exc_info=True,
            )
            return False
        return True


__all__ = ["RemoteUnavailableError", "SQLModelRemoteStore"]

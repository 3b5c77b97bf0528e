"""Session controller: the single owner of in-progress tally state.

Every operation writes the local store synchronously before returning. When an
authenticated identity and a remote store are present, the matching remote
write is handed to the dispatcher as a fire-and-forget job keyed by the entity
it touches, so writes to one entity reach the backend in order.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from ..constants.defaults import DEFAULT_COUNTERS
from ..domain.identity import Identity
from ..domain.repositories import LocalStore, RemoteStore, SyncResult
from ..logging_config import get_logger
from ..models import Counter, CounterSession, DailyStat
from ..models.common import as_utc, day_of, new_id, utcnow
from .jobs import RemoteDispatcher
from .stats import StatsSummary, apply_delta, summarize

logger = get_logger("session_controller")

COUNTER_FIELDS = ("name", "color", "icon")


class InvariantViolation(ValueError):
    """An intent that would break a data invariant; nothing was changed."""


class LastCounterError(InvariantViolation):
    """Deleting the only remaining counter."""


class EmptySessionError(InvariantViolation):
    """Recording a session without any counts."""


class SessionController:
    """Owns ``(active_counter, current_count, current_goal)`` for one user session."""

    def __init__(
        self,
        local: LocalStore,
        remote: Optional[RemoteStore],
        dispatcher: RemoteDispatcher,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.local = local
        self.remote = remote
        self.dispatcher = dispatcher
        self._clock = clock

        self.identity = Identity.guest()
        self.counters: list[Counter] = []
        self.sessions: list[CounterSession] = []
        self.stats: list[DailyStat] = []
        self.active_counter: Optional[Counter] = None
        self.current_count = 0
        self.current_goal: Optional[int] = None
        self.syncing = False

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None and self.identity.is_authenticated

    def _now(self) -> datetime:
        return as_utc(self._clock())

    @property
    def _owner_id(self) -> Optional[str]:
        return self.identity.user_id if self.identity.is_authenticated else None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------
    def initialize(self, identity: Identity, *, active_counter_id: Optional[str] = None) -> bool:
        """Load state for ``identity``; returns False while the identity is still pending.

        ``active_counter_id`` selects the counter to make active when it exists;
        otherwise the first counter is used.
        """

        if identity.loading:
            logger.debug("Identity still loading; deferring initialization")
            return False

        self.identity = identity
        self.syncing = True
        try:
            if self.remote_enabled:
                try:
                    result = self.remote.sync(identity)  # type: ignore[union-attr]
                except Exception:
                    logger.error("Error syncing from remote store; using local data", exc_info=True)
                    self._load_from_local()
                else:
                    self._adopt_remote(result)
            else:
                self._load_from_local()

            self._activate_initial(active_counter_id)
        finally:
            self.syncing = False

        logger.info(
            "Session controller initialized",
            extra={
                "authenticated": identity.is_authenticated,
                "counters": len(self.counters),
                "sessions": len(self.sessions),
            },
        )
        return True

    def _adopt_remote(self, result: SyncResult) -> None:
        if result.counters:
            self.counters = list(result.counters)
            self.local.save_counters(self.counters)
        else:
            self.counters = self._seed_default_counters()
            for counter in self.counters:
                self.dispatcher.enqueue(
                    "create_counter",
                    self.remote.create_counter,  # type: ignore[union-attr]
                    key=f"counter:{counter.id}",
                    counter=counter,
                    identity=self.identity,
                )

        self.sessions = list(result.sessions)
        self.local.save_sessions(self.sessions)

        self.stats = list(result.stats)
        self.local.save_stats(self.stats)

    def _load_from_local(self) -> None:
        self.counters = self.local.get_counters() or self._seed_default_counters()
        self.sessions = self.local.get_sessions()
        self.stats = self.local.get_stats()

    def _seed_default_counters(self) -> list[Counter]:
        now = self._now()
        counters = [
            Counter(
                user_id=self._owner_id,
                name=default["name"],
                color=default["color"],
                icon=default["icon"],
                # Distinct timestamps keep creation order stable remotely.
                created_at=now + timedelta(microseconds=index),
            )
            for index, default in enumerate(DEFAULT_COUNTERS)
        ]
        self.local.save_counters(counters)
        logger.info("Seeded default counters", extra={"count": len(counters)})
        return counters

    def _activate_initial(self, active_counter_id: Optional[str]) -> None:
        chosen = self.get_counter(active_counter_id) if active_counter_id else None
        self.active_counter = chosen or (self.counters[0] if self.counters else None)
        self._restore_active_session()

    def _restore_active_session(self) -> None:
        snapshot = (
            self.local.get_active_session(self.active_counter.id) if self.active_counter else None
        )
        if snapshot is not None:
            self.current_count = snapshot.count
            self.current_goal = snapshot.goal
        else:
            self.current_count = 0
            self.current_goal = None

    # ------------------------------------------------------------------
    # In-progress tally
    # ------------------------------------------------------------------
    def switch_active_counter(self, counter: Counter) -> None:
        """Park progress on the current counter and restore the new one's."""

        if self.active_counter is not None:
            self.local.save_active_session(
                self.active_counter.id, self.current_count, self.current_goal
            )

        self.active_counter = counter
        self._restore_active_session()

    def increment(self) -> int:
        self.current_count += 1
        if self.active_counter is not None:
            self.local.save_active_session(
                self.active_counter.id, self.current_count, self.current_goal
            )
        return self.current_count

    def set_goal(self, goal: Optional[int]) -> None:
        if goal is not None and goal <= 0:
            raise InvariantViolation("Goal must be a positive number")

        self.current_goal = goal
        if self.active_counter is not None:
            self.local.save_active_session(
                self.active_counter.id, self.current_count, self.current_goal
            )

    def reset(self) -> None:
        self.current_count = 0
        self.current_goal = None
        if self.active_counter is not None:
            self.local.clear_active_session(self.active_counter.id)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def complete_session(self) -> Optional[CounterSession]:
        """Commit the in-progress count as a session; None without an active counter."""

        if self.active_counter is None:
            return None
        if self.current_count <= 0:
            raise EmptySessionError("Cannot complete a session with no counts")

        now = self._now()
        goal = self.current_goal
        session = CounterSession(
            counter_id=self.active_counter.id,
            user_id=self._owner_id,
            count=self.current_count,
            goal=goal,
            completed=goal is not None and self.current_count >= goal,
            date=now,
            created_at=now,
        )
        self._record_session(session)
        self.reset()

        logger.info(
            "Session completed",
            extra={"counter_id": session.counter_id, "count": session.count, "completed": session.completed},
        )
        return session

    def save_session_manually(self, session_data: Mapping[str, Any]) -> CounterSession:
        """Record a session supplied by the caller (any day, count, goal and flag).

        ``date`` defaults to now and is stored in UTC. A naive value is taken to
        be UTC wall time and comes back with UTC attached; an aware value is
        converted and compares equal to the input.
        """

        now = self._now()
        payload = dict(session_data)
        payload.setdefault("date", now)
        payload.update(id=new_id(), created_at=now, user_id=self._owner_id)

        session = CounterSession.model_validate(payload)
        if session.count <= 0:
            raise EmptySessionError("A session needs a positive count")
        session.date = as_utc(session.date)

        self._record_session(session)
        return session

    def _record_session(self, session: CounterSession) -> None:
        day = day_of(session.date)
        now = self._now()

        self.sessions = [session, *self.sessions]
        self.local.save_sessions(self.sessions)

        if self.remote_enabled:
            self.dispatcher.enqueue(
                "create_session",
                self.remote.create_session,  # type: ignore[union-attr]
                key=f"session:{session.id}",
                session_row=session,
                identity=self.identity,
            )

        self.stats = apply_delta(
            self.stats, day, session.count, user_id=self._owner_id, created_at=now
        )
        self.local.save_stats(self.stats)

        if self.remote_enabled:
            self.dispatcher.enqueue(
                "upsert_daily_stat",
                self.remote.upsert_daily_stat,  # type: ignore[union-attr]
                key=f"daily_stats:{day.isoformat()}",
                stat=DailyStat(
                    user_id=self._owner_id, total_count=session.count, date=day, created_at=now
                ),
                identity=self.identity,
            )

    def delete_session(self, session_id: str) -> bool:
        """Remove a session and subtract its count from its own day."""

        target = next((s for s in self.sessions if s.id == session_id), None)
        if target is None:
            return False
        day = day_of(target.date)

        self.sessions = [s for s in self.sessions if s.id != session_id]
        self.local.save_sessions(self.sessions)

        if self.remote_enabled:
            self.dispatcher.enqueue(
                "delete_session",
                self.remote.delete_session,  # type: ignore[union-attr]
                key=f"session:{session_id}",
                session_id=session_id,
                identity=self.identity,
            )

        self.stats = apply_delta(self.stats, day, -target.count)
        self.local.save_stats(self.stats)

        if self.remote_enabled:
            self.dispatcher.enqueue(
                "adjust_daily_stat",
                self.remote.adjust_daily_stat,  # type: ignore[union-attr]
                key=f"daily_stats:{day.isoformat()}",
                day=day,
                delta=-target.count,
                identity=self.identity,
            )

        logger.info("Session deleted", extra={"session_id": session_id, "count": target.count})
        return True

    def summary(self) -> StatsSummary:
        """Totals, today, active days, daily average and the last seven days."""

        return summarize(self.sessions, self._now())

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------
    def get_counter(self, counter_id: Optional[str]) -> Optional[Counter]:
        return next((c for c in self.counters if c.id == counter_id), None)

    def find_counter(self, name: str) -> Optional[Counter]:
        return next((c for c in self.counters if c.name == name), None)

    def add_counter(self, name: str, color: str = "green", icon: str = "leaf") -> Counter:
        """Create remotely first; fall back to a locally generated identity."""

        name = name.strip()
        if not name:
            raise InvariantViolation("Counter name is required")

        saved: Optional[Counter] = None
        if self.remote_enabled:
            saved = self.remote.create_counter(  # type: ignore[union-attr]
                Counter(name=name, color=color, icon=icon, created_at=self._now()),
                self.identity,
            )

        if saved is None:
            saved = Counter(
                id=new_id(),
                user_id=self._owner_id,
                name=name,
                color=color,
                icon=icon,
                created_at=self._now(),
            )

        self.counters = [*self.counters, saved]
        self.local.save_counters(self.counters)
        return saved

    def update_counter(self, counter_id: str, updates: Mapping[str, Any]) -> Optional[Counter]:
        existing = self.get_counter(counter_id)
        if existing is None:
            return None
        changes = {k: v for k, v in updates.items() if k in COUNTER_FIELDS}
        if "name" in changes and not str(changes["name"]).strip():
            raise InvariantViolation("Counter name is required")

        if self.remote_enabled:
            self.dispatcher.enqueue(
                "update_counter",
                self.remote.update_counter,  # type: ignore[union-attr]
                key=f"counter:{counter_id}",
                counter_id=counter_id,
                updates=changes,
                identity=self.identity,
            )

        updated = Counter.model_validate({**existing.model_dump(), **changes})
        self.counters = [updated if c.id == counter_id else c for c in self.counters]
        self.local.save_counters(self.counters)

        if self.active_counter is not None and self.active_counter.id == counter_id:
            self.active_counter = updated
        return updated

    def delete_counter(self, counter_id: str) -> bool:
        if self.get_counter(counter_id) is None:
            return False
        if len(self.counters) <= 1:
            raise LastCounterError("At least one counter must remain")

        if self.remote_enabled:
            self.dispatcher.enqueue(
                "delete_counter",
                self.remote.delete_counter,  # type: ignore[union-attr]
                key=f"counter:{counter_id}",
                counter_id=counter_id,
                identity=self.identity,
            )

        self.counters = [c for c in self.counters if c.id != counter_id]
        self.local.save_counters(self.counters)

        self.local.clear_active_session(counter_id)

        if self.active_counter is not None and self.active_counter.id == counter_id:
            # Nothing to park for a counter that no longer exists.
            self.active_counter = None
            self.switch_active_counter(self.counters[0])
        return True


__all__ = [
    "EmptySessionError",
    "InvariantViolation",
    "LastCounterError",
    "SessionController",
]

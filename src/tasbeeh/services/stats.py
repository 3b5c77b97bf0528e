"""Daily statistics folding shared by the local and remote paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ..models.common import day_of
from ..models.daily_stats import DailyStat
from ..models.session import CounterSession

SUMMARY_WINDOW_DAYS = 7


@dataclass(frozen=True)
class StatsSummary:
    """Headline figures shown on the statistics screen."""

    total: int
    today: int
    active_days: int
    daily_average: int
    recent_days: list[tuple[date, int]] = field(default_factory=list)


def find_stat_index(stats: list[DailyStat], day: date) -> int:
    """Return the index of the entry for ``day`` or -1."""

    for index, stat in enumerate(stats):
        if day_of(stat.date) == day:
            return index
    return -1


def apply_delta(
    stats: Iterable[DailyStat],
    day: date | datetime,
    delta: int,
    *,
    user_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> list[DailyStat]:
    """Fold a signed count delta into the per-day totals.

    Returns a new list; the input is left untouched. An entry whose total would
    fall to zero or below is dropped, and a negative delta for a day with no
    entry is ignored. ``created_at`` stamps a newly appended entry.
    """

    target = day_of(day)
    updated = list(stats)
    index = find_stat_index(updated, target)

    if index >= 0:
        current = updated[index]
        new_total = current.total_count + delta
        if new_total <= 0:
            del updated[index]
        else:
            updated[index] = DailyStat(
                id=current.id,
                user_id=current.user_id,
                total_count=new_total,
                date=current.date,
                created_at=current.created_at,
            )
    elif delta > 0:
        entry = DailyStat(user_id=user_id, total_count=delta, date=target)
        if created_at is not None:
            entry.created_at = created_at
        updated.append(entry)

    return updated


def total_for_day(stats: Iterable[DailyStat], day: date | datetime) -> int:
    target = day_of(day)
    return sum(stat.total_count for stat in stats if day_of(stat.date) == target)


def summarize(sessions: Iterable[CounterSession], today: date | datetime) -> StatsSummary:
    """Compute totals from the session history itself.

    The daily average is rounded half up over the days that have at least one
    session. ``recent_days`` lists the last seven days ending at ``today``,
    oldest first, including days without sessions.
    """

    today = day_of(today)
    per_day: list[DailyStat] = []
    total = 0
    for session in sessions:
        per_day = apply_delta(per_day, session.date, session.count)
        total += session.count

    active_days = len(per_day)
    average = (2 * total + active_days) // (2 * active_days) if active_days else 0
    recent = [
        (day, total_for_day(per_day, day))
        for day in (today - timedelta(days=offset) for offset in range(SUMMARY_WINDOW_DAYS - 1, -1, -1))
    ]

    return StatsSummary(
        total=total,
        today=total_for_day(per_day, today),
        active_days=active_days,
        daily_average=average,
        recent_days=recent,
    )


__all__ = [
    "StatsSummary",
    "apply_delta",
    "find_stat_index",
    "summarize",
    "total_for_day",
]

"""SQLModel table exports."""

from .active_session import ActiveSession
from .counter import Counter
from .daily_stats import DailyStat
from .local_entry import LocalEntry
from .session import CounterSession

LOCAL_TABLES = [LocalEntry.__table__]
REMOTE_TABLES = [Counter.__table__, CounterSession.__table__, DailyStat.__table__]

__all__ = [
    "ActiveSession",
    "Counter",
    "CounterSession",
    "DailyStat",
    "LocalEntry",
    "LOCAL_TABLES",
    "REMOTE_TABLES",
]

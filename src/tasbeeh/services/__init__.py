"""Service layer: statistics folding, remote dispatch and the session controller."""

from .jobs import Job, RemoteDispatcher
from .session_controller import (
    EmptySessionError,
    InvariantViolation,
    LastCounterError,
    SessionController,
)
from .stats import StatsSummary, apply_delta, summarize

__all__ = [
    "EmptySessionError",
    "InvariantViolation",
    "Job",
    "LastCounterError",
    "RemoteDispatcher",
    "SessionController",
    "StatsSummary",
    "apply_delta",
    "summarize",
]

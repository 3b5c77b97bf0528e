"""Pytest configuration and shared fixtures for Tasbeeh tests.

Every test gets its own pair of throwaway SQLite databases: one standing in for
the device-local key/value store and one for the hosted remote backend.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from tasbeeh.config import TestConfig
from tasbeeh.domain.identity import Identity
from tasbeeh.infra.database import (
    create_db_engine,
    create_session_factory,
    init_local_database,
    init_remote_database,
)
from tasbeeh.infra.repositories import SQLModelLocalStore, SQLModelRemoteStore
from tasbeeh.logging_config import ROOT_LOGGER_NAME
from tasbeeh.services.jobs import RemoteDispatcher
from tasbeeh.services.session_controller import SessionController

FIXED_NOW = datetime(2026, 10, 17, 10, 30, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestConfig:
    """Test configuration rooted in a temporary data directory."""

    monkeypatch.setenv("TASBEEH_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("TASBEEH_LOCAL_DATABASE_URL", raising=False)
    monkeypatch.delenv("TASBEEH_REMOTE_DATABASE_URL", raising=False)
    return TestConfig()


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers installed by setup_logging so tests do not leak files or streams."""

    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def local_engine(tmp_path: Path, config: TestConfig):
    """Create an isolated local key/value database for each test."""

    engine = create_db_engine(f"sqlite:///{tmp_path / 'local.db'}", config)
    init_local_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def remote_engine(tmp_path: Path, config: TestConfig):
    """Create an isolated database standing in for the remote backend."""

    engine = create_db_engine(f"sqlite:///{tmp_path / 'remote.db'}", config)
    init_remote_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def broken_remote_engine(tmp_path: Path, config: TestConfig):
    """A reachable database without the remote tables: every query fails."""

    engine = create_db_engine(f"sqlite:///{tmp_path / 'broken.db'}", config)
    yield engine
    engine.dispose()


@pytest.fixture
def local_store(local_engine) -> SQLModelLocalStore:
    return SQLModelLocalStore(create_session_factory(local_engine))


@pytest.fixture
def remote_store(remote_engine) -> SQLModelRemoteStore:
    return SQLModelRemoteStore(create_session_factory(remote_engine))


@pytest.fixture
def broken_remote_store(broken_remote_engine) -> SQLModelRemoteStore:
    return SQLModelRemoteStore(create_session_factory(broken_remote_engine))


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispatcher() -> RemoteDispatcher:
    """Dispatcher running jobs inline so remote effects are visible immediately."""

    return RemoteDispatcher(run_async=False)


@pytest.fixture
def guest() -> Identity:
    return Identity.guest()


@pytest.fixture
def user() -> Identity:
    return Identity.signed_in("user-1")


@pytest.fixture
def make_controller(local_store, dispatcher, clock):
    """Factory for controllers sharing the test's local store and clock."""

    def _make(remote=None) -> SessionController:
        return SessionController(local_store, remote, dispatcher, clock=clock)

    return _make


@pytest.fixture
def controller(make_controller, guest) -> SessionController:
    """Guest controller, already initialized from an empty local store."""

    ctl = make_controller()
    ctl.initialize(guest)
    return ctl


@pytest.fixture
def remote_controller(make_controller, remote_store, user) -> SessionController:
    """Authenticated controller mirrored to the remote test database."""

    ctl = make_controller(remote_store)
    ctl.initialize(user)
    return ctl


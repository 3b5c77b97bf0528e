"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < 1:
        raise ValueError(f"{name} must be at least 1, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Tasbeeh"
    DB_FILENAME = "tasbeeh.db"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("TASBEEH_DEV_MODE", default=True)
        self.LOCAL_DATABASE_URL = os.getenv(
            "TASBEEH_LOCAL_DATABASE_URL", self._build_sqlite_url()
        )
        self.REMOTE_DATABASE_URL: Optional[str] = os.getenv("TASBEEH_REMOTE_DATABASE_URL") or None
        self.ASYNC_REMOTE = _env_bool("TASBEEH_ASYNC_REMOTE", default=True)
        self.SYNC_WORKERS = _env_int("TASBEEH_SYNC_WORKERS", default=3)

    @property
    def remote_enabled(self) -> bool:
        return self.REMOTE_DATABASE_URL is not None

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the local SQLite file and logs live."""

        data_root = os.getenv("TASBEEH_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations: fall back to a per-user directory.
            fallback_path = Path.home() / ".local" / "share" / self.APP_NAME.lower()
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self, url: str) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if url.startswith("sqlite"):
            # Remote writes run on dispatcher threads.
            engine_options["connect_args"] = {"check_same_thread": False}
        else:
            engine_options["pool_pre_ping"] = True
        return engine_options


class TestConfig(BaseConfig):
    """Configuration for tests: synchronous remote writes."""

    __test__ = False
    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.ASYNC_REMOTE = False

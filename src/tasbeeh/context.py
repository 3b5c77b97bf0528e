"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import BaseConfig
from .constants.defaults import SELECTED_COUNTER_KEY
from .domain.identity import Identity
from .infra.database import (
    create_db_engine,
    create_session_factory,
    init_local_database,
    init_remote_database,
)
from .infra.repositories import SQLModelLocalStore, SQLModelRemoteStore
from .logging_config import get_logger
from .models import Counter
from .models.common import utcnow
from .services.jobs import RemoteDispatcher
from .services.session_controller import SessionController

logger = get_logger("context")


@dataclass
class AppContext:
    """Centralized application context with stores, dispatcher and controller."""

    config: BaseConfig
    identity: Identity

    local_engine: Engine
    local_store: SQLModelLocalStore
    dispatcher: RemoteDispatcher
    controller: SessionController

    remote_engine: Optional[Engine] = None
    remote_store: Optional[SQLModelRemoteStore] = None

    def select_counter(self, counter: Counter) -> None:
        """Switch the active counter and remember the choice for the next start."""

        self.controller.switch_active_counter(counter)
        self.local_store.set_json(SELECTED_COUNTER_KEY, counter.id)

    def shutdown(self, timeout: Optional[float] = 10.0) -> bool:
        """Drain pending remote writes, then release database connections."""

        drained = self.dispatcher.wait_idle(timeout)
        if not drained:
            logger.warning("Shutting down with remote writes still pending")
        self.local_engine.dispose()
        if self.remote_engine is not None:
            self.remote_engine.dispose()
        return drained


def create_app_context(
    config: Optional[BaseConfig] = None,
    identity: Optional[Identity] = None,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> AppContext:
    """Create the stores and controller and initialize them for ``identity``."""

    if config is None:
        config = BaseConfig()
    if identity is None:
        identity = Identity.guest()

    local_engine = create_db_engine(config.LOCAL_DATABASE_URL, config)
    init_local_database(local_engine)
    local_store = SQLModelLocalStore(create_session_factory(local_engine))

    remote_engine: Optional[Engine] = None
    remote_store: Optional[SQLModelRemoteStore] = None
    if config.REMOTE_DATABASE_URL:
        remote_engine = create_db_engine(config.REMOTE_DATABASE_URL, config)
        try:
            init_remote_database(remote_engine)
        except SQLAlchemyError:
            # Unreachable right now; sync will fail over to local data.
            logger.error("Could not prepare remote schema", exc_info=True)
        remote_store = SQLModelRemoteStore(
            create_session_factory(remote_engine), sync_workers=config.SYNC_WORKERS
        )

    dispatcher = RemoteDispatcher(run_async=config.ASYNC_REMOTE)
    controller = SessionController(local_store, remote_store, dispatcher, clock=clock)

    selected = local_store.get_json(SELECTED_COUNTER_KEY)
    controller.initialize(identity, active_counter_id=selected if isinstance(selected, str) else None)

    return AppContext(
        config=config,
        identity=identity,
        local_engine=local_engine,
        local_store=local_store,
        dispatcher=dispatcher,
        controller=controller,
        remote_engine=remote_engine,
        remote_store=remote_store,
    )

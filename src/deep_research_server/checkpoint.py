from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import InMemorySaver
from langgraph.store.base import BaseStore
from langgraph.store.memory import InMemoryStore

try:  # Postgres persistence is optional; requires langgraph-checkpoint-postgres.
    from langgraph.checkpoint.postgres.aio import AsyncPostgresSaver  # type: ignore
    from langgraph.store.postgres.aio import AsyncPostgresStore  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    AsyncPostgresSaver = None  # type: ignore[assignment]
    AsyncPostgresStore = None  # type: ignore[assignment]

from .config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Persistence:
    """Checkpointer for per-thread history plus the store behind durable files."""

    checkpointer: BaseCheckpointSaver
    store: BaseStore


def create_memory_persistence() -> Persistence:
    return Persistence(checkpointer=InMemorySaver(), store=InMemoryStore())


@asynccontextmanager
async def open_persistence(settings: Settings) -> AsyncIterator[Persistence]:
    """Open the checkpointer and store selected by configuration.

    Postgres connections stay open for the lifetime of the context.
    """

    backend = settings.checkpointer_backend
    if backend == "memory":
        logger.info("Using in-memory checkpointer and store; state is lost on restart")
        yield create_memory_persistence()
        return

    if AsyncPostgresSaver is None or AsyncPostgresStore is None:
        raise RuntimeError(
            "Postgres persistence requested but 'langgraph.checkpoint.postgres' is unavailable. "
            "Install the Postgres extra, e.g. `pip install \"deep-research-server[postgres]\"`."
        )
    if not settings.database_url:
        raise ValueError("DATABASE_URL must be set when CHECKPOINTER_BACKEND=postgres")

    async with AsyncExitStack() as stack:
        checkpointer = await stack.enter_async_context(AsyncPostgresSaver.from_conn_string(settings.database_url))
        store = await stack.enter_async_context(AsyncPostgresStore.from_conn_string(settings.database_url))
        await checkpointer.setup()
        await store.setup()
        logger.info("Connected Postgres checkpointer and store")
        yield Persistence(checkpointer=checkpointer, store=store)

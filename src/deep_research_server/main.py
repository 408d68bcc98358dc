from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .agent import create_graph
from .api import router
from .checkpoint import open_persistence
from .config import get_settings
from .executor import Executor

# Configure logging for the entire deep_research_server package
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

settings = get_settings()
logging.getLogger("deep_research_server").setLevel(settings.log_level.upper())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "graph", None) is not None:
        logger.info("Deep research server starting with a preconfigured executor")
        yield
        return

    logger.info("Deep research server starting up")
    async with open_persistence(settings) as persistence:
        app.state.graph = create_graph(
            settings,
            checkpointer=persistence.checkpointer,
            store=persistence.store,
        )
        yield
        logger.info("Deep research server shutting down")
        app.state.graph = None


def create_app(executor: Executor | None = None) -> FastAPI:
    app = FastAPI(
        title="Deep Research Server",
        description="Streams deep research agent runs over Server-Sent Events",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.graph = executor
    app.include_router(router)
    return app


app = create_app()

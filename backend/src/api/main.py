"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.connections import ConnectionManager
from api.dispatcher import CommandDispatcher
from api.routers import health, revisions
from core.config import get_settings
from services.revision_engine import RevisionEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: build the storage engine for the workspace and start the save queue
    engine = RevisionEngine.from_settings(app_settings)
    await engine.start()
    connections = ConnectionManager()
    app.state.engine = engine
    app.state.connections = connections
    app.state.dispatcher = CommandDispatcher(engine, connections)
    logger.info(
        "Revision storage ready at %s/%s",
        app_settings.workspace_dir,
        app_settings.revisions_folder_name,
    )

    yield

    # Shutdown: let queued saves finish
    await engine.close()


app_settings = get_settings()

app = FastAPI(
    title="Revisions API",
    description="Incremental edit history for workspace files.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(revisions.router)

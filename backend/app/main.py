"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from app.application.interfaces import SyncStateRepository
from app.application.services import (
    BackupManager,
    ClientRegistry,
    SyncCoordinator,
    SyncScheduler,
    SyncStateStore,
)
from app.config import Settings, get_settings
from app.infrastructure.database import Base, create_engine, create_session_factory
from app.infrastructure.database.repositories import SQLAlchemySyncStateRepository
from app.infrastructure.logging.log_config import setup_logging
from app.infrastructure.storage.json_sync_state_store import JsonFileSyncStateRepository
from app.presentation.api.v1.router import router as api_v1_router
from app.presentation.ws.sync_socket import router as sync_socket_router

logger = logging.getLogger(__name__)


async def _build_repository(settings: Settings) -> tuple[SyncStateRepository, AsyncEngine | None]:
    """Pick the sync state backend; the SQL backend also gets its tables created."""
    if settings.sync_state_backend == "json":
        return JsonFileSyncStateRepository(settings.sync_state_file, settings.history_limit), None

    if settings.sync_state_backend != "database":
        raise ValueError(f"Unknown sync_state_backend: {settings.sync_state_backend!r}")

    engine = create_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    repository = SQLAlchemySyncStateRepository(
        create_session_factory(engine),
        history_limit=settings.history_limit,
    )
    return repository, engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — load sync state, wire the coordinator, start the scheduler."""
    settings: Settings = app.state.settings
    setup_logging(settings)

    # 1. Durable sync state
    repository, engine = await _build_repository(settings)
    store = await SyncStateStore.open(repository, history_limit=settings.history_limit)

    # 2. Coordinator and its collaborators, all on the schedule's wall clock
    tz = settings.timezone

    def clock() -> datetime:
        return datetime.now(tz)

    Path(settings.backup_dir).mkdir(parents=True, exist_ok=True)
    registry = ClientRegistry(clock=clock)
    backup_manager = BackupManager(
        store,
        registry,
        backup_dir=settings.backup_dir,
        source_files=settings.backup_files,
        clock=clock,
    )
    coordinator = SyncCoordinator(
        store,
        registry,
        clock=clock,
        release_at=settings.release_at,
        backup_at=settings.backup_at,
        backup_manager=backup_manager,
    )

    # 3. Daily backup / release
    scheduler = SyncScheduler(
        coordinator,
        backup_manager,
        clock=clock,
        backup_at=settings.backup_at,
        release_at=settings.release_at,
    )
    await scheduler.start()

    app.state.sync_coordinator = coordinator
    app.state.backup_manager = backup_manager
    app.state.sync_scheduler = scheduler
    logger.info("Live sync ready (state backend: %s)", store.backend_name)

    yield

    # Shutdown
    await scheduler.stop()
    await registry.close_all()
    app.state.sync_coordinator = None
    app.state.backup_manager = None
    app.state.sync_scheduler = None
    if engine is not None:
        await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes and the live sync socket
    app.include_router(api_v1_router, prefix="/api")
    app.include_router(sync_socket_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )

"""FastAPI application factory for SemNotes Engine."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI

from semnotes_engine import __version__
from semnotes_engine.routes import documents, health, search, snapshot
from semnotes_engine.state import EngineState, build_state

logger = logging.getLogger(__name__)


def _resolve_project_root(project_root: Path | None) -> Path:
    if project_root is not None:
        return project_root
    env_root = os.environ.get("SEMNOTES_PROJECT_ROOT")
    if env_root:
        return Path(env_root)

    from semnotes.utils.paths import find_project_root

    return find_project_root() or Path.cwd()


@contextlib.asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Restore the snapshot on startup, autosave while running, save on shutdown."""
    state: EngineState = app.state.engine
    settings = state.settings

    autosave: asyncio.Task | None = None
    if settings.use_persistent_storage:
        if state.index.store.size() == 0:
            await asyncio.to_thread(state.index.load_snapshot, state.writer.path)

        from semnotes.vault.persistence import run_autosave

        autosave = asyncio.create_task(run_autosave(
            state.writer,
            lambda: state.index.store,
            lambda: state.index.model_name,
            interval=settings.autosave_interval,
        ))

    try:
        yield
    finally:
        if autosave is not None:
            autosave.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await autosave
        if settings.use_persistent_storage:
            try:
                state.index.save_snapshot(state.writer)
            except OSError as e:
                logger.warning("Failed to save snapshot on shutdown: %s", e)


def create_app(
    state: EngineState | None = None,
    project_root: Path | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The notes directory comes from ``project_root``, else the
    SEMNOTES_PROJECT_ROOT environment variable, else the enclosing
    SemNotes project of the working directory.
    """
    if state is None:
        state = build_state(_resolve_project_root(project_root))

    app = FastAPI(
        title="SemNotes Engine",
        version=__version__,
        description="Semantic search and question answering over markdown notes",
        lifespan=_lifespan,
    )
    app.state.engine = state

    # Register route modules
    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(documents.router)
    app.include_router(snapshot.router)

    return app

"""Engine state owned by the FastAPI application."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fastapi import Request

from semnotes.config import SemNotesSettings, load_settings, validate_settings
from semnotes.core.notes_index import NotesIndex
from semnotes.core.providers import (
    CompletionProvider,
    EmbeddingProvider,
    create_completion_provider,
    create_embedding_provider,
)
from semnotes.core.rag import RAGService
from semnotes.utils.paths import get_snapshot_path
from semnotes.vault.persistence import SnapshotWriter


@dataclass
class EngineState:
    """Everything a request handler needs: the index, Q&A service and snapshot target."""
    project_root: Path
    settings: SemNotesSettings
    index: NotesIndex
    rag: RAGService
    writer: SnapshotWriter


def build_state(
    project_root: Path,
    settings: SemNotesSettings | None = None,
    embedding_provider: EmbeddingProvider | None = None,
    completion_provider: CompletionProvider | None = None,
) -> EngineState:
    """Assemble engine state for a notes directory.

    Raises:
        ValueError: if the settings are invalid
    """
    settings = settings or load_settings(project_root)
    errors = validate_settings(settings)
    if errors:
        raise ValueError("Invalid settings: " + "; ".join(errors))

    index = NotesIndex(settings, embedding_provider or create_embedding_provider(settings))
    rag = RAGService(settings, index, completion_provider or create_completion_provider(settings))
    return EngineState(
        project_root=project_root,
        settings=settings,
        index=index,
        rag=rag,
        writer=SnapshotWriter(get_snapshot_path(project_root)),
    )


def get_state(request: Request) -> EngineState:
    """FastAPI dependency returning the application's engine state."""
    return request.app.state.engine

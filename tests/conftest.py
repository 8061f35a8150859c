"""Shared test fixtures for SemNotes."""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path

import pytest

from semnotes.config import SemNotesSettings

TEST_MODEL = "BAAI/bge-small-en-v1.5"
TEST_DIMENSION = 384


class BagOfWordsEmbeddingProvider:
    """Deterministic provider: one hashed bucket per word, counts as weights."""

    def __init__(self, dimension: int = TEST_DIMENSION) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self.dimension
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        return vector


class FailingEmbeddingProvider:
    """Provider whose every call raises."""

    def __init__(self) -> None:
        self.calls = 0

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        raise RuntimeError("embedding backend unavailable")


class RecordingCompletionProvider:
    """Completion provider that records prompts and returns a canned answer."""

    def __init__(self, answer: str = "The answer is 42.", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.prompts: list[tuple[str, str]] = []

    async def complete(self, prompt: str, model_id: str) -> str:
        self.prompts.append((prompt, model_id))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def settings() -> SemNotesSettings:
    """Settings for a small model with persistence disabled."""
    return SemNotesSettings(
        embedding_model=TEST_MODEL,
        llm_model="openrouter/test/model",
        use_persistent_storage=False,
        embedding_retries=0,
    )


@pytest.fixture
def embedder() -> BagOfWordsEmbeddingProvider:
    return BagOfWordsEmbeddingProvider()


@pytest.fixture
def failing_embedder() -> FailingEmbeddingProvider:
    return FailingEmbeddingProvider()


@pytest.fixture
def completion() -> RecordingCompletionProvider:
    return RecordingCompletionProvider()


@pytest.fixture
def failing_completion() -> RecordingCompletionProvider:
    return RecordingCompletionProvider(error=RuntimeError("rate limited"))


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary SemNotes project with a few notes."""
    semnotes_dir = tmp_path / ".semnotes"
    semnotes_dir.mkdir()
    (semnotes_dir / "settings.json").write_text(json.dumps({
        "embedding_model": TEST_MODEL,
        "use_persistent_storage": True,
    }))

    (tmp_path / "gardening.md").write_text(
        "# Gardening\n\nTomatoes need full sun and regular watering.\n\n"
        "## Soil\n\nUse compost rich soil with good drainage.\n",
        encoding="utf-8",
    )
    projects = tmp_path / "projects"
    projects.mkdir()
    (projects / "rocket.md").write_text(
        "---\ntitle: Rocket Project\n---\n\n"
        "# Rocket\n\nThe rocket engine uses liquid oxygen and kerosene.\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def home_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user home at an empty temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home

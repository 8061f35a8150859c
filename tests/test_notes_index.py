"""Tests for NotesIndex: indexing, search and snapshots."""

from __future__ import annotations

import asyncio
import math
from pathlib import Path

import pytest

from semnotes.config import SemNotesSettings
from semnotes.core.notes_index import NotesIndex, default_title
from semnotes.vault.embedding import deterministic_embedding
from semnotes.vault.persistence import SnapshotWriter

from conftest import TEST_DIMENSION, BagOfWordsEmbeddingProvider


class SelectiveFailureProvider(BagOfWordsEmbeddingProvider):
    """Raises for any text containing the word 'explode'."""

    async def embed(self, text: str) -> list[float]:
        if "explode" in text:
            raise RuntimeError("backend choked")
        return await super().embed(text)


class SlowProvider(BagOfWordsEmbeddingProvider):
    """Tracks how many embed calls run at once."""

    def __init__(self) -> None:
        super().__init__()
        self.active = 0
        self.peak = 0

    async def embed(self, text: str) -> list[float]:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return await super().embed(text)


class GatedProvider(BagOfWordsEmbeddingProvider):
    """Holds embed calls for texts containing a trigger word until released."""

    def __init__(self, trigger: str = "", dimension: int = TEST_DIMENSION) -> None:
        super().__init__(dimension)
        self.trigger = trigger
        self.waiting = asyncio.Event()
        self.release = asyncio.Event()

    async def embed(self, text: str) -> list[float]:
        if self.trigger in text:
            self.waiting.set()
            await self.release.wait()
        return await super().embed(text)


LONG_NOTE = "\n\n".join(f"Paragraph {i} about seeds and planting." * 20 for i in range(6))


def test_default_title():
    assert default_title("projects/rocket.md") == "rocket"
    assert default_title("notes") == "notes"


class TestIndexDocument:
    @pytest.mark.asyncio
    async def test_creates_chunks(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        count = await index.index_document("garden.md", "# Garden\n\nTomatoes need sun.")
        assert count == 1
        chunk = index.store.get("garden.md-0")
        assert chunk.title == "garden"
        assert chunk.text == "# Garden\n\nTomatoes need sun."
        assert len(chunk.embedding) == TEST_DIMENSION
        assert math.isclose(math.sqrt(sum(v * v for v in chunk.embedding)), 1.0, rel_tol=1e-9)

    @pytest.mark.asyncio
    async def test_reindex_replaces_old_chunks(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        first = await index.index_document("seeds.md", LONG_NOTE)
        assert first > 1
        second = await index.index_document("seeds.md", "short now")
        assert second == 1
        assert index.store.size() == 1
        assert index.store.get("seeds.md-0").text == "short now"

    @pytest.mark.asyncio
    async def test_empty_document_removes_chunks(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "content")
        assert await index.index_document("a.md", "   ") == 0
        assert index.store.size() == 0

    @pytest.mark.asyncio
    async def test_explicit_title_and_timestamp(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "content", title="Alpha", last_modified=1234)
        chunk = index.store.get("a.md-0")
        assert chunk.title == "Alpha"
        assert chunk.last_modified == 1234

    @pytest.mark.asyncio
    async def test_failing_chunk_falls_back_alone(self, settings: SemNotesSettings):
        index = NotesIndex(settings, SelectiveFailureProvider())
        text = "# Calm\n\nnothing unusual here\n\n# Loud\n\nthis will explode"
        assert await index.index_document("mixed.md", text) == 2

        calm = index.store.get("mixed.md-0")
        loud = index.store.get("mixed.md-1")
        assert loud.embedding == deterministic_embedding("# Loud\n\nthis will explode", TEST_DIMENSION)
        assert calm.embedding != deterministic_embedding(calm.text, TEST_DIMENSION)

    @pytest.mark.asyncio
    async def test_failing_provider_still_indexes(self, settings: SemNotesSettings, failing_embedder):
        index = NotesIndex(settings, failing_embedder)
        assert await index.index_document("a.md", "some text") == 1
        assert index.store.get("a.md-0").has_embedding

    @pytest.mark.asyncio
    async def test_embedding_concurrency_is_bounded(self, settings: SemNotesSettings):
        settings.embedding_concurrency = 2
        settings.max_chunk_size = 200
        settings.chunk_overlap = 0
        provider = SlowProvider()
        index = NotesIndex(settings, provider)
        await index.index_document("seeds.md", LONG_NOTE)
        assert len(provider.calls) > 2
        assert provider.peak <= 2

    @pytest.mark.asyncio
    async def test_old_chunks_searchable_while_reindexing(self, settings: SemNotesSettings):
        provider = GatedProvider(trigger="revised")
        index = NotesIndex(settings, provider)
        await index.index_document("a.md", "original text about compost")

        task = asyncio.create_task(index.index_document("a.md", "revised text about compost"))
        await asyncio.wait_for(provider.waiting.wait(), timeout=5)

        assert [c.text for c in index.store.chunks()] == ["original text about compost"]
        results = await index.search("original compost")
        assert [r.path for r in results] == ["a.md"]

        provider.release.set()
        assert await task == 1
        assert [c.text for c in index.store.chunks()] == ["revised text about compost"]


class TestRemoveAndRename:
    @pytest.mark.asyncio
    async def test_remove(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "alpha")
        await index.index_document("b.md", "beta")
        assert index.remove_document("a.md") == 1
        assert index.remove_document("a.md") == 0
        assert index.store.document_paths() == ["b.md"]

    @pytest.mark.asyncio
    async def test_rename(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("old.md", "moving content")
        await index.rename_document("old.md", "new/place.md", "moving content")
        assert index.store.document_paths() == ["new/place.md"]
        assert index.store.get("new/place.md-0").title == "place"

    @pytest.mark.asyncio
    async def test_rename_to_same_path_keeps_chunks(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "hello world")
        count = await index.rename_document("a.md", "a.md", "hello world")
        assert count == 1
        assert index.store.size() == 1
        assert index.store.get("a.md-0").text == "hello world"


class TestSearch:
    @pytest.mark.asyncio
    async def test_finds_relevant_note(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("garden.md", "Tomatoes need full sun and water.")
        await index.index_document("rocket.md", "Liquid oxygen and kerosene fuel.")

        results = await index.search("kerosene fuel", limit=1)
        assert [r.path for r in results] == ["rocket.md"]
        assert results[0].score > 0.3

    @pytest.mark.asyncio
    async def test_empty_store(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        assert await index.search("anything") == []
        assert embedder.calls == []

    @pytest.mark.asyncio
    async def test_blank_query(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "alpha")
        assert await index.search("   ") == []

    @pytest.mark.asyncio
    async def test_default_limit_from_settings(self, settings: SemNotesSettings, embedder):
        settings.context_length = 2
        index = NotesIndex(settings, embedder)
        for i in range(5):
            await index.index_document(f"{i}.md", f"note number {i}")
        assert len(await index.search("note")) == 2


class TestChangeModel:
    @pytest.mark.asyncio
    async def test_clears_store_and_switches_dimension(self, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "alpha")

        index.change_embedding_model("BAAI/bge-base-en-v1.5", BagOfWordsEmbeddingProvider(768))
        assert index.store.size() == 0
        assert index.model_name == "BAAI/bge-base-en-v1.5"
        assert settings.embedding_model == "BAAI/bge-base-en-v1.5"

        await index.index_document("a.md", "alpha")
        assert len(index.store.get("a.md-0").embedding) == 768

    @pytest.mark.asyncio
    async def test_change_during_indexing_discards_stale_chunks(self, settings: SemNotesSettings):
        provider = GatedProvider()
        index = NotesIndex(settings, provider)

        task = asyncio.create_task(index.index_document("a.md", "hello"))
        await asyncio.wait_for(provider.waiting.wait(), timeout=5)

        index.change_embedding_model("BAAI/bge-base-en-v1.5", BagOfWordsEmbeddingProvider(768))
        provider.release.set()
        assert await task == 0
        assert index.store.size() == 0

        await index.index_document("b.md", "world")
        assert {len(c.embedding) for c in index.store.chunks()} == {768}


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path: Path, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("garden.md", "Tomatoes need full sun.")
        await index.index_document("rocket.md", "Kerosene rocket fuel.")
        writer = SnapshotWriter(tmp_path / "embeddings.json")
        assert index.save_snapshot(writer)

        restored = NotesIndex(settings, BagOfWordsEmbeddingProvider())
        assert restored.load_snapshot(writer.path)
        assert restored.store.size() == 2

        before = [(r.path, r.score) for r in await index.search("rocket fuel")]
        after = [(r.path, r.score) for r in await restored.search("rocket fuel")]
        assert before == after

    def test_empty_store_not_saved(self, tmp_path: Path, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        writer = SnapshotWriter(tmp_path / "embeddings.json")
        assert not index.save_snapshot(writer)
        assert not writer.path.exists()

    @pytest.mark.asyncio
    async def test_other_model_snapshot_ignored(self, tmp_path: Path, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        await index.index_document("a.md", "alpha")
        writer = SnapshotWriter(tmp_path / "embeddings.json")
        index.save_snapshot(writer)

        other = SemNotesSettings(embedding_model="BAAI/bge-base-en-v1.5")
        fresh = NotesIndex(other, BagOfWordsEmbeddingProvider(768))
        assert not fresh.load_snapshot(writer.path)
        assert fresh.store.size() == 0

    def test_missing_snapshot(self, tmp_path: Path, settings: SemNotesSettings, embedder):
        index = NotesIndex(settings, embedder)
        assert not index.load_snapshot(tmp_path / "missing.json")

"""The notes index: owns a vector store and the embedding gateway in front of it.

Write path: chunk -> embed (one task per chunk) -> swap into the store.
Read path: embed query -> similarity search -> optional rerank.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath

from semnotes.config import SemNotesSettings
from semnotes.core.providers import EmbeddingProvider
from semnotes.vault.chunker import chunk_text
from semnotes.vault.embedding import EmbeddingGateway
from semnotes.vault.persistence import SnapshotWriter, load_snapshot, read_snapshot
from semnotes.vault.schema import Chunk, SearchResult, make_chunk_id, now_ms
from semnotes.vault.search import search
from semnotes.vault.store import VectorStore

logger = logging.getLogger(__name__)


def default_title(document_path: str) -> str:
    """Display title for a document: its file name without extension."""
    return PurePosixPath(document_path).stem or document_path


class NotesIndex:
    """Semantic index over a set of notes.

    The caller constructs one at startup and owns it for the lifetime of
    the process; nothing here is module-level state.
    """

    def __init__(
        self,
        settings: SemNotesSettings,
        embedding_provider: EmbeddingProvider,
        store: VectorStore | None = None,
    ) -> None:
        self.settings = settings
        self.store = store if store is not None else VectorStore()
        self.gateway = EmbeddingGateway(
            embedding_provider,
            settings.embedding_model,
            max_retries=settings.embedding_retries,
        )

    @property
    def model_name(self) -> str:
        return self.gateway.model_name

    async def index_document(
        self,
        document_path: str,
        text: str,
        title: str | None = None,
        last_modified: int | None = None,
    ) -> int:
        """(Re)index one document and return how many chunks it now has.

        The document's old chunks stay visible to searches until every new
        chunk has its embedding, then both sets are swapped in one step. If
        the embedding model changes while the embeddings are pending, the
        new chunks are discarded and 0 is returned.
        """
        gateway = self.gateway
        pieces = chunk_text(
            text,
            max_chunk_size=self.settings.max_chunk_size,
            chunk_overlap=self.settings.chunk_overlap,
        )
        slots = asyncio.Semaphore(max(1, self.settings.embedding_concurrency))

        async def embed(piece: str) -> list[float]:
            async with slots:
                return await gateway.embed(piece)

        embeddings = await asyncio.gather(*(embed(p) for p in pieces))

        title = title or default_title(document_path)
        modified = last_modified if last_modified is not None else now_ms()
        chunks = [
            Chunk(
                id=make_chunk_id(document_path, i),
                document_path=document_path,
                title=title,
                text=piece,
                embedding=embedding,
                last_modified=modified,
            )
            for i, (piece, embedding) in enumerate(zip(pieces, embeddings))
        ]

        if gateway is not self.gateway:
            logger.info(
                "Embedding model changed while indexing %s, discarding %d chunks",
                document_path, len(chunks),
            )
            return 0

        self.store.replace_document(document_path, chunks, dimension=gateway.dimension)
        logger.debug("Indexed %s with %d chunks", document_path, len(chunks))
        return len(chunks)

    def remove_document(self, document_path: str) -> int:
        return self.store.remove_document(document_path)

    async def rename_document(
        self,
        old_path: str,
        new_path: str,
        text: str,
        title: str | None = None,
        last_modified: int | None = None,
    ) -> int:
        """Move a document to a new path and reindex it there."""
        count = await self.index_document(new_path, text, title=title, last_modified=last_modified)
        if old_path != new_path:
            self.store.remove_document(old_path)
        return count

    async def search(
        self,
        query: str,
        limit: int | None = None,
        use_reranking: bool | None = None,
    ) -> list[SearchResult]:
        """Search the index for chunks relevant to ``query``."""
        if not query.strip() or self.store.size() == 0:
            return []

        limit = limit if limit is not None else self.settings.context_length
        rerank = use_reranking if use_reranking is not None else self.settings.use_reranking

        query_vector = await self.gateway.embed(query)
        return search(self.store, query_vector, query, limit=limit, use_reranking=rerank)

    def change_embedding_model(self, model_name: str, provider: EmbeddingProvider) -> None:
        """Switch embedding model. Clears the store; every document must be reindexed."""
        gateway = EmbeddingGateway(provider, model_name, max_retries=self.settings.embedding_retries)
        self.gateway = gateway
        self.settings.embedding_model = model_name
        self.store.clear()
        logger.info("Embedding model changed to %s, index cleared", model_name)

    def save_snapshot(self, writer: SnapshotWriter) -> bool:
        """Persist the store. Returns False when there is nothing to save or a save is running."""
        if self.store.size() == 0:
            return False
        return writer.save(self.store, self.model_name)

    def load_snapshot(self, path: Path) -> bool:
        """Replace the store's contents with a saved snapshot if it matches the active model."""
        snapshot = read_snapshot(path)
        if snapshot is None or not snapshot.chunks:
            logger.info("No embeddings found at %s", path)
            return False

        loaded = load_snapshot(snapshot, self.model_name)
        if loaded is None:
            return False

        chunks = loaded.chunks()
        if any(len(c.embedding or ()) != self.gateway.dimension for c in chunks):
            logger.warning("Snapshot dimension does not match %s, discarding", self.model_name)
            return False

        self.store.replace_all(chunks)
        logger.info("Loaded %d chunks from %s", len(chunks), path)
        return True

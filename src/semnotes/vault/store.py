"""In-memory vector store keyed by chunk id."""

from __future__ import annotations

import threading
from typing import Iterable, Iterator

from semnotes.vault.schema import Chunk


class VectorStore:
    """Holds every chunk of the working set.

    Reads go through ``chunks()``, which copies the current contents under
    the lock, so a search never iterates a dict that an indexing task is
    mutating. Insertion order is preserved and is the tie-break order for
    search ranking.
    """

    def __init__(self, chunks: Iterable[Chunk] = ()) -> None:
        self._lock = threading.RLock()
        self._chunks: dict[str, Chunk] = {}
        for chunk in chunks:
            self.upsert(chunk)

    def upsert(self, chunk: Chunk) -> None:
        """Insert a chunk, replacing any chunk with the same id."""
        if not chunk.id:
            raise ValueError("Chunk id is required")
        with self._lock:
            self._chunks[chunk.id] = chunk

    def get(self, chunk_id: str) -> Chunk | None:
        with self._lock:
            return self._chunks.get(chunk_id)

    def remove_document(self, document_path: str) -> int:
        """Remove every chunk of a document. Returns how many were removed."""
        with self._lock:
            ids = [cid for cid, c in self._chunks.items() if c.document_path == document_path]
            for cid in ids:
                del self._chunks[cid]
            return len(ids)

    def replace_document(
        self,
        document_path: str,
        chunks: Iterable[Chunk],
        dimension: int | None = None,
    ) -> int:
        """Swap a document's chunks for a new set in one step.

        If ``dimension`` is given, every embedded chunk must have exactly
        that many components. Nothing is changed when a chunk is rejected.

        Returns the number of chunks removed.
        """
        new_chunks = list(chunks)
        for chunk in new_chunks:
            if chunk.document_path != document_path:
                raise ValueError(
                    f"Chunk {chunk.id!r} belongs to {chunk.document_path!r}, not {document_path!r}"
                )
            if dimension is not None and chunk.has_embedding and len(chunk.embedding) != dimension:
                raise ValueError(
                    f"Chunk {chunk.id!r} has {len(chunk.embedding)} dimensions, expected {dimension}"
                )
        with self._lock:
            removed = self.remove_document(document_path)
            for chunk in new_chunks:
                self.upsert(chunk)
            return removed

    def replace_all(self, chunks: Iterable[Chunk]) -> None:
        """Replace the entire contents of the store in one step."""
        new_chunks = {}
        for chunk in chunks:
            if not chunk.id:
                raise ValueError("Chunk id is required")
            new_chunks[chunk.id] = chunk
        with self._lock:
            self._chunks = new_chunks

    def document_paths(self) -> list[str]:
        """Distinct document paths in insertion order."""
        with self._lock:
            return list(dict.fromkeys(c.document_path for c in self._chunks.values()))

    def chunks(self) -> list[Chunk]:
        """Copy of all chunks in insertion order."""
        with self._lock:
            return list(self._chunks.values())

    def clear(self) -> None:
        with self._lock:
            self._chunks.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._chunks)

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self.chunks())

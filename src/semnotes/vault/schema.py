"""Data model for the notes index: chunks, search results and snapshots."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


SNAPSHOT_VERSION = 1


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def make_chunk_id(document_path: str, ordinal: int) -> str:
    """Chunk ids are the owning document path plus the chunk ordinal."""
    return f"{document_path}-{ordinal}"


@dataclass
class Chunk:
    """A retrievable span of a document's text."""
    id: str
    document_path: str
    title: str
    text: str
    embedding: list[float] | None = None
    last_modified: int = field(default_factory=now_ms)

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


@dataclass
class SearchResult:
    """A scored chunk returned by search. Never persisted."""
    path: str
    title: str
    text: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "title": self.title,
            "text": self.text,
            "score": self.score,
        }


class ChunkRecord(BaseModel):
    """Serialized form of a chunk inside a snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    path: str
    text: str
    title: str
    embedding: list[float] = Field(..., min_length=1)
    last_modified: int = Field(default_factory=now_ms, alias="lastModified")

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> ChunkRecord:
        return cls(
            id=chunk.id,
            path=chunk.document_path,
            text=chunk.text,
            title=chunk.title,
            embedding=list(chunk.embedding or []),
            last_modified=chunk.last_modified,
        )

    def to_chunk(self) -> Chunk:
        return Chunk(
            id=self.id,
            document_path=self.path,
            title=self.title,
            text=self.text,
            embedding=list(self.embedding),
            last_modified=self.last_modified,
        )


class Snapshot(BaseModel):
    """Point-in-time export of the vector store, tagged with the embedding model."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    version: int = SNAPSHOT_VERSION
    model_name: str = Field(..., alias="modelName")
    updated_at: int = Field(default_factory=now_ms, alias="updatedAt")
    chunks: list[ChunkRecord] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

"""Pydantic response models for the SemNotes engine API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    embedding_model: str
    chunks: int = 0
    capabilities: list[str] = Field(default_factory=list)


class SearchResultModel(BaseModel):
    """A single search result."""
    path: str
    title: str
    text: str
    score: float


class SearchResponse(BaseModel):
    """Response from note search."""
    success: bool
    query: str
    results: list[SearchResultModel] = Field(default_factory=list)
    error: str | None = None


class AskResponse(BaseModel):
    """Response from question answering."""
    success: bool
    answer: str
    sources: list[SearchResultModel] = Field(default_factory=list)
    show_sources: bool = False
    error: str | None = None


class IndexResponse(BaseModel):
    """Response from indexing the notes directory."""
    success: bool
    files_indexed: int = 0
    chunks_created: int = 0
    files_deleted: int = 0
    files_failed: int = 0
    error: str | None = None


class DocumentResponse(BaseModel):
    """Response from indexing or removing a single document."""
    success: bool
    path: str
    chunks: int = 0
    removed: int = 0
    error: str | None = None


class SnapshotResponse(BaseModel):
    """Response from saving a snapshot."""
    success: bool
    saved: bool = False
    chunks: int = 0
    path: str | None = None
    error: str | None = None

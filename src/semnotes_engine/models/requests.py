"""Pydantic request models for the SemNotes engine API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request to search the indexed notes."""
    query: str = Field(..., description="Natural language search query")
    limit: int | None = Field(default=None, ge=1, le=50, description="Maximum results to return")
    use_reranking: bool | None = Field(default=None, description="Override the reranking setting")


class AskRequest(BaseModel):
    """Request to answer a question from the notes."""
    question: str = Field(..., min_length=1, description="Question to answer")


class IndexRequest(BaseModel):
    """Request to index the notes directory."""
    incremental: bool = Field(default=False, description="Only re-index changed notes")


class DocumentRequest(BaseModel):
    """Request to (re)index a single document from its text."""
    path: str = Field(..., min_length=1, description="Document path, relative to the notes root")
    text: str = Field(..., description="Full document text")
    title: str | None = Field(default=None, description="Display title (default: file name)")
    last_modified: int | None = Field(default=None, description="Modification time, ms since epoch")
    old_path: str | None = Field(default=None, description="Previous path when the document was renamed")


"""Indexing endpoints: whole notes directory and single documents."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from semnotes_engine.models.requests import DocumentRequest, IndexRequest
from semnotes_engine.models.responses import DocumentResponse, IndexResponse
from semnotes_engine.state import EngineState, get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/index", response_model=IndexResponse)
async def index_endpoint(
    req: IndexRequest,
    state: EngineState = Depends(get_state),
) -> IndexResponse:
    """Index every note under the project root."""
    from semnotes.vault.indexer import index_directory

    try:
        stats = await index_directory(state.index, state.project_root, incremental=req.incremental)
        return IndexResponse(**stats)
    except Exception as e:
        logger.exception("Indexing failed")
        return IndexResponse(success=False, error=str(e))


@router.put("/documents", response_model=DocumentResponse)
async def put_document_endpoint(
    req: DocumentRequest,
    state: EngineState = Depends(get_state),
) -> DocumentResponse:
    """Index or re-index one document, optionally moving it from ``old_path``."""
    try:
        if req.old_path and req.old_path != req.path:
            chunks = await state.index.rename_document(
                req.old_path, req.path, req.text,
                title=req.title, last_modified=req.last_modified,
            )
        else:
            chunks = await state.index.index_document(
                req.path, req.text,
                title=req.title, last_modified=req.last_modified,
            )
        return DocumentResponse(success=True, path=req.path, chunks=chunks)
    except Exception as e:
        logger.exception("Indexing %s failed", req.path)
        return DocumentResponse(success=False, path=req.path, error=str(e))


@router.delete("/documents", response_model=DocumentResponse)
async def delete_document_endpoint(
    path: str = Query(..., min_length=1, description="Document path"),
    state: EngineState = Depends(get_state),
) -> DocumentResponse:
    """Remove a document's chunks from the index."""
    removed = state.index.remove_document(path)
    return DocumentResponse(success=True, path=path, removed=removed)

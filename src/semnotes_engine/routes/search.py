"""Search and question answering endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from semnotes.vault.schema import SearchResult
from semnotes_engine.models.requests import AskRequest, SearchRequest
from semnotes_engine.models.responses import AskResponse, SearchResponse, SearchResultModel
from semnotes_engine.state import EngineState, get_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_model(result: SearchResult) -> SearchResultModel:
    return SearchResultModel(**result.to_dict())


@router.post("/search", response_model=SearchResponse)
async def search_endpoint(
    req: SearchRequest,
    state: EngineState = Depends(get_state),
) -> SearchResponse:
    """Search the indexed notes."""
    try:
        results = await state.index.search(
            req.query,
            limit=req.limit,
            use_reranking=req.use_reranking,
        )
    except Exception as e:
        logger.exception("Search failed")
        return SearchResponse(success=False, query=req.query, error=str(e))

    return SearchResponse(
        success=True,
        query=req.query,
        results=[_to_model(r) for r in results],
    )


@router.post("/ask", response_model=AskResponse)
async def ask_endpoint(
    req: AskRequest,
    state: EngineState = Depends(get_state),
) -> AskResponse:
    """Answer a question from the indexed notes."""
    result = await state.rag.answer_question(req.question)
    return AskResponse(
        success=result.success,
        answer=result.answer,
        sources=[_to_model(s) for s in result.sources],
        show_sources=result.show_sources,
        error=result.error,
    )

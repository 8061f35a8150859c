"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from semnotes_engine import __version__
from semnotes_engine.models.responses import HealthResponse
from semnotes_engine.state import EngineState, get_state

router = APIRouter()


def _detect_capabilities() -> list[str]:
    """Detect which optional dependencies are available."""
    caps = []
    try:
        import sentence_transformers  # noqa: F401
        caps.append("embeddings")
    except Exception:
        pass
    try:
        import litellm  # noqa: F401
        caps.append("llm")
    except Exception:
        pass
    return caps


@router.get("/health", response_model=HealthResponse)
async def health_check(state: EngineState = Depends(get_state)) -> HealthResponse:
    """Return engine health status, index size and available capabilities."""
    return HealthResponse(
        status="ok",
        version=__version__,
        embedding_model=state.index.model_name,
        chunks=state.index.store.size(),
        capabilities=_detect_capabilities(),
    )

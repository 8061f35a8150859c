"""Embedding and completion provider abstraction for SemNotes.

The notes index only depends on the two Protocols below. Real providers
wrap sentence-transformers (local embeddings) and litellm (completions
routed to OpenRouter or any other litellm-supported backend).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from semnotes.config import SemNotesSettings

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    async def embed(self, text: str) -> list[float]:
        """Return the embedding of ``text``. May raise on failure."""
        ...


class CompletionProvider(Protocol):
    """Protocol for completion providers."""

    async def complete(self, prompt: str, model_id: str) -> str:
        """Return the generated text for ``prompt``. May raise on failure."""
        ...


# ---------------------------------------------------------------------------
# sentence-transformers
# ---------------------------------------------------------------------------

class SentenceTransformerEmbeddingProvider:
    """Local embeddings via sentence-transformers.

    The model is loaded on first use. Encoding runs in a worker thread so
    concurrent embed() calls do not block the event loop.
    """

    def __init__(self, model_name: str, device: str | None = None) -> None:
        self.model_name = model_name
        self._device = device
        self._model: Any = None

    def _get_model(self) -> Any:
        """Lazy-load the SentenceTransformer model on first use."""
        if self._model is not None:
            return self._model

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            raise RuntimeError(
                "sentence-transformers is required for local embeddings. "
                "Install with: pip install semnotes[embeddings]"
            )

        logger.info("Loading embedding model %s", self.model_name)
        self._model = SentenceTransformer(self.model_name, device=self._device)
        return self._model

    def _encode(self, text: str) -> list[float]:
        model = self._get_model()
        return model.encode(text, normalize_embeddings=True).tolist()

    async def embed(self, text: str) -> list[float]:
        return await asyncio.to_thread(self._encode, text)


# ---------------------------------------------------------------------------
# LiteLLM (multi-provider via litellm library)
# ---------------------------------------------------------------------------

class LiteLLMCompletionProvider:
    """LiteLLM-based completion provider supporting any model via litellm routing."""

    def __init__(self, api_key: str | None = None, max_tokens: int | None = None) -> None:
        self._api_key = api_key  # optional override; LiteLLM reads env vars by default
        self.max_tokens = max_tokens

    async def complete(self, prompt: str, model_id: str) -> str:
        """Async call via litellm.acompletion()."""
        try:
            import litellm
        except ImportError:
            raise RuntimeError(
                "litellm is required for LiteLLMCompletionProvider. "
                "Install with: pip install semnotes[llm]"
            )

        kwargs: dict[str, Any] = {
            "model": model_id,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens
        if self._api_key:
            kwargs["api_key"] = self._api_key

        response = await litellm.acompletion(**kwargs)
        return _extract_text(response)


def _extract_text(response: Any) -> str:
    """Pull the first choice's message text out of an OpenAI-format response."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        raise ValueError("Completion response contained no choices")
    content = choices[0].message.content
    return content or ""


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_embedding_provider(settings: SemNotesSettings) -> EmbeddingProvider:
    """Create the embedding provider for the configured model."""
    return SentenceTransformerEmbeddingProvider(settings.embedding_model)


def create_completion_provider(settings: SemNotesSettings) -> CompletionProvider:
    """Create the completion provider for Q&A."""
    return LiteLLMCompletionProvider(api_key=settings.api_key)

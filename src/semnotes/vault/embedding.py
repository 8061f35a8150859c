"""Embedding gateway: markdown preprocessing, provider calls and fallback vectors.

The gateway never raises on a provider failure. It substitutes a
deterministic unit vector derived from the input text so that identical
failing inputs always map to the same point.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    from semnotes.core.providers import EmbeddingProvider

logger = logging.getLogger(__name__)


# Embedding dimension per supported model id
MODEL_DIMENSIONS: dict[str, int] = {
    "WhereIsAI/UAE-Large-V1": 1024,
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
}

DEFAULT_EMBEDDING_MODEL = "WhereIsAI/UAE-Large-V1"


class UnsupportedModelError(ValueError):
    """Raised when an embedding model is not in MODEL_DIMENSIONS."""


def get_model_dimension(model_name: str) -> int:
    """Look up the embedding dimension for a model id."""
    try:
        return MODEL_DIMENSIONS[model_name]
    except KeyError:
        supported = ", ".join(sorted(MODEL_DIMENSIONS))
        raise UnsupportedModelError(
            f"Unsupported embedding model: {model_name!r} (supported: {supported})"
        ) from None


_PREPROCESS_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"`[^`]*`"), ""),
    (re.compile(r"#{1,6}\s+(.*)"), r"\1"),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"__(.*?)__"), r"\1"),
    (re.compile(r"_(.*?)_"), r"\1"),
    (re.compile(r"---"), ""),
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"<[^>]*>"), ""),
    (re.compile(r"^\s*>\s*(.*)$", re.MULTILINE), r"\1"),
    (re.compile(r"^\s*[-*+]\s+(.*)$", re.MULTILINE), r"\1"),
    (re.compile(r"^\s*\d+\.\s+(.*)$", re.MULTILINE), r"\1"),
    (re.compile(r"\n{2,}"), "\n"),
    (re.compile(r"\s+"), " "),
]


def preprocess_text(text: str) -> str:
    """Reduce markdown to its plain-text content before embedding."""
    for pattern, replacement in _PREPROCESS_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def normalize_vector(vector: Sequence[float]) -> list[float]:
    """Scale a vector to unit length. A zero vector becomes e0."""
    arr = np.asarray(vector, dtype=np.float64)
    magnitude = float(np.linalg.norm(arr))
    if magnitude == 0.0 or not np.isfinite(magnitude):
        unit = np.zeros(len(arr), dtype=np.float64)
        if len(unit):
            unit[0] = 1.0
        return unit.tolist()
    return (arr / magnitude).tolist()


def deterministic_embedding(text: str, dimension: int) -> list[float]:
    """Unit vector seeded from a SHA-256 of ``text``."""
    seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
    rng = np.random.default_rng(seed)
    return normalize_vector(rng.random(dimension) - 0.5)


class EmbeddingGateway:
    """Turns note text into unit vectors of the active model's dimension."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        model_name: str,
        max_retries: int = 0,
    ) -> None:
        self.provider = provider
        self.model_name = model_name
        self.dimension = get_model_dimension(model_name)
        self.max_retries = max(0, max_retries)

    async def embed(self, text: str) -> list[float]:
        """Embed ``text``, falling back to a deterministic vector on any failure."""
        processed = preprocess_text(text)
        if not processed:
            return deterministic_embedding(text, self.dimension)

        for attempt in range(self.max_retries + 1):
            try:
                vector = await self.provider.embed(processed)
            except Exception as e:
                logger.warning(
                    "Embedding call failed (attempt %d/%d): %s",
                    attempt + 1, self.max_retries + 1, e,
                )
                continue

            if len(vector) != self.dimension:
                logger.warning(
                    "Embedding provider returned %d dimensions, expected %d for %s",
                    len(vector), self.dimension, self.model_name,
                )
                break
            return normalize_vector(vector)

        return deterministic_embedding(text, self.dimension)

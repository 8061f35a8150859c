"""Cosine-similarity search over the vector store with lexical boosting."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from semnotes.vault.lexical import is_lexical_match
from semnotes.vault.rerank import DEFAULT_WEIGHTS, RerankWeights, rerank
from semnotes.vault.schema import SearchResult
from semnotes.vault.store import VectorStore

logger = logging.getLogger(__name__)

LEXICAL_BOOST = 0.3
RERANK_POOL_FACTOR = 2


class DimensionMismatchError(ValueError):
    """Raised when two vectors of different lengths are compared."""


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine of the angle between two vectors, in [-1, 1].

    Zero-magnitude vectors have similarity 0.
    """
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Vector dimensions don't match: {len(a)} vs {len(b)}")

    mag1 = np.linalg.norm(a)
    mag2 = np.linalg.norm(b)
    if mag1 == 0 or mag2 == 0:
        return 0.0
    return float(np.clip(np.dot(a, b) / (mag1 * mag2), -1.0, 1.0))


def search(
    store: VectorStore,
    query_vector: Sequence[float],
    query_text: str,
    limit: int = 5,
    use_reranking: bool = False,
    lexical_boost: float = LEXICAL_BOOST,
    weights: RerankWeights = DEFAULT_WEIGHTS,
) -> list[SearchResult]:
    """Rank stored chunks against a query.

    Args:
        store: Store to search
        query_vector: Embedding of the query
        query_text: Raw query, used for lexical matching
        limit: Maximum results to return
        use_reranking: Rerank the top ``2 * limit`` candidates before truncating
        lexical_boost: Score added to chunks that lexically match the query
        weights: Reranking weights

    Returns:
        Up to ``limit`` results, best first
    """
    if limit < 1 or not query_text.strip():
        return []

    chunks = store.chunks()
    if not chunks:
        return []

    scored: list[SearchResult] = []
    for chunk in chunks:
        if not chunk.has_embedding:
            continue

        try:
            score = cosine_similarity(query_vector, chunk.embedding)
        except DimensionMismatchError as e:
            logger.error("Skipping similarity for chunk %s: %s", chunk.id, e)
            score = 0.0

        if is_lexical_match(query_text, chunk.text):
            score += lexical_boost

        scored.append(SearchResult(
            path=chunk.document_path,
            title=chunk.title,
            text=chunk.text,
            score=score,
        ))

    scored.sort(key=lambda r: r.score, reverse=True)

    if not use_reranking:
        return scored[:limit]

    candidates = scored[:limit * RERANK_POOL_FACTOR]
    return rerank(query_text, candidates, limit, weights)

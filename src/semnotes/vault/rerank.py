"""Multi-factor reranking of search candidates.

Combines the semantic score with a lexical match boost, a preference for
shorter chunks and the proximity of query terms inside the chunk.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from itertools import combinations

from semnotes.vault.lexical import is_lexical_match, query_tokens
from semnotes.vault.schema import SearchResult


@dataclass(frozen=True)
class RerankWeights:
    """Tunable weights for the reranking signals."""
    lexical_boost: float = 0.3
    length_weight: float = 0.1
    length_scale: int = 2000
    proximity_weight: float = 0.1


DEFAULT_WEIGHTS = RerankWeights()


def length_score(text: str, weights: RerankWeights = DEFAULT_WEIGHTS) -> float:
    """Up to ``length_weight`` for short chunks, zero at ``length_scale`` chars."""
    normalized_length = min(1.0, len(text) / weights.length_scale)
    return weights.length_weight * (1.0 - normalized_length)


def proximity_score(query: str, text: str, weights: RerankWeights = DEFAULT_WEIGHTS) -> float:
    """Average closeness of query-token pairs, by first occurrence in the text.

    Pairs where either token is missing contribute nothing but still count
    toward the average.
    """
    tokens = query_tokens(query)
    if len(tokens) < 2:
        return 0.0

    lowered = text.lower()
    max_distance = len(lowered) / 2
    total = 0.0
    pairs = 0

    for first, second in combinations(tokens, 2):
        pairs += 1
        pos1 = lowered.find(first)
        pos2 = lowered.find(second)
        if pos1 < 0 or pos2 < 0:
            continue
        distance = abs(pos1 - pos2)
        total += weights.proximity_weight * (1.0 - min(1.0, distance / max_distance))

    return total / pairs


def combined_score(
    query: str,
    result: SearchResult,
    weights: RerankWeights = DEFAULT_WEIGHTS,
) -> float:
    score = result.score
    if is_lexical_match(query, result.text):
        score += weights.lexical_boost
    score += length_score(result.text, weights)
    score += proximity_score(query, result.text, weights)
    return score


def rerank(
    query: str,
    candidates: list[SearchResult],
    limit: int,
    weights: RerankWeights = DEFAULT_WEIGHTS,
) -> list[SearchResult]:
    """Re-score candidates and return the best ``limit`` of them.

    Args:
        query: Query text
        candidates: Pre-ranked search results
        limit: Maximum results to return
        weights: Signal weights

    Returns:
        New SearchResult objects, sorted by combined score (stable)
    """
    rescored = [replace(r, score=combined_score(query, r, weights)) for r in candidates]
    rescored.sort(key=lambda r: r.score, reverse=True)
    return rescored[:max(0, limit)]

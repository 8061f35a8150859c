"""Lexical matching shared by search and reranking."""

from __future__ import annotations

MIN_TOKEN_LENGTH = 3


def query_tokens(query: str) -> list[str]:
    """Lowercase whitespace tokens longer than two characters."""
    return [t for t in query.lower().split() if len(t) >= MIN_TOKEN_LENGTH]


def is_lexical_match(query: str, text: str) -> bool:
    """True if the text contains the whole query, or most of its tokens.

    Case-insensitive. "Most" means strictly more than half of the query
    tokens occur somewhere in the text as substrings.
    """
    normalized_query = query.lower().strip()
    if not normalized_query:
        return False

    normalized_text = text.lower()
    if normalized_query in normalized_text:
        return True

    tokens = query_tokens(normalized_query)
    if not tokens:
        return False
    matches = sum(1 for t in tokens if t in normalized_text)
    return matches / len(tokens) > 0.5

"""Heading- and paragraph-based markdown chunking for the notes index.

Splits a note into sections at heading lines, then re-splits oversized
sections on paragraph boundaries with a character overlap between the
resulting chunks.
"""

from __future__ import annotations

import re
from typing import Any

import yaml


DEFAULT_MAX_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

PARAGRAPH_SEPARATOR = "\n\n"

_HEADING_PATTERN = re.compile(r"^#{1,6}[ \t]+.+$", re.MULTILINE)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def extract_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter and body from markdown content.

    Returns (frontmatter_dict, body_text).
    """
    if not content.startswith("---"):
        return {}, content

    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content

    try:
        fm = yaml.safe_load(parts[1]) or {}
    except yaml.YAMLError:
        fm = {}
    if not isinstance(fm, dict):
        fm = {}

    body = parts[2].lstrip("\n")
    return fm, body


def chunk_text(
    text: str,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split a note into trimmed, size-bounded chunks.

    Sections at or under ``max_chunk_size`` are kept whole. Larger sections
    are split by paragraph; a single paragraph longer than the limit is
    never cut.

    Args:
        text: Raw markdown text
        max_chunk_size: Soft upper bound on chunk length in characters
        chunk_overlap: Characters carried from a closed chunk into the next

    Returns:
        Ordered list of non-empty chunk strings
    """
    chunks: list[str] = []
    for section in split_sections(text):
        if len(section) > max_chunk_size:
            chunks.extend(split_paragraphs(section, max_chunk_size, chunk_overlap))
        else:
            chunks.append(section)

    return [c.strip() for c in chunks if c.strip()]


def split_sections(text: str) -> list[str]:
    """Split markdown into trimmed sections, each starting at a heading line.

    Text before the first heading becomes its own section. Without any
    headings the whole text is one section.
    """
    starts = [m.start() for m in _HEADING_PATTERN.finditer(text)]
    if not starts:
        stripped = text.strip()
        return [stripped] if stripped else []

    bounds = starts + [len(text)]
    sections = []

    leading = text[:starts[0]].strip()
    if leading:
        sections.append(leading)

    for start, end in zip(bounds, bounds[1:]):
        section = text[start:end].strip()
        if section:
            sections.append(section)

    return sections


def split_paragraphs(text: str, max_chunk_size: int, chunk_overlap: int) -> list[str]:
    """Greedily pack blank-line-delimited paragraphs into chunks.

    When the next paragraph does not fit, the running chunk is closed and
    the next one opens with the closed chunk's trailing ``chunk_overlap``
    characters.
    """
    chunks: list[str] = []
    current = ""

    for paragraph in _PARAGRAPH_BREAK.split(text):
        para = paragraph.strip()
        if not para:
            continue

        if current and len(current) + len(PARAGRAPH_SEPARATOR) + len(para) > max_chunk_size:
            chunks.append(current)
            if chunk_overlap > 0 and len(current) > chunk_overlap:
                current = current[-chunk_overlap:] + PARAGRAPH_SEPARATOR + para
            else:
                current = para
        elif current:
            current += PARAGRAPH_SEPARATOR + para
        else:
            current = para

    if current:
        chunks.append(current)

    return chunks

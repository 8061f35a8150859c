"""Directory indexer: feeds the markdown notes under a project into a NotesIndex.

Supports full re-index and incremental (modification-time based) indexing.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from semnotes.vault.chunker import extract_frontmatter

if TYPE_CHECKING:
    from semnotes.core.notes_index import NotesIndex

logger = logging.getLogger(__name__)


def get_note_files(root: Path) -> list[Path]:
    """All markdown files under root, skipping hidden directories."""
    if not root.is_dir():
        return []
    return sorted(
        p for p in root.rglob("*.md")
        if p.is_file() and not any(part.startswith(".") for part in p.relative_to(root).parts)
    )


def file_mtime_ms(path: Path) -> int:
    return int(path.stat().st_mtime * 1000)


def note_title(path: Path, content: str) -> str:
    """Title from frontmatter if present, else the file name."""
    frontmatter, _ = extract_frontmatter(content)
    title = frontmatter.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return path.stem


def indexed_mtimes(index: NotesIndex) -> dict[str, int]:
    """Last-modified stamp recorded for each indexed document."""
    mtimes: dict[str, int] = {}
    for chunk in index.store.chunks():
        mtimes[chunk.document_path] = chunk.last_modified
    return mtimes


async def index_directory(
    index: NotesIndex,
    root: Path,
    incremental: bool = False,
) -> dict[str, Any]:
    """Index every note under ``root`` into ``index``.

    Notes that cannot be read or decoded are logged and skipped.

    Args:
        index: Index to write into
        root: Directory holding the notes
        incremental: If True, skip notes whose stored chunks carry the
            file's current modification time

    Returns:
        Dict with indexing stats
    """
    if not root.is_dir():
        return {"success": False, "error": f"Not a directory: {root}"}

    files = get_note_files(root)
    current = {f.relative_to(root).as_posix(): f for f in files}
    previous = indexed_mtimes(index)

    files_deleted = 0
    for rel_path in previous:
        if rel_path not in current:
            index.remove_document(rel_path)
            files_deleted += 1

    files_indexed = 0
    files_failed = 0
    chunks_created = 0
    for rel_path, path in current.items():
        try:
            mtime = file_mtime_ms(path)
            if incremental and previous.get(rel_path) == mtime:
                continue
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable note %s: %s", rel_path, e)
            files_failed += 1
            continue

        chunks_created += await index.index_document(
            rel_path,
            content,
            title=note_title(path, content),
            last_modified=mtime,
        )
        files_indexed += 1

    return {
        "success": True,
        "files_indexed": files_indexed,
        "chunks_created": chunks_created,
        "files_deleted": files_deleted,
        "files_failed": files_failed,
    }

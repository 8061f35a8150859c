"""Snapshot export and import of the vector store.

A snapshot is only usable with the embedding model that produced it. Any
mismatch or a malformed file means "no snapshot" and the caller re-indexes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from semnotes.vault.schema import ChunkRecord, Snapshot, now_ms
from semnotes.vault.store import VectorStore

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_INTERVAL = 600.0


def save_snapshot(store: VectorStore, model_name: str) -> Snapshot:
    """Capture every embedded chunk of the store."""
    records = [ChunkRecord.from_chunk(c) for c in store.chunks() if c.has_embedding]
    return Snapshot(model_name=model_name, updated_at=now_ms(), chunks=records)


def load_snapshot(snapshot: Snapshot, active_model_name: str) -> VectorStore | None:
    """Build a fresh store from a snapshot taken with the active model.

    Returns None when the snapshot's model differs, or when its vectors do
    not all share one dimension.
    """
    if snapshot.model_name != active_model_name:
        logger.info(
            "Embedding model changed (%s -> %s), not loading snapshot",
            snapshot.model_name, active_model_name,
        )
        return None

    dimensions = {len(record.embedding) for record in snapshot.chunks}
    if len(dimensions) > 1:
        logger.warning("Snapshot mixes embedding dimensions %s, discarding", sorted(dimensions))
        return None

    return VectorStore(record.to_chunk() for record in snapshot.chunks)


def write_snapshot(snapshot: Snapshot, path: Path) -> None:
    """Write a snapshot as JSON, replacing the target atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(snapshot.to_json_dict()) + "\n", encoding="utf-8")
    tmp_path.replace(path)


def read_snapshot(path: Path) -> Snapshot | None:
    """Read a snapshot file, returning None if missing or malformed."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Snapshot.model_validate(data)
    except (json.JSONDecodeError, OSError, ValidationError) as e:
        logger.warning("Ignoring unreadable snapshot %s: %s", path, e)
        return None


class SnapshotWriter:
    """Writes store snapshots to one file, never two at a time."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def save(self, store: VectorStore, model_name: str) -> bool:
        """Save the store. Returns False if another save was in flight."""
        if not self._lock.acquire(blocking=False):
            logger.info("Snapshot save already in progress, skipping")
            return False
        try:
            snapshot = save_snapshot(store, model_name)
            write_snapshot(snapshot, self.path)
            logger.info("Saved %d chunks to %s", len(snapshot.chunks), self.path)
            return True
        finally:
            self._lock.release()


async def run_autosave(
    writer: SnapshotWriter,
    get_store: Callable[[], VectorStore],
    get_model_name: Callable[[], str],
    interval: float = DEFAULT_AUTOSAVE_INTERVAL,
) -> None:
    """Save a snapshot every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        store = get_store()
        if store.size() == 0:
            continue
        try:
            await asyncio.to_thread(writer.save, store, get_model_name())
        except OSError as e:
            logger.warning("Periodic snapshot save failed: %s", e)

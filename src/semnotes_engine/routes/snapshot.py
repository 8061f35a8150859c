"""Snapshot endpoint."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from semnotes_engine.models.responses import SnapshotResponse
from semnotes_engine.state import EngineState, get_state

router = APIRouter(prefix="/snapshot")


@router.post("", response_model=SnapshotResponse)
async def save_snapshot_endpoint(state: EngineState = Depends(get_state)) -> SnapshotResponse:
    """Save the index to disk now. Skips if a save is already running."""
    try:
        saved = await asyncio.to_thread(state.index.save_snapshot, state.writer)
    except OSError as e:
        return SnapshotResponse(success=False, error=str(e))
    return SnapshotResponse(
        success=True,
        saved=saved,
        chunks=state.index.store.size(),
        path=str(state.writer.path),
    )

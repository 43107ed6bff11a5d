"""Player REST API routes.

Endpoints for creating a session, moving next/previous, toggling loop mode
and reading the session status.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.catalog import CatalogError
from app.feeder import EndOfCatalog, ExhaustedEmptyRetry
from app.player import (
    PlayerSession,
    create_session,
    drop_session,
    get_feeder,
    get_session,
    play_next,
    play_previous,
    set_loop,
)
from core.orders import UnknownOrderError

router = APIRouter(prefix="/player", tags=["player"])


class CreateSessionRequest(BaseModel):
    slots: dict[str, str] = Field(default_factory=dict)
    loop: bool = False


class LoopRequest(BaseModel):
    enabled: bool


async def _require_session(session_id: str) -> PlayerSession:
    session = await get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="No such session")
    return session


def _status(session: PlayerSession, status_code: int = 200) -> JSONResponse:
    return JSONResponse(session.to_status_dict(get_feeder()), status_code=status_code)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/sessions")
async def create(body: CreateSessionRequest):
    """Build the first window for the given slots."""
    try:
        session = await create_session(body.slots, loop=body.loop)
    except UnknownOrderError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (CatalogError, ExhaustedEmptyRetry) as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return _status(session, status_code=201)


@router.get("/sessions/{session_id}")
async def status(session_id: str):
    """Return the current state of a session."""
    return _status(await _require_session(session_id))


@router.post("/sessions/{session_id}/next")
async def next_song(session_id: str):
    """Move to the next song, fetching more songs if needed."""
    session = await _require_session(session_id)
    try:
        await play_next(session)
    except EndOfCatalog as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (CatalogError, ExhaustedEmptyRetry) as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return _status(session)


@router.post("/sessions/{session_id}/previous")
async def previous_song(session_id: str):
    """Move to the previous song, fetching more songs if needed."""
    session = await _require_session(session_id)
    try:
        await play_previous(session)
    except EndOfCatalog as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (CatalogError, ExhaustedEmptyRetry) as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return _status(session)


@router.put("/sessions/{session_id}/loop")
async def loop(session_id: str, body: LoopRequest):
    """Enable or disable loop mode."""
    session = await _require_session(session_id)
    await set_loop(session, body.enabled)
    return _status(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete(session_id: str):
    """Forget a session."""
    await _require_session(session_id)
    await drop_session(session_id)

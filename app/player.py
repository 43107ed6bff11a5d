"""Player sessions: one window and cursor per listener.

Keeps active sessions in memory, persists them after every operation and
serializes feeder operations per session with an ``asyncio.Lock``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any

from app import db
from app.catalog import CatalogClient
from app.feeder import AlbumsFeeder, EndOfCatalog
from core.exporter import export_window, import_window
from core.models import Query
from core.window import Window

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# In-memory session store
# ---------------------------------------------------------------------------

class PlayerSession:
    """Runtime state of one traversal session."""

    __slots__ = (
        "session_id",
        "query",
        "window",
        "total_albums",
        "lock",
        "dropped",
    )

    def __init__(
        self,
        *,
        session_id: str,
        query: Query,
        window: Window,
        total_albums: int = 0,
    ):
        self.session_id = session_id
        self.query = query
        self.window = window
        self.total_albums = total_albums
        self.lock = asyncio.Lock()
        self.dropped = False

    def to_status_dict(self, feeder: AlbumsFeeder) -> dict[str, Any]:
        """Serialize for the status API."""
        song = self.window.current_song()
        return {
            "session_id": self.session_id,
            "order": feeder.get_strategy(self.query).key.value,
            "slots": self.query.slots,
            "loop": self.window.is_loop(),
            "position": self.window.current,
            "window_size": len(self.window.items),
            "total_albums": self.total_albums,
            "current_song": song.model_dump() if song else None,
            "has_next": feeder.has_next(self.query, self.window),
            "has_previous": feeder.has_previous(self.query, self.window),
            "cursor": self.window.cursor.model_dump(),
        }


_sessions: dict[str, PlayerSession] = {}
_feeder: AlbumsFeeder | None = None


def get_feeder() -> AlbumsFeeder:
    global _feeder  # noqa: PLW0603
    if _feeder is None:
        _feeder = AlbumsFeeder(CatalogClient())
    return _feeder


def set_feeder(feeder: AlbumsFeeder | None) -> None:
    global _feeder  # noqa: PLW0603
    _feeder = feeder


async def _persist(session: PlayerSession) -> None:
    if session.dropped:
        logger.debug("Session %s was dropped, not saving it", session.session_id)
        return
    await db.save_session(
        session.session_id,
        json.dumps(session.query.slots),
        export_window(session.query, session.window),
        session.total_albums,
    )


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

async def create_session(slots: dict[str, str], *, loop: bool = False) -> PlayerSession:
    """Build a new window for *slots* and register the session.

    Raises ``UnknownOrderError`` for an unknown ``order`` slot, and whatever
    the feeder raises when the first chunk can't be fetched.
    """
    feeder = get_feeder()
    query = Query(slots=slots)
    feeder.get_strategy(query)  # fail fast on unknown order

    session = PlayerSession(
        session_id=uuid.uuid4().hex,
        query=query,
        window=Window(loop=loop),
    )
    async with session.lock:
        result = await feeder.build(query, session.window)
        session.total_albums = result.total
        await _persist(session)

    _sessions[session.session_id] = session
    logger.info(
        "Created session %s with %d song(s) in window",
        session.session_id, len(session.window.items),
    )
    return session


async def get_session(session_id: str) -> PlayerSession | None:
    """Return the session from memory, or reload it from the database."""
    session = _sessions.get(session_id)
    if session is not None:
        return session

    row = await db.load_session(session_id)
    if row is None:
        return None

    snapshot = import_window(row[1])
    session = PlayerSession(
        session_id=session_id,
        query=snapshot.query,
        window=snapshot.window,
        total_albums=row[2],
    )
    # another request may have resumed it while the row was loading
    session = _sessions.setdefault(session_id, session)
    logger.info("Resumed session %s at position %d", session_id, session.window.current)
    return session


async def drop_session(session_id: str) -> None:
    """Forget a session once any operation running on it has finished."""
    session = _sessions.get(session_id)
    if session is None:
        await db.delete_session(session_id)
        return
    async with session.lock:
        session.dropped = True
        _sessions.pop(session_id, None)
        await db.delete_session(session_id)


# ---------------------------------------------------------------------------
# User actions
# ---------------------------------------------------------------------------

async def play_next(session: PlayerSession) -> None:
    """Move to the next song.  Raises ``EndOfCatalog`` at the end."""
    feeder = get_feeder()
    async with session.lock:
        if not feeder.has_next(session.query, session.window):
            raise EndOfCatalog("No next song")
        await feeder.next(session.query, session.window)
        session.total_albums = session.window.cursor.total.albums
        await _persist(session)
    logger.debug("Session %s → position %d", session.session_id, session.window.current)


async def play_previous(session: PlayerSession) -> None:
    """Move to the previous song.  Raises ``EndOfCatalog`` at the start."""
    feeder = get_feeder()
    async with session.lock:
        if not feeder.has_previous(session.query, session.window):
            raise EndOfCatalog("No previous song")
        await feeder.previous(session.query, session.window)
        session.total_albums = session.window.cursor.total.albums
        await _persist(session)
    logger.debug("Session %s → position %d", session.session_id, session.window.current)


async def set_loop(session: PlayerSession, enabled: bool) -> None:
    async with session.lock:
        session.window.set_loop(enabled)
        await _persist(session)

"""Async SQLite database layer.

Uses aiosqlite for non-blocking access.  Tables are created on first
startup via ``init_db()``.
"""

from __future__ import annotations

import aiosqlite

from app.config import get_settings

# Module-level connection (set during lifespan startup).
_db: aiosqlite.Connection | None = None

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sessions (
    id              TEXT    PRIMARY KEY,
    slots           TEXT    NOT NULL DEFAULT '{}',  -- JSON object of query slots
    window_state    TEXT    NOT NULL,               -- JSON window snapshot
    total_albums    INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL DEFAULT (datetime('now')),
    updated_at      TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_sessions_updated
    ON sessions(updated_at);
"""


# ---------------------------------------------------------------------------
# Lifecycle helpers
# ---------------------------------------------------------------------------

async def init_db() -> aiosqlite.Connection:
    """Open (or create) the SQLite database and ensure schema exists."""
    global _db  # noqa: PLW0603
    settings = get_settings()
    db_path = settings.db_abs_path

    _db = await aiosqlite.connect(str(db_path))
    _db.row_factory = aiosqlite.Row  # type: ignore[assignment]
    await _db.executescript(_SCHEMA_SQL)
    await _db.commit()
    return _db


async def close_db() -> None:
    """Close the database connection."""
    global _db  # noqa: PLW0603
    if _db is not None:
        await _db.close()
        _db = None


def get_db() -> aiosqlite.Connection:
    """Return the current database connection (call after init)."""
    if _db is None:
        raise RuntimeError("Database not initialised — call init_db() first.")
    return _db


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

async def save_session(
    session_id: str,
    slots_json: str,
    window_json: str,
    total_albums: int,
) -> None:
    """Upsert a session row."""
    db = get_db()
    await db.execute(
        """
        INSERT INTO sessions (id, slots, window_state, total_albums)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(id)
        DO UPDATE SET slots        = excluded.slots,
                      window_state = excluded.window_state,
                      total_albums = excluded.total_albums,
                      updated_at   = datetime('now')
        """,
        (session_id, slots_json, window_json, total_albums),
    )
    await db.commit()


async def load_session(session_id: str) -> aiosqlite.Row | None:
    """Return the ``(slots, window_state, total_albums)`` row of a session, if any."""
    db = get_db()
    cur = await db.execute(
        "SELECT slots, window_state, total_albums FROM sessions WHERE id = ?",
        (session_id,),
    )
    return await cur.fetchone()


async def delete_session(session_id: str) -> None:
    db = get_db()
    await db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
    await db.commit()

"""Ordering strategies: pagination, song order and cursor movement.

Each order key maps to exactly one strategy instance.  The feeder resolves the
strategy once per operation through ``get_strategy``; unknown keys raise
``UnknownOrderError``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from core.models import UNKNOWN_SONG, Cursor, Position, Song
from core.shuffle import shuffle_album_songs
from core.window import Window


class UnknownOrderError(ValueError):
    """Raised when an order key has no registered strategy."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown order: {name!r}")


class OrderKey(str, Enum):
    NATURAL = "natural"
    RANDOM = "random"


DEFAULT_ORDER = OrderKey.NATURAL


# ---------------------------------------------------------------------------
# Base strategy (natural order)
# ---------------------------------------------------------------------------

class OrderStrategy:
    """Album-by-album traversal of the catalog.

    Every page holds a single album, so ``cursor.current.album`` maps directly
    to a remote page and ``cursor.current.song`` to an index in that album.
    """

    key: OrderKey = OrderKey.NATURAL
    sort = "downloads desc"

    def get_page(self, cursor: Cursor, feeder_config: Any = None) -> Dict[str, Any]:
        """Catalog listing parameters for the album under the cursor."""
        return {
            "page": max(cursor.current.album, 0) + 1,
            "rows": 1,
            "sort": self.sort,
        }

    def songs_post_processing(self, songs: List[Song], cursor: Cursor) -> List[Song]:
        return list(songs)

    # -- boundaries ---------------------------------------------------------

    def has_next(self, window: Window) -> bool:
        song = window.current_song()
        if song is None:
            return False
        if window.has_next_song():
            return True
        return (
            song.position + 1 < song.album_size
            or song.album_index + 1 < window.cursor.total.albums
        )

    def has_previous(self, window: Window) -> bool:
        song = window.current_song()
        if song is None:
            return False
        if window.has_previous_song():
            return True
        return song.position > 0 or song.album_index > 0

    # -- cursor movement ----------------------------------------------------

    def move_source_cursor_to_the_next_position(self, window: Window) -> None:
        cursor = window.cursor
        neighbour = window.peek(1)
        if neighbour is not None:
            cursor.current = Position(album=neighbour.album_index, song=neighbour.position)
            return

        album, song, size = self._current_coordinates(window)
        if song + 1 < size:
            cursor.current = Position(album=album, song=song + 1)
            return

        album += 1
        if cursor.total.albums and album >= cursor.total.albums:
            # past the last album, only reachable in loop mode
            album = 0
        cursor.current = Position(album=album, song=0)

    def move_source_cursor_to_the_previous_position(self, window: Window) -> None:
        cursor = window.cursor
        neighbour = window.peek(-1)
        if neighbour is not None:
            cursor.current = Position(album=neighbour.album_index, song=neighbour.position)
            return

        album, song, _ = self._current_coordinates(window)
        if song > 0:
            cursor.current = Position(album=album, song=song - 1)
            return

        album -= 1
        if album < 0:
            album = max(cursor.total.albums - 1, 0)
        # size of that album is unknown until it is fetched
        cursor.current = Position(album=album, song=UNKNOWN_SONG)

    def clamp_cursor_song_position(self, cursor: Cursor, max_index: int) -> None:
        cursor.current.song = max(0, min(cursor.current.song, max_index))

    def update_cursor_total(
        self,
        cursor: Cursor,
        *,
        songs_in_first_album: Optional[int] = None,
        num_of_songs_in_last_album: Optional[int] = None,
        total_num_of_albums: Optional[int] = None,
    ) -> None:
        if songs_in_first_album is not None:
            cursor.total.songs = songs_in_first_album
        elif num_of_songs_in_last_album is not None:
            cursor.total.songs = num_of_songs_in_last_album
        if total_num_of_albums:
            cursor.total.albums = total_num_of_albums

    @staticmethod
    def _current_coordinates(window: Window) -> tuple[int, int, int]:
        song = window.current_song()
        if song is not None:
            return song.album_index, song.position, song.album_size
        cursor = window.cursor
        return cursor.current.album, cursor.current.song, cursor.total.songs


class NaturalOrder(OrderStrategy):
    key = OrderKey.NATURAL


class RandomOrder(OrderStrategy):
    """Albums in catalog order, songs of each album shuffled.

    The shuffle is seeded by the album identifier so fetching the same album
    again (e.g. when moving backward) yields the same order.
    """

    key = OrderKey.RANDOM

    def songs_post_processing(self, songs: List[Song], cursor: Cursor) -> List[Song]:
        return shuffle_album_songs(songs)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_STRATEGIES: Dict[OrderKey, OrderStrategy] = {
    OrderKey.NATURAL: NaturalOrder(),
    OrderKey.RANDOM: RandomOrder(),
}


def known_orders() -> List[str]:
    return [key.value for key in OrderKey]


def get_strategy(name: Optional[str], default: str = DEFAULT_ORDER.value) -> OrderStrategy:
    """Return the strategy registered for *name* (or *default* when empty)."""
    name = name or default
    try:
        return _STRATEGIES[OrderKey(name)]
    except ValueError:
        raise UnknownOrderError(name) from None

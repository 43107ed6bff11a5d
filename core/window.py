"""Window store — the bounded, materialised part of a playlist.

Holds the songs currently in memory, the play pointer, the loop flag and the
remote cursor.  Pure state, no I/O: the feeder decides what goes in and out.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from core.models import Cursor, Song


class Window(BaseModel):
    """Bounded ordered sequence of songs plus a play pointer."""

    items: List[Song] = Field(default_factory=list)
    current: int = 0
    loop: bool = False
    cursor: Cursor = Field(default_factory=Cursor)

    def create(self, songs: List[Song], *, cursor: Cursor) -> None:
        """(Re)initialise the window with a fresh song list and cursor."""
        self.items = list(songs)
        self.current = 0
        self.cursor = cursor

    def get_items(self) -> List[Song]:
        return list(self.items)

    def update_items(self, songs: List[Song]) -> None:
        self.items = list(songs)

    def shift(self, offset: int) -> None:
        """Move the reference position without touching the items.

        Used after eviction or prepending so the pointer keeps referencing
        the same logical song.
        """
        self.current += offset

    def next(self) -> None:
        if not self.has_next_song():
            raise IndexError("No next song in window")
        self.current += 1

    def previous(self) -> None:
        if not self.has_previous_song():
            raise IndexError("No previous song in window")
        self.current -= 1

    def has_next_song(self) -> bool:
        return self.current + 1 < len(self.items)

    def has_previous_song(self) -> bool:
        return 0 < self.current <= len(self.items)

    def is_loop(self) -> bool:
        return self.loop

    def set_loop(self, enabled: bool) -> None:
        self.loop = enabled

    def is_empty(self) -> bool:
        return not self.items

    def peek(self, offset: int = 0) -> Optional[Song]:
        """Song at ``current + offset`` or None outside the window."""
        index = self.current + offset
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def current_song(self) -> Optional[Song]:
        return self.peek(0)

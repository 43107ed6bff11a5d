"""Pydantic models shared across the application."""

from __future__ import annotations

import sys
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

# Song index used while moving backward into an album of unknown size.
# Always clamped once the album has been fetched.
UNKNOWN_SONG = sys.maxsize


class Song(BaseModel):
    """A playable file of an album, with its coordinates in the traversal."""

    identifier: str  # album item id, e.g. "gd1977-05-08.sbd.hicks.4982.sbeok.shnf"
    filename: str
    title: str = ""
    url: str = ""
    album_title: str = ""
    creator: str = ""
    year: Optional[int] = None
    length: Optional[float] = None  # seconds

    album_index: int = 0
    position: int = 0
    album_size: int = 0


class AlbumRef(BaseModel):
    """Album as returned by the catalog listing (no songs yet)."""

    identifier: str
    title: str = ""


class Album(BaseModel):
    identifier: str
    title: str = ""
    creator: str = ""
    year: Optional[int] = None
    songs: List[Song] = Field(default_factory=list)


class AlbumPage(BaseModel):
    """One page of the remote album listing."""

    items: List[AlbumRef] = Field(default_factory=list)
    total: int = 0
    start: int = 0  # remote index of items[0]


class Chunk(BaseModel):
    """Songs of one fetch, consumed once by the feeder."""

    songs: List[Song] = Field(default_factory=list)
    songs_in_first_album: int = 0
    num_of_songs_in_last_album: int = 0
    total_num_of_albums: int = 0


class Position(BaseModel):
    album: int = 0
    song: int = 0


class Totals(BaseModel):
    albums: int = 0
    songs: int = 0  # songs of the most recently fetched edge album


class Cursor(BaseModel):
    """Position of the traversal in the remote catalog."""

    current: Position = Field(default_factory=Position)
    total: Totals = Field(default_factory=Totals)


class Query(BaseModel):
    """Slot values of a session: ``order`` plus catalog filters."""

    slots: Dict[str, str] = Field(default_factory=dict)

    @property
    def order(self) -> Optional[str]:
        return self.slots.get("order")

    @property
    def filters(self) -> Dict[str, str]:
        return {k: v for k, v in self.slots.items() if k != "order" and v}


class BuildResult(BaseModel):
    total: int = 0  # number of albums, the song total is generally unknown

"""Async albums feeder — fetches songs on demand.

Keeps a bounded window of songs over an unbounded remote catalog:

  - memory efficient, only the songs around the play pointer are loaded
  - copes with very large or unlimited catalogs
  - moving past the window edge costs a round-trip to the catalog
  - the real size of the playlist is generally unknown

The window and its cursor belong to the caller; at most one feeder operation
may run per window at a time (``app.player`` serializes them per session).
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from app.catalog import AlbumFetchError, CatalogClient, CatalogError
from app.config import FeederConfig, Settings, get_settings
from core.models import Album, BuildResult, Chunk, Cursor, Query, Song, Totals
from core.orders import OrderStrategy, get_strategy
from core.window import Window

logger = logging.getLogger(__name__)

_ALBUM_FETCH_RETRY = 3
_ALBUM_FETCH_DELAY = 0.1  # seconds


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ExhaustedEmptyRetry(Exception):
    """Albums kept coming back without a single song."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Received zero songs {attempts} time(s) in a row")


class EndOfCatalog(Exception):
    """There is no song to move onto in the requested direction."""


# ---------------------------------------------------------------------------
# Feeder
# ---------------------------------------------------------------------------

class AlbumsFeeder:
    """Windowed feeder over the album catalog."""

    def __init__(self, catalog: CatalogClient, settings: Optional[Settings] = None):
        self.catalog = catalog
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def get_strategy(self, query: Query) -> OrderStrategy:
        return get_strategy(query.order, self.settings.default_order)

    def get_config_for_order(self, query: Query) -> FeederConfig:
        return self.settings.feeder_config(query.order)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    async def build(self, query: Query, window: Window) -> BuildResult:
        """Prefetch the first chunk of songs and (re)create the window."""
        logger.debug("Build async albums feeder for %s", query.slots)
        cursor = Cursor()
        chunk = await self.fetch_chunk_of_songs(query, cursor)

        songs = self._process_new_songs_before_move_to_next(query, cursor, chunk.songs)
        cursor.total = Totals(
            songs=chunk.songs_in_first_album,
            albums=chunk.total_num_of_albums,
        )
        window.create(songs, cursor=cursor)
        logger.info(
            "Window created with %d song(s), %d album(s) in catalog",
            len(songs), chunk.total_num_of_albums,
        )
        return BuildResult(total=chunk.total_num_of_albums)

    # ------------------------------------------------------------------
    # Chunk fetching
    # ------------------------------------------------------------------

    async def fetch_chunk_of_songs(self, query: Query, cursor: Cursor) -> Chunk:
        """Fetch the page of albums under *cursor* and flatten their songs.

        Albums whose details can't be fetched are dropped.  A page whose
        albums hold no song at all is fetched again, up to
        ``Settings.empty_chunk_retries`` times.

        Raises
        ------
        CatalogError
            The album listing failed.
        ExhaustedEmptyRetry
            Every attempt returned albums without songs.
        """
        page = self.get_strategy(query).get_page(cursor, self.get_config_for_order(query))
        attempts = self.settings.empty_chunk_retries + 1

        for attempt in range(attempts):
            chunk = await self._fetch_chunk_once(query, page)
            if chunk is not None:
                return chunk
            logger.warning(
                "Received zero songs for page %s, it doesn't sound ok (attempt %d/%d)",
                page, attempt + 1, attempts,
            )

        raise ExhaustedEmptyRetry(attempts)

    async def _fetch_chunk_once(self, query: Query, page: dict) -> Optional[Chunk]:
        """One fetch; None when the albums came back without songs."""
        try:
            album_page = await self.catalog.list_albums(filters=query.filters, **page)
        except CatalogError as exc:
            logger.error("Album listing failed for page %s: %s", page, exc)
            raise

        if album_page is None:
            logger.warning("Received no albums for page %s", page)
            return Chunk()

        logger.debug(
            "Got %d album(s), %d in total", len(album_page.items), album_page.total
        )
        fetched = await asyncio.gather(
            *(self._fetch_album(ref.identifier) for ref in album_page.items)
        )
        albums = [
            (album_page.start + i, album)
            for i, album in enumerate(fetched)
            if album is not None
        ]
        if not albums:
            logger.debug("None of the albums survived")
            return Chunk()

        songs: List[Song] = []
        for album_index, album in albums:
            songs.extend(_stamp_album_songs(album_index, album))
        if not songs:
            return None

        return Chunk(
            songs=songs,
            songs_in_first_album=len(albums[0][1].songs),
            num_of_songs_in_last_album=len(albums[-1][1].songs),
            total_num_of_albums=album_page.total,
        )

    async def _fetch_album(self, identifier: str) -> Optional[Album]:
        try:
            return await self.catalog.fetch_album_details(
                identifier, retry=_ALBUM_FETCH_RETRY, delay=_ALBUM_FETCH_DELAY
            )
        except AlbumFetchError as exc:
            logger.warning("Failed on fetching details about album %s: %s", identifier, exc)
            return None

    # ------------------------------------------------------------------
    # Post-processing
    # ------------------------------------------------------------------

    def _process_new_songs_before_move_to_next(
        self, query: Query, cursor: Cursor, songs: List[Song]
    ) -> List[Song]:
        config = self.get_config_for_order(query)
        songs = self.get_strategy(query).songs_post_processing(songs, cursor)
        # songs before the cursor were already played
        songs = songs[cursor.current.song:]
        return songs[: config.chunk.songs]

    def _process_new_songs_before_move_to_previous(
        self, query: Query, cursor: Cursor, songs: List[Song]
    ) -> List[Song]:
        config = self.get_config_for_order(query)
        songs = self.get_strategy(query).songs_post_processing(songs, cursor)
        # songs after the cursor are already in the window
        songs = songs[: cursor.current.song + 1]
        return songs[-config.chunk.songs:]

    # ------------------------------------------------------------------
    # Boundaries
    # ------------------------------------------------------------------

    def has_next(self, query: Query, window: Window) -> bool:
        if window.is_loop():
            return not window.is_empty()
        return self.get_strategy(query).has_next(window)

    def has_previous(self, query: Query, window: Window) -> bool:
        if window.is_loop():
            return not window.is_empty()
        return self.get_strategy(query).has_previous(window)

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    async def next(self, query: Query, window: Window) -> None:
        """Move to the next song, fetching a new chunk at the window edge."""
        logger.debug("Move to the next song")
        strategy = self.get_strategy(query)
        capacity = self.get_config_for_order(query).chunk.songs
        snapshot = window.cursor.model_copy(deep=True)
        moved = False

        strategy.move_source_cursor_to_the_next_position(window)
        try:
            if window.has_next_song():
                logger.debug("Next song is in the window, no fetch needed")
            else:
                logger.debug("No next song in the window, fetching %s", window.cursor.current)
                chunk = await self.fetch_chunk_of_songs(query, window.cursor)
                songs = self._process_new_songs_before_move_to_next(
                    query, window.cursor, chunk.songs
                )
                if not songs:
                    raise EndOfCatalog("No song after the current one")

                items = window.get_items() + songs
                if len(items) > capacity:
                    shift = len(items) - capacity
                    logger.debug("Drop %d old song(s)", shift)
                    items = items[shift:]
                    window.shift(-shift)
                window.update_items(items)

                strategy.update_cursor_total(
                    window.cursor,
                    songs_in_first_album=chunk.songs_in_first_album,
                    total_num_of_albums=chunk.total_num_of_albums,
                )
            moved = True
        finally:
            if not moved:
                window.cursor = snapshot

        window.next()

    async def previous(self, query: Query, window: Window) -> None:
        """Move to the previous song, fetching a new chunk at the window edge."""
        logger.debug("Move to the previous song")
        strategy = self.get_strategy(query)
        capacity = self.get_config_for_order(query).chunk.songs
        snapshot = window.cursor.model_copy(deep=True)
        moved = False

        strategy.move_source_cursor_to_the_previous_position(window)
        try:
            if window.has_previous_song():
                logger.debug("Previous song is in the window, no fetch needed")
            else:
                logger.debug("No previous song in the window, fetching %s", window.cursor.current)
                chunk = await self.fetch_chunk_of_songs(query, window.cursor)
                strategy.clamp_cursor_song_position(
                    window.cursor, chunk.num_of_songs_in_last_album - 1
                )
                songs = self._process_new_songs_before_move_to_previous(
                    query, window.cursor, chunk.songs
                )
                if not songs:
                    raise EndOfCatalog("No song before the current one")

                items = songs + window.get_items()
                if len(items) > capacity:
                    logger.debug("Drop %d old song(s)", len(items) - capacity)
                    items = items[:capacity]
                # new songs take the slots before the pointer
                window.shift(len(songs))
                window.update_items(items)

                strategy.update_cursor_total(
                    window.cursor,
                    num_of_songs_in_last_album=chunk.num_of_songs_in_last_album,
                    total_num_of_albums=chunk.total_num_of_albums,
                )
            moved = True
        finally:
            if not moved:
                window.cursor = snapshot

        window.previous()


def _stamp_album_songs(album_index: int, album: Album) -> List[Song]:
    """Attach traversal coordinates to the songs of one album."""
    size = len(album.songs)
    return [
        song.model_copy(update={"album_index": album_index, "position": i, "album_size": size})
        for i, song in enumerate(album.songs)
    ]

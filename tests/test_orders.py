"""Tests for the ordering strategies (core/orders.py), pure logic."""

from __future__ import annotations

import pytest

from core.models import UNKNOWN_SONG, Cursor, Position, Song, Totals
from core.orders import (
    NaturalOrder,
    OrderKey,
    RandomOrder,
    UnknownOrderError,
    get_strategy,
    known_orders,
)
from core.window import Window


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _album(album_index: int, size: int, identifier: str | None = None) -> list[Song]:
    identifier = identifier or f"album{album_index}"
    return [
        Song(
            identifier=identifier,
            filename=f"{identifier}-{i}",
            album_index=album_index,
            position=i,
            album_size=size,
        )
        for i in range(size)
    ]


def _window(songs: list[Song], current: int = 0, *, total_albums: int = 3) -> Window:
    window = Window()
    song = songs[current]
    window.create(
        songs,
        cursor=Cursor(
            current=Position(album=song.album_index, song=song.position),
            total=Totals(albums=total_albums, songs=song.album_size),
        ),
    )
    window.current = current
    return window


def _at(window: Window) -> tuple[int, int]:
    return window.cursor.current.album, window.cursor.current.song


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_known_orders(self):
        assert known_orders() == ["natural", "random"]

    def test_lookup_by_name(self):
        assert isinstance(get_strategy("random"), RandomOrder)
        assert get_strategy("natural").key is OrderKey.NATURAL

    def test_empty_name_uses_default(self):
        assert isinstance(get_strategy(None), NaturalOrder)
        assert isinstance(get_strategy("", default="random"), RandomOrder)

    def test_unknown_name_raises(self):
        with pytest.raises(UnknownOrderError, match="shuffle-all"):
            get_strategy("shuffle-all")


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

def test_page_follows_album_cursor():
    cursor = Cursor(current=Position(album=4, song=2))
    assert NaturalOrder().get_page(cursor) == {"page": 5, "rows": 1, "sort": "downloads desc"}


# ---------------------------------------------------------------------------
# Cursor movement
# ---------------------------------------------------------------------------

class TestMoveNext:
    def test_syncs_to_window_neighbour(self):
        songs = _album(0, 2) + _album(1, 2)
        window = _window(songs, current=1)
        NaturalOrder().move_source_cursor_to_the_next_position(window)
        assert _at(window) == (1, 0)

    def test_next_song_of_same_album(self):
        window = _window(_album(2, 5)[:3], current=2)
        NaturalOrder().move_source_cursor_to_the_next_position(window)
        assert _at(window) == (2, 3)

    def test_first_song_of_next_album(self):
        window = _window(_album(0, 2), current=1)
        NaturalOrder().move_source_cursor_to_the_next_position(window)
        assert _at(window) == (1, 0)

    def test_wraps_after_last_album(self):
        window = _window(_album(2, 2), current=1, total_albums=3)
        NaturalOrder().move_source_cursor_to_the_next_position(window)
        assert _at(window) == (0, 0)


class TestMovePrevious:
    def test_syncs_to_window_neighbour(self):
        songs = _album(0, 3) + _album(1, 2)
        window = _window(songs, current=3)
        NaturalOrder().move_source_cursor_to_the_previous_position(window)
        assert _at(window) == (0, 2)

    def test_previous_song_of_same_album(self):
        window = _window(_album(1, 5)[3:], current=0)
        NaturalOrder().move_source_cursor_to_the_previous_position(window)
        assert _at(window) == (1, 2)

    def test_previous_album_size_is_unknown(self):
        window = _window(_album(1, 2), current=0)
        NaturalOrder().move_source_cursor_to_the_previous_position(window)
        assert _at(window) == (0, UNKNOWN_SONG)

    def test_wraps_before_first_album(self):
        window = _window(_album(0, 2), current=0, total_albums=4)
        NaturalOrder().move_source_cursor_to_the_previous_position(window)
        assert _at(window) == (3, UNKNOWN_SONG)


def test_clamp_cursor_song_position():
    cursor = Cursor(current=Position(album=0, song=UNKNOWN_SONG))
    NaturalOrder().clamp_cursor_song_position(cursor, 6)
    assert cursor.current.song == 6

    NaturalOrder().clamp_cursor_song_position(cursor, -1)
    assert cursor.current.song == 0


class TestUpdateCursorTotal:
    def test_first_album_count(self):
        cursor = Cursor(total=Totals(albums=3, songs=1))
        NaturalOrder().update_cursor_total(cursor, songs_in_first_album=7, total_num_of_albums=5)
        assert (cursor.total.albums, cursor.total.songs) == (5, 7)

    def test_last_album_count_keeps_known_total(self):
        cursor = Cursor(total=Totals(albums=3, songs=1))
        NaturalOrder().update_cursor_total(cursor, num_of_songs_in_last_album=4, total_num_of_albums=0)
        assert (cursor.total.albums, cursor.total.songs) == (3, 4)


# ---------------------------------------------------------------------------
# Boundaries
# ---------------------------------------------------------------------------

class TestBoundaries:
    def test_middle_of_catalog(self):
        window = _window(_album(1, 3), current=0)
        assert NaturalOrder().has_next(window) is True
        assert NaturalOrder().has_previous(window) is True

    def test_very_first_song(self):
        window = _window(_album(0, 1), current=0)
        assert NaturalOrder().has_previous(window) is False

    def test_very_last_song(self):
        window = _window(_album(2, 2), current=1, total_albums=3)
        assert NaturalOrder().has_next(window) is False

    def test_end_of_window_but_not_of_album(self):
        window = _window(_album(2, 5)[:2], current=1, total_albums=3)
        assert NaturalOrder().has_next(window) is True

    def test_empty_window(self):
        assert NaturalOrder().has_next(Window()) is False
        assert NaturalOrder().has_previous(Window()) is False


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

class TestSongsPostProcessing:
    def test_natural_keeps_order(self):
        songs = _album(0, 4)
        assert NaturalOrder().songs_post_processing(songs, Cursor()) == songs

    def test_random_is_deterministic_per_album(self):
        songs = _album(0, 12)
        first = RandomOrder().songs_post_processing(songs, Cursor())
        second = RandomOrder().songs_post_processing(songs, Cursor())
        assert [s.filename for s in first] == [s.filename for s in second]
        assert sorted(s.filename for s in first) == sorted(s.filename for s in songs)
        assert [s.position for s in first] == list(range(12))

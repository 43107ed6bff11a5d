"""Tests for the window store (core/window.py)."""

from __future__ import annotations

import pytest

from core.models import Cursor, Position, Song
from core.window import Window


def _songs(n: int) -> list[Song]:
    return [Song(identifier="album", filename=f"s{i}", position=i, album_size=n) for i in range(n)]


def _window(n: int = 3, current: int = 0) -> Window:
    window = Window()
    window.create(_songs(n), cursor=Cursor())
    window.current = current
    return window


class TestCreate:
    def test_create_resets_pointer_and_cursor(self):
        window = _window(3, current=2)
        cursor = Cursor(current=Position(album=4, song=1))
        window.create(_songs(2), cursor=cursor)
        assert window.current == 0
        assert len(window.get_items()) == 2
        assert window.cursor is cursor

    def test_get_items_returns_copy(self):
        window = _window(3)
        items = window.get_items()
        items.pop()
        assert len(window.items) == 3


class TestMoves:
    def test_next_and_previous(self):
        window = _window(3)
        window.next()
        window.next()
        assert window.current_song().filename == "s2"
        window.previous()
        assert window.current_song().filename == "s1"

    def test_next_past_end_raises(self):
        window = _window(2, current=1)
        assert window.has_next_song() is False
        with pytest.raises(IndexError):
            window.next()

    def test_previous_before_start_raises(self):
        window = _window(2)
        assert window.has_previous_song() is False
        with pytest.raises(IndexError):
            window.previous()

    def test_shift_moves_reference_only(self):
        window = _window(5, current=3)
        window.shift(-2)
        assert window.current == 1
        assert len(window.items) == 5


class TestPeek:
    def test_peek_neighbours(self):
        window = _window(3, current=1)
        assert window.peek(-1).filename == "s0"
        assert window.peek(1).filename == "s2"

    def test_peek_outside_is_none(self):
        window = _window(2, current=1)
        assert window.peek(1) is None
        assert window.peek(-2) is None

    def test_empty_window_has_no_current_song(self):
        window = Window()
        assert window.is_empty()
        assert window.current_song() is None
        assert window.has_next_song() is False
        assert window.has_previous_song() is False


def test_loop_flag():
    window = Window()
    assert window.is_loop() is False
    window.set_loop(True)
    assert window.is_loop() is True

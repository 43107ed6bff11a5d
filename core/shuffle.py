"""Shuffle helpers — pure logic, no I/O.

Provides:
- Fisher–Yates shuffle (unbiased)
- Per-album seeded shuffle, reproducible across re-fetches
"""

from __future__ import annotations

import random
from itertools import groupby
from typing import List, Optional, Sequence, TypeVar

from core.models import Song

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Fisher–Yates Shuffle
# ---------------------------------------------------------------------------

def fisher_yates_shuffle(
    items: List[T],
    rng: Optional[random.Random] = None,
) -> List[T]:
    """In-place unbiased Fisher–Yates (Knuth) shuffle.

    Parameters
    ----------
    items:
        List to shuffle.  Will be **mutated** in place.
    rng:
        Optional ``random.Random`` instance for deterministic results.

    Returns
    -------
    The same list (shuffled in place) for convenience.
    """
    rng = rng or random.Random()
    n = len(items)
    for i in range(n - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


# ---------------------------------------------------------------------------
# Seeded album shuffle
# ---------------------------------------------------------------------------

def album_rng(identifier: str, seed: str = "") -> random.Random:
    """Random generator that always yields the same sequence for an album."""
    return random.Random(f"{seed}:{identifier}")


def shuffle_album_songs(songs: Sequence[Song], seed: str = "") -> List[Song]:
    """Shuffle songs inside each album, keeping albums in their order.

    Songs must be grouped by album (as a fetched chunk is).  Positions are
    re-stamped so that ``position`` is the index in the shuffled album.

    Returns a **new** list (does not mutate input).
    """
    result: List[Song] = []
    for _, group in groupby(songs, key=lambda s: (s.album_index, s.identifier)):
        album = list(group)
        fisher_yates_shuffle(album, rng=album_rng(album[0].identifier, seed))
        result.extend(
            song.model_copy(update={"position": i, "album_size": len(album)})
            for i, song in enumerate(album)
        )
    return result

"""Piece orientation generation on the 6x6 field."""

from __future__ import annotations

from functools import lru_cache
from typing import FrozenSet, Iterable, Set, Tuple

from bitboard_helpers import (
    can_shift_down,
    can_shift_right,
    flip_and_flush,
    flush_left,
    flush_top,
    rotate_and_flush,
    shift_down,
    shift_right,
)


def base_orientations(piece: int) -> FrozenSet[int]:
    """Return every reflection/rotation of a piece, each flushed to the top-left corner."""
    piece = flush_top(flush_left(piece))
    flipped = flip_and_flush(piece)
    orientations: Set[int] = {piece, flipped}

    for start in (piece, flipped):
        current = start
        for _ in range(3):
            current = rotate_and_flush(current)
            orientations.add(current)

    return frozenset(orientations)


def iter_translations(orientation: int) -> Iterable[int]:
    """Yield an orientation and all of its right/down slides inside the field."""
    yield orientation

    shifted = orientation
    while can_shift_right(shifted):
        shifted = shift_right(shifted)
        yield shifted

    row = orientation
    while can_shift_down(row):
        row = shift_down(row)
        yield row
        shifted = row
        while can_shift_right(shifted):
            shifted = shift_right(shifted)
            yield shifted


def piece_positions(piece: int) -> FrozenSet[int]:
    """Return the deduplicated set of all board positions a piece can occupy."""
    positions: Set[int] = set()
    for orientation in base_orientations(piece):
        positions.update(iter_translations(orientation))
    return frozenset(positions)


@lru_cache(maxsize=8)
def build_piece_positions(pieces: Tuple[int, ...]) -> Tuple[FrozenSet[int], ...]:
    """Precompute the position sets of a catalog, indexed like the catalog."""
    return tuple(piece_positions(piece) for piece in pieces)

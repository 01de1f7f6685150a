"""Bitboard helpers for the 6x6 field packed into an 8x8 grid word.

Bit 63 is the top-left cell and bits run row-major, so moving right or down
means shifting towards lower bit indices.
"""

from __future__ import annotations

from typing import Iterable, Tuple

# =========================
# Board configuration
# =========================
N = 6
GRID = 8
NUM_SQUARES = N * N  # 36
WORD_MASK = (1 << 64) - 1

TOP_ROW = 0xFF00000000000000
BOTTOM_ROW = TOP_ROW >> (GRID * (N - 1))
LEFT_COLUMN = 0x8080808080808080
RIGHT_COLUMN = LEFT_COLUMN >> (N - 1)


def build_empty_field() -> int:
    """Return the padding border (columns and rows past the 6x6 field) as set bits."""
    field = 0
    for offset in range(1, GRID - N + 1):
        field |= RIGHT_COLUMN >> offset
        field |= BOTTOM_ROW >> (GRID * offset)
    return field


EMPTY_FIELD = build_empty_field()
PLAYABLE_FIELD = ~EMPTY_FIELD & WORD_MASK

# =========================
# Cell / bit helpers
# =========================
def cell_to_bit(row: int, col: int) -> int:
    """Return the bit index of a (row, col) cell."""
    return 63 - (row * GRID + col)


def bit_to_cell(bit: int) -> Tuple[int, int]:
    """Return the (row, col) cell of a bit index."""
    return divmod(63 - bit, GRID)


def cells_to_bitmask(cells: Iterable[Tuple[int, int]]) -> int:
    """Convert (row, col) cells into a grid word."""
    mask = 0
    for row, col in cells:
        mask |= 1 << cell_to_bit(row, col)
    return mask


def count_set_bits(value: int) -> int:
    """Return the number of set bits in value."""
    return bin(value).count("1")


def iter_set_bits(mask: int) -> Iterable[int]:
    """Yield set bit positions from a bitmask."""
    while mask:
        least_significant_bit = mask & -mask
        yield least_significant_bit.bit_length() - 1
        mask ^= least_significant_bit


def format_bitboard(value: int, filled: str = "#", empty: str = ".") -> str:
    """Render the non-empty rows of a grid word, top row first."""
    lines = []
    for row in range(GRID):
        line = (value >> ((GRID - 1 - row) * GRID)) & 0xFF
        if line:
            lines.append(f"{line:08b}".replace("1", filled).replace("0", empty))
    return "\n".join(lines)

# =========================
# Shifts
# =========================
def can_shift_left(value: int) -> bool:
    return value & LEFT_COLUMN == 0


def can_shift_right(value: int) -> bool:
    return value & RIGHT_COLUMN == 0


def can_shift_up(value: int) -> bool:
    return value & TOP_ROW == 0


def can_shift_down(value: int) -> bool:
    return value & BOTTOM_ROW == 0


def shift_right(value: int) -> int:
    return value >> 1


def shift_down(value: int) -> int:
    return value >> GRID


def flush_left(value: int) -> int:
    """Slide a shape left until it touches the left column."""
    while value and can_shift_left(value):
        value = (value << 1) & WORD_MASK
    return value


def flush_top(value: int) -> int:
    """Slide a shape up until it touches the top row."""
    while value and can_shift_up(value):
        value = (value << GRID) & WORD_MASK
    return value

# =========================
# Flips and rotation
# =========================
def flip_diagonal(value: int) -> int:
    """Mirror the 8x8 grid about the diagonal from the top-right to the bottom-left cell."""
    k1 = 0xAA00AA00AA00AA00
    k2 = 0xCCCC0000CCCC0000
    k4 = 0xF0F0F0F00F0F0F0F
    t = value ^ ((value << 36) & WORD_MASK)
    value ^= k4 & (t ^ (value >> 36))
    t = k2 & (value ^ (value << 18))
    value ^= t ^ (t >> 18)
    t = k1 & (value ^ (value << 9))
    value ^= t ^ (t >> 9)
    return value & WORD_MASK


def flip_vertical(value: int) -> int:
    """Reverse the order of the eight rows."""
    k1 = 0x00FF00FF00FF00FF
    k2 = 0x0000FFFF0000FFFF
    value = ((value >> 8) & k1) | ((value & k1) << 8)
    value = ((value >> 16) & k2) | ((value & k2) << 16)
    value = (value >> 32) | ((value << 32) & WORD_MASK)
    return value & WORD_MASK


def rotate90(value: int) -> int:
    """Rotate the 8x8 grid a quarter turn clockwise."""
    return flip_vertical(flip_diagonal(value))


def flip_and_flush(value: int) -> int:
    return flush_left(flush_top(flip_vertical(value)))


def rotate_and_flush(value: int) -> int:
    return flush_left(flush_top(rotate90(value)))

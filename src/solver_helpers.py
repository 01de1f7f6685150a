"""Placement search, solution bookkeeping and per-combination summaries."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import (
    DefaultDict,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from bitboard_helpers import EMPTY_FIELD, GRID, N, WORD_MASK, bit_to_cell, iter_set_bits
from piece_helpers import build_piece_positions
from puzzle_config import BLANK, PuzzleConfig, canonical_letters

LOGGER = logging.getLogger(__name__)

Placement = Dict[int, int]  # piece index -> position word

NONE_SOLVABLE_MARKER = "--- 0 solvable ---"

# =========================
# Target index
# =========================
class TargetIndex:
    """Lookup from canonical letter strings to target indices."""

    def __init__(self, targets: Sequence[str]) -> None:
        self.targets = tuple(targets)
        self.canonical = tuple(canonical_letters(target) for target in self.targets)
        self._index_by_letters: Dict[str, int] = {}
        for index, letters in enumerate(self.canonical):
            self._index_by_letters.setdefault(letters, index)

    def __len__(self) -> int:
        return len(self.targets)

    def match(self, letters: str) -> Optional[int]:
        """Return the index of the target spelled by letters, or None."""
        return self._index_by_letters.get(letters)

# =========================
# Solution recorder
# =========================
def covered_field(placement: Placement, field: int = EMPTY_FIELD) -> int:
    """Return the board word with every placed position set."""
    for position in placement.values():
        field |= position
    return field


def uncovered_letters(field: int, board_letters: Sequence[str]) -> str:
    """Return the sorted letters of the cells not covered by field.

    Bit 0 is never inspected; on a legal board it belongs to the border.
    """
    holes = ~field & WORD_MASK
    letters: List[str] = []
    for bit in range(1, 64):
        if holes >> bit & 1:
            index = 63 - bit
            letters.append(board_letters[(index // GRID) * N + index % GRID])
    return "".join(sorted(letter for letter in letters if letter != BLANK))


class SolutionArchive:
    """Placement maps filed under (omitted piece, target index)."""

    def __init__(self) -> None:
        self._buckets: DefaultDict[Tuple[int, int], List[Placement]] = defaultdict(list)

    def record(self, omitted: int, target_index: int, placement: Placement) -> None:
        self._buckets[(omitted, target_index)].append(dict(placement))

    def solutions(self, omitted: int, target_index: int) -> List[Placement]:
        return list(self._buckets.get((omitted, target_index), ()))

    def has_solution(self, omitted: int, target_index: int) -> bool:
        return bool(self._buckets.get((omitted, target_index)))

    def count(self, omitted: int, target_index: int) -> int:
        return len(self._buckets.get((omitted, target_index), ()))

    def total(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())


def record_placement(
    archive: SolutionArchive,
    target_index: TargetIndex,
    board_letters: Sequence[str],
    omitted: int,
    placement: Placement,
) -> Optional[int]:
    """File a complete placement map under the target it spells, if any."""
    letters = uncovered_letters(covered_field(placement), board_letters)
    matched = target_index.match(letters)
    if matched is not None:
        archive.record(omitted, matched, placement)
    return matched

# =========================
# Placement search
# =========================
def iter_placements(
    positions: Sequence[FrozenSet[int]],
    piece_order: Sequence[int],
    field: int = EMPTY_FIELD,
) -> Iterator[Placement]:
    """Yield every placement of the pieces, in order, that does not overlap field.

    Each yielded map is a fresh copy. Only overlapping positions are rejected.
    """
    placement_by_piece: Placement = {}
    depth_limit = len(piece_order)

    def dfs(current: int, depth: int) -> Iterator[Placement]:
        if depth == depth_limit:
            yield dict(placement_by_piece)
            return

        piece = piece_order[depth]
        for position in positions[piece]:
            if current & position:
                continue
            placement_by_piece[piece] = position
            try:
                yield from dfs(current | position, depth + 1)
            finally:
                del placement_by_piece[piece]

    yield from dfs(field, 0)

# =========================
# Combination driver
# =========================
def iter_combinations(piece_count: int, pieces_per_combination: int) -> Iterator[Tuple[int, ...]]:
    """Yield every combination of piece indices in lexicographic order."""
    return combinations(range(piece_count), pieces_per_combination)


def solve_combination(
    config: PuzzleConfig,
    combination: Sequence[int],
    positions: Optional[Sequence[FrozenSet[int]]] = None,
    target_index: Optional[TargetIndex] = None,
) -> SolutionArchive:
    """Search every all-but-one subset of a combination into a new archive."""
    if positions is None:
        positions = build_piece_positions(config.pieces)
    if target_index is None:
        target_index = TargetIndex(config.targets)

    archive = SolutionArchive()
    for omitted in combination:
        used_pieces = [piece for piece in combination if piece != omitted]
        for placement in iter_placements(positions, used_pieces):
            record_placement(archive, target_index, config.board_letters, omitted, placement)
    LOGGER.debug("combination %s: %d recorded solutions", tuple(combination), archive.total())
    return archive

# =========================
# Report
# =========================
@dataclass(frozen=True)
class CombinationSummary:
    """Targets of one combination with a solution under every omitted piece."""

    combination: Tuple[int, ...]
    solvable_targets: Tuple[int, ...]
    target_count: int

    @property
    def solvable(self) -> int:
        return len(self.solvable_targets)

    @property
    def perfect(self) -> bool:
        return self.solvable == self.target_count


def summarize_archive(
    archive: SolutionArchive, combination: Sequence[int], target_count: int
) -> CombinationSummary:
    """Return which targets are solvable whichever piece of the combination is omitted."""
    solvable_targets = tuple(
        target
        for target in range(target_count)
        if all(archive.has_solution(omitted, target) for omitted in combination)
    )
    return CombinationSummary(tuple(combination), solvable_targets, target_count)


def solvability_marker(solvable: int, target_count: int) -> str:
    if solvable == 0:
        return NONE_SOLVABLE_MARKER
    if solvable == target_count:
        return f"+++ {solvable} solvable +++ PERFECT +++"
    return f"+++ {solvable} solvable +++"


def format_report_line(sequence: int, combination: Sequence[int], marker: str) -> str:
    """Format one report line, e.g. '      1 combination [  0  1  2  3  4  5] --- 0 solvable ---'."""
    pieces = "".join(f"{piece:3d}" for piece in combination)
    return f"{sequence:7d} combination [{pieces}] {marker}"


def evaluate_combination(config: PuzzleConfig, combination: Sequence[int]) -> CombinationSummary:
    """Solve and summarize one combination; safe to run in a worker process."""
    archive = solve_combination(config, combination)
    return summarize_archive(archive, combination, len(config.targets))

# =========================
# Display helpers
# =========================
def placement_to_grid(placement: Placement, labels: Optional[Dict[int, str]] = None) -> List[List[str]]:
    """Return a 6x6 grid with a label in every cell covered by a piece, '' elsewhere."""
    grid = [["" for _ in range(N)] for _ in range(N)]
    for piece, position in placement.items():
        label = labels[piece] if labels else str(piece)
        for bit in iter_set_bits(position):
            row, col = bit_to_cell(bit)
            if row < N and col < N:
                grid[row][col] = label
    return grid

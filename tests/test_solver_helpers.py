import math
import sys
import unittest
import unittest.mock
from itertools import combinations
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import solver_helpers
from bitboard_helpers import EMPTY_FIELD, WORD_MASK, cells_to_bitmask
from piece_helpers import build_piece_positions
from puzzle_config import BOARD_LETTERS, TARGETS, PuzzleConfig, canonical_letters, default_config
from solver_helpers import (
    SolutionArchive,
    TargetIndex,
    covered_field,
    evaluate_combination,
    format_report_line,
    iter_combinations,
    iter_placements,
    placement_to_grid,
    record_placement,
    solvability_marker,
    solve_combination,
    summarize_archive,
    uncovered_letters,
)

MONOMINO = 0x8000000000000000
DOMINO = 0xC000000000000000
TROMINO = 0xE000000000000000

# Letters in the four corners and one in the middle; everything else blank.
CORNER_BOARD = tuple(
    {0: "A", 5: "C", 14: "X", 30: "D", 35: "B"}.get(index, " ") for index in range(36)
)


def corner_config(targets=("ABCDX", "BCDX", "X"), pieces_per_combination=3) -> PuzzleConfig:
    return PuzzleConfig(
        pieces=(MONOMINO, DOMINO, TROMINO),
        board_letters=CORNER_BOARD,
        targets=targets,
        pieces_per_combination=pieces_per_combination,
    )


def as_key(placement):
    return frozenset(placement.items())


class TargetIndexTests(unittest.TestCase):
    def test_match_is_exact(self) -> None:
        index = TargetIndex(TARGETS)
        self.assertEqual(len(index), 17)
        self.assertEqual(index.match("ASU"), 0)
        self.assertEqual(index.match(canonical_letters("VGTU")), TARGETS.index("VGTU"))
        self.assertEqual(index.match("UŠ"), TARGETS.index("ŠU"))
        self.assertIsNone(index.match("SU"))
        self.assertIsNone(index.match("KLU"))
        self.assertIsNone(index.match("ASU "))

    def test_canonical_forms_are_distinct(self) -> None:
        index = TargetIndex(TARGETS)
        self.assertEqual(len(set(index.canonical)), len(TARGETS))


class UncoveredLettersTests(unittest.TestCase):
    def test_fully_covered_board(self) -> None:
        self.assertEqual(uncovered_letters(WORD_MASK, BOARD_LETTERS), "")

    def test_empty_board_reads_every_letter(self) -> None:
        expected = "".join(sorted(letter for letter in BOARD_LETTERS if letter != " "))
        self.assertEqual(uncovered_letters(EMPTY_FIELD, BOARD_LETTERS), expected)

    def test_holes_in_top_row(self) -> None:
        holes = cells_to_bitmask([(0, 0), (0, 1), (0, 2), (0, 3)])
        self.assertEqual(uncovered_letters(WORD_MASK ^ holes, BOARD_LETTERS), "KLU")

    def test_bit_zero_is_never_read(self) -> None:
        self.assertEqual(uncovered_letters(WORD_MASK ^ 1, BOARD_LETTERS), "")


class PlacementSearchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.positions = build_piece_positions((MONOMINO, DOMINO, TROMINO))

    def test_no_pieces_completes_immediately(self) -> None:
        self.assertEqual(list(iter_placements(self.positions, [])), [{}])

    def test_exact_fill_of_three_cells(self) -> None:
        open_cells = cells_to_bitmask([(0, 0), (0, 1), (0, 2)])
        field = WORD_MASK ^ open_cells
        placements = list(iter_placements(self.positions, [0, 1], field))

        expected = {
            as_key({0: cells_to_bitmask([(0, 0)]), 1: cells_to_bitmask([(0, 1), (0, 2)])}),
            as_key({0: cells_to_bitmask([(0, 2)]), 1: cells_to_bitmask([(0, 0), (0, 1)])}),
        }
        self.assertEqual({as_key(placement) for placement in placements}, expected)
        self.assertEqual(len(placements), 2)

    def test_placed_pieces_never_overlap(self) -> None:
        field = EMPTY_FIELD | cells_to_bitmask((row, col) for row in range(2, 6) for col in range(6))
        count = 0
        for placement in iter_placements(self.positions, [2, 1, 0], field):
            count += 1
            self.assertEqual(len(placement), 3)
            for first, second in combinations(placement.values(), 2):
                self.assertEqual(first & second, 0)
            for position in placement.values():
                self.assertEqual(position & field, 0)
        self.assertGreater(count, 0)

    def test_yielded_maps_are_independent(self) -> None:
        placements = iter_placements(self.positions, [0, 1])
        first = next(placements)
        first.clear()
        second = next(placements)
        self.assertEqual(sorted(second), [0, 1])
        placements.close()

    def test_search_is_repeatable(self) -> None:
        field = EMPTY_FIELD | cells_to_bitmask((row, col) for row in range(3, 6) for col in range(6))
        first = {as_key(placement) for placement in iter_placements(self.positions, [0, 1, 2], field)}
        second = {as_key(placement) for placement in iter_placements(self.positions, [0, 1, 2], field)}
        self.assertEqual(first, second)

    def test_prototype_tiling_leaving_unlisted_letters(self) -> None:
        config = default_config("prototype")
        positions = build_piece_positions(config.pieces)
        index = TargetIndex(config.targets)

        found = None
        for placement in iter_placements(positions, [1, 2, 3, 4, 5]):
            if uncovered_letters(covered_field(placement), config.board_letters) == "KLU":
                found = placement
                break

        self.assertIsNotNone(found)
        self.assertIsNone(index.match("KLU"))
        archive = SolutionArchive()
        self.assertIsNone(record_placement(archive, index, config.board_letters, 0, found))
        self.assertEqual(archive.total(), 0)

        archive = solve_combination(config, tuple(range(6)))
        for target in range(len(config.targets)):
            for placement in archive.solutions(0, target):
                letters = uncovered_letters(covered_field(placement), config.board_letters)
                self.assertNotEqual(letters, "KLU")
                self.assertEqual(letters, index.canonical[target])


class SolutionArchiveTests(unittest.TestCase):
    def test_record_copies_and_counts(self) -> None:
        archive = SolutionArchive()
        placement = {1: DOMINO}
        archive.record(0, 2, placement)
        placement[1] = MONOMINO

        self.assertTrue(archive.has_solution(0, 2))
        self.assertFalse(archive.has_solution(1, 2))
        self.assertEqual(archive.count(0, 2), 1)
        self.assertEqual(archive.solutions(0, 2), [{1: DOMINO}])
        self.assertEqual(archive.solutions(5, 5), [])
        self.assertEqual(archive.total(), 1)

    def test_summary_requires_every_omission(self) -> None:
        archive = SolutionArchive()
        for omitted in (3, 4, 7):
            archive.record(omitted, 0, {})
        archive.record(3, 1, {})
        archive.record(4, 1, {})

        summary = summarize_archive(archive, (3, 4, 7), 2)
        self.assertEqual(summary.combination, (3, 4, 7))
        self.assertEqual(summary.solvable_targets, (0,))
        self.assertEqual(summary.solvable, 1)
        self.assertFalse(summary.perfect)


class CombinationTests(unittest.TestCase):
    def test_combination_count(self) -> None:
        combos = list(iter_combinations(7, 6))
        self.assertEqual(len(combos), 7)
        self.assertEqual(combos[0], (0, 1, 2, 3, 4, 5))
        self.assertEqual(combos[-1], (1, 2, 3, 4, 5, 6))
        self.assertEqual(combos, sorted(combos))
        self.assertEqual(sum(1 for _ in iter_combinations(35, 6)), math.comb(35, 6))

    def test_one_search_per_omitted_piece(self) -> None:
        config = default_config("prototype")
        with unittest.mock.patch.object(
            solver_helpers, "iter_placements", return_value=iter(())
        ) as search_mock:
            solve_combination(config, (0, 1, 2, 3, 4, 5))

        self.assertEqual(search_mock.call_count, 6)
        orders = [list(call.args[1]) for call in search_mock.call_args_list]
        for omitted, order in zip(range(6), orders):
            self.assertNotIn(omitted, order)
            self.assertEqual(len(order), 5)

    def test_solve_combination_files_matching_tilings(self) -> None:
        config = corner_config()
        archive = solve_combination(config, (0, 1, 2))

        for omitted in (0, 1, 2):
            self.assertTrue(archive.has_solution(omitted, 0))
            self.assertTrue(archive.has_solution(omitted, 1))
            # covering all four corners needs four pieces
            self.assertFalse(archive.has_solution(omitted, 2))

        for omitted in (0, 1, 2):
            for target, name in enumerate(config.targets):
                for placement in archive.solutions(omitted, target):
                    self.assertNotIn(omitted, placement)
                    letters = uncovered_letters(covered_field(placement), config.board_letters)
                    self.assertEqual(letters, canonical_letters(name))

    def test_independent_archives_hold_the_same_solutions(self) -> None:
        config = corner_config()
        first = solve_combination(config, (0, 1, 2))
        second = solve_combination(config, (0, 1, 2))
        for omitted in (0, 1, 2):
            for target in range(len(config.targets)):
                self.assertEqual(
                    {as_key(p) for p in first.solutions(omitted, target)},
                    {as_key(p) for p in second.solutions(omitted, target)},
                )

    def test_evaluate_combination(self) -> None:
        summary = evaluate_combination(corner_config(), (0, 1, 2))
        self.assertEqual(summary.solvable_targets, (0, 1))
        self.assertEqual(solvability_marker(summary.solvable, summary.target_count), "+++ 2 solvable +++")

        perfect = evaluate_combination(corner_config(targets=("ABCDX", "BCDX")), (0, 1, 2))
        self.assertTrue(perfect.perfect)


class ReportTests(unittest.TestCase):
    def test_markers(self) -> None:
        self.assertEqual(solvability_marker(0, 17), "--- 0 solvable ---")
        self.assertEqual(solvability_marker(5, 17), "+++ 5 solvable +++")
        self.assertEqual(solvability_marker(17, 17), "+++ 17 solvable +++ PERFECT +++")

    def test_report_line(self) -> None:
        self.assertEqual(
            format_report_line(1, (0, 1, 2, 3, 4, 5), "--- 0 solvable ---"),
            "      1 combination [  0  1  2  3  4  5] --- 0 solvable ---",
        )
        self.assertEqual(
            format_report_line(1623160, (29, 30, 31, 32, 33, 34), "+++ 3 solvable +++"),
            "1623160 combination [ 29 30 31 32 33 34] +++ 3 solvable +++",
        )

    def test_placement_to_grid(self) -> None:
        grid = placement_to_grid({4: cells_to_bitmask([(0, 0), (1, 0)]), 9: cells_to_bitmask([(5, 5)])})
        self.assertEqual(grid[0][0], "4")
        self.assertEqual(grid[1][0], "4")
        self.assertEqual(grid[5][5], "9")
        self.assertEqual(grid[0][1], "")


if __name__ == "__main__":
    unittest.main()

import argparse
import logging
import unicodedata
from pathlib import Path
from typing import Dict, List, Sequence

import cv2
import numpy as np

from bitboard_helpers import N, format_bitboard
from path_helpers import IMAGES_DIR, ensure_output_dir
from piece_helpers import base_orientations, build_piece_positions
from puzzle_config import BLANK, PuzzleConfig, catalog_choices, default_config, load_config
from solver_helpers import (
    Placement,
    TargetIndex,
    covered_field,
    placement_to_grid,
    solvability_marker,
    solve_combination,
    summarize_archive,
    uncovered_letters,
)

LOGGER = logging.getLogger(__name__)

PALETTE = [
    (231, 76, 60),
    (46, 204, 113),
    (52, 152, 219),
    (155, 89, 182),
    (241, 196, 15),
    (230, 126, 34),
    (26, 188, 156),
    (149, 165, 166),
    (52, 73, 94),
]


# =========================
# Argument parsing
# =========================
def parse_pieces(values: Sequence[str], piece_count: int) -> List[int]:
    """Parse and validate piece indices for one combination."""
    pieces: List[int] = []
    for value in values:
        for part in value.replace(",", " ").split():
            if not part.isdigit():
                raise ValueError(f"invalid piece index: {part}")
            index = int(part)
            if index >= piece_count:
                raise ValueError(f"piece index {index} out of range (0..{piece_count - 1})")
            pieces.append(index)
    if not pieces:
        raise ValueError("no piece indices given")
    if len(set(pieces)) != len(pieces):
        raise ValueError("duplicate piece indices provided")
    return sorted(pieces)


# =========================
# Rendering
# =========================
def ascii_letter(letter: str) -> str:
    """Strip diacritics so the letter can be drawn with the Hershey fonts."""
    decomposed = unicodedata.normalize("NFKD", letter)
    return "".join(char for char in decomposed if not unicodedata.combining(char)) or "?"


def render_placement_image(
    config: PuzzleConfig,
    placement: Placement,
    out_path: str,
    cell_size: int = 80,
    margin: int = 20,
) -> None:
    """Render the board with every placed piece filled and the uncovered letters drawn."""
    board_size = cell_size * N
    img_size = board_size + margin * 2
    img = np.full((img_size, img_size, 3), 255, dtype=np.uint8)

    grid = placement_to_grid(placement)
    pieces = sorted(placement)
    for row in range(N):
        for col in range(N):
            x1 = margin + col * cell_size + 2
            y1 = margin + row * cell_size + 2
            x2 = margin + (col + 1) * cell_size - 2
            y2 = margin + (row + 1) * cell_size - 2
            label = grid[row][col]
            if label:
                color = PALETTE[pieces.index(int(label)) % len(PALETTE)]
                cv2.rectangle(img, (x1, y1), (x2, y2), color, -1)
                continue

            letter = config.board_letters[row * N + col]
            if letter == BLANK:
                continue
            text = ascii_letter(letter)
            (text_w, text_h), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 1.5, 3)
            cx = margin + col * cell_size + (cell_size - text_w) // 2
            cy = margin + row * cell_size + (cell_size + text_h) // 2
            cv2.putText(img, text, (cx, cy), cv2.FONT_HERSHEY_SIMPLEX, 1.5, (0, 0, 0), 3)

    # Draw grid on top
    for i in range(N + 1):
        x = margin + i * cell_size
        y = margin + i * cell_size
        cv2.line(img, (x, margin), (x, margin + board_size), (0, 0, 0), 2)
        cv2.line(img, (margin, y), (margin + board_size, y), (0, 0, 0), 2)

    cv2.imwrite(out_path, img)


def format_placement(config: PuzzleConfig, placement: Placement) -> List[str]:
    """Return the board rows of a placement: piece indices, or the uncovered letter."""
    grid = placement_to_grid(placement, {piece: f"{piece:>2}" for piece in placement})
    lines = []
    for row in range(N):
        cells = []
        for col in range(N):
            letter = config.board_letters[row * N + col]
            cells.append(grid[row][col] or f" {letter if letter != BLANK else '.'}")
        lines.append(" ".join(cells))
    return lines


# =========================
# Main
# =========================
def main() -> None:
    parser = argparse.ArgumentParser(
        description="Show per-omission solution counts and sample placements for one piece combination."
    )
    parser.add_argument("pieces", nargs="+", help="piece indices, e.g.: 0 1 2 3 4 5")
    parser.add_argument("--config", default=None, help="JSON puzzle configuration")
    parser.add_argument(
        "--catalog",
        choices=catalog_choices(),
        default="full",
        help="built-in piece catalog to use when --config is not given",
    )
    parser.add_argument(
        "--sample-solutions",
        type=int,
        default=0,
        help="print up to N placements per (omitted piece, target)",
    )
    parser.add_argument(
        "--show-pieces",
        action="store_true",
        help="print the shape and position count of every piece",
    )
    parser.add_argument(
        "--images-dir",
        default=str(IMAGES_DIR),
        help="base directory for placement images",
    )
    parser.add_argument(
        "--skip-images",
        action="store_true",
        help="skip rendering placement images",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = load_config(args.config) if args.config else default_config(args.catalog)
        combination = parse_pieces(args.pieces, len(config.pieces))
        target_index = TargetIndex(config.targets)
        positions = build_piece_positions(config.pieces)

        print("=== COMBINATION ===")
        print(f"pieces: {' '.join(str(piece) for piece in combination)}")

        if args.show_pieces:
            print("\n=== PIECES ===")
            for piece in combination:
                print(
                    f"piece {piece}: {config.pieces[piece]:#018x} | "
                    f"orientations {len(base_orientations(config.pieces[piece]))} | "
                    f"positions {len(positions[piece])}"
                )
                print(format_bitboard(config.pieces[piece]))

        archive = solve_combination(config, combination, positions, target_index)

        print("\n=== SOLUTIONS PER OMITTED PIECE ===")
        for omitted in combination:
            counts = " ".join(
                f"{archive.count(omitted, target):2d} {name}"
                for target, name in enumerate(config.targets)
            )
            print(f"-{omitted}: {counts}")

        summary = summarize_archive(archive, combination, len(config.targets))
        print("\n=== SUMMARY ===")
        print(solvability_marker(summary.solvable, summary.target_count))
        print(
            "solvable targets: "
            + (" ".join(config.targets[target] for target in summary.solvable_targets) or "(none)")
        )

        sample_count = max(args.sample_solutions, 0)
        if sample_count > 0:
            print("\n=== SAMPLE SOLUTIONS ===")
            images_dir = None
            if not args.skip_images:
                combo_name = "-".join(str(piece) for piece in combination)
                images_dir = ensure_output_dir(Path(args.images_dir) / combo_name)

            for omitted in combination:
                for target, name in enumerate(config.targets):
                    samples: List[Dict[int, int]] = archive.solutions(omitted, target)[:sample_count]
                    for idx, placement in enumerate(samples, start=1):
                        letters = uncovered_letters(covered_field(placement), config.board_letters)
                        print(f"without {omitted}, {name} ({letters}) solution {idx}:")
                        for line in format_placement(config, placement):
                            print(f"  {line}")

                        if images_dir is not None:
                            out_path = images_dir / f"without_{omitted}_{target:02d}_{idx:03d}.png"
                            render_placement_image(config, placement, str(out_path))

            if images_dir is not None:
                LOGGER.info("wrote images to %s", images_dir)
    except Exception:
        LOGGER.exception("Failed to show combination details")
        raise SystemExit(1)


if __name__ == "__main__":
    main()

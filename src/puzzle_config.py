"""Static puzzle data and the loader for puzzle configuration files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

from bitboard_helpers import EMPTY_FIELD, NUM_SQUARES, WORD_MASK
from piece_helpers import base_orientations

LOGGER = logging.getLogger(__name__)

BLANK = " "
PIECES_PER_COMBINATION = 6

# Row-major 6x6 letter board; blanks carry no letter.
BOARD_LETTERS: Tuple[str, ...] = (
    "K", "L", " ", "U", "V", "A",
    "C", " ", "T", " ", " ", "E",
    "D", "L", " ", "U", "U", " ",
    "I", " ", "S", " ", "M", "G",
    " ", "K", "M", " ", " ", "Š",
    "C", " ", "K", "L", "R", "U",
)

TARGETS: Tuple[str, ...] = (
    "ASU", "ISM", "KSU", "KTU", "KU", "LCC", "LEU", "LKA", "LMTA",
    "LMSU", "LSU", "MRU", "ŠU", "VDA", "VDU", "VGTU", "VU",
)

# The 35 free hexominoes; the first 11 are the unfoldings of a cube.
FULL_CATALOG: Tuple[int, ...] = (
    0x80F0800000000000,  # 10000000_11110000_10000000
    0x80F0400000000000,  # 10000000_11110000_01000000
    0x80F0200000000000,  # 10000000_11110000_00100000
    0x80F0100000000000,  # 10000000_11110000_00010000
    0x40F0200000000000,  # 01000000_11110000_00100000
    0x40F0400000000000,  # 01000000_11110000_01000000
    0xC070400000000000,  # 11000000_01110000_01000000
    0xC070200000000000,  # 11000000_01110000_00100000
    0x80E0300000000000,  # 10000000_11100000_00110000
    0xC060300000000000,  # 11000000_01100000_00110000
    0xE038000000000000,  # 11100000_00111000
    0xFC00000000000000,  # 11111100
    0x80F8000000000000,  # 10000000_11111000
    0x40F8000000000000,  # 01000000_11111000
    0x20F8000000000000,  # 00100000_11111000
    0xC078000000000000,  # 11000000_01111000
    0xC0F0000000000000,  # 11000000_11110000
    0xA0F0000000000000,  # 10100000_11110000
    0x90F0000000000000,  # 10010000_11110000
    0x60F0000000000000,  # 01100000_11110000
    0x8080F00000000000,  # 10000000_10000000_11110000
    0x4040F00000000000,  # 01000000_01000000_11110000
    0x40C0700000000000,  # 01000000_11000000_01110000
    0xD070000000000000,  # 11010000_01110000
    0xE070000000000000,  # 11100000_01110000
    0xE0E0000000000000,  # 11100000_11100000
    0xC0E0800000000000,  # 11000000_11100000_10000000
    0xC040700000000000,  # 11000000_01000000_01110000
    0x80C0700000000000,  # 10000000_11000000_01110000
    0xC080E00000000000,  # 11000000_10000000_11100000
    0xC040E00000000000,  # 11000000_01000000_11100000
    0xC060C00000000000,  # 11000000_01100000_11000000
    0xE0C0800000000000,  # 11100000_11000000_10000000
    0xC0E0400000000000,  # 11000000_11100000_01000000
    0x20E0C00000000000,  # 00100000_11100000_11000000
)

PROTOTYPE_CATALOG: Tuple[int, ...] = (
    0xE0C0800000000000,  # 11100000_11000000_10000000
    0xF060000000000000,  # 11110000_01100000
    0xF080800000000000,  # 11110000_10000000_10000000
    0x70E0000000000000,  # 01110000_11100000
    0xF0C0000000000000,  # 11110000_11000000
    0x4070C00000000000,  # 01000000_01110000_11000000
)

CATALOGS: Dict[str, Tuple[int, ...]] = {
    "full": FULL_CATALOG,
    "prototype": PROTOTYPE_CATALOG,
}


def canonical_letters(text: str) -> str:
    """Return the letters of text, blanks dropped, sorted and joined."""
    return "".join(sorted(text.replace(BLANK, "")))


class ConfigError(ValueError):
    """Raised when a puzzle configuration is structurally invalid."""


@dataclass(frozen=True)
class PuzzleConfig:
    """An immutable puzzle configuration."""

    pieces: Tuple[int, ...]
    """Raw 64-bit piece shapes; a piece is identified by its index."""

    board_letters: Tuple[str, ...]
    """The 36 board cells in row-major order, BLANK for cells without a letter."""

    targets: Tuple[str, ...]
    """Target puzzles; the uncovered letters must match one of them."""

    pieces_per_combination: int = PIECES_PER_COMBINATION
    """Pieces drawn per combination; one of them is omitted per search."""

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if len(self.board_letters) != NUM_SQUARES:
            raise ConfigError(
                f"Board must have {NUM_SQUARES} cells, got {len(self.board_letters)}."
            )
        for index, letter in enumerate(self.board_letters):
            if not isinstance(letter, str) or len(letter) != 1:
                raise ConfigError(f"Board cell {index} is not a single character: {letter!r}")

        if not self.targets:
            raise ConfigError("Target list is empty.")
        canonical_forms: Dict[str, str] = {}
        for target in self.targets:
            letters = canonical_letters(target)
            if not letters:
                raise ConfigError(f"Target {target!r} has no letters.")
            if letters in canonical_forms:
                raise ConfigError(
                    f"Targets {canonical_forms[letters]!r} and {target!r} share the letters {letters!r}."
                )
            canonical_forms[letters] = target

        if not self.pieces:
            raise ConfigError("Piece catalog is empty.")
        for index, piece in enumerate(self.pieces):
            if not isinstance(piece, int) or piece <= 0 or piece > WORD_MASK:
                raise ConfigError(f"Piece {index} is not a non-zero 64-bit word: {piece!r}")
            for orientation in base_orientations(piece):
                if orientation & EMPTY_FIELD:
                    raise ConfigError(
                        f"Piece {index} ({piece:#018x}) does not fit on the {NUM_SQUARES}-cell field."
                    )

        if not 1 <= self.pieces_per_combination <= len(self.pieces):
            raise ConfigError(
                f"pieces_per_combination must be between 1 and {len(self.pieces)}, "
                f"got {self.pieces_per_combination}."
            )

    def to_dict(self) -> dict:
        """Return a JSON-friendly dictionary; pieces are written as hex strings."""
        return {
            "pieces": [f"{piece:#018x}" for piece in self.pieces],
            "board": list(self.board_letters),
            "targets": list(self.targets),
            "pieces_per_combination": self.pieces_per_combination,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PuzzleConfig":
        """Create a PuzzleConfig from a dictionary representation."""
        try:
            pieces = tuple(_parse_piece(value) for value in data["pieces"])
            board = data["board"]
            targets = tuple(data["targets"])
        except KeyError as exc:
            raise ConfigError(f"Missing configuration key: {exc.args[0]}") from exc
        if isinstance(board, str):
            board = list(board)
        return cls(
            pieces=pieces,
            board_letters=tuple(board),
            targets=targets,
            pieces_per_combination=int(
                data.get("pieces_per_combination", PIECES_PER_COMBINATION)
            ),
        )


def _parse_piece(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(str(value).replace("_", ""), 0)
    except ValueError as exc:
        raise ConfigError(f"Invalid piece value: {value!r}") from exc


def default_config(
    catalog: str = "full", pieces_per_combination: Optional[int] = None
) -> PuzzleConfig:
    """Return the built-in configuration for a named catalog."""
    if catalog not in CATALOGS:
        raise ConfigError(f"Unknown catalog {catalog!r}; expected one of {sorted(CATALOGS)}")
    return PuzzleConfig(
        pieces=CATALOGS[catalog],
        board_letters=BOARD_LETTERS,
        targets=TARGETS,
        pieces_per_combination=(
            PIECES_PER_COMBINATION if pieces_per_combination is None else pieces_per_combination
        ),
    )


def load_config(path: Union[str, PathLike], pieces_per_combination: Optional[int] = None) -> PuzzleConfig:
    """Load and validate a JSON puzzle configuration file."""
    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as config_file:
        try:
            data = json.load(config_file)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{config_path}: invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a JSON object")
    if pieces_per_combination is not None:
        data = {**data, "pieces_per_combination": pieces_per_combination}
    config = PuzzleConfig.from_dict(data)
    LOGGER.info(
        "loaded %s: %d pieces, %d targets", config_path, len(config.pieces), len(config.targets)
    )
    return config


def catalog_choices() -> Sequence[str]:
    return sorted(CATALOGS)

"""Shared path helpers for scripts."""

from __future__ import annotations

from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent
OUTPUT_DIR = PROJECT_ROOT / "output"

REPORT_PATH = OUTPUT_DIR / "01_combination_report.txt"
IMAGES_DIR = OUTPUT_DIR / "images"


def ensure_output_dir(path: Path = OUTPUT_DIR) -> Path:
    """Ensure an output directory exists and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_parent_dir(file_path: Path) -> Path:
    """Ensure the parent directory of an output file exists and return the file path."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path

import argparse
import logging
import math
import os
import time
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from itertools import islice
from pathlib import Path

from piece_helpers import build_piece_positions
from path_helpers import REPORT_PATH, ensure_parent_dir
from puzzle_config import catalog_choices, default_config, load_config
from solver_helpers import (
    evaluate_combination,
    format_report_line,
    iter_combinations,
    solvability_marker,
)

LOGGER = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Try every piece combination on the letter board and report how many "
            "target puzzles each one solves whichever piece is left out."
        )
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON puzzle configuration (default: built-in board, targets and catalog)",
    )
    parser.add_argument(
        "--catalog",
        choices=catalog_choices(),
        default="full",
        help="built-in piece catalog to use when --config is not given",
    )
    parser.add_argument(
        "--pieces-per-combination",
        type=int,
        default=None,
        help="pieces drawn per combination (one is left out per search)",
    )
    parser.add_argument(
        "--output",
        default=str(REPORT_PATH),
        help="report output path",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=0,
        help="number of worker processes (0 = cpu count, 1 = no multiprocessing)",
    )
    parser.add_argument(
        "--chunksize",
        type=int,
        default=10,
        help="task chunksize for multiprocessing",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="stop after N combinations (0 = all)",
    )
    parser.add_argument("--progress-every", type=int, default=1_000, help="progress interval")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        if args.config:
            config = load_config(args.config, args.pieces_per_combination)
        else:
            config = default_config(args.catalog, args.pieces_per_combination)

        piece_count = len(config.pieces)
        per_combination = config.pieces_per_combination
        total = math.comb(piece_count, per_combination)
        if args.limit and args.limit > 0:
            total = min(total, args.limit)

        positions = build_piece_positions(config.pieces)
        LOGGER.info(
            "%d pieces (%s positions), %d targets, %s combinations of %d",
            piece_count,
            f"{sum(len(piece) for piece in positions):,}",
            len(config.targets),
            f"{total:,}",
            per_combination,
        )

        worker_count = args.workers if args.workers >= 0 else 0
        if worker_count == 0:
            worker_count = os.cpu_count() or 1
        use_multiprocessing = worker_count > 1

        output_path = ensure_parent_dir(Path(args.output))
        combo_iter = islice(iter_combinations(piece_count, per_combination), total)
        solver = partial(evaluate_combination, config)

        start_time = time.time()
        processed = 0
        perfect = 0
        histogram: Counter = Counter()

        with open(output_path, "w", encoding="utf-8") as report_file:
            executor = None
            finished = False
            try:
                if use_multiprocessing:
                    executor = ProcessPoolExecutor(max_workers=worker_count)
                    results = executor.map(solver, combo_iter, chunksize=max(args.chunksize, 1))
                else:
                    results = (solver(combination) for combination in combo_iter)

                for summary in results:
                    processed += 1
                    marker = solvability_marker(summary.solvable, summary.target_count)
                    report_file.write(format_report_line(processed, summary.combination, marker) + "\n")

                    histogram[summary.solvable] += 1
                    if summary.perfect:
                        perfect += 1
                        LOGGER.info("perfect combination: %s", summary.combination)

                    if args.progress_every and processed % args.progress_every == 0:
                        report_file.flush()
                        elapsed = time.time() - start_time
                        rate = processed / elapsed if elapsed > 0 else 0.0
                        eta = (total - processed) / rate if rate else 0
                        LOGGER.info(
                            "[%s/%s] %.2f%% | %.2f combinations/s | ETA %.1f min | perfect %s",
                            f"{processed:,}",
                            f"{total:,}",
                            (processed / total) * 100 if total > 0 else 0.0,
                            rate,
                            eta / 60,
                            f"{perfect:,}",
                        )
                finished = True
            finally:
                if executor is not None:
                    # chunks not yet started are cancelled after a failure
                    executor.shutdown(wait=True, cancel_futures=not finished)

        elapsed = time.time() - start_time
        LOGGER.info("=== DONE ===")
        LOGGER.info("combinations: %s", f"{processed:,}")
        LOGGER.info("perfect: %s", f"{perfect:,}")
        for solvable in sorted(histogram):
            LOGGER.info("%2d solvable: %s", solvable, f"{histogram[solvable]:,}")
        LOGGER.info("time: %.1f min", elapsed / 60)
        LOGGER.info("wrote: %s", output_path)
    except Exception:
        LOGGER.exception("Failed to build combination report")
        raise SystemExit(1)


if __name__ == "__main__":
    main()

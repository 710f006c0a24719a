"""Analysis and benchmarking tools for the guess-free solver and generator."""

import logging
import random
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .engine import Board
from .generator import GenerationError, generate_guess_free_with_attempts
from .solver import CountSetSolver
from .utils import resolve_rng

logger = logging.getLogger(__name__)

LEVELS: Dict[str, Tuple[int, int, int]] = {
    "beginner": (9, 9, 10),
    "intermediate": (16, 16, 40),
    "expert": (30, 16, 99),
}


def run_solver_single_test(
    width: int,
    height: int,
    mines_count: int,
    *,
    guess_free: bool = False,
    show_boards: bool = False,
    max_sat_frontier: float = float("inf"),
    rng: Optional[random.Random] = None,
) -> Dict[str, object]:
    """
    Solve one fresh board end to end.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        guess_free: If True, the board comes from `generate_guess_free`,
            otherwise from `Board.create`.
        show_boards: If True, print the solved board and the full mine layout.
        max_sat_frontier: Frontier bound for the satisfiability fallback.
        rng: Random source for board construction.

    Returns:
        The solver's counters plus "won" (bool), "untouched_count" (cells left
        unresolved), "generation_failed" (bool) and "generation_attempts"
        (solve attempts the generator spent; 0 for random boards).
    """
    rng = resolve_rng(rng)
    generation_failed = False
    generation_attempts = 0
    if guess_free:
        try:
            board, generation_attempts = generate_guess_free_with_attempts(
                width, height, mines_count, rng=rng
            )
        except GenerationError as exc:
            logger.warning("Generation failed; falling back to a random board.")
            generation_failed = True
            generation_attempts = exc.attempts
            board = Board.create(width, height, mines_count, rng=rng)
    else:
        board = Board.create(width, height, mines_count, rng=rng)

    solver = CountSetSolver(board, max_sat_frontier=max_sat_frontier)
    solved = solver.solve()

    if show_boards:
        print("Solved board:")
        print(solved.to_text())
        print()
        print("Underlying board (mines visible):")
        print(solved.reveal_all().to_text())
        print()
        print(f"Finished with {'win' if solved.is_win() else 'stall'}.")

    out: Dict[str, object] = dict(solver.stats())
    out["won"] = solved.is_win()
    out["untouched_count"] = solved.num_untouched()
    out["generation_failed"] = generation_failed
    out["generation_attempts"] = generation_attempts
    return out


def run_solver_many_tests(
    width: int,
    height: int,
    mines_count: int,
    runs: int,
    *,
    guess_free: bool = False,
    max_sat_frontier: float = float("inf"),
    rng: Optional[random.Random] = None,
) -> Dict[str, float]:
    """
    Run many independent solves and return averaged counters plus win rate.

    Returns:
        Averages of the numeric single-test fields (prefixed with "avg_"), plus:
        - win_rate
        - generation_failure_rate
        - sat_infer_per_attempt
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    rng = resolve_rng(rng)
    results: List[Dict[str, object]] = [
        run_solver_single_test(
            width,
            height,
            mines_count,
            guess_free=guess_free,
            max_sat_frontier=max_sat_frontier,
            rng=rng,
        )
        for _ in range(runs)
    ]

    numeric_keys = [
        "inferred_certain_count",
        "reduction_count",
        "attempted_sat_count",
        "inferred_sat_count",
        "untouched_count",
        "generation_attempts",
    ]
    table = np.array(
        [[float(r[k]) for k in numeric_keys] for r in results],  # type: ignore[arg-type]
        dtype=float,
    )
    means = table.mean(axis=0)

    out: Dict[str, float] = {f"avg_{k}": float(v) for k, v in zip(numeric_keys, means)}
    out["win_rate"] = float(np.mean([bool(r["won"]) for r in results]))
    out["generation_failure_rate"] = float(
        np.mean([bool(r["generation_failed"]) for r in results])
    )

    attempted = table[:, numeric_keys.index("attempted_sat_count")].sum()
    inferred = table[:, numeric_keys.index("inferred_sat_count")].sum()
    out["sat_infer_per_attempt"] = float(inferred / attempted) if attempted > 0 else 0.0
    return out


def run_difficulty_analysis(
    runs: int,
    *,
    levels: Optional[Dict[str, Tuple[int, int, int]]] = None,
    max_sat_frontier: float = float("inf"),
    rng: Optional[random.Random] = None,
    show: bool = True,
) -> Dict[str, Dict[str, Dict[str, float]]]:
    """
    Compare random and guess-free boards across difficulty levels and plot summaries.

    Args:
        runs: Number of independent games per level and board kind.
        levels: Level name -> (width, height, mines); defaults to `LEVELS`.
        max_sat_frontier: Frontier bound for the satisfiability fallback.
        rng: Random source shared by all runs.
        show: If True, display the figures; otherwise they are closed.

    Returns:
        Mapping level -> {"random": stats, "guess_free": stats}, where stats
        is the dict returned by run_solver_many_tests().
    """
    levels = LEVELS if levels is None else levels
    rng = resolve_rng(rng)

    results: Dict[str, Dict[str, Dict[str, float]]] = {}
    for level, (w, h, m) in levels.items():
        results[level] = {
            kind: run_solver_many_tests(
                w, h, m, runs,
                guess_free=(kind == "guess_free"),
                max_sat_frontier=max_sat_frontier,
                rng=rng,
            )
            for kind in ("random", "guess_free")
        }
        logger.info(
            "%s: random win rate %.2f, guess-free win rate %.2f",
            level,
            results[level]["random"]["win_rate"],
            results[level]["guess_free"]["win_rate"],
        )

    level_names = list(levels.keys())
    x = np.arange(len(level_names))
    bar_w = 0.35

    # 1) Win rate by level and board kind
    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, [results[n]["random"]["win_rate"] for n in level_names], width=bar_w, label="random")  # type: ignore[misc]
    plt.bar(x + bar_w / 2, [results[n]["guess_free"]["win_rate"] for n in level_names], width=bar_w, label="guess free")  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Win rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Win rate without guessing")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    # 2) Inference mix on guess-free boards
    certain = [results[n]["guess_free"]["avg_inferred_certain_count"] for n in level_names]
    sat = [results[n]["guess_free"]["avg_inferred_sat_count"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, certain, width=bar_w, label="certainty")  # type: ignore[misc]
    plt.bar(x + bar_w / 2, sat, width=bar_w, label="fallback")  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average inferred cells")  # type: ignore[misc]
    plt.title("Average inferences by method (guess-free boards)")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    if show:
        plt.show()  # type: ignore[misc]
    else:
        plt.close("all")

    return results


def summarize_inference_mix(stats: Dict[str, float]) -> Dict[str, float]:
    """
    Split the average inferred cells of a run_solver_many_tests() result by method.

    Returns:
        Dict with certain_frac, sat_frac and total_inferred.

    Raises:
        KeyError: If a required average is missing.
        ZeroDivisionError: If nothing was inferred.
    """
    for key in ("avg_inferred_certain_count", "avg_inferred_sat_count"):
        if key not in stats:
            raise KeyError(f"Missing key {key!r} in stats.")

    certain = float(stats["avg_inferred_certain_count"])
    sat = float(stats["avg_inferred_sat_count"])
    total = certain + sat
    if total == 0.0:
        raise ZeroDivisionError("No inferences recorded; cannot compute fractions.")

    return {
        "certain_frac": certain / total,
        "sat_frac": sat / total,
        "total_inferred": total,
    }

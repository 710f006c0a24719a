"""Guess-free board generation by solver-guided mine relocation."""

import logging
import random
from typing import List, Optional, Tuple

from .engine import Board
from .solver import CountSetSolver
from .utils import Coord, resolve_rng

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 100


class GenerationError(RuntimeError):
    """No guess-free board was found within the attempt budget."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


def generate_guess_free_with_attempts(
    width: int,
    height: int,
    mines_count: int,
    *,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
    rng: Optional[random.Random] = None,
) -> Tuple[Board, int]:
    """
    Generate a board the solver can win from its opening hint without guessing.

    Each attempt solves a reset copy of the current board. On a stall, one
    mine on the stalled frontier moves to a random safe cell off the
    frontier and the next attempt starts over. If the frontier holds no mine,
    or no destination exists, generation restarts from a fresh random board.
    Restarts count against the same attempt budget.

    Args:
        width: Board width (number of columns), must be > 0.
        height: Board height (number of rows), must be > 0.
        mines_count: Total number of mines to place, must be >= 0.
        max_attempts: Number of solve attempts allowed, must be > 0.
        rng: Random source for placement and relocation.

    Returns:
        An untouched board whose mine placement the solver wins, and the
        number of solve attempts it took (1 when the first placement works).

    Raises:
        ValueError: If arguments are invalid.
        GenerationError: If no attempt produced a win.
    """
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive.")

    rng = resolve_rng(rng)
    board = Board.create(width, height, mines_count, rng=rng)

    for attempt in range(1, max_attempts + 1):
        board = board.reset()
        solver = CountSetSolver(board)
        if solver.solve(use_hint=True).is_win():
            logger.info(
                "Generated guess-free %dx%d board with %d mines in %d attempt(s).",
                width, height, board.total_mines, attempt,
            )
            return board, attempt

        frontier = solver.frontier()
        mined: List[Coord] = [c for c in frontier if board.get_cell(c).mine]
        on_frontier = set(frontier)
        destinations: List[Coord] = [
            c for c in board.coords()
            if c not in on_frontier and not board.get_cell(c).mine
        ]

        if not mined or not destinations:
            logger.warning(
                "Attempt %d stalled with no relocatable mine; restarting from a new board.",
                attempt,
            )
            board = Board.create(width, height, mines_count, rng=rng)
            continue

        src = rng.choice(mined)
        dst = rng.choice(destinations)
        logger.debug("Attempt %d stalled; moving mine %s -> %s.", attempt, src, dst)
        board = board.move_mine(src, dst)

    logger.error(
        "Gave up generating a %dx%d board with %d mines after %d attempts.",
        width, height, mines_count, max_attempts,
    )
    raise GenerationError(
        f"No guess-free {width}x{height} board with {mines_count} mines "
        f"found in {max_attempts} attempts.",
        max_attempts,
    )


def generate_guess_free(
    width: int,
    height: int,
    mines_count: int,
    *,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
    rng: Optional[random.Random] = None,
) -> Board:
    """Like `generate_guess_free_with_attempts`, returning only the board."""
    board, _ = generate_guess_free_with_attempts(
        width, height, mines_count, max_attempts=max_attempts, rng=rng
    )
    return board

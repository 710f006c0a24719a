"""
Guess-free Minesweeper

An immutable board model plus a solver that never guesses:
- Certainty inference: count sets with no mines or only mines
- Pairwise reduction: subset and one-two rules between count sets
- Satisfiability fallback: refuting a cell's hypothesis by exhaustive search
- Guess-free generation: relocating mines until the solver wins
"""

from .engine import Board, Cell, FixtureParseError
from .constraint import TOTAL_ORIGIN, CountSet, derive_constraints
from .solver import ContradictionError, CountSetSolver, solve, solve_just_sat
from .generator import (
    MAX_GENERATION_ATTEMPTS,
    GenerationError,
    generate_guess_free,
    generate_guess_free_with_attempts,
)
from .analysis import (
    run_solver_single_test,
    run_solver_many_tests,
    run_difficulty_analysis,
    summarize_inference_mix,
)

__version__ = "1.0.0"

__all__ = [
    # Board model
    "Board",
    "Cell",
    "FixtureParseError",
    # Count sets
    "CountSet",
    "TOTAL_ORIGIN",
    "derive_constraints",
    # Solving
    "CountSetSolver",
    "ContradictionError",
    "solve",
    "solve_just_sat",
    # Generation
    "generate_guess_free",
    "generate_guess_free_with_attempts",
    "GenerationError",
    "MAX_GENERATION_ATTEMPTS",
    # Analysis functions
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_difficulty_analysis",
    "summarize_inference_mix",
]

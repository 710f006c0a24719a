"""
Quickstart example for the guess-free Minesweeper solver.

This script demonstrates basic usage of the board, solver and generator.
"""

import logging
import sys

from guessfree import Board, generate_guess_free, run_solver_many_tests, solve


def setup_logging():
    """Setup example logging"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def main():
    setup_logging()

    print("=" * 60)
    print("Guess-free Minesweeper - Quickstart Example")
    print("=" * 60)

    # Example 1: Solve a fixture board
    print("\n1. Solving the one-two fixture...")
    print("-" * 60)

    board = Board.from_text("?1221?\n??**??")
    solved = solve(board, use_hint=False)
    print(solved.to_text())
    print(f"Result: {'WON' if solved.is_win() else 'STALLED'}")

    # Example 2: Solve a random beginner board
    print("\n2. Solving a random Beginner board (9x9, 10 mines)...")
    print("-" * 60)

    solved = solve(Board.create(9, 9, 10))
    print(solved.to_text())
    print(f"Result: {'WON' if solved.is_win() else 'STALLED (needs a guess)'}")

    # Example 3: Generate a guess-free board and solve it
    print("\n3. Generating a guess-free Beginner board...")
    print("-" * 60)

    board = generate_guess_free(9, 9, 10)
    print(board.reveal_all().to_text())
    print(f"Solver wins: {solve(board).is_win()}")

    # Example 4: Compare random and guess-free boards
    print("\n4. Win rates over 20 games each...")
    print("-" * 60)

    for guess_free in (False, True):
        results = run_solver_many_tests(9, 9, 10, runs=20, guess_free=guess_free)
        kind = "guess free" if guess_free else "random"
        print(f"{kind:12s}: {results['win_rate']*100:5.1f}% win rate")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()

import random
import unittest

from guessfree.generator import (
    GenerationError,
    generate_guess_free,
    generate_guess_free_with_attempts,
)
from guessfree.solver import solve


class GenerateGuessFreeTests(unittest.TestCase):
    def test_generated_boards_are_always_won(self) -> None:
        rng = random.Random(12345)
        for _ in range(5):
            board = generate_guess_free(9, 9, 10, rng=rng)
            self.assertTrue(board.is_untouched())
            self.assertEqual(board.total_mines, 10)
            self.assertEqual(len(board.mine_coords()), 10)
            self.assertTrue(solve(board).is_win())

    def test_generation_is_reproducible(self) -> None:
        a = generate_guess_free(8, 8, 10, rng=random.Random(3))
        b = generate_guess_free(8, 8, 10, rng=random.Random(3))
        self.assertEqual(a, b)

    def test_attempt_count_matches_plain_generation(self) -> None:
        board, attempts = generate_guess_free_with_attempts(8, 8, 10, rng=random.Random(3))
        self.assertGreaterEqual(attempts, 1)
        self.assertEqual(board, generate_guess_free(8, 8, 10, rng=random.Random(3)))
        _, attempts = generate_guess_free_with_attempts(4, 4, 0, rng=random.Random(0))
        self.assertEqual(attempts, 1)

    def test_trivial_boards(self) -> None:
        empty = generate_guess_free(4, 4, 0, rng=random.Random(0))
        self.assertEqual(empty.mine_coords(), [])
        full = generate_guess_free(2, 2, 9, rng=random.Random(0))
        self.assertEqual(len(full.mine_coords()), 4)

    def test_exhaustion_raises(self) -> None:
        # Any safe cell on a 2x2 board with two mines touches three hidden
        # cells holding two mines, so every placement needs a guess.
        with self.assertRaises(GenerationError) as ctx:
            generate_guess_free(2, 2, 2, max_attempts=5, rng=random.Random(0))
        self.assertEqual(ctx.exception.attempts, 5)

    def test_invalid_attempt_budget(self) -> None:
        with self.assertRaises(ValueError):
            generate_guess_free(9, 9, 10, max_attempts=0)


if __name__ == "__main__":
    unittest.main()

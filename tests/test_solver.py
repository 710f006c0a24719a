import random
import unittest

from guessfree.constraint import CountSet
from guessfree.engine import Board
from guessfree.solver import ContradictionError, CountSetSolver, solve, solve_just_sat

ONE_MINE = "111\n1*?"
ONE_ONE = "111\n?*?"
ONE_ONE_DEEP = "?111*\n?*1??\n?????"
ONE_TWO = "?1221?\n??**??"
USES_TOTAL = "F11\n1?*\n1**"
FIFTY_FIFTY = "*?\n11"


def flagged_cells_are_mines(board: Board) -> bool:
    return all(
        board.get_cell(c).mine for c in board.coords() if board.get_cell(c).flagged
    )


class SolveScenarioTests(unittest.TestCase):
    def test_one_mine_random(self) -> None:
        for seed in range(10):
            board = Board.create(4, 4, 1, rng=random.Random(seed))
            self.assertTrue(solve(board).is_win(), f"seed {seed}")

    def test_one_mine(self) -> None:
        solved = solve(Board.from_text(ONE_MINE), use_hint=False)
        self.assertTrue(solved.is_win())
        self.assertTrue(solved.get_cell((1, 1)).flagged)
        self.assertTrue(solved.get_cell((1, 2)).revealed)

    def test_one_one_rule_needs_no_fallback(self) -> None:
        solver = CountSetSolver(Board.from_text(ONE_ONE))
        self.assertTrue(solver.solve(use_hint=False).is_win())
        self.assertEqual(solver.attempted_sat_count, 0)
        self.assertGreater(solver.reduction_count, 0)

    def test_one_one_rule_deep(self) -> None:
        self.assertTrue(solve(Board.from_text(ONE_ONE_DEEP)).is_win())

    def test_one_two_rule(self) -> None:
        self.assertTrue(solve(Board.from_text(ONE_TWO), use_hint=False).is_win())

    def test_one_two_rule_fires_on_fixture(self) -> None:
        solver = CountSetSolver(Board.from_text(ONE_TWO))
        by_origin = {c.origin: c for c in solver.constraints}
        self.assertEqual(by_origin[(0, 2)], CountSet.of(2, {(1, 1), (1, 2), (1, 3)}))
        self.assertEqual(
            by_origin[(0, 2)].apply_one_two_rule(by_origin[(0, 1)]),
            CountSet.of(1, {(1, 3)}),
        )

    def test_uses_total_count(self) -> None:
        solver = CountSetSolver(Board.from_text(USES_TOTAL))
        solved = solver.solve(use_hint=False)
        self.assertTrue(solved.is_win())
        self.assertEqual(solver.attempted_sat_count, 0)

    def test_scenarios_with_sat_only(self) -> None:
        for text in [ONE_MINE, ONE_ONE, ONE_TWO, USES_TOTAL]:
            solved = solve_just_sat(Board.from_text(text), use_hint=False)
            self.assertTrue(solved.is_win(), text)

    def test_one_one_rule_deep_with_sat_only(self) -> None:
        self.assertTrue(solve_just_sat(Board.from_text(ONE_ONE_DEEP)).is_win())

    def test_fifty_fifty_stalls(self) -> None:
        solver = CountSetSolver(Board.from_text(FIFTY_FIFTY))
        solved = solver.solve(use_hint=False)
        self.assertFalse(solved.is_win())
        self.assertFalse(solved.is_loss())
        self.assertEqual(solved.num_untouched(), 2)
        self.assertEqual(solver.frontier(), [(0, 0), (0, 1)])
        self.assertEqual(solver.attempted_sat_count, 1)
        self.assertEqual(solver.inferred_sat_count, 0)


class SolverBehaviourTests(unittest.TestCase):
    def test_solver_flags_only_mines(self) -> None:
        rng = random.Random(99)
        for _ in range(15):
            solved = solve(Board.create(9, 9, 10, rng=rng))
            self.assertFalse(solved.is_loss())
            self.assertTrue(flagged_cells_are_mines(solved))

    def test_input_board_is_not_modified(self) -> None:
        board = Board.from_text(ONE_TWO)
        before = board.to_text()
        solve(board, use_hint=False)
        self.assertEqual(board.to_text(), before)

    def test_without_hint_untouched_board_stalls(self) -> None:
        board = Board.create(3, 3, 1, rng=random.Random(1))
        self.assertTrue(solve(board, use_hint=False).is_untouched())

    def test_mine_free_board_is_won_from_total_count(self) -> None:
        board = Board.create(3, 3, 0, rng=random.Random(1))
        self.assertTrue(solve(board, use_hint=False).is_win())

    def test_lost_board_is_returned_unchanged(self) -> None:
        board = Board.from_text("X?\n??")
        self.assertIs(solve(board), board)

    def test_contradictory_player_flag_returns_board_stalled(self) -> None:
        board = Board.from_text("-f\n??")
        solver = CountSetSolver(board)
        self.assertTrue(solver.inconsistent)
        self.assertIs(solver.solve(), board)
        self.assertIs(solve_just_sat(board), board)

    def test_wrong_player_flag_stalls_instead_of_revealing_a_mine(self) -> None:
        board = Board.from_text("1?\n?*").flag((0, 1))
        solver = CountSetSolver(board)
        self.assertFalse(solver.inconsistent)
        solved = solver.solve(use_hint=False)
        self.assertTrue(solver.inconsistent)
        self.assertFalse(solved.is_loss())
        self.assertFalse(solved.is_win())
        self.assertEqual(solved.to_text(), board.to_text())

    def test_solver_step_contradiction_is_fatal_without_player_flags(self) -> None:
        solver = CountSetSolver(Board.from_text(ONE_ONE))
        with self.assertRaises(ContradictionError):
            solver.apply([(1, 1)], [])
        with self.assertRaises(ContradictionError):
            solver.apply([(1, 0)], [(1, 0)])
        self.assertEqual(solver.board.to_text(), ONE_ONE)

    def test_negative_frontier_bound_rejected(self) -> None:
        with self.assertRaises(ValueError):
            CountSetSolver(Board.from_text(ONE_ONE), max_sat_frontier=-1)


class SatFallbackTests(unittest.TestCase):
    def test_stop_at_first_applies_one_proof(self) -> None:
        solver = CountSetSolver(Board.from_text(ONE_ONE))
        self.assertTrue(solver.sat_infer(stop_at_first=True))
        self.assertEqual(solver.inferred_sat_count, 1)
        self.assertTrue(solver.board.get_cell((1, 0)).revealed)
        self.assertFalse(solver.board.get_cell((1, 1)).flagged)

    def test_full_scan_applies_every_proof(self) -> None:
        solver = CountSetSolver(Board.from_text(ONE_ONE))
        self.assertTrue(solver.sat_infer(stop_at_first=False))
        self.assertEqual(solver.inferred_sat_count, 3)
        self.assertTrue(solver.board.is_win())
        self.assertTrue(solver.board.get_cell((1, 1)).flagged)

    def test_fallback_uses_total_count(self) -> None:
        solver = CountSetSolver(Board.from_text(USES_TOTAL))
        self.assertTrue(solver.sat_infer(stop_at_first=False))
        self.assertTrue(solver.board.get_cell((1, 1)).revealed)
        self.assertTrue(solver.board.get_cell((1, 2)).flagged)
        self.assertTrue(solver.board.get_cell((2, 1)).flagged)

    def test_frontier_bound_skips_search(self) -> None:
        solver = CountSetSolver(Board.from_text(ONE_ONE), max_sat_frontier=2)
        self.assertFalse(solver.sat_infer())
        self.assertEqual(solver.attempted_sat_count, 0)
        self.assertFalse(solver.solve_just_sat(use_hint=False).is_win())

    def test_no_frontier(self) -> None:
        solver = CountSetSolver(Board.from_text("??\n?*"))
        self.assertFalse(solver.sat_infer())


if __name__ == "__main__":
    unittest.main()

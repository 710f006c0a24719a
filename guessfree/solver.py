"""Guess-free Minesweeper solver: count-set deduction with a satisfiability fallback."""

import logging
from collections import defaultdict, deque
from typing import DefaultDict, Deque, Dict, FrozenSet, Iterable, List, Sequence, Set, Union

from .constraint import CountSet, derive_constraints, frontier_of
from .engine import Board
from .utils import Coord

logger = logging.getLogger(__name__)


class ContradictionError(RuntimeError):
    """
    The solver's own moves made its facts inconsistent.

    This never happens on a board built by the game rules; it signals a
    defect in the inference rules. Wrong player flags are not reported this
    way: a solve that trips over them stops and returns the board stalled.
    """

    def __init__(self, message: str, constraints: Sequence[CountSet] = ()) -> None:
        super().__init__(message)
        self.constraints = list(constraints)


class CountSetSolver:
    """
    Solve a board as far as possible without guessing.

    The solver holds the current (immutable) board and the count sets derived
    from it. Count sets are re-derived from scratch after every board change.

    Strategies, cheapest first:
    1. Certainty: a set with no mines is revealed, a full set is flagged.
    2. Pairwise reduction: subset and one-two rules between every ordered pair.
    3. Satisfiability fallback: a frontier cell whose "mine" (or "safe")
       hypothesis admits no consistent assignment is proven safe (or a mine).

    Flags already on the starting board are player flags. They are read as
    mines, but when they lead to an inconsistency the solver marks itself
    `inconsistent` and stops instead of raising.
    """

    def __init__(
        self,
        board: Board,
        max_sat_frontier: Union[int, float] = float("inf"),
    ) -> None:
        """
        Bind a solver to a starting board.

        Args:
            board: Board to solve. Flags on it are read as mines.
            max_sat_frontier: Largest frontier the satisfiability fallback will
                search; bigger frontiers leave the board stalled instead.

        Raises:
            ValueError: If max_sat_frontier is negative.
        """
        if max_sat_frontier < 0:
            raise ValueError("max_sat_frontier must be non-negative.")

        self.board: Board = board
        self.max_sat_frontier: Union[int, float] = max_sat_frontier
        self.constraints: List[CountSet] = []
        self.player_flags: FrozenSet[Coord] = frozenset(
            c for c in board.coords() if board.get_cell(c).flagged
        )
        self.inconsistent: bool = False

        # Metrics / counters (for analysis)
        self.inferred_certain_count: int = 0
        self.reduction_count: int = 0
        self.attempted_sat_count: int = 0
        self.inferred_sat_count: int = 0

        self.refresh()

    # -------------------------------------------------------------------------
    # Solver state
    # -------------------------------------------------------------------------

    def _fail(self, message: str, constraints: Sequence[CountSet] = ()) -> None:
        """
        Handle an inconsistency: blamed on player flags when the starting
        board had any, otherwise raised as a rule defect.

        Raises:
            ContradictionError: If the starting board carried no flags.
        """
        if self.player_flags:
            logger.warning(
                "%s Player flags at %s are wrong; leaving the board stalled.",
                message, sorted(self.player_flags),
            )
            self.inconsistent = True
            return
        logger.error("%s Offending count sets: %s", message, list(constraints))
        raise ContradictionError(message, constraints)

    def refresh(self) -> None:
        """
        Re-derive count sets from the current board and validate them.

        Raises:
            ContradictionError: If they are contradictory and no player flag
                can explain it.
        """
        constraints = derive_constraints(self.board)
        bad = [c for c in constraints if c.is_contradiction()]
        if bad:
            self._fail("Derived count sets are contradictory.", bad)
            return
        self.constraints = constraints

    def frontier(self) -> List[Coord]:
        """Hidden cells next to an informative revealed cell, row-major."""
        return frontier_of(derive_constraints(self.board))

    def stats(self) -> Dict[str, int]:
        return {
            "inferred_certain_count": self.inferred_certain_count,
            "reduction_count": self.reduction_count,
            "attempted_sat_count": self.attempted_sat_count,
            "inferred_sat_count": self.inferred_sat_count,
        }

    def apply(self, reveals: Iterable[Coord], flags: Iterable[Coord]) -> bool:
        """
        Apply one batch of proven moves to the board and refresh.

        A batch that turns out inconsistent is never committed.

        Args:
            reveals: Cells proven safe.
            flags: Cells proven to be mines.

        Returns:
            True if the board changed.

        Raises:
            ContradictionError: If a cell is both safe and a mine, if a mine
                gets revealed, or if the refreshed count sets are contradictory,
                and the starting board carried no player flags.
        """
        if self.inconsistent:
            return False

        reveals = set(reveals)
        flags = set(flags)
        both = reveals & flags
        if both:
            self._fail(f"Cells proven both safe and mined: {sorted(both)}.")
            return False

        board = self.board
        for coord in sorted(flags):
            board = board.flag(coord, toggle=False)
        for coord in sorted(reveals):
            if board.get_cell(coord).is_hidden:
                board = board.reveal(coord)

        if board.is_loss():
            self._fail(f"Solver revealed a mine; reveals={sorted(reveals)}.")
            return False

        constraints = derive_constraints(board)
        bad = [c for c in constraints if c.is_contradiction()]
        if bad:
            self._fail("Count sets are contradictory after a solver step.", bad)
            return False

        changed = board is not self.board
        self.board = board
        self.constraints = constraints
        logger.debug("Applied %d reveals and %d flags.", len(reveals), len(flags))
        return changed

    # -------------------------------------------------------------------------
    # Deduction
    # -------------------------------------------------------------------------

    def certainty_pass(self) -> bool:
        """
        Reveal all-safe sets and flag all-mine sets until none remain.

        Returns:
            True if the board changed.
        """
        progressed = False
        while True:
            reveals: Set[Coord] = set()
            flags: Set[Coord] = set()
            for constraint in self.constraints:
                if constraint.is_all_safe():
                    reveals |= constraint.indices
                elif constraint.is_all_mines():
                    flags |= constraint.indices

            if not reveals and not flags:
                return progressed

            self.inferred_certain_count += len(reveals) + len(flags)
            if not self.apply(reveals, flags):
                return progressed
            progressed = True

    def reduction_pass(self) -> bool:
        """
        Rewrite every count set against every other with the subset and
        one-two rules until nothing changes.

        Returns:
            True if any count set was rewritten.
        """
        constraints = list(self.constraints)
        rewritten = False
        changed = True
        while changed:
            changed = False
            for i in range(len(constraints)):
                for j in range(len(constraints)):
                    if i == j:
                        continue
                    other = constraints[j]
                    reduced = constraints[i].apply_subset_rule(other).apply_one_two_rule(other)
                    if reduced != constraints[i]:
                        constraints[i] = reduced
                        self.reduction_count += 1
                        changed = True
                        rewritten = True

        self.constraints = constraints
        return rewritten

    def deduce(self) -> bool:
        """
        Alternate certainty and reduction passes to a fixed point.

        Returns:
            True if the board changed.
        """
        progressed = False
        while True:
            if self.inconsistent:
                return progressed
            certain = self.certainty_pass()
            reduced = self.reduction_pass()
            progressed = progressed or certain
            if not certain and not reduced:
                return progressed

    # -------------------------------------------------------------------------
    # Satisfiability fallback
    # -------------------------------------------------------------------------

    def _search_order(self, start: Coord, frontier: Sequence[Coord]) -> List[Coord]:
        """
        Order the frontier (without `start`) breadth-first from `start` through
        shared count sets, so the hypothesis's own connected component is
        assigned first and contradictions surface early.
        """
        by_cell: DefaultDict[Coord, List[CountSet]] = defaultdict(list)
        for constraint in self.constraints:
            if constraint.is_total:
                continue
            for cell in constraint.indices:
                by_cell[cell].append(constraint)

        order: List[Coord] = []
        seen: Set[Coord] = {start}
        queue: Deque[Coord] = deque([start])
        remaining = iter(frontier)

        while True:
            while queue:
                cell = queue.popleft()
                for constraint in by_cell[cell]:
                    for n in sorted(constraint.indices):
                        if n not in seen:
                            seen.add(n)
                            order.append(n)
                            queue.append(n)

            # Next connected component
            nxt = next((c for c in remaining if c not in seen), None)
            if nxt is None:
                return order
            seen.add(nxt)
            order.append(nxt)
            queue.append(nxt)

    def _is_satisfiable(
        self, constraints: List[CountSet], order: Sequence[Coord], depth: int = 0
    ) -> bool:
        """
        Depth-first search for an assignment of `order[depth:]` consistent
        with every count set. Recursion depth is bounded by len(order).
        """
        if any(c.is_contradiction() for c in constraints):
            return False
        if depth == len(order):
            return True

        coord = order[depth]
        return self._is_satisfiable(
            [c.consider_mine_at(coord) for c in constraints], order, depth + 1
        ) or self._is_satisfiable(
            [c.consider_no_mine_at(coord) for c in constraints], order, depth + 1
        )

    def sat_infer(self, stop_at_first: bool = True) -> bool:
        """
        Prove frontier cells safe or mined by refuting the opposite hypothesis.

        Args:
            stop_at_first: If True, apply the first proven cell only; otherwise
                scan the whole frontier and apply every proof in one batch.

        Returns:
            True if the board changed.
        """
        if self.inconsistent:
            return False
        self.refresh()
        frontier = frontier_of(self.constraints)
        if not frontier:
            return False
        if len(frontier) > self.max_sat_frontier:
            logger.info(
                "Frontier of %d cells exceeds max_sat_frontier=%s; skipping search.",
                len(frontier), self.max_sat_frontier,
            )
            return False

        self.attempted_sat_count += 1
        reveals: Set[Coord] = set()
        flags: Set[Coord] = set()

        for coord in frontier:
            order = self._search_order(coord, frontier)
            if not self._is_satisfiable(
                [c.consider_mine_at(coord) for c in self.constraints], order
            ):
                reveals.add(coord)
                logger.debug("Fallback proved %s safe.", coord)
            elif not self._is_satisfiable(
                [c.consider_no_mine_at(coord) for c in self.constraints], order
            ):
                flags.add(coord)
                logger.debug("Fallback proved %s a mine.", coord)
            else:
                continue

            if stop_at_first:
                break

        if not reveals and not flags:
            return False

        self.inferred_sat_count += len(reveals) + len(flags)
        return self.apply(reveals, flags)

    # -------------------------------------------------------------------------
    # Main solving loops
    # -------------------------------------------------------------------------

    def _open_with_hint(self, use_hint: bool) -> None:
        if use_hint and self.board.is_untouched() and not self.board.is_win():
            self.apply([self.board.find_hint_cell()], [])

    def solve(self, use_hint: bool = True) -> Board:
        """
        Play until the board is won or no further cell can be proven.

        Args:
            use_hint: Reveal `Board.find_hint_cell()` first if the board is untouched.

        Returns:
            The final board; `is_win()` tells a win from a stall.
            Wrong player flags also end in a stall (see `inconsistent`).
        """
        if self.board.is_loss() or self.inconsistent:
            return self.board
        self._open_with_hint(use_hint)

        while not self.board.is_win() and not self.inconsistent:
            self.deduce()
            if self.board.is_win():
                break
            if not self.sat_infer(stop_at_first=True):
                logger.info(
                    "Solver stalled with %d untouched cells.", self.board.num_untouched()
                )
                break

        return self.board

    def solve_just_sat(self, use_hint: bool = True) -> Board:
        """
        Like `solve`, but without pairwise reduction: certainty passes plus a
        full-frontier satisfiability scan each round.
        """
        if self.board.is_loss() or self.inconsistent:
            return self.board
        self._open_with_hint(use_hint)

        while not self.board.is_win() and not self.inconsistent:
            self.certainty_pass()
            if self.board.is_win():
                break
            if not self.sat_infer(stop_at_first=False):
                break

        return self.board


def solve(board: Board, use_hint: bool = True) -> Board:
    """Solve `board` as far as possible without guessing and return the result."""
    return CountSetSolver(board).solve(use_hint)


def solve_just_sat(board: Board, use_hint: bool = True) -> Board:
    """Solve `board` with certainty passes and the satisfiability fallback only."""
    return CountSetSolver(board).solve_just_sat(use_hint)

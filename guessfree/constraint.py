"""
Count sets: facts of the form "exactly N mines lie among these hidden cells".

A count set is derived either from a revealed numbered cell (its hidden,
unflagged neighbors) or from the whole-board mine total (every hidden,
unflagged cell). The algebra below combines two true facts into a new true
fact; it never asserts a contradiction itself. A contradiction is only ever
observed through `CountSet.is_contradiction`.
"""

from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, List, Union

from .engine import Board
from .utils import Coord

TOTAL_ORIGIN = "total"

Origin = Union[Coord, str, None]


@dataclass(frozen=True)
class CountSet:
    """
    Exactly `mine_count` mines are hidden among `indices`.

    `origin` names the revealed cell (or `TOTAL_ORIGIN`) that produced the
    fact. It is diagnostic only and takes no part in equality or hashing.
    """

    mine_count: int
    indices: FrozenSet[Coord]
    origin: Origin = field(default=None, compare=False)

    @classmethod
    def of(cls, mine_count: int, indices: AbstractSet[Coord], origin: Origin = None) -> "CountSet":
        return cls(mine_count, frozenset(indices), origin)

    def __len__(self) -> int:
        return len(self.indices)

    @property
    def is_total(self) -> bool:
        return self.origin == TOTAL_ORIGIN

    def is_contradiction(self) -> bool:
        """True unless 0 <= mine_count <= len(indices)."""
        return self.mine_count < 0 or self.mine_count > len(self.indices)

    def is_all_safe(self) -> bool:
        return bool(self.indices) and self.mine_count == 0

    def is_all_mines(self) -> bool:
        return bool(self.indices) and self.mine_count == len(self.indices)

    def is_subset_of(self, other: "CountSet") -> bool:
        return self.indices <= other.indices

    def intersection(self, other: "CountSet") -> FrozenSet[Coord]:
        return self.indices & other.indices

    def subtract(self, other: "CountSet") -> "CountSet":
        """
        Remove `other`'s cells and mines from this set, keeping this origin.

        Only meaningful where the caller has established that `other`'s mines
        all fall inside this set's cells.
        """
        return CountSet(
            self.mine_count - other.mine_count,
            self.indices - other.indices,
            self.origin,
        )

    def apply_subset_rule(self, other: "CountSet") -> "CountSet":
        """
        If `other` lies wholly inside this set, the cells outside it hold the
        difference of the two counts.
        """
        if other.is_subset_of(self):
            return self.subtract(other)
        return self

    def apply_one_two_rule(self, other: "CountSet") -> "CountSet":
        """
        Strict one-two rule.

        Applies when `other` holds one mine, overlaps this set in exactly two
        cells, and this set has exactly one mine-free cell. `other` leaves at
        least one of the two shared cells free, so that is this set's only
        free cell and everything outside the overlap is a mine.

        Example: "2 among {A, B, C}" against "1 among {B, C, D}" gives
        "1 among {A}".
        """
        if (
            other.mine_count == 1
            and len(self.intersection(other)) == 2
            and len(self.indices) - self.mine_count == 1
        ):
            return self.subtract(other)
        return self

    def consider_mine_at(self, coord: Coord) -> "CountSet":
        """Refine under the hypothesis that `coord` is a mine."""
        if coord not in self.indices:
            return self
        return self.subtract(CountSet(1, frozenset((coord,))))

    def consider_no_mine_at(self, coord: Coord) -> "CountSet":
        """Refine under the hypothesis that `coord` is safe."""
        if coord not in self.indices:
            return self
        return self.subtract(CountSet(0, frozenset((coord,))))

    def __repr__(self) -> str:
        cells = ", ".join(f"{r},{c}" for r, c in sorted(self.indices))
        return f"CountSet({self.mine_count} in {{{cells}}} from {self.origin})"


def derive_constraints(board: Board) -> List[CountSet]:
    """
    Build the count sets visible on a board.

    One set per revealed, unflagged, non-mine cell that still has hidden
    neighbors (count = its remaining neighbor mines), plus one total set over
    every hidden cell (count = total mines minus flags). Flagged cells are
    treated as mines and never appear in any set.

    Args:
        board: Board to read.

    Returns:
        Per-cell sets in row-major order of their origin, followed by the
        total set when any hidden cell remains.
    """
    constraints: List[CountSet] = []
    for coord in board.coords():
        cell = board.get_cell(coord)
        if not cell.revealed or cell.flagged or cell.mine:
            continue
        hidden = frozenset(n for n in board.neighbors(coord) if board.get_cell(n).is_hidden)
        if hidden:
            constraints.append(
                CountSet(board.neighbor_remaining_mine_count(coord), hidden, coord)
            )

    hidden_all = frozenset(board.hidden_coords())
    if hidden_all:
        constraints.append(
            CountSet(board.total_mines - board.num_flags(), hidden_all, TOTAL_ORIGIN)
        )
    return constraints


def frontier_of(constraints: List[CountSet]) -> List[Coord]:
    """Cells mentioned by any non-total count set, sorted row-major."""
    cells = set()
    for constraint in constraints:
        if not constraint.is_total:
            cells |= constraint.indices
    return sorted(cells)

"""Immutable Minesweeper board model with reveal/flag transitions and a text fixture codec."""

import logging
import random
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from .utils import Coord, get_neighborhoods, in_bounds, resolve_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cell:
    """A single board cell."""

    mine: bool = False
    revealed: bool = False
    flagged: bool = False

    @property
    def is_hidden(self) -> bool:
        """True if the cell is neither revealed nor flagged."""
        return not self.revealed and not self.flagged


class FixtureParseError(ValueError):
    """Raised when fixture text contains an unknown character or is not rectangular."""

    def __init__(self, message: str, char: Optional[str] = None, row: int = -1, col: int = -1) -> None:
        super().__init__(message)
        self.char = char
        self.row = row
        self.col = col


# Fixture characters for hidden cells: char -> (mine, flagged)
_HIDDEN_CHARS: Dict[str, Tuple[bool, bool]] = {
    "?": (False, False),
    "*": (True, False),
    "F": (True, True),
    "f": (False, True),
}
_REVEALED_SAFE_CHARS = frozenset("-0123456789")
_REVEALED_MINE_CHAR = "X"

Grid = Tuple[Tuple[Cell, ...], ...]


class Board:
    """
    Immutable Minesweeper board.

    Every transition (reveal, flag, reset, mine relocation) returns a new Board;
    the receiver is never modified. Coordinates are (row, col) tuples and are
    bounds-checked on every query.
    """

    def __init__(self, width: int, height: int, total_mines: int, cells: Grid) -> None:
        """
        Wrap an existing grid. Prefer `Board.create` or `Board.from_text`.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            total_mines: Number of mine cells in `cells`.
            cells: `height` rows of `width` cells each.

        Raises:
            ValueError: If dimensions are invalid or do not match `cells`,
                or if `total_mines` differs from the mines in `cells`.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if len(cells) != height or any(len(row) != width for row in cells):
            raise ValueError("Grid shape does not match board dimensions.")
        mines = sum(cell.mine for row in cells for cell in row)
        if mines != total_mines:
            raise ValueError(
                f"total_mines={total_mines} but the grid holds {mines} mine cells."
            )

        self.width: int = width
        self.height: int = height
        self.total_mines: int = total_mines
        self._cells: Grid = cells
        self._neighborhoods: Dict[Coord, Tuple[Coord, ...]] = get_neighborhoods(height, width)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        width: int,
        height: int,
        mines_count: int,
        rng: Optional[random.Random] = None,
    ) -> "Board":
        """
        Create a board with mines placed uniformly at random.

        A mine count larger than the number of cells is capped at `width * height`.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            mines_count: Number of mines to place, must be >= 0.
            rng: Random source; a fresh OS-seeded one is used when omitted.

        Raises:
            ValueError: If dimensions are invalid or mines_count is negative.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")

        rng = resolve_rng(rng)
        all_coords = [(row, col) for row in range(height) for col in range(width)]
        if mines_count > len(all_coords):
            logger.warning(
                "Requested %d mines on a %dx%d board; capping at %d.",
                mines_count, width, height, len(all_coords),
            )
            mines_count = len(all_coords)

        mines = set(rng.sample(all_coords, mines_count))
        cells = tuple(
            tuple(Cell(mine=(row, col) in mines) for col in range(width))
            for row in range(height)
        )
        return cls(width, height, mines_count, cells)

    @classmethod
    def from_text(cls, text: Union[str, Sequence[str]]) -> "Board":
        """
        Decode a fixture board, one character per cell.

        Characters:
            `?` hidden non-mine, `*` hidden mine, `F` flagged mine,
            `f` flagged non-mine, `-` or `0`-`9` revealed non-mine,
            `X` revealed mine.

        Digits are not checked against the actual neighbor mine counts.

        Args:
            text: Newline-separated rows, or a sequence of row strings.

        Raises:
            FixtureParseError: On an unknown character, empty input or ragged rows.
        """
        lines = text.strip().splitlines() if isinstance(text, str) else list(text)
        lines = [line.strip() for line in lines]
        if not lines or not lines[0]:
            raise FixtureParseError("Fixture text is empty.")

        width = len(lines[0])
        rows: List[Tuple[Cell, ...]] = []
        total_mines = 0
        for row, line in enumerate(lines):
            if len(line) != width:
                raise FixtureParseError(
                    f"Row {row} has {len(line)} cells, expected {width}.", row=row
                )
            cells: List[Cell] = []
            for col, char in enumerate(line):
                if char in _HIDDEN_CHARS:
                    mine, flagged = _HIDDEN_CHARS[char]
                    cell = Cell(mine=mine, flagged=flagged)
                elif char in _REVEALED_SAFE_CHARS:
                    cell = Cell(revealed=True)
                elif char == _REVEALED_MINE_CHAR:
                    cell = Cell(mine=True, revealed=True)
                else:
                    raise FixtureParseError(
                        f"Unknown fixture character {char!r} at ({row}, {col}).",
                        char=char, row=row, col=col,
                    )
                total_mines += cell.mine
                cells.append(cell)
            rows.append(tuple(cells))

        return cls(width, len(rows), total_mines, tuple(rows))

    def to_text(self) -> str:
        """Encode the board in the fixture format accepted by `from_text`."""
        lines: List[str] = []
        for row in range(self.height):
            chars: List[str] = []
            for col in range(self.width):
                cell = self._cells[row][col]
                if cell.revealed:
                    if cell.mine:
                        chars.append(_REVEALED_MINE_CHAR)
                    else:
                        count = self.neighbor_mine_count((row, col))
                        chars.append(str(count) if count else "-")
                elif cell.flagged:
                    chars.append("F" if cell.mine else "f")
                else:
                    chars.append("*" if cell.mine else "?")
            lines.append("".join(chars))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Board(width={self.width}, height={self.height}, total_mines={self.total_mines})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.total_mines == other.total_mines
            and self._cells == other._cells
        )

    def __hash__(self) -> int:
        return hash((self.width, self.height, self.total_mines, self._cells))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def coords(self) -> Iterator[Coord]:
        """Yield every coordinate in row-major order."""
        for row in range(self.height):
            for col in range(self.width):
                yield (row, col)

    def in_bounds(self, coord: Coord) -> bool:
        return in_bounds(coord, self.height, self.width)

    def _check(self, coord: Coord) -> None:
        if not self.in_bounds(coord):
            raise ValueError(
                f"Cell coordinates {coord} are outside the {self.height}x{self.width} board."
            )

    def get_cell(self, coord: Coord) -> Cell:
        self._check(coord)
        row, col = coord
        return self._cells[row][col]

    def neighbors(self, coord: Coord) -> Tuple[Coord, ...]:
        """Return the in-bounds 8-neighborhood of `coord`."""
        self._check(coord)
        return self._neighborhoods[coord]

    def neighbor_mine_count(self, coord: Coord) -> int:
        return sum(1 for r, c in self.neighbors(coord) if self._cells[r][c].mine)

    def neighbor_flag_count(self, coord: Coord) -> int:
        return sum(1 for r, c in self.neighbors(coord) if self._cells[r][c].flagged)

    def neighbor_remaining_mine_count(self, coord: Coord) -> int:
        """Neighbor mines not yet accounted for by neighbor flags."""
        return self.neighbor_mine_count(coord) - self.neighbor_flag_count(coord)

    def neighbor_untouched_count(self, coord: Coord) -> int:
        """Number of neighbors that are neither revealed nor flagged."""
        return sum(1 for r, c in self.neighbors(coord) if self._cells[r][c].is_hidden)

    def hidden_coords(self) -> List[Coord]:
        """Coordinates that are neither revealed nor flagged, row-major."""
        return [coord for coord in self.coords() if self.get_cell(coord).is_hidden]

    def mine_coords(self) -> List[Coord]:
        return [coord for coord in self.coords() if self.get_cell(coord).mine]

    def is_win(self) -> bool:
        """True iff every non-mine cell is revealed."""
        return all(
            cell.mine or cell.revealed for row in self._cells for cell in row
        )

    def is_loss(self) -> bool:
        """True iff any mine cell is revealed."""
        return any(
            cell.mine and cell.revealed for row in self._cells for cell in row
        )

    def num_flags(self) -> int:
        return sum(cell.flagged for row in self._cells for cell in row)

    def num_untouched(self) -> int:
        return sum(cell.is_hidden for row in self._cells for cell in row)

    def is_untouched(self) -> bool:
        """True if no cell has been revealed or flagged."""
        return self.num_untouched() == self.width * self.height

    def find_hint_cell(self) -> Coord:
        """
        Pick an opening move.

        Prefers hidden non-mine cells with no neighboring mines, closest to the
        grid center; otherwise the hidden non-mine cell with the fewest
        neighboring mines. Remaining ties go to the first cell in row-major
        order, so the hint is a pure function of the board.

        Returns:
            The (row, col) coordinate to reveal.

        Raises:
            ValueError: If the board has no hidden non-mine cell.
        """
        center_row = (self.height - 1) / 2.0
        center_col = (self.width - 1) / 2.0

        def rank(coord: Coord) -> Tuple[int, float, Coord]:
            row, col = coord
            distance = (row - center_row) ** 2 + (col - center_col) ** 2
            return self.neighbor_mine_count(coord), distance, coord

        candidates = [
            coord for coord in self.hidden_coords() if not self.get_cell(coord).mine
        ]
        if not candidates:
            raise ValueError("No hidden non-mine cell is available for a hint.")
        return min(candidates, key=rank)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _with_cells(self, updates: Dict[Coord, Cell]) -> "Board":
        """Return a copy of the board with the given cells replaced."""
        if not updates:
            return self
        rows = [list(row) for row in self._cells]
        for (row, col), cell in updates.items():
            rows[row][col] = cell
        return Board(self.width, self.height, self.total_mines, tuple(tuple(r) for r in rows))

    def flag(self, coord: Coord, toggle: bool = True) -> "Board":
        """
        Flag or unflag a hidden cell.

        Args:
            coord: Cell to flag.
            toggle: If True, invert the current flag; if False, always set it
                (idempotent, used by the solver).

        Returns:
            A new board, or this board unchanged if the cell is revealed.
        """
        cell = self.get_cell(coord)
        if cell.revealed:
            return self
        flagged = not cell.flagged if toggle else True
        if flagged == cell.flagged:
            return self
        return self._with_cells({coord: replace(cell, flagged=flagged)})

    def reveal(self, coord: Coord) -> "Board":
        """
        Reveal a cell, flood-filling zero regions.

        Revealing an already revealed cell whose neighbor flag count is at
        least its neighbor mine count chords: every neighbor is revealed
        instead, each with the same flood rule. Flagged cells are never
        revealed.

        Args:
            coord: Cell to reveal.

        Returns:
            A new board, or this board if nothing changed.
        """
        cell = self.get_cell(coord)
        if cell.revealed and self.neighbor_flag_count(coord) >= self.neighbor_mine_count(coord):
            starts: Iterable[Coord] = self.neighbors(coord)
        else:
            starts = (coord,)
        return self._with_cells(
            {c: replace(self.get_cell(c), revealed=True) for c in self._flood(starts)}
        )

    def _flood(self, starts: Iterable[Coord]) -> Set[Coord]:
        """
        Collect the cells a reveal at each of `starts` uncovers.

        Expansion continues through unflagged, previously hidden non-mine
        cells with no neighboring mines and stops everywhere else.
        """
        stack: List[Coord] = list(starts)
        seen: Set[Coord] = set()
        newly_revealed: Set[Coord] = set()

        while stack:
            coord = stack.pop()
            if coord in seen:
                continue
            seen.add(coord)

            cell = self.get_cell(coord)
            if cell.flagged or cell.revealed:
                continue

            newly_revealed.add(coord)
            if not cell.mine and self.neighbor_mine_count(coord) == 0:
                stack.extend(n for n in self.neighbors(coord) if n not in seen)

        return newly_revealed

    def reveal_all(self) -> "Board":
        """Reveal every cell (end-of-game display)."""
        return self._with_cells(
            {
                coord: replace(self.get_cell(coord), revealed=True)
                for coord in self.coords()
                if not self.get_cell(coord).revealed
            }
        )

    def reset(self) -> "Board":
        """Clear all revealed and flagged state, keeping mine placement."""
        cells = tuple(
            tuple(Cell(mine=cell.mine) for cell in row) for row in self._cells
        )
        return Board(self.width, self.height, self.total_mines, cells)

    def move_mine(self, src: Coord, dst: Coord) -> "Board":
        """
        Relocate the mine at `src` to `dst`; both cells end up hidden and unflagged.

        Raises:
            ValueError: If `src` holds no mine or `dst` already holds one.
        """
        if not self.get_cell(src).mine:
            raise ValueError(f"No mine at {src} to move.")
        if self.get_cell(dst).mine:
            raise ValueError(f"Destination {dst} already holds a mine.")
        return self._with_cells({src: Cell(mine=False), dst: Cell(mine=True)})

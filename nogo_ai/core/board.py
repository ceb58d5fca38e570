"""
Board representation for the NoGo game.

NoGo is played like Go on a small grid, except that capturing is forbidden:
a placement is illegal if it would leave the placed stone's own group without
a liberty (suicide) or remove the last liberty of an adjacent opponent group
(capture). The player who has no legal placement on their turn loses.

The board stores cells in a flat numpy vector in row-major order.
"""
from __future__ import annotations
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import numpy as np

from nogo_ai.core.constants import (
    Side, MoveResult, EMPTY, CELL_SYMBOLS, COLUMN_LABELS,
    BOARD_SIZE, MIN_BOARD_SIZE, MAX_BOARD_SIZE
)
from nogo_ai.core.actions import Move


@lru_cache(maxsize=None)
def neighbor_table(size: int) -> Tuple[Tuple[int, ...], ...]:
    """
    Get the orthogonal neighbors of every point of a board.

    Args:
        size: Board size

    Returns:
        Tuple indexed by position holding the neighboring positions
    """
    table = []
    for position in range(size * size):
        row, column = divmod(position, size)
        neighbors = []
        if row > 0:
            neighbors.append(position - size)
        if row < size - 1:
            neighbors.append(position + size)
        if column > 0:
            neighbors.append(position - 1)
        if column < size - 1:
            neighbors.append(position + 1)
        table.append(tuple(neighbors))
    return tuple(table)


class Board:
    """
    A NoGo position: a square grid of empty, black and white points.

    Boards are plain values. Copies never share cell storage, and two boards
    are equal when they have the same size and the same stones.
    """

    def __init__(self, size: int = BOARD_SIZE, cells: Optional[np.ndarray] = None):
        """
        Initialize a board.

        Args:
            size: Board size (the board has size x size points)
            cells: Optional flat cell vector to copy

        Raises:
            ValueError: If the size or cell vector is invalid
        """
        if not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
            raise ValueError(
                f"board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}"
            )
        self.size = size
        if cells is None:
            self._cells = np.zeros(size * size, dtype=np.int8)
        else:
            cells = np.asarray(cells, dtype=np.int8).reshape(-1)
            if cells.shape[0] != size * size:
                raise ValueError(f"expected {size * size} cells, got {cells.shape[0]}")
            self._cells = cells.copy()
        self._neighbors = neighbor_table(size)

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> 'Board':
        """
        Build a board from text rows.

        Row 0 is the first row ("A1" lives in it). Use "." for empty,
        "X" for black and "O" for white; whitespace is ignored.

        Args:
            rows: One string per board row

        Returns:
            Board with the given stones
        """
        symbols = {symbol: value for value, symbol in CELL_SYMBOLS.items()}
        cleaned = ["".join(row.split()) for row in rows]
        size = len(cleaned)
        cells = []
        for row in cleaned:
            if len(row) != size:
                raise ValueError("board rows must form a square")
            for symbol in row.upper():
                if symbol not in symbols:
                    raise ValueError(f"unknown board symbol: {symbol!r}")
                cells.append(symbols[symbol])
        return cls(size, np.array(cells, dtype=np.int8))

    @property
    def num_points(self) -> int:
        """Number of points on the board."""
        return self.size * self.size

    def copy(self) -> 'Board':
        """Get an independent copy of this board."""
        return Board(self.size, self._cells)

    def get(self, position: int) -> int:
        """Get the cell value at a position."""
        return int(self._cells[position])

    def place(self, position: int, side: Side) -> MoveResult:
        """
        Place a stone if the placement is legal.

        The board is left untouched when the placement is illegal.

        Args:
            position: Flat position of the point
            side: Side placing the stone

        Returns:
            MoveResult.LEGAL if the stone was placed, MoveResult.ILLEGAL otherwise
        """
        cells = self._cells
        if not 0 <= position < cells.shape[0] or cells[position] != EMPTY:
            return MoveResult.ILLEGAL

        cells[position] = side.value
        legal = self._has_liberty(position)
        if legal:
            opponent = side.opponent.value
            for neighbor in self._neighbors[position]:
                if cells[neighbor] == opponent and not self._has_liberty(neighbor):
                    legal = False
                    break

        if not legal:
            cells[position] = EMPTY
            return MoveResult.ILLEGAL
        return MoveResult.LEGAL

    def _has_liberty(self, start: int) -> bool:
        """Check whether the group containing `start` touches an empty point."""
        cells = self._cells
        color = cells[start]
        seen = {start}
        stack = [start]
        while stack:
            position = stack.pop()
            for neighbor in self._neighbors[position]:
                value = cells[neighbor]
                if value == EMPTY:
                    return True
                if value == color and neighbor not in seen:
                    seen.add(neighbor)
                    stack.append(neighbor)
        return False

    def is_legal(self, position: int, side: Side) -> bool:
        """Check a placement without modifying this board."""
        return self.copy().place(position, side) == MoveResult.LEGAL

    def legal_moves(self, side: Side) -> List[Move]:
        """
        Get all legal placements for a side.

        Args:
            side: Side to move

        Returns:
            Legal moves in ascending position order
        """
        return [
            Move(position, side)
            for position in range(self.num_points)
            if self._cells[position] == EMPTY and self.is_legal(position, side)
        ]

    def has_legal_move(self, side: Side) -> bool:
        """Check whether a side has at least one legal placement."""
        return any(
            self._cells[position] == EMPTY and self.is_legal(position, side)
            for position in range(self.num_points)
        )

    def stone_count(self, side: Optional[Side] = None) -> int:
        """
        Count stones on the board.

        Args:
            side: Only count this side's stones (None = both sides)

        Returns:
            Number of stones
        """
        if side is None:
            return int(np.count_nonzero(self._cells))
        return int(np.count_nonzero(self._cells == side.value))

    def to_array(self) -> np.ndarray:
        """Get a size x size copy of the cells."""
        return self._cells.reshape(self.size, self.size).copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and np.array_equal(self._cells, other._cells)

    def __hash__(self) -> int:
        return hash((self.size, self._cells.tobytes()))

    def __str__(self) -> str:
        """
        Render the board as text, last row on top like a Go diagram.

        Returns:
            Multi-line string with coordinates
        """
        width = len(str(self.size))
        lines = []
        for row in reversed(range(self.size)):
            cells = self._cells[row * self.size:(row + 1) * self.size]
            symbols = " ".join(CELL_SYMBOLS[int(value)] for value in cells)
            lines.append(f"{row + 1:>{width}} {symbols}")
        lines.append(" " * (width + 1) + " ".join(COLUMN_LABELS[:self.size]))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Board(size={self.size}, stones={self.stone_count()})"

"""
Constants for the NoGo game.

This module defines the game constants used throughout the NoGo implementation,
including the two sides, cell values, board limits and search defaults.
"""
from enum import Enum
from typing import Dict, Final


class Side(Enum):
    """Enum representing the two players of NoGo."""
    BLACK = 1
    WHITE = 2

    @property
    def opponent(self) -> 'Side':
        """The side that moves after this one."""
        return Side.WHITE if self is Side.BLACK else Side.BLACK

    @classmethod
    def from_name(cls, name: str) -> 'Side':
        """
        Parse a side from its name.

        Args:
            name: "black"/"white" (or "b"/"w"), case-insensitive

        Returns:
            The matching Side

        Raises:
            ValueError: If the name does not identify a side
        """
        key = str(name).strip().lower()
        if key in ("black", "b"):
            return cls.BLACK
        if key in ("white", "w"):
            return cls.WHITE
        raise ValueError(f"invalid side: {name!r}")


# Value of an empty point; stones are stored as their Side value
EMPTY: Final[int] = 0

# Characters used for text rendering and parsing of boards
CELL_SYMBOLS: Final[Dict[int, str]] = {
    EMPTY: ".",
    Side.BLACK.value: "X",
    Side.WHITE.value: "O",
}

# Board limits
BOARD_SIZE: Final[int] = 9  # Standard NoGo board is 9x9
MIN_BOARD_SIZE: Final[int] = 2
MAX_BOARD_SIZE: Final[int] = 19

# Column letters for move text ("A1" is the first column, first row)
COLUMN_LABELS: Final[str] = "ABCDEFGHIJKLMNOPQRS"

# AI and simulation settings
DEFAULT_MCTS_ITERATIONS: Final[int] = 1000
DEFAULT_MCTS_EXPLORATION: Final[float] = 1.41  # UCT exploration weight (sqrt(2))

# Selection score of a node that has never been visited
UNVISITED_SCORE: Final[float] = float('inf')


class MoveResult(Enum):
    """Outcome of applying a placement to a board."""
    LEGAL = "legal"
    ILLEGAL = "illegal"

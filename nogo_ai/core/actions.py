"""
Actions for the NoGo game.

NoGo has a single kind of action: placing a stone of one side on an empty
point. This module defines the Move type, the fixed candidate list of every
placement on a board, and the "A1"-style text encoding used by the drivers.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List

from nogo_ai.core.constants import Side, MoveResult, COLUMN_LABELS, BOARD_SIZE

if TYPE_CHECKING:
    from nogo_ai.core.board import Board


@dataclass(frozen=True)
class Move:
    """
    Placement of a stone of `side` at a flat board position.

    Positions are row-major: position = row * size + column.
    """
    position: int
    side: Side

    def apply(self, board: Board) -> MoveResult:
        """
        Apply this move to a board in place.

        The board is only modified when the result is LEGAL.

        Args:
            board: Board to place the stone on

        Returns:
            MoveResult.LEGAL or MoveResult.ILLEGAL
        """
        return board.place(self.position, self.side)

    def to_text(self, size: int = BOARD_SIZE) -> str:
        """
        Encode the move position as column letter plus 1-based row.

        Args:
            size: Board size the position refers to

        Returns:
            Text such as "A1" or "E5"
        """
        row, column = divmod(self.position, size)
        return f"{COLUMN_LABELS[column]}{row + 1}"

    def to_dict(self) -> Dict:
        """Convert to dictionary representation."""
        return {"position": self.position, "side": self.side.name}

    @classmethod
    def from_dict(cls, data: Dict) -> Move:
        """Create from dictionary representation."""
        return cls(position=int(data["position"]), side=Side[data["side"]])

    def __str__(self) -> str:
        return f"{self.side.name.lower()}@{self.position}"


def candidate_moves(side: Side, size: int = BOARD_SIZE) -> List[Move]:
    """
    Get every board-addressable placement for a side.

    The list is independent of any position; legality is decided by
    applying a move, not by this enumeration.

    Args:
        side: Side placing the stones
        size: Board size

    Returns:
        Moves for positions 0 .. size*size - 1, in position order
    """
    return [Move(position, side) for position in range(size * size)]


def parse_move(text: str, side: Side, size: int = BOARD_SIZE) -> Move:
    """
    Parse "A1"-style move text.

    Args:
        text: Column letter followed by a 1-based row number
        side: Side making the move
        size: Board size

    Returns:
        The corresponding Move

    Raises:
        ValueError: If the text does not name a point on the board
    """
    text = text.strip().upper()
    if len(text) < 2:
        raise ValueError(f"invalid move text: {text!r}")

    column = COLUMN_LABELS.find(text[0])
    if column < 0 or column >= size:
        raise ValueError(f"invalid column in move text: {text!r}")

    try:
        row = int(text[1:]) - 1
    except ValueError:
        raise ValueError(f"invalid row in move text: {text!r}") from None
    if not 0 <= row < size:
        raise ValueError(f"row out of range in move text: {text!r}")

    return Move(row * size + column, side)

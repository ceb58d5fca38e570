"""
Game state and flow management for NoGo.

This module defines the driver-side game mechanics:
- GameState: the authoritative position, side to move and move history
- Game: manager for turn flow that asks registered agents for moves

Black moves first. The side to move that has no legal placement loses, so a
finished game always has a winner.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
from enum import Enum, auto
from collections import defaultdict
import logging
import random
import time

from nogo_ai.core.constants import Side, MoveResult, BOARD_SIZE
from nogo_ai.core.board import Board
from nogo_ai.core.actions import Move

logger = logging.getLogger(__name__)

AgentCallback = Callable[['GameState', Side], Optional[Move]]


class GameResult(Enum):
    """Enum representing possible game results."""
    IN_PROGRESS = auto()
    WINNER = auto()  # NoGo cannot end in a draw


@dataclass
class GameState:
    """
    Complete representation of a NoGo game.

    The board is the authoritative position; agents receive this state and
    return a move, which the game then applies here.
    """
    board: Board = field(default_factory=Board)
    current_side: Side = Side.BLACK

    turn_count: int = 0
    history: List[Tuple[Side, Move]] = field(default_factory=list)
    game_over: bool = False
    winner: Optional[Side] = None
    result: GameResult = GameResult.IN_PROGRESS

    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    def __post_init__(self):
        """Detect positions that are already decided."""
        self._check_game_end()

    @property
    def size(self) -> int:
        """Board size."""
        return self.board.size

    def get_valid_actions(self, side: Optional[Side] = None) -> List[Move]:
        """
        Get all legal moves for a side.

        Args:
            side: Side to move (defaults to the side whose turn it is)

        Returns:
            List of legal moves
        """
        return self.board.legal_moves(side or self.current_side)

    def apply_move(self, move: Move) -> None:
        """
        Apply a move for the side to move and pass the turn.

        Args:
            move: Move to apply

        Raises:
            ValueError: If the game is over, the move belongs to the wrong
                side, or the placement is illegal
        """
        if self.game_over:
            raise ValueError("Game is already over")
        if move.side is not self.current_side:
            raise ValueError(f"Not {move.side.name}'s turn")
        if move.apply(self.board) != MoveResult.LEGAL:
            raise ValueError(f"Illegal move: {move.to_text(self.size)}")

        self.history.append((move.side, move))
        self.turn_count += 1
        self.current_side = self.current_side.opponent
        self._check_game_end()

    def _check_game_end(self) -> None:
        """End the game if the side to move cannot place a stone."""
        if self.game_over or self.board.has_legal_move(self.current_side):
            return
        self.game_over = True
        self.winner = self.current_side.opponent
        self.result = GameResult.WINNER
        self.end_time = time.time()
        logger.debug("Game over after %d moves, %s wins", self.turn_count, self.winner.name)

    def clone(self) -> 'GameState':
        """Create a deep copy of the game state."""
        return GameState(
            board=self.board.copy(),
            current_side=self.current_side,
            turn_count=self.turn_count,
            history=list(self.history),
            game_over=self.game_over,
            winner=self.winner,
            result=self.result,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class Game:
    """
    Manager for the flow of a NoGo game.

    This class handles game setup and turn management, and provides the
    interface agents are registered with.
    """

    def __init__(self, size: int = BOARD_SIZE, player_names: Optional[Dict[Side, str]] = None):
        """
        Initialize a new game.

        Args:
            size: Board size
            player_names: Optional display names for each side
        """
        self.size = size
        self.player_names = {side: side.name.capitalize() for side in Side}
        if player_names:
            self.player_names.update(player_names)

        self.state = GameState(board=Board(size))
        self.agent_callbacks: Dict[Side, AgentCallback] = {}

    def reset(self) -> GameState:
        """
        Reset the game to an empty board.

        Returns:
            New game state
        """
        self.state = GameState(board=Board(self.size))
        return self.state

    def register_agent(self, side: Side, agent_callback: AgentCallback) -> None:
        """
        Register an AI agent for a side.

        The agent callback takes a game state and side and returns a move,
        or None when it has no move.

        Args:
            side: Side the agent plays
            agent_callback: Function that selects a move given the game state
        """
        self.agent_callbacks[side] = agent_callback

    def step(self, move: Optional[Move] = None) -> Tuple[GameState, bool]:
        """
        Advance the game by one move.

        If a move is provided it is applied. Otherwise the agent registered
        for the side to move is asked for one.

        Args:
            move: Optional move to apply

        Returns:
            Tuple of (game state, whether the game is over)
        """
        if self.state.game_over:
            return self.state, True

        side = self.state.current_side
        if move is None:
            if side not in self.agent_callbacks:
                raise ValueError(f"No move provided and no agent registered for {side.name}")
            move = self.agent_callbacks[side](self.state, side)

        if move is None:
            raise ValueError(f"Agent for {side.name} returned no move while legal moves exist")

        self.state.apply_move(move)
        return self.state, self.state.game_over

    def run_game(self, max_turns: Optional[int] = None) -> GameState:
        """
        Run the game until completion or max turns.

        Args:
            max_turns: Maximum number of moves to play (None = play to the end)

        Returns:
            Final game state
        """
        for side in Side:
            if side not in self.agent_callbacks:
                raise ValueError(f"No agent registered for {side.name}")

        while not self.state.game_over:
            if max_turns is not None and self.state.turn_count >= max_turns:
                break
            self.step()

        return self.state

    def get_winner(self) -> Optional[Side]:
        """
        Get the winning side, if the game is over.

        Returns:
            Winning side, or None while the game is in progress
        """
        return self.state.winner if self.state.game_over else None

    def get_game_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the game.

        Returns:
            Dictionary of game statistics
        """
        stats: Dict[str, Any] = defaultdict(int)
        for side, _ in self.state.history:
            stats[f"moves_{side.name.lower()}"] += 1

        end_time = self.state.end_time or time.time()
        stats["duration"] = end_time - self.state.start_time
        stats["turns"] = self.state.turn_count
        stats["result"] = self.state.result.name
        if self.state.winner is not None:
            stats["winner"] = self.state.winner.name
            stats["winner_name"] = self.player_names[self.state.winner]
        return dict(stats)

    def __str__(self) -> str:
        status = "in progress"
        if self.state.game_over:
            status = f"{self.player_names[self.state.winner]} wins"
        return (
            f"NoGo Game ({self.size}x{self.size}, turn {self.state.turn_count}, "
            f"{self.state.current_side.name} to move, {status})\n{self.state.board}"
        )


def simulate_random_game(
    size: int = BOARD_SIZE,
    random_seed: Optional[int] = None
) -> GameState:
    """
    Play a game in which both sides place uniformly random legal stones.

    Args:
        size: Board size
        random_seed: Random seed for reproducibility

    Returns:
        Final game state
    """
    rng = random.Random(random_seed)
    game = Game(size=size)
    for side in Side:
        game.register_agent(side, lambda state, side: rng.choice(state.get_valid_actions(side)))
    return game.run_game()

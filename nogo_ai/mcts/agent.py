"""
Monte Carlo Tree Search Agent for NoGo.

This module provides the MCTSAgent class, a ready-to-use AI player that uses
Monte Carlo Tree Search to choose placements, and the RandomAgent baseline
that places a uniformly random legal stone. Both agents own a seedable random
source, so a fixed seed reproduces their play.
"""
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import json
import logging
import random

from rich.console import Console
from rich.table import Table

from nogo_ai.core.board import Board
from nogo_ai.core.game import Game, GameState
from nogo_ai.core.actions import Move, candidate_moves
from nogo_ai.core.constants import Side, MoveResult
from nogo_ai.mcts.config import MCTSConfig, ConfigurationError
from nogo_ai.mcts.search import mcts_search

logger = logging.getLogger(__name__)

# Characters that may not appear in an agent name
INVALID_NAME_CHARS = "[]():; "


def _resolve_position(state: Union[GameState, Board]) -> Board:
    """Get the board of a game state, or the board itself."""
    return state.board if isinstance(state, GameState) else state


class MCTSAgent:
    """
    Monte Carlo Tree Search agent for playing NoGo.

    The agent builds a fresh search tree for every decision and releases it
    before returning; only plain statistics outlive a decision.
    """

    def __init__(
        self,
        config: Optional[MCTSConfig] = None,
        side: Optional[Side] = None,
        name: str = "MCTS Agent",
        verbose: bool = False
    ):
        """
        Initialize an MCTS agent.

        Args:
            config: MCTS configuration parameters
            side: Side the agent plays by default
            name: Name of the agent
            verbose: Whether to print a summary of every search

        Raises:
            ConfigurationError: If the config or side is invalid
        """
        if config is not None and not isinstance(config, MCTSConfig):
            raise ConfigurationError(f"expected MCTSConfig, got {type(config).__name__}")
        if side is not None and not isinstance(side, Side):
            raise ConfigurationError(f"invalid side: {side!r}")

        self.config = config or MCTSConfig()
        self.side = side
        self.name = name
        self.verbose = verbose
        self.rng = random.Random(self.config.seed)

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}

        # History of all moves and their statistics
        self.action_history: List[Tuple[Optional[Move], Dict[str, Any]]] = []

    @classmethod
    def from_args(cls, args: str, verbose: bool = False) -> 'MCTSAgent':
        """
        Create an agent from a "key=value" argument string.

        Example: "name=mcts role=black N=1000 c=0.5 seed=7"

        Args:
            args: Agent arguments (role, name and the MCTSConfig.from_args keys)
            verbose: Whether to print a summary of every search

        Returns:
            Configured MCTSAgent

        Raises:
            ConfigurationError: If the name, role or search parameters are invalid
        """
        config, extra = MCTSConfig.from_args(args)

        name = extra.get("name", "mcts")
        if any(char in name for char in INVALID_NAME_CHARS):
            raise ConfigurationError(f"invalid name: {name}")

        if "role" not in extra:
            raise ConfigurationError("missing required parameter: role")
        try:
            side = Side.from_name(extra["role"])
        except ValueError as e:
            raise ConfigurationError(f"invalid role: {extra['role']}") from e

        return cls(config=config, side=side, name=name, verbose=verbose)

    def select_action(self, state: Union[GameState, Board], side: Optional[Side] = None) -> Optional[Move]:
        """
        Choose a move using Monte Carlo Tree Search.

        Args:
            state: Current game state or board
            side: Side to move (defaults to the agent's side)

        Returns:
            Chosen move, or None when the search produced no move
        """
        side = side or self.side
        if side is None:
            raise ValueError("No side given and the agent has no default side")
        if isinstance(state, GameState) and state.current_side is not side:
            raise ValueError(f"Not {side.name}'s turn")

        board = _resolve_position(state)
        move, stats = mcts_search(board, side, self.config, self.rng)

        self.last_stats = stats
        self.action_history.append((move, stats))
        if move is None:
            logger.info("%s has no move for %s after %d cycles", self.name, side.name, stats["iterations"])

        if self.verbose:
            self._print_search_info(move, stats, board.size)

        return move

    def _print_search_info(self, move: Optional[Move], stats: Dict[str, Any], size: int) -> None:
        """
        Print information about the search.

        Args:
            move: Selected move
            stats: Search statistics
            size: Board size, for move text
        """
        console = Console()
        chosen = move.to_text(size) if move else "no move"
        console.print(f"\n[bold]{self.name}[/bold] selected: [cyan]{chosen}[/cyan]")
        console.print(
            f"Iterations: {stats['iterations']}  "
            f"Time: {stats['time_elapsed']:.3f}s ({stats['iterations_per_second']:.1f} it/s)  "
            f"Nodes: {stats['released_nodes']}  Max depth: {stats['max_depth']}"
        )

        visits = stats.get("action_visits")
        if not visits:
            return

        table = Table(title="Top moves")
        table.add_column("#", justify="right")
        table.add_column("Move")
        table.add_column("Visits", justify="right")
        table.add_column("Win rate", justify="right")
        ranked = sorted(visits.items(), key=lambda item: item[1], reverse=True)
        for i, (text, count) in enumerate(ranked[:5]):
            win_rate = stats["action_rewards"].get(text, 0.0)
            table.add_row(str(i + 1), text, str(count), f"{win_rate:.3f}")
        console.print(table)

    def get_action_callback(self) -> Callable[[GameState, Side], Optional[Move]]:
        """
        Get a callback function for selecting moves.

        This is useful for registering the agent with a Game object.

        Returns:
            Callback function that takes a game state and side and returns a move
        """
        return lambda state, side: self.select_action(state, side)

    def register_with_game(self, game: Game, side: Optional[Side] = None) -> None:
        """
        Register this agent with a game.

        Args:
            game: Game object
            side: Side to play (defaults to the agent's side)
        """
        side = side or self.side
        if side is None:
            raise ValueError("No side given and the agent has no default side")
        game.register_agent(side, self.get_action_callback())

    def get_last_statistics(self) -> Dict[str, Any]:
        """
        Get statistics from the most recent search.

        Returns:
            Dictionary of search statistics
        """
        return self.last_stats

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_stats = {}
        self.action_history = []

    def save_statistics(self, filename: str, size: int) -> None:
        """
        Save statistics to a file.

        Args:
            filename: Name of the file to save to
            size: Board size the moves were played on
        """
        history = []
        for move, stats in self.action_history:
            history.append({
                "move": move.to_text(size) if move else None,
                "stats": {k: v for k, v in stats.items() if not isinstance(v, (dict, list))}
            })

        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": history,
            "total_actions": len(self.action_history)
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        return f"{self.name} (MCTS, {self.config.iterations} iterations)"


class RandomAgent:
    """
    Baseline agent that places a random legal stone.

    Candidates are tried in shuffled order and the first legal one is played.
    """

    def __init__(self, side: Optional[Side] = None, seed: Optional[int] = None, name: str = "Random Agent"):
        self.side = side
        self.name = name
        self.rng = random.Random(seed)

    def select_action(self, state: Union[GameState, Board], side: Optional[Side] = None) -> Optional[Move]:
        """
        Choose a uniformly random legal move.

        Args:
            state: Current game state or board
            side: Side to move (defaults to the agent's side)

        Returns:
            A legal move, or None if the side has none
        """
        side = side or self.side
        if side is None:
            raise ValueError("No side given and the agent has no default side")

        board = _resolve_position(state)
        moves = candidate_moves(side, board.size)
        self.rng.shuffle(moves)
        for move in moves:
            if move.apply(board.copy()) == MoveResult.LEGAL:
                return move
        return None

    def get_action_callback(self) -> Callable[[GameState, Side], Optional[Move]]:
        """Get a callback function for registering with a Game."""
        return lambda state, side: self.select_action(state, side)

    def __str__(self) -> str:
        return f"{self.name} (random)"


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents with different configurations.
    """

    @staticmethod
    def create_fast(side: Optional[Side] = None, seed: Optional[int] = None) -> MCTSAgent:
        """Create a fast MCTS agent with fewer iterations."""
        config = replace(MCTSConfig.fast(), seed=seed)
        return MCTSAgent(config=config, side=side, name="Fast MCTS")

    @staticmethod
    def create_standard(side: Optional[Side] = None, seed: Optional[int] = None) -> MCTSAgent:
        """Create a standard MCTS agent with balanced parameters."""
        config = replace(MCTSConfig.default(), seed=seed)
        return MCTSAgent(config=config, side=side, name="Standard MCTS")

    @staticmethod
    def create_strong(side: Optional[Side] = None, seed: Optional[int] = None) -> MCTSAgent:
        """Create a strong MCTS agent with more iterations."""
        config = replace(MCTSConfig.deep(), seed=seed)
        return MCTSAgent(config=config, side=side, name="Strong MCTS")

    @staticmethod
    def create_custom(
        iterations: int = 1000,
        exploration_weight: float = 1.41,
        seed: Optional[int] = None,
        side: Optional[Side] = None,
        name: str = "Custom MCTS"
    ) -> MCTSAgent:
        """
        Create a custom MCTS agent.

        Args:
            iterations: Number of MCTS cycles per move
            exploration_weight: UCT exploration weight
            seed: Seed of the agent's random source
            side: Side the agent plays by default
            name: Name of the agent

        Returns:
            MCTSAgent
        """
        config = MCTSConfig(
            iterations=iterations,
            exploration_weight=exploration_weight,
            seed=seed
        )
        return MCTSAgent(config=config, side=side, name=name)

"""
Command-line interface for playing NoGo against AI agents.

Each side can be played by a human, an MCTS agent or a random agent. With
two AI players several games can be run in a row, with a progress bar and a
summary table at the end.

Example usage:
    # Play black against an MCTS agent
    nogo-play --black human --white mcts --iterations 1000

    # Run 20 games of MCTS against a random player
    nogo-play --black mcts --white random --games 20 --iterations 200
"""
from typing import Dict, List, Optional
from collections import Counter
import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from tqdm import tqdm

from nogo_ai.core.game import Game, GameState
from nogo_ai.core.actions import Move, parse_move
from nogo_ai.core.constants import (
    Side, BOARD_SIZE, MIN_BOARD_SIZE, MAX_BOARD_SIZE,
    DEFAULT_MCTS_ITERATIONS, DEFAULT_MCTS_EXPLORATION
)
from nogo_ai.mcts.agent import MCTSAgent, RandomAgent
from nogo_ai.mcts.config import MCTSConfig, ConfigurationError

logger = logging.getLogger(__name__)

console = Console()

PLAYER_TYPES = ("human", "mcts", "random")

STONE_STYLES = {
    ".": "[dim].[/dim]",
    "X": "[bold]X[/bold]",
    "O": "[bold cyan]O[/bold cyan]",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Play NoGo against AI agents")

    parser.add_argument("--black", choices=PLAYER_TYPES, default="human",
                        help="Who plays black (moves first)")
    parser.add_argument("--white", choices=PLAYER_TYPES, default="mcts",
                        help="Who plays white")
    parser.add_argument("--size", type=int, default=BOARD_SIZE,
                        help="Board size")
    parser.add_argument("--iterations", type=int, default=DEFAULT_MCTS_ITERATIONS,
                        help="Number of MCTS cycles per move")
    parser.add_argument("--exploration-weight", type=float, default=DEFAULT_MCTS_EXPLORATION,
                        help="UCT exploration weight")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")
    parser.add_argument("--games", type=int, default=1,
                        help="Number of games to play (AI vs AI only)")
    parser.add_argument("--verbose", action="store_true",
                        help="Print search details for every MCTS move")
    parser.add_argument("--log-level", default="WARNING",
                        help="Logging level")

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Send log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def create_player(kind: str, side: Side, args: argparse.Namespace, game_index: int = 0):
    """
    Create the agent for one side.

    Args:
        kind: "mcts" or "random"
        side: Side the agent plays
        args: Parsed command-line arguments
        game_index: Index of the game, mixed into the seed

    Returns:
        An agent with a select_action method
    """
    seed = None
    if args.seed is not None:
        seed = args.seed + 2 * game_index + (0 if side is Side.BLACK else 1)

    if kind == "mcts":
        config = MCTSConfig(
            iterations=args.iterations,
            exploration_weight=args.exploration_weight,
            seed=seed,
        )
        return MCTSAgent(config=config, side=side, name=f"MCTS {side.name.lower()}",
                         verbose=args.verbose)
    if kind == "random":
        return RandomAgent(side=side, seed=seed, name=f"Random {side.name.lower()}")
    raise ValueError(f"Unknown player type: {kind}")


def display_board(state: GameState) -> None:
    """Render the board with rich markup."""
    lines = []
    for line in str(state.board).splitlines():
        lines.append("".join(STONE_STYLES.get(char, char) for char in line))
    console.print("\n".join(lines))
    if not state.game_over:
        console.print(f"[bold]{state.current_side.name.capitalize()}[/bold] to move "
                      f"(move {state.turn_count + 1})")


def get_human_move(state: GameState) -> Move:
    """
    Ask the user for a move until a legal one is entered.

    Args:
        state: Current game state

    Returns:
        A legal move for the side to move
    """
    legal = set(state.get_valid_actions())
    while True:
        text = console.input("Your move (e.g. C3): ")
        try:
            move = parse_move(text, state.current_side, state.size)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            continue
        if move not in legal:
            console.print(f"[red]{move.to_text(state.size)} is not a legal move[/red]")
            continue
        return move


def play_interactive(args: argparse.Namespace) -> Game:
    """
    Play one game with at least one human side.

    Args:
        args: Parsed command-line arguments

    Returns:
        Finished game
    """
    game = Game(size=args.size)
    for side in Side:
        kind = getattr(args, side.name.lower())
        if kind == "human":
            game.player_names[side] = "You"
        else:
            agent = create_player(kind, side, args)
            game.player_names[side] = agent.name
            game.register_agent(side, agent.get_action_callback())

    display_board(game.state)
    while not game.state.game_over:
        side = game.state.current_side
        if side in game.agent_callbacks:
            game.step()
            side_name = game.player_names[side]
            last_move = game.state.history[-1][1]
            console.print(f"{side_name} plays [cyan]{last_move.to_text(args.size)}[/cyan]")
        else:
            game.step(get_human_move(game.state))
        display_board(game.state)

    winner = game.state.winner
    console.print(f"\n[bold yellow]=== GAME OVER ===[/bold yellow]\n"
                  f"{game.player_names[winner]} ({winner.name.lower()}) wins "
                  f"after {game.state.turn_count} moves")
    return game


def play_series(args: argparse.Namespace) -> Dict[str, int]:
    """
    Play several games between two AI players.

    Args:
        args: Parsed command-line arguments

    Returns:
        Number of wins per side name
    """
    wins: Counter = Counter()
    total_turns = 0

    for game_index in tqdm(range(args.games), desc="Games", disable=args.games == 1):
        game = Game(size=args.size)
        for side in Side:
            agent = create_player(getattr(args, side.name.lower()), side, args, game_index)
            game.player_names[side] = agent.name
            game.register_agent(side, agent.get_action_callback())

        final_state = game.run_game()
        wins[final_state.winner.name] += 1
        total_turns += final_state.turn_count
        logger.info("Game %d: %s wins in %d moves", game_index + 1,
                    final_state.winner.name, final_state.turn_count)

        if args.games == 1:
            display_board(final_state)

    table = Table(title=f"Results over {args.games} game(s)")
    table.add_column("Side")
    table.add_column("Player")
    table.add_column("Wins", justify="right")
    table.add_column("Win rate", justify="right")
    for side in Side:
        count = wins[side.name]
        table.add_row(side.name.capitalize(), getattr(args, side.name.lower()),
                      str(count), f"{count / max(1, args.games):.1%}")
    console.print(table)
    console.print(f"Average game length: {total_turns / max(1, args.games):.1f} moves")

    return dict(wins)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.games < 1:
        console.print("[red]--games must be at least 1[/red]")
        return 2
    if not MIN_BOARD_SIZE <= args.size <= MAX_BOARD_SIZE:
        console.print(f"[red]--size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}[/red]")
        return 2
    # An empty search produces no move, which a game cannot continue from
    if args.iterations == 0 and "mcts" in (args.black, args.white):
        console.print("[red]--iterations must be at least 1 for an MCTS player[/red]")
        return 2

    try:
        if "human" in (args.black, args.white):
            play_interactive(args)
        else:
            play_series(args)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        return 2
    except KeyboardInterrupt:
        console.print("\nGame interrupted by user.")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())

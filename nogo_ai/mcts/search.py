"""
Monte Carlo Tree Search (MCTS) algorithm for NoGo.

This module implements the core MCTS algorithm with the four standard phases:
1. Selection: Walk down the tree by UCT until a node still has an untried move
2. Expansion: Create one child for that move
3. Simulation: Play uniformly random placements to the end of the game
4. Backpropagation: Update statistics along the path that was walked

A search tree lives for exactly one decision. It is created from the position
handed to mcts_search, grown for a fixed number of cycles, read, and then
released before the move is returned.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging
import random
import time

from nogo_ai.core.board import Board
from nogo_ai.core.actions import Move, candidate_moves
from nogo_ai.core.constants import Side, MoveResult
from nogo_ai.mcts.node import MCTSNode
from nogo_ai.mcts.config import MCTSConfig

logger = logging.getLogger(__name__)


class SearchInvariantError(AssertionError):
    """Raised when the search tree no longer matches the position it was built from."""


@dataclass
class SearchContext:
    """
    State shared by every cycle of one decision.

    Holds the simulation counter used by the UCT formula, the path walked
    by the current cycle, and the candidate moves of both sides.
    """
    searcher: Side
    rng: random.Random
    candidates: Dict[Side, List[Move]]
    rollout_moves: Dict[Side, List[Move]]
    total_simulations: int = 0
    path: List[MCTSNode] = field(default_factory=list)
    max_depth: int = 0

    @classmethod
    def for_decision(cls, searcher: Side, size: int, rng: random.Random) -> 'SearchContext':
        """
        Create a fresh context for one decision.

        Args:
            searcher: Side the search chooses a move for
            size: Board size
            rng: Random source of the engine

        Returns:
            SearchContext with a zero simulation counter and an empty path
        """
        candidates = {side: candidate_moves(side, size) for side in Side}
        return cls(
            searcher=searcher,
            rng=rng,
            candidates=candidates,
            rollout_moves={side: list(moves) for side, moves in candidates.items()},
        )

    def side_to_move(self, node: MCTSNode) -> Side:
        """Side on move at a node: the searcher at even depth, the opponent at odd depth."""
        return self.searcher if node.depth % 2 == 0 else self.searcher.opponent


def create_root(board: Board) -> MCTSNode:
    """
    Create the root node of a new search tree.

    Args:
        board: Position the decision is made for

    Returns:
        Root node holding its own copy of the board
    """
    return MCTSNode(state=board.copy())


def destroy_tree(root: MCTSNode) -> int:
    """
    Release every node of a search tree.

    Walks the tree with an explicit stack so deep trees do not depend on
    the interpreter's recursion limit.

    Args:
        root: Root node of the tree

    Returns:
        Number of nodes released
    """
    released = 0
    stack = [root]
    while stack:
        node = stack.pop()
        stack.extend(node.release())
        released += 1
    return released


def select_path(root: MCTSNode, context: SearchContext) -> MCTSNode:
    """
    Walk the tree from the root to the node a rollout should start from.

    This function implements the selection and expansion phases of MCTS.
    At each node:
    - if the side to move has no legal move, the node itself is returned;
    - if a legal move has no child yet, a child is created for it and returned;
    - otherwise the walk continues into the child picked by select_child,
      stopping there if that child has never been visited.

    Every node walked through, the returned one included, is appended to
    context.path.

    Args:
        root: Root node of the search tree
        context: Search context of the current decision

    Returns:
        Node to run the rollout from
    """
    node = root
    context.path.append(node)

    while True:
        candidates = context.candidates[context.side_to_move(node)]
        node.untried_moves(candidates, context.rng)
        if node.is_terminal():
            return node

        child = node.expand(candidates, context.rng)
        if child is not None:
            context.path.append(child)
            return child

        node = node.select_child(context.rng)
        context.path.append(node)
        if node.visit_count == 0:
            return node


def rollout(
    board: Board,
    side_to_move: Side,
    searcher: Side,
    rollout_moves: Dict[Side, List[Move]],
    rng: random.Random
) -> bool:
    """
    Play random placements for both sides until one of them cannot move.

    On each turn the side to move shuffles its candidate list and plays the
    first legal candidate. The side that made the last successful move wins;
    if the first side to move has no legal move at all, its opponent wins.

    Args:
        board: Position to start from (not modified)
        side_to_move: Side on move in that position
        searcher: Side the search is run for
        rollout_moves: Candidate lists of both sides (shuffled in place)
        rng: Random source

    Returns:
        True if the searcher made the last successful move
    """
    board = board.copy()
    side = side_to_move
    last_mover = side_to_move.opponent

    while True:
        moves = rollout_moves[side]
        rng.shuffle(moves)
        for move in moves:
            if move.apply(board) == MoveResult.LEGAL:
                break
        else:
            break
        last_mover = side
        side = side.opponent

    return last_mover is searcher


def backpropagate(context: SearchContext, win: bool, exploration_weight: float) -> None:
    """
    Update statistics along the path walked by the current cycle.

    The simulation counter is advanced once, before any score is
    recomputed, so every node of the path sees the same total.

    Args:
        context: Search context holding the path
        win: Whether the searcher won the rollout
        exploration_weight: Exploration weight c
    """
    context.total_simulations += 1
    for node in context.path:
        node.update(win, context.total_simulations, exploration_weight)

    context.max_depth = max(context.max_depth, len(context.path) - 1)
    context.path.clear()


def run_cycle(root: MCTSNode, context: SearchContext, exploration_weight: float) -> bool:
    """
    Run one select, rollout, backpropagate cycle.

    Args:
        root: Root node of the search tree
        context: Search context of the current decision
        exploration_weight: Exploration weight c

    Returns:
        The rollout result (True if the searcher won)
    """
    leaf = select_path(root, context)
    leaf.rollout_count += 1
    win = rollout(
        leaf.state,
        context.side_to_move(leaf),
        context.searcher,
        context.rollout_moves,
        context.rng,
    )
    backpropagate(context, win, exploration_weight)
    return win


def most_visited_child(root: MCTSNode) -> Optional[MCTSNode]:
    """
    Get the child with the highest visit count.

    Ties go to the child that comes first in the children list.

    Args:
        root: Node whose children are compared

    Returns:
        Most visited child, or None if the node has no children
    """
    best = None
    for child in root.children:
        if best is None or child.visit_count > best.visit_count:
            best = child
    return best


def extract_decision(root: MCTSNode, board: Board, searcher: Side) -> Optional[Move]:
    """
    Turn the statistics of a finished search into a move.

    The most visited root child is mapped back to a move by replaying the
    searcher's candidate moves on the root position, in position order,
    and comparing the resulting boards.

    Args:
        root: Root node of the search tree
        board: Position the decision is made for
        searcher: Side the move is chosen for

    Returns:
        The chosen move, or None if the root has no children

    Raises:
        SearchInvariantError: If no legal move leads to the chosen child
    """
    best = most_visited_child(root)
    if best is None:
        return None

    for move in candidate_moves(searcher, board.size):
        after = board.copy()
        if move.apply(after) == MoveResult.LEGAL and after == best.state:
            return move

    raise SearchInvariantError(
        f"Most visited child ({best}) does not match any legal move of {searcher.name}"
    )


def mcts_search(
    board: Board,
    side: Side,
    config: Optional[MCTSConfig] = None,
    rng: Optional[random.Random] = None
) -> Tuple[Optional[Move], Dict[str, Any]]:
    """
    Run Monte Carlo Tree Search to choose a move.

    This function runs the full MCTS algorithm:
    1. Create a root node from the current position
    2. Run config.iterations select/rollout/backpropagate cycles
    3. Return the move of the most visited root child
    4. Release the whole tree

    Args:
        board: Current position
        side: Side to move, whose move is chosen
        config: MCTS configuration parameters
        rng: Random source (defaults to one seeded from config.seed)

    Returns:
        Tuple of (chosen move or None when no move is available, search statistics)
    """
    if config is None:
        config = MCTSConfig()
    if rng is None:
        rng = random.Random(config.seed)

    root = create_root(board)
    context = SearchContext.for_decision(side, board.size, rng)

    start_time = time.time()
    try:
        for _ in range(config.iterations):
            run_cycle(root, context, config.exploration_weight)

        move = extract_decision(root, board, side)

        stats: Dict[str, Any] = {
            "iterations": config.iterations,
            "simulations": context.total_simulations,
            "max_depth": context.max_depth,
            "root_visits": root.visit_count,
            "no_move": move is None,
        }
        if config.collect_statistics:
            stats["node_count"] = count_nodes(root)
            stats["action_visits"] = {
                child.move.to_text(board.size): child.visit_count for child in root.children
            }
            stats["action_rewards"] = {
                child.move.to_text(board.size): child.win_count / child.visit_count
                for child in root.children if child.visit_count > 0
            }
            stats["principal_variation"] = [
                (pv_move.to_text(board.size), value)
                for pv_move, value in get_principal_variation(root)
            ]
    finally:
        released = destroy_tree(root)

    stats["released_nodes"] = released
    stats["time_elapsed"] = time.time() - start_time
    stats["iterations_per_second"] = stats["iterations"] / max(0.001, stats["time_elapsed"])

    logger.debug(
        "MCTS for %s: %d cycles, %d nodes, depth %d, chose %s in %.3fs",
        side.name, config.iterations, released, context.max_depth,
        move.to_text(board.size) if move else "no move", stats["time_elapsed"],
    )
    return move, stats


def count_nodes(node: MCTSNode) -> int:
    """
    Count the total number of nodes in the tree.

    Args:
        node: Root node of the tree

    Returns:
        Total number of nodes
    """
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        stack.extend(current.children)
        count += 1
    return count


def get_principal_variation(root: MCTSNode, max_depth: int = 10) -> List[Tuple[Move, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        max_depth: Maximum depth to explore

    Returns:
        List of (move, win rate) pairs representing the principal variation
    """
    result = []
    current = root

    while current.children and len(result) < max_depth:
        best_child = most_visited_child(current)
        value = best_child.win_count / max(1, best_child.visit_count)
        result.append((best_child.move, value))
        current = best_child

    return result


def get_action_statistics(root: MCTSNode, size: int) -> Dict[str, Dict[str, float]]:
    """
    Get statistics for all moves from the root.

    Args:
        root: Root node of the MCTS tree
        size: Board size, for move text

    Returns:
        Dictionary mapping move text to statistics
    """
    return {
        child.move.to_text(size): {
            "visits": child.visit_count,
            "wins": child.win_count,
            "value": child.win_count / max(1, child.visit_count),
            "score": child.selection_score,
        }
        for child in root.children
    }

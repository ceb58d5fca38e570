"""
Monte Carlo Tree Search Node for NoGo.

This module defines the MCTSNode class which represents a node in the MCTS tree.
Each node owns its own copy of a board, tracks simulation statistics (visits,
wins, selection score) and grows its list of children one legal move at a time.

Nodes do not know whose turn it is: the side to move follows from the depth of
the node (even depth is the searching side, odd depth its opponent), so the
caller passes the candidate moves of the right side.
"""
from __future__ import annotations
from typing import List, Optional, Sequence
import math
import random

from nogo_ai.core.board import Board
from nogo_ai.core.actions import Move
from nogo_ai.core.constants import MoveResult, UNVISITED_SCORE


def uct_score(
    win_count: float,
    visit_count: int,
    total_simulations: int,
    exploration_weight: float
) -> float:
    """
    Calculate the UCT selection score of a node.

    UCT = win_count / visit_count + c * sqrt(ln(N) / visit_count)

    where N is the number of simulations completed so far in the whole
    search, not the visit count of the parent.

    Args:
        win_count: Accumulated win credit of the node
        visit_count: Number of simulations through the node
        total_simulations: Simulations completed in the current decision
        exploration_weight: Exploration weight c

    Returns:
        UCT score, or UNVISITED_SCORE for a node that was never visited
    """
    if visit_count == 0:
        return UNVISITED_SCORE

    exploitation = win_count / visit_count
    exploration = math.sqrt(math.log(max(1, total_simulations)) / visit_count)
    return exploitation + exploration_weight * exploration


class MCTSNode:
    """
    A node in the Monte Carlo Tree Search.

    Each node represents a board position reached by a sequence of moves from
    the root, and tracks statistics about the simulations that passed through it.
    A node exclusively owns its children.
    """

    def __init__(self, state: Board, move: Optional[Move] = None, depth: int = 0):
        """
        Initialize an MCTS node.

        Args:
            state: Board position this node represents (owned by the node)
            move: The move that led to this position (None for root)
            depth: Distance from the root
        """
        self.state = state
        self.move = move
        self.depth = depth

        # Node statistics
        self.visit_count = 0
        self.win_count = 0.0
        self.selection_score = UNVISITED_SCORE
        self.rollout_count = 0  # Simulations that started at this node
        self.children: List[MCTSNode] = []

        # Legal moves are enumerated on first use
        self.legal_move_count: Optional[int] = None
        self._untried_moves: Optional[List[Move]] = None

    def untried_moves(self, candidates: Sequence[Move], rng: random.Random) -> List[Move]:
        """
        Get the legal moves that do not have a child yet.

        The first call probes every candidate on a copy of this node's board,
        keeps the legal ones and shuffles them; later calls return what is
        left of that list.

        Args:
            candidates: Full candidate list for the side to move at this node
            rng: Random source used to order the moves

        Returns:
            List of untried legal moves (expansion pops from the end)
        """
        if self._untried_moves is None:
            legal = []
            for move in candidates:
                if move.apply(self.state.copy()) == MoveResult.LEGAL:
                    legal.append(move)
            self.legal_move_count = len(legal)
            rng.shuffle(legal)
            self._untried_moves = legal
        return self._untried_moves

    def is_expanded(self) -> bool:
        """Check whether the legal moves of this node have been enumerated."""
        return self._untried_moves is not None

    def is_fully_expanded(self) -> bool:
        """
        Check if every legal move from this node has a child.

        Returns:
            True if all moves have been tried, False otherwise
        """
        return self._untried_moves is not None and not self._untried_moves

    def is_terminal(self) -> bool:
        """
        Check if the side to move has no legal placement here.

        Only meaningful once the node has been expanded.
        """
        return self.legal_move_count == 0

    def expand(self, candidates: Sequence[Move], rng: random.Random) -> Optional[MCTSNode]:
        """
        Add a child for the next legal move that has none.

        Children are never duplicated: each legal move is handed out once, so
        the number of children never exceeds the number of legal moves.

        Args:
            candidates: Full candidate list for the side to move at this node
            rng: Random source used to order the moves

        Returns:
            The new child node, or None if no expansion is possible
        """
        untried = self.untried_moves(candidates, rng)
        if not untried:
            return None

        move = untried.pop()
        new_state = self.state.copy()
        if move.apply(new_state) != MoveResult.LEGAL:
            raise ValueError(f"Move {move} was legal when probed but not when expanded")

        child = MCTSNode(state=new_state, move=move, depth=self.depth + 1)
        self.children.append(child)
        return child

    def select_child(self, rng: random.Random) -> MCTSNode:
        """
        Select the child to descend into.

        Unvisited children always come first and are chosen uniformly at
        random. Otherwise the child with the highest selection score wins,
        the earliest one on ties.

        Args:
            rng: Random source used to break ties between unvisited children

        Returns:
            Selected child node
        """
        if not self.children:
            raise ValueError("Cannot select child from node with no children")

        unvisited = [child for child in self.children if child.visit_count == 0]
        if unvisited:
            return rng.choice(unvisited)

        return max(self.children, key=lambda child: child.selection_score)

    def update(self, win: bool, total_simulations: int, exploration_weight: float) -> None:
        """
        Update the node statistics with a simulation result.

        This implements the backpropagation step for one node.

        Args:
            win: Whether the searching side won the simulation
            total_simulations: Simulations completed in the current decision
            exploration_weight: Exploration weight c
        """
        self.visit_count += 1
        if win:
            self.win_count += 1.0
        self.selection_score = uct_score(
            self.win_count, self.visit_count, total_simulations, exploration_weight
        )

    def release(self) -> List[MCTSNode]:
        """
        Detach and return this node's children.

        Returns:
            The children that were owned by this node
        """
        children = self.children
        self.children = []
        self._untried_moves = None
        return children

    def __str__(self) -> str:
        return (f"MCTSNode(depth={self.depth}, "
                f"visits={self.visit_count}, "
                f"wins={self.win_count:.0f}, "
                f"children={len(self.children)}, "
                f"legal={self.legal_move_count if self.legal_move_count is not None else 'unknown'})")

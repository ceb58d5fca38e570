"""
Monte Carlo Tree Search (MCTS) implementation for NoGo.

This package provides a complete MCTS agent that plays NoGo without any
training. Every decision runs a fixed number of cycles of:

1. Selection: Starting from the root, descend by UCT until reaching a node that
   still has a legal move without a child, or a node with no legal move.
2. Expansion: Create one child for an untried move.
3. Simulation: Play random placements from that child until a side cannot move.
4. Backpropagation: Update visit and win counts along the walked path.

The move of the most visited root child is played, and the tree is released.
"""

from nogo_ai.mcts.node import MCTSNode, uct_score
from nogo_ai.mcts.agent import MCTSAgent, MCTSAgentFactory, RandomAgent
from nogo_ai.mcts.search import (
    SearchContext,
    SearchInvariantError,
    mcts_search,
    create_root,
    destroy_tree,
    select_path,
    rollout,
    backpropagate,
    run_cycle,
    extract_decision,
)
from nogo_ai.mcts.config import MCTSConfig, ConfigurationError

# Default configuration
DEFAULT_CONFIG = MCTSConfig(
    iterations=1000,          # Number of MCTS cycles per move
    exploration_weight=1.41,  # UCT exploration weight (sqrt(2))
)

__all__ = [
    'MCTSAgent',
    'MCTSAgentFactory',
    'RandomAgent',
    'MCTSNode',
    'MCTSConfig',
    'ConfigurationError',
    'SearchContext',
    'SearchInvariantError',
    'uct_score',
    'mcts_search',
    'create_root',
    'destroy_tree',
    'select_path',
    'rollout',
    'backpropagate',
    'run_cycle',
    'extract_decision',
    'DEFAULT_CONFIG'
]

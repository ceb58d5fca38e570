"""
NoGo AI Core Package

This package contains the game logic for NoGo, including:
- Board representation and placement rules
- Moves and their text encoding
- Game state and turn flow
- Constants and enums

All core components can be imported directly from this package.
"""

# Game and game state
from nogo_ai.core.game import Game, GameState, GameResult, simulate_random_game

# Board
from nogo_ai.core.board import Board

# Moves
from nogo_ai.core.actions import Move, candidate_moves, parse_move

# Constants
from nogo_ai.core.constants import Side, MoveResult, BOARD_SIZE

__all__ = [
    # Game
    'Game', 'GameState', 'GameResult', 'simulate_random_game',

    # Board
    'Board',

    # Moves
    'Move', 'candidate_moves', 'parse_move',

    # Constants
    'Side', 'MoveResult', 'BOARD_SIZE'
]

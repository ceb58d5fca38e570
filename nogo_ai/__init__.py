"""
NoGo AI - A Monte Carlo Tree Search player for the board game NoGo.

This package provides an implementation of the NoGo rules (capture-free Go),
along with AI agents that choose placements by Monte Carlo Tree Search.
"""

__version__ = "0.1.0"
__author__ = "NoGo AI Team"

# Make key components available at package level
from nogo_ai.core.game import Game, GameState
from nogo_ai.core.board import Board
from nogo_ai.core.actions import Move
from nogo_ai.core.constants import Side

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))

#!/usr/bin/env python
"""
Play NoGo against AI agents from the command line.

Example usage:
    # Play black against an MCTS agent
    python play_game.py --black human --white mcts --iterations 1000

    # Watch an MCTS agent play a random agent
    python play_game.py --black mcts --white random --verbose
"""
import sys

from nogo_ai.play import main


if __name__ == "__main__":
    sys.exit(main())

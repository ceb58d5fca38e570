"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the configuration parameters for the MCTS algorithm:
the playout budget, the UCT exploration weight and the seed of the random
source the engine draws from. Parameters are validated once, when the
configuration is built.
"""
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Optional, Tuple
import math

from nogo_ai.core.constants import (
    DEFAULT_MCTS_ITERATIONS, DEFAULT_MCTS_EXPLORATION, UNVISITED_SCORE
)


class ConfigurationError(ValueError):
    """Raised when an engine is configured with invalid or missing parameters."""


@dataclass
class MCTSConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    This class defines all tunable parameters for the MCTS algorithm,
    with validation and sensible defaults.
    """
    # Search parameters
    iterations: int = DEFAULT_MCTS_ITERATIONS
    """Number of select/rollout/backpropagate cycles per move decision"""

    exploration_weight: float = DEFAULT_MCTS_EXPLORATION
    """UCT exploration weight"""

    seed: Optional[int] = None
    """Seed of the engine's random source (None = seeded from the OS)"""

    collect_statistics: bool = True
    """Whether to gather per-move statistics before the tree is discarded"""

    # Constants
    INFINITE_VALUE: ClassVar[float] = UNVISITED_SCORE
    """Selection score of a node that has never been visited"""

    # Keys accepted by from_args, mapped to field names
    ARG_ALIASES: ClassVar[Dict[str, str]] = {
        "N": "iterations",
        "iterations": "iterations",
        "c": "exploration_weight",
        "exploration_weight": "exploration_weight",
        "seed": "seed",
    }

    def __post_init__(self):
        """Validate configuration parameters."""
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
            raise ConfigurationError("iterations must be an integer")
        if self.iterations < 0:
            raise ConfigurationError("iterations must be non-negative")

        if isinstance(self.exploration_weight, bool) or not isinstance(self.exploration_weight, (int, float)):
            raise ConfigurationError("exploration_weight must be a number")
        if not math.isfinite(self.exploration_weight) or self.exploration_weight <= 0:
            raise ConfigurationError("exploration_weight must be positive and finite")
        self.exploration_weight = float(self.exploration_weight)

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ConfigurationError("seed must be an integer or None")

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """
        Get the default configuration.

        Returns:
            Default MCTSConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for speed (fewer iterations).

        Returns:
            Fast MCTSConfig object
        """
        return cls(iterations=100)

    @classmethod
    def deep(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for deep search.

        Returns:
            Deep MCTSConfig object
        """
        return cls(
            iterations=5000,
            exploration_weight=1.2  # Slightly less exploration
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'MCTSConfig':
        """
        Create a configuration from a dictionary.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            MCTSConfig object
        """
        # Filter out any keys that aren't valid parameters
        names = {f.name for f in fields(cls)}
        valid_params = {k: v for k, v in config_dict.items() if k in names}
        return cls(**valid_params)

    @classmethod
    def from_args(cls, args: str) -> Tuple['MCTSConfig', Dict[str, str]]:
        """
        Create a configuration from a "key=value" argument string.

        Recognized keys are N (or iterations), c (or exploration_weight)
        and seed, e.g. "N=1000 c=0.5 seed=7". Both the budget and the
        exploration weight must be given. The remaining pairs (such as
        name and role) are returned for the caller to interpret.

        Args:
            args: Whitespace-separated key=value pairs

        Returns:
            Tuple of (MCTSConfig, remaining key/value pairs)

        Raises:
            ConfigurationError: If a value is missing or malformed
        """
        params: Dict[str, Any] = {}
        extra: Dict[str, str] = {}
        for pair in args.split():
            key, sep, value = pair.partition("=")
            if not sep:
                raise ConfigurationError(f"expected key=value, got {pair!r}")
            if key in cls.ARG_ALIASES:
                params[cls.ARG_ALIASES[key]] = value
            else:
                extra[key] = value

        for required in ("iterations", "exploration_weight"):
            if required not in params:
                raise ConfigurationError(f"missing required parameter: {required}")

        try:
            params["iterations"] = int(params["iterations"])
            params["exploration_weight"] = float(params["exploration_weight"])
            if "seed" in params:
                params["seed"] = int(params["seed"])
        except ValueError as e:
            raise ConfigurationError(f"malformed parameter: {e}") from e

        return cls(**params), extra

    def to_dict(self) -> dict:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __str__(self) -> str:
        params = ", ".join(f"{name}={value}" for name, value in self.to_dict().items())
        return f"MCTSConfig({params})"

"""Core types and errors for tileweave.

Usage:
    from tileweave.core import Position, Direction, ConfigurationError
"""

from .types import Direction, Position
from .errors import (
    TileweaveError,
    ConfigurationError,
    BacktrackExhaustedError,
    InvariantViolation,
)

__all__ = [
    "Direction",
    "Position",
    "TileweaveError",
    "ConfigurationError",
    "BacktrackExhaustedError",
    "InvariantViolation",
]

"""Exceptions raised by tileweave.

Contradictions during solving are not exceptions: the solver recovers from
them by backtracking. Only configuration problems and a generation that ran
out of recovery options reach the caller.
"""

from __future__ import annotations


class TileweaveError(Exception):
    """Base exception for tileweave errors."""

    pass


class ConfigurationError(TileweaveError):
    """Invalid input: bad sample label, grid size, tile size or distribution."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class BacktrackExhaustedError(TileweaveError):
    """Every generation attempt ended with no history entry left to roll back to."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class InvariantViolation(TileweaveError):
    """Solver state that a correct run can never reach."""

    pass

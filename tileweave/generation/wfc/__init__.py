"""Wave Function Collapse with label-weighted collapse and history backtracking."""

from .tile import TileData, AdjacencyRules, make_rule
from .grid import Grid, GridCell
from .entropy import EntropyTracker
from .propagation import ConstraintPropagator
from .history import HistoryEntry, HistoryLog
from .solver import WFCSolver, SolverState

__all__ = [
    "TileData",
    "AdjacencyRules",
    "make_rule",
    "Grid",
    "GridCell",
    "EntropyTracker",
    "ConstraintPropagator",
    "HistoryEntry",
    "HistoryLog",
    "WFCSolver",
    "SolverState",
]

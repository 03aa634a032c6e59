"""
Entropy tracking for Wave Function Collapse.

A cell's entropy is the Shannon entropy of its candidates under their
effective weights. Low entropy means the outcome is nearly decided, so the
solver collapses the lowest-entropy cell first.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .grid import Grid, GridCell

if TYPE_CHECKING:
    from ..catalog import TileCatalog


class EntropyTracker:
    """Computes cell entropy and finds the most constrained cells."""

    def __init__(self, catalog: "TileCatalog"):
        self.catalog = catalog

    def entropy(self, cell: GridCell) -> float:
        """
        Weighted entropy of the cell's candidates.

            H = ln(sum w) - sum(w * ln w) / sum w

        where w is the observed weight, plus the collapse factor when the
        candidate's label equals the cell's label. No candidates gives 0.
        """
        if not cell.candidates:
            return 0.0

        sum_weight = 0.0
        sum_weight_log_weight = 0.0
        for tile in self.catalog.tile_data:
            if tile.name not in cell.candidates:
                continue
            weight = tile.entropy_weight(cell.fixed_label, cell.collapse_factor)
            sum_weight += weight
            sum_weight_log_weight += weight * math.log(weight)

        if sum_weight <= 0:
            return 0.0

        entropy = math.log(sum_weight) - sum_weight_log_weight / sum_weight
        # A single candidate can come out as -1e-16
        return max(0.0, entropy)

    def lowest(self, grid: Grid) -> list[GridCell]:
        """
        All uncollapsed cells sharing the minimum entropy.

        Cells without candidates are contradictions, not choices, and are
        never returned here. Returns an empty list when nothing is eligible.
        """
        lowest = math.inf
        cells: list[GridCell] = []

        for cell in grid.uncollapsed_cells():
            if cell.is_contradiction:
                continue

            entropy = self.entropy(cell)
            if entropy < lowest:
                lowest = entropy
                cells = [cell]
            elif entropy == lowest:
                cells.append(cell)

        return cells

    def contradictions(self, grid: Grid) -> list[GridCell]:
        """Uncollapsed cells with no candidates left."""
        return [cell for cell in grid.all_cells() if cell.is_contradiction]

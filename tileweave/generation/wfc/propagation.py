"""
Constraint propagation for Wave Function Collapse.

After every collapse or rollback, each undecided cell's candidates are
recomputed from its four neighbours: a collapsed neighbour allows only the
types its rules permit on the side facing this cell, an undecided neighbour
allows anything, and the grid edge imposes nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .grid import Grid, GridCell

if TYPE_CHECKING:
    from ..catalog import TileCatalog


class ConstraintPropagator:
    """Recomputes candidate sets of every uncollapsed cell in one pass."""

    def __init__(self, catalog: "TileCatalog"):
        self.catalog = catalog
        self._all_types = frozenset(catalog.types)

    def valid_types(self, grid: Grid, cell: GridCell) -> set[str]:
        """Types allowed in `cell` by its collapsed neighbours."""
        valid = set(self._all_types)

        for neighbor, direction in grid.neighbors(cell):
            if not neighbor.collapsed or neighbor.resolved_type is None:
                continue
            # Seen from the neighbour, this cell lies in the opposite direction
            valid &= self.catalog.allowed(neighbor.resolved_type, direction.opposite)

        return valid

    def propagate(self, grid: Grid) -> int:
        """
        Recompute candidates for every uncollapsed cell.

        All new sets are computed before any is written, so the pass only
        ever reads collapse states from before it started. Collapsed cells
        are left alone.

        Returns the number of cells whose candidates changed.
        """
        updates: list[tuple[GridCell, set[str]]] = [
            (cell, self.valid_types(grid, cell))
            for cell in grid.uncollapsed_cells()
        ]

        changed = 0
        for cell, valid in updates:
            if valid != cell.candidates:
                changed += 1
            cell.candidates = valid

        return changed

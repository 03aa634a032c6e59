"""
Grid representation for Wave Function Collapse.

The Grid is the "wave function" - a 2D array of cells where each cell is
undecided (a set of candidate tile types) until it collapses to one type.

Every cell also carries a fixed label. Candidates whose label matches the
cell's label are favoured when the cell collapses, which is how the label
map steers the generated layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import TYPE_CHECKING, Iterable, Iterator, Sequence

from ...core.errors import ConfigurationError, InvariantViolation
from ...core.types import Direction, Position
from .tile import TileData

if TYPE_CHECKING:
    from ..catalog import TileCatalog


# Snapshot encoding
UNCOLLAPSED_TOKEN = "x"
STATE_SEPARATOR = "-"


@dataclass
class GridCell:
    """
    A single cell in the WFC grid.

    Before collapse: `candidates` holds the types still possible here.
    After collapse: `resolved_type` holds the chosen type.

    An uncollapsed cell with no candidates is a contradiction.
    """
    x: int
    y: int
    fixed_label: int
    collapse_factor: int
    all_types: frozenset[str] = field(default_factory=frozenset, repr=False)
    candidates: set[str] = field(default_factory=set)
    collapsed: bool = False
    resolved_type: str | None = None

    def __post_init__(self):
        if not self.candidates:
            self.candidates = set(self.all_types)

    def __hash__(self):
        """Hash by position - cells are unique by their grid location."""
        return hash((self.x, self.y))

    def __eq__(self, other):
        """Two cells are equal if they have the same position."""
        if not isinstance(other, GridCell):
            return False
        return self.x == other.x and self.y == other.y

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    @property
    def is_contradiction(self) -> bool:
        """Undecided with nothing left to choose from."""
        return not self.collapsed and not self.candidates

    def weighted_collapse(self, tile_data: Iterable[TileData], rng: Random) -> str:
        """
        Collapse to one of the candidates, chosen at random from a weighted pool.

        A candidate whose label equals this cell's label gets `collapse_factor`
        entries in the pool; every other candidate gets its observed weight.

        Returns the chosen tile ID.
        """
        pool = [tile for tile in tile_data if tile.name in self.candidates]
        if not pool:
            raise InvariantViolation(
                f"Weighted collapse of cell ({self.x}, {self.y}) with no candidates"
            )

        weights = [tile.pool_weight(self.fixed_label, self.collapse_factor) for tile in pool]
        chosen = rng.choices(pool, weights=weights if sum(weights) > 0 else None, k=1)[0]

        self.resolved_type = chosen.name
        self.collapsed = True
        return chosen.name

    def collapse_to_type(self, tile_id: str):
        """Force this cell to a specific tile, bypassing the weighting."""
        self.reset()
        self.resolved_type = tile_id
        self.collapsed = True

    def remove_type(self, tile_id: str):
        """Drop a rejected candidate. No-op if it is not a candidate."""
        self.candidates.discard(tile_id)

    def reset(self):
        """Return to the undecided state with every type possible."""
        self.collapsed = False
        self.resolved_type = None
        self.candidates = set(self.all_types)


class Grid:
    """
    The 2D grid of cells representing the wave function.

    Cells are stored row by row: `cells[y][x]`.
    """

    def __init__(
        self,
        width: int,
        height: int,
        catalog: "TileCatalog",
        labels: Sequence[Sequence[int]] | None = None,
        collapse_factor: int = 1,
    ):
        """
        Create a grid with every cell undecided.

        Args:
            width: Number of cells horizontally
            height: Number of cells vertically
            catalog: Tile types and rules; its type order defines snapshot indices
            labels: Fixed label per cell, indexed [y][x] (all 0 when omitted)
            collapse_factor: Pool weight of candidates matching a cell's label

        Raises:
            ConfigurationError: On non-positive dimensions or a label map of the wrong shape
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {width}x{height}",
                field="width" if width <= 0 else "height",
            )
        if labels is None:
            labels = [[0] * width for _ in range(height)]
        if len(labels) != height or any(len(row) != width for row in labels):
            raise ConfigurationError(
                f"Label map does not match grid size {width}x{height}",
                field="labels",
            )

        self.width = width
        self.height = height
        self.catalog = catalog
        self.collapse_factor = collapse_factor
        self.tile_ids: frozenset[str] = frozenset(catalog.types)

        self.cells: list[list[GridCell]] = [
            [
                GridCell(
                    x=x,
                    y=y,
                    fixed_label=int(labels[y][x]),
                    collapse_factor=collapse_factor,
                    all_types=self.tile_ids,
                )
                for x in range(width)
            ]
            for y in range(height)
        ]

    def get_cell(self, x: int, y: int) -> GridCell | None:
        """Get cell at position, or None if out of bounds."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.cells[y][x]
        return None

    def neighbors(self, cell: GridCell) -> Iterator[tuple[GridCell, Direction]]:
        """
        Yield all in-bounds neighbors of a cell with their directions.

        Direction is FROM the input cell TO the neighbor.
        e.g., (neighbor_cell, Direction.UP) means neighbor is above cell.
        """
        for direction in Direction:
            dx, dy = direction.offset
            neighbor = self.get_cell(cell.x + dx, cell.y + dy)
            if neighbor is not None:
                yield neighbor, direction

    def collapsed_neighbors(self, cell: GridCell) -> list[GridCell]:
        """In-bounds neighbors of a cell that are currently collapsed."""
        return [neighbor for neighbor, _ in self.neighbors(cell) if neighbor.collapsed]

    def all_cells(self) -> Iterator[GridCell]:
        """Iterate over all cells in row-major order."""
        for row in self.cells:
            yield from row

    def uncollapsed_cells(self) -> Iterator[GridCell]:
        return (cell for cell in self.all_cells() if not cell.collapsed)

    @property
    def collapsed_count(self) -> int:
        return sum(1 for cell in self.all_cells() if cell.collapsed)

    def is_complete(self) -> bool:
        """Check if all cells have collapsed."""
        return all(cell.collapsed for cell in self.all_cells())

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def current_state(self) -> str:
        """
        Serialize which cells are collapsed and to what.

        Row-major, one token per cell: "x" when undecided, otherwise the index
        of the resolved type in the catalog. Equal grids give equal strings.
        """
        tokens = []
        for cell in self.all_cells():
            if cell.collapsed and cell.resolved_type is not None:
                tokens.append(str(self.catalog.index_of(cell.resolved_type)))
            else:
                tokens.append(UNCOLLAPSED_TOKEN)
        return STATE_SEPARATOR.join(tokens)

    def load_state(self, state: str):
        """
        Restore collapse state from a snapshot produced by current_state().

        Undecided cells get every type back as a candidate; run propagation
        afterwards to narrow them down.
        """
        tokens = state.split(STATE_SEPARATOR)
        if len(tokens) != self.width * self.height:
            raise InvariantViolation(
                f"Snapshot has {len(tokens)} cells, grid has {self.width * self.height}"
            )

        for cell, token in zip(self.all_cells(), tokens):
            if token == UNCOLLAPSED_TOKEN:
                cell.reset()
                continue
            try:
                tile_id = self.catalog.type_at(int(token))
            except (ValueError, IndexError) as e:
                raise InvariantViolation(f"Bad snapshot token {token!r}") from e
            cell.collapse_to_type(tile_id)

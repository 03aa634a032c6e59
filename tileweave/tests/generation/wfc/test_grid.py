"""Tests for the WFC grid and its snapshots."""

import random

import pytest

from tileweave.core.errors import ConfigurationError, InvariantViolation
from tileweave.core.types import Direction, Position
from tileweave.generation.catalog import TileCatalog
from tileweave.generation.wfc.grid import Grid, GridCell
from tileweave.generation.wfc.tile import TileData


@pytest.fixture
def abc_catalog() -> TileCatalog:
    return TileCatalog([TileData("A", 1), TileData("B", 2, weight=4), TileData("C", 3)])


class TestGridCell:
    """Test single-cell behaviour."""

    def test_starts_with_every_type(self):
        """A new cell has every type as candidate."""
        cell = GridCell(0, 0, fixed_label=1, collapse_factor=5, all_types=frozenset({"A", "B"}))
        assert cell.candidates == {"A", "B"}
        assert not cell.collapsed
        assert cell.resolved_type is None

    def test_equality_by_position(self):
        """Cells compare and hash by position."""
        a = GridCell(1, 2, fixed_label=0, collapse_factor=1, all_types=frozenset({"A"}))
        b = GridCell(1, 2, fixed_label=9, collapse_factor=1, all_types=frozenset({"B"}))
        assert a == b
        assert len({a, b}) == 1

    def test_weighted_collapse_picks_candidate(self, abc_catalog):
        """The chosen type is always one of the candidates."""
        rng = random.Random(0)
        for _ in range(20):
            cell = GridCell(0, 0, fixed_label=1, collapse_factor=5, all_types=frozenset(abc_catalog.types))
            cell.candidates = {"B", "C"}
            chosen = cell.weighted_collapse(abc_catalog.tile_data, rng)
            assert chosen in {"B", "C"}
            assert cell.collapsed
            assert cell.resolved_type == chosen

    def test_weighted_collapse_favours_label(self, abc_catalog):
        """A large factor makes the label-matching type dominate."""
        rng = random.Random(1)
        picks = []
        for _ in range(200):
            cell = GridCell(0, 0, fixed_label=3, collapse_factor=1000, all_types=frozenset(abc_catalog.types))
            picks.append(cell.weighted_collapse(abc_catalog.tile_data, rng))
        assert picks.count("C") > 180

    def test_weighted_collapse_without_candidates(self, abc_catalog):
        """Collapsing an empty cell is an invariant violation."""
        cell = GridCell(0, 0, fixed_label=1, collapse_factor=5, all_types=frozenset(abc_catalog.types))
        cell.candidates = set()
        with pytest.raises(InvariantViolation):
            cell.weighted_collapse(abc_catalog.tile_data, random.Random(0))

    def test_reset_restores_candidates(self, abc_catalog):
        """reset() undoes collapse and removals."""
        cell = GridCell(0, 0, fixed_label=1, collapse_factor=5, all_types=frozenset(abc_catalog.types))
        cell.remove_type("A")
        cell.collapse_to_type("B")
        cell.reset()
        assert not cell.collapsed
        assert cell.candidates == {"A", "B", "C"}

    def test_is_contradiction(self):
        """Only an undecided cell with no candidates is a contradiction."""
        cell = GridCell(0, 0, fixed_label=1, collapse_factor=1, all_types=frozenset({"A"}))
        assert not cell.is_contradiction
        cell.remove_type("A")
        assert cell.is_contradiction


class TestGrid:
    """Test grid construction and neighbours."""

    def test_rejects_bad_dimensions(self, abc_catalog):
        """Non-positive dimensions raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            Grid(0, 3, abc_catalog)

    def test_rejects_mismatched_labels(self, abc_catalog):
        """The label map must match the grid size."""
        with pytest.raises(ConfigurationError):
            Grid(2, 2, abc_catalog, labels=[[1, 1]])

    def test_labels_assigned_row_major(self, abc_catalog):
        """labels[y][x] lands on the cell at (x, y)."""
        grid = Grid(3, 2, abc_catalog, labels=[[1, 2, 3], [4, 5, 6]], collapse_factor=7)
        assert grid.get_cell(2, 0).fixed_label == 3
        assert grid.get_cell(0, 1).fixed_label == 4
        assert grid.get_cell(1, 1).collapse_factor == 7

    def test_get_cell_out_of_bounds(self, abc_catalog):
        """Out-of-bounds lookups return None."""
        grid = Grid(2, 2, abc_catalog)
        assert grid.get_cell(2, 0) is None
        assert grid.get_cell(0, -1) is None

    def test_corner_has_two_neighbors(self, abc_catalog):
        """Edges are not neighbours."""
        grid = Grid(3, 3, abc_catalog)
        neighbors = list(grid.neighbors(grid.get_cell(0, 0)))
        assert {direction for _, direction in neighbors} == {Direction.RIGHT, Direction.DOWN}

    def test_neighbor_direction_points_away(self, abc_catalog):
        """The direction is from the cell to its neighbour."""
        grid = Grid(3, 3, abc_catalog)
        for neighbor, direction in grid.neighbors(grid.get_cell(1, 1)):
            assert neighbor.position == Position(1, 1) + direction

    def test_collapsed_neighbors(self, abc_catalog):
        """Only collapsed neighbours are returned."""
        grid = Grid(3, 1, abc_catalog)
        grid.get_cell(0, 0).collapse_to_type("A")
        assert grid.collapsed_neighbors(grid.get_cell(1, 0)) == [grid.get_cell(0, 0)]

    def test_completion(self, abc_catalog):
        """is_complete() needs every cell collapsed."""
        grid = Grid(2, 1, abc_catalog)
        grid.get_cell(0, 0).collapse_to_type("A")
        assert not grid.is_complete()
        assert grid.collapsed_count == 1
        grid.get_cell(1, 0).collapse_to_type("C")
        assert grid.is_complete()


class TestSnapshots:
    """Test state serialisation."""

    def test_empty_state(self, abc_catalog):
        """An undecided grid is all placeholders."""
        assert Grid(3, 1, abc_catalog).current_state() == "x-x-x"

    def test_state_is_row_major(self, abc_catalog):
        """Tokens run along rows, top row first, as catalog indices."""
        grid = Grid(2, 2, abc_catalog)
        grid.get_cell(1, 0).collapse_to_type("C")
        grid.get_cell(0, 1).collapse_to_type("B")
        assert grid.current_state() == "x-2-1-x"

    def test_round_trip(self, abc_catalog):
        """load_state(current_state()) reproduces the state exactly."""
        grid = Grid(3, 2, abc_catalog)
        grid.get_cell(0, 0).collapse_to_type("A")
        grid.get_cell(2, 1).collapse_to_type("B")
        state = grid.current_state()

        other = Grid(3, 2, abc_catalog)
        other.load_state(state)
        assert other.current_state() == state
        assert other.get_cell(2, 1).resolved_type == "B"

    def test_load_resets_undecided_cells(self, abc_catalog):
        """Cells with a placeholder come back undecided with every candidate."""
        grid = Grid(2, 1, abc_catalog)
        grid.get_cell(0, 0).collapse_to_type("A")
        grid.get_cell(1, 0).remove_type("B")
        grid.load_state("x-x")
        assert not grid.get_cell(0, 0).collapsed
        assert grid.get_cell(1, 0).candidates == {"A", "B", "C"}

    def test_load_wrong_length(self, abc_catalog):
        """A snapshot for a different grid size is rejected."""
        with pytest.raises(InvariantViolation):
            Grid(2, 1, abc_catalog).load_state("x-x-x")

    def test_load_bad_token(self, abc_catalog):
        """Unknown tokens are rejected."""
        with pytest.raises(InvariantViolation):
            Grid(2, 1, abc_catalog).load_state("x-9")
        with pytest.raises(InvariantViolation):
            Grid(2, 1, abc_catalog).load_state("x-?")

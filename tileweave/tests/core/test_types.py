"""Tests for grid geometry types."""

from tileweave.core.types import Direction, Position


class TestDirection:
    """Test the Direction enum."""

    def test_offsets_use_image_coordinates(self):
        """UP decreases y, DOWN increases it."""
        assert Direction.UP.offset == (0, -1)
        assert Direction.RIGHT.offset == (1, 0)
        assert Direction.DOWN.offset == (0, 1)
        assert Direction.LEFT.offset == (-1, 0)

    def test_opposites(self):
        """Each direction's opposite points back."""
        for direction in Direction:
            assert direction.opposite.opposite == direction
            dx, dy = direction.offset
            assert direction.opposite.offset == (-dx, -dy)


class TestPosition:
    """Test the Position type."""

    def test_add_direction(self):
        """Adding a direction moves one cell."""
        assert Position(3, 3) + Direction.UP == Position(3, 2)
        assert Position(3, 3) + Direction.LEFT == Position(2, 3)

    def test_add_tuple(self):
        """Adding a tuple offsets both coordinates."""
        assert Position(1, 2) + (2, -1) == Position(3, 1)

    def test_neighbors(self):
        """neighbors() has one entry per direction."""
        neighbors = Position(0, 0).neighbors()
        assert set(neighbors) == set(Direction)
        assert neighbors[Direction.RIGHT] == Position(1, 0)
        assert neighbors[Direction.UP] == Position(0, -1)

    def test_in_bounds(self):
        """in_bounds checks both axes."""
        assert Position(0, 0).in_bounds(2, 2)
        assert Position(1, 1).in_bounds(2, 2)
        assert not Position(2, 0).in_bounds(2, 2)
        assert not Position(0, -1).in_bounds(2, 2)

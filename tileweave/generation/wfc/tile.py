"""
Tile types for Wave Function Collapse.

A tile type is identified by the content hash of its pixels. Each type knows
its label (read from the sample it came from), how often it was observed,
and which other types were seen next to it in each direction. Those
observations are the adjacency rules that drive propagation.
"""

from dataclasses import dataclass, field

from ...core.types import Direction


# tile identity -> direction -> identities allowed on that side
AdjacencyRules = dict[str, dict[Direction, set[str]]]


@dataclass
class TileData:
    """
    A tile type extracted from the samples.

    Attributes:
        name: Content identity of the tile image (stable hash of its pixels)
        value: Fixed integer label parsed from the sample's filename
        weight: Number of times this tile was observed across all samples.
                Starts at 1, incremented for every duplicate occurrence.
        allowed_neighbors: For each direction, the set of tile identities
                          observed on that side. Directional: B on A's RIGHT
                          does not imply A on B's LEFT unless that was observed too.
    """
    name: str
    value: int
    weight: int = 1
    allowed_neighbors: dict[Direction, set[str]] = field(default_factory=dict)

    def __post_init__(self):
        # Initialize empty neighbor sets for all directions if not provided
        for direction in Direction:
            if direction not in self.allowed_neighbors:
                self.allowed_neighbors[direction] = set()

    def allow_neighbor(self, direction: Direction, neighbor_id: str):
        """Allow a specific tile to be adjacent in the given direction."""
        self.allowed_neighbors[direction].add(neighbor_id)

    def get_allowed_neighbors(self, direction: Direction) -> set[str]:
        """Get all tile IDs allowed in the given direction."""
        return self.allowed_neighbors.get(direction, set())

    def entropy_weight(self, label: int, collapse_factor: int) -> int:
        """Weight used for entropy: observed weight, boosted when the label matches."""
        if self.value == label:
            return self.weight + collapse_factor
        return self.weight

    def pool_weight(self, label: int, collapse_factor: int) -> int:
        """Number of copies this tile contributes to a cell's collapse pool."""
        if self.value == label:
            return collapse_factor
        return self.weight


def make_rule(tiles: dict[str, TileData], tile_id: str, direction: Direction, neighbor_id: str):
    """Allow `neighbor_id` on the `direction` side of `tile_id` (one way only)."""
    tiles[tile_id].allow_neighbor(direction, neighbor_id)


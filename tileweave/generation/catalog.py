"""
Tile catalog extracted from sample images.

Each sample is cut into square sub-tiles. Pixel-identical sub-tiles are the
same tile type; every occurrence bumps the type's weight and contributes the
neighbours it was seen with to the type's adjacency rules. Samples carry a
numeric label in the last three characters of their filename, which becomes
the label of every type first seen in that sample.

    samples/
        meadow_001.png   -> label 1
        river_002.png    -> label 2
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Iterable

import numpy as np
from PIL import Image

from ..core.errors import ConfigurationError
from ..core.types import Direction, Position
from ..logging_config import get_logger, log_catalog
from .wfc.tile import AdjacencyRules, TileData, make_rule

logger = get_logger(__name__)

SAMPLE_EXTENSIONS = {".png", ".bmp", ".gif", ".jpg", ".jpeg", ".tga", ".tif", ".tiff"}

_LABEL_PATTERN = re.compile(r"(\d{3})$")

# (name, image) where image is a Pillow image or an (H, W[, C]) array
Sample = tuple[str, "Image.Image | np.ndarray"]


def tile_hash(pixels: np.ndarray) -> str:
    """Stable content identity for a block of pixels.

    Two blocks get the same identity exactly when they have the same shape,
    dtype and pixel values.
    """
    data = np.ascontiguousarray(pixels)
    digest = hashlib.sha1(f"{data.dtype.str}{data.shape}".encode("ascii"))
    digest.update(data.tobytes())
    return digest.hexdigest()


def parse_label(sample_name: str) -> int:
    """Read the label from the last three characters of a sample's filename stem.

    Raises:
        ConfigurationError: If the stem does not end in three digits
    """
    stem = Path(sample_name).stem
    match = _LABEL_PATTERN.search(stem)
    if match is None:
        raise ConfigurationError(
            f"Sample '{sample_name}' has no numeric label: filenames must end in three digits",
            field="samples",
        )
    return int(match.group(1))


def _to_pixels(image: "Image.Image | np.ndarray") -> np.ndarray:
    """Convert a sample to a pixel array indexed [row, col(, channel)]."""
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA"))
    pixels = np.asarray(image)
    if pixels.ndim not in (2, 3):
        raise ConfigurationError(
            f"Sample arrays must be 2-D or 3-D, got {pixels.ndim} dimensions",
            field="samples",
        )
    return pixels


def _to_sprite(block: np.ndarray) -> Image.Image:
    if block.dtype != np.uint8:
        block = block.astype(np.uint8)
    return Image.fromarray(np.ascontiguousarray(block))


class TileCatalog:
    """
    The tile types and adjacency rules available to the solver.

    `types` keeps first-seen order. Snapshots encode collapsed cells by their
    index in that list, so the order must not change once a solver uses it.
    Rules are frozen at construction; weights are final once extraction ends.
    """

    def __init__(
        self,
        tiles: Iterable[TileData],
        sprites: dict[str, Image.Image] | None = None,
        tile_size: int | None = None,
    ):
        """
        Build a catalog from tile data.

        Args:
            tiles: Tile types in first-seen order, with their adjacency observations
            sprites: Optional identity -> image table used by renderers
            tile_size: Edge length of the sprites in pixels, if known
        """
        self._tiles: dict[str, TileData] = {}
        for tile in tiles:
            if tile.name in self._tiles:
                raise ConfigurationError(f"Duplicate tile type {tile.name!r}", field="tiles")
            if tile.weight < 1:
                raise ConfigurationError(
                    f"Tile {tile.name!r} has weight {tile.weight}, expected >= 1",
                    field="tiles",
                )
            self._tiles[tile.name] = tile

        self._types: list[str] = list(self._tiles)
        self._index: dict[str, int] = {name: i for i, name in enumerate(self._types)}
        self._rules: dict[str, dict[Direction, frozenset[str]]] = {
            name: {
                direction: frozenset(tile.get_allowed_neighbors(direction))
                for direction in Direction
            }
            for name, tile in self._tiles.items()
        }
        self.sprites: dict[str, Image.Image] = dict(sprites or {})
        self.tile_size = tile_size

    # -------------------------------------------------------------------------
    # Construction from samples
    # -------------------------------------------------------------------------

    @classmethod
    def from_samples(cls, samples: Iterable[Sample], tile_size: int) -> "TileCatalog":
        """
        Extract tile types and adjacency rules from labelled samples.

        Args:
            samples: (filename, image) pairs; the filename carries the label
            tile_size: Edge length of a sub-tile in pixels

        Raises:
            ConfigurationError: On a bad tile size, a sample whose size is not a
                multiple of it, or a filename without a label
        """
        if tile_size <= 0:
            raise ConfigurationError(f"Tile size must be positive, got {tile_size}", field="tile_size")

        tiles: dict[str, TileData] = {}
        sprites: dict[str, Image.Image] = {}
        sample_count = 0

        for name, image in samples:
            label = parse_label(name)
            pixels = _to_pixels(image)
            height, width = pixels.shape[:2]

            if width == 0 or height == 0 or width % tile_size or height % tile_size:
                raise ConfigurationError(
                    f"Sample '{name}' is {width}x{height}, not a multiple of tile size {tile_size}",
                    field="tile_size",
                )

            cols = width // tile_size
            rows = height // tile_size
            blocks = [
                [
                    pixels[
                        row * tile_size:(row + 1) * tile_size,
                        col * tile_size:(col + 1) * tile_size,
                    ]
                    for col in range(cols)
                ]
                for row in range(rows)
            ]
            hashes = [[tile_hash(block) for block in block_row] for block_row in blocks]

            new_types = 0
            for row in range(rows):
                for col in range(cols):
                    tile_id = hashes[row][col]
                    tile = tiles.get(tile_id)

                    if tile is None:
                        tile = TileData(name=tile_id, value=label)
                        tiles[tile_id] = tile
                        sprites[tile_id] = _to_sprite(blocks[row][col])
                        new_types += 1
                    else:
                        tile.weight += 1

                    # Rules accumulate over every occurrence, not just the first
                    position = Position(col, row)
                    for direction, neighbor in position.neighbors().items():
                        if neighbor.in_bounds(cols, rows):
                            make_rule(tiles, tile_id, direction, hashes[neighbor.y][neighbor.x])

            sample_count += 1
            log_catalog(
                logger,
                "SAMPLE",
                name,
                f"label={label} | tiles={cols}x{rows} | new_types={new_types}",
            )

        catalog = cls(tiles.values(), sprites=sprites, tile_size=tile_size)
        logger.info(f"Catalog built: {len(catalog)} tile types from {sample_count} samples")
        return catalog

    @classmethod
    def from_directory(cls, samples_dir: Path | str, tile_size: int) -> "TileCatalog":
        """
        Load every sample image in a directory (sorted by filename) and extract the catalog.

        Raises:
            ConfigurationError: If the directory is missing or holds no images
        """
        path = Path(samples_dir)
        if not path.is_dir():
            raise ConfigurationError(f"Samples directory not found: {path}", field="samples")

        files = sorted(
            p for p in path.iterdir()
            if p.is_file() and p.suffix.lower() in SAMPLE_EXTENSIONS
        )
        if not files:
            raise ConfigurationError(f"No sample images in {path}", field="samples")

        log_catalog(logger, "LOAD", path, f"files={len(files)}")

        samples: list[Sample] = []
        for file in files:
            with Image.open(file) as image:
                samples.append((file.name, image.convert("RGBA")))

        return cls.from_samples(samples, tile_size)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def types(self) -> list[str]:
        """Tile identities in first-seen order."""
        return list(self._types)

    @property
    def tile_data(self) -> list[TileData]:
        """Tile data in first-seen order."""
        return [self._tiles[name] for name in self._types]

    @property
    def rules(self) -> AdjacencyRules:
        """A copy of the adjacency rules."""
        return {
            name: {direction: set(allowed) for direction, allowed in by_direction.items()}
            for name, by_direction in self._rules.items()
        }

    def tile(self, tile_id: str) -> TileData:
        return self._tiles[tile_id]

    def index_of(self, tile_id: str) -> int:
        """Position of a type in first-seen order."""
        return self._index[tile_id]

    def type_at(self, index: int) -> str:
        return self._types[index]

    def allowed(self, tile_id: str, direction: Direction) -> frozenset[str]:
        """Types allowed on the `direction` side of `tile_id`."""
        return self._rules[tile_id][direction]

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._tiles

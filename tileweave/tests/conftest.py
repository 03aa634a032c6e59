"""Shared test fixtures for tileweave."""

import tempfile
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from tileweave.core.types import Direction
from tileweave.generation.catalog import TileCatalog
from tileweave.generation.wfc.tile import TileData, make_rule

TILE_SIZE = 2

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 200, 0, 255)
YELLOW = (255, 220, 0, 255)
WHITE = (255, 255, 255, 255)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (skipped by default, run with --run-slow)")


def pytest_addoption(parser):
    """Add --run-slow option to pytest."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (skipped by default)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is passed."""
    if config.getoption("--run-slow"):
        return

    skip_slow = pytest.mark.skip(reason="Slow test (use --run-slow to run)")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def block_image(colors: list[list[tuple[int, int, int, int]]], tile_size: int = TILE_SIZE) -> np.ndarray:
    """RGBA pixel array made of solid tile_size blocks, colors indexed [row][col]."""
    rows = len(colors)
    cols = len(colors[0])
    pixels = np.zeros((rows * tile_size, cols * tile_size, 4), dtype=np.uint8)
    for row in range(rows):
        for col in range(cols):
            pixels[
                row * tile_size:(row + 1) * tile_size,
                col * tile_size:(col + 1) * tile_size,
            ] = colors[row][col]
    return pixels


def checker_colors() -> list[list[tuple[int, int, int, int]]]:
    return [[RED, BLUE], [BLUE, RED]]


def plain_colors() -> list[list[tuple[int, int, int, int]]]:
    return [[GREEN, GREEN], [GREEN, GREEN]]


def diagonal_colors() -> list[list[tuple[int, int, int, int]]]:
    """Four colours cycling along the anti-diagonals."""
    cycle = [RED, BLUE, YELLOW, WHITE]
    return [[cycle[(row + col) % 4] for col in range(4)] for row in range(4)]


def write_sample(directory: Path, name: str, colors) -> Path:
    path = directory / name
    Image.fromarray(block_image(colors)).save(path)
    return path


@pytest.fixture
def temp_data_dir() -> Path:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory(prefix="tileweave_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def checker_samples_dir(temp_data_dir: Path) -> Path:
    """A directory with one red/blue checkerboard sample labelled 1."""
    samples = temp_data_dir / "samples"
    samples.mkdir()
    write_sample(samples, "checker_001.png", checker_colors())
    return samples


@pytest.fixture
def mixed_samples_dir(checker_samples_dir: Path) -> Path:
    """Checkerboard sample (label 1) plus a solid green sample (label 2)."""
    write_sample(checker_samples_dir, "meadow_002.png", plain_colors())
    return checker_samples_dir


@pytest.fixture
def diagonal_samples_dir(temp_data_dir: Path) -> Path:
    """Four-colour diagonal stripes (label 1) plus a solid green sample (label 2)."""
    samples = temp_data_dir / "diagonal"
    samples.mkdir()
    write_sample(samples, "diagonal_001.png", diagonal_colors())
    write_sample(samples, "meadow_002.png", plain_colors())
    return samples


@pytest.fixture
def checker_catalog() -> TileCatalog:
    """Two types that may only sit next to each other: always solvable."""
    return TileCatalog.from_samples([("checker_001.png", block_image(checker_colors()))], TILE_SIZE)


@pytest.fixture
def forced_pair_catalog() -> TileCatalog:
    """A may only have B on its right; B may only have A on its left."""
    tiles = {"A": TileData("A", 1), "B": TileData("B", 2)}
    make_rule(tiles, "A", Direction.RIGHT, "B")
    make_rule(tiles, "B", Direction.LEFT, "A")
    return TileCatalog(tiles.values())


@pytest.fixture
def lonely_catalog() -> TileCatalog:
    """A single type that allows nothing next to it."""
    return TileCatalog([TileData("A", 1)])


@pytest.fixture
def make_blocks():
    """Factory for RGBA sample arrays built from solid blocks."""
    return block_image


@pytest.fixture
def palette() -> dict[str, tuple[int, int, int, int]]:
    return {"red": RED, "blue": BLUE, "green": GREEN}

"""
Fixed-label distributions.

Every grid cell gets an integer label before solving starts. During collapse,
candidates whose label matches the cell's label are boosted by the collapse
factor, so the label map acts as a soft layout for the generated grid.

All functions return labels indexed [y][x].
"""

from __future__ import annotations

from collections import deque
from random import Random
from typing import Callable

import numpy as np

from ..config import DistributionMethod
from ..core.errors import ConfigurationError
from ..core.types import Position

LabelMap = list[list[int]]

PERLIN_SCALE = 0.1


def growing_regions(width: int, height: int, min_value: int, max_value: int, rng: Random) -> LabelMap:
    """
    One contiguous region per label value.

    Each region starts from a random unassigned cell and grows by claiming the
    first free neighbour of any of its cells until it holds its share of the
    grid or gets boxed in. Cells no region reached take the label of the
    nearest labelled cell.
    """
    labels: list[list[int | None]] = [[None] * width for _ in range(height)]
    region_values = list(range(min_value, max_value + 1))
    cells_per_region = (width * height) // len(region_values)
    unassigned = width * height

    for value in region_values:
        if unassigned == 0:
            break

        free = [Position(x, y) for y in range(height) for x in range(width) if labels[y][x] is None]
        start = rng.choice(free)
        region = [start]
        labels[start.y][start.x] = value
        unassigned -= 1

        while len(region) < cells_per_region:
            next_cell = None
            for cell in region:
                for neighbor in cell.neighbors().values():
                    if neighbor.in_bounds(width, height) and labels[neighbor.y][neighbor.x] is None:
                        next_cell = neighbor
                        break
                if next_cell is not None:
                    break

            if next_cell is None:
                break

            region.append(next_cell)
            labels[next_cell.y][next_cell.x] = value
            unassigned -= 1

    # Multi-source BFS fills whatever the regions left behind
    queue = deque(
        Position(x, y) for y in range(height) for x in range(width) if labels[y][x] is not None
    )
    while queue:
        cell = queue.popleft()
        for neighbor in cell.neighbors().values():
            if neighbor.in_bounds(width, height) and labels[neighbor.y][neighbor.x] is None:
                labels[neighbor.y][neighbor.x] = labels[cell.y][cell.x]
                queue.append(neighbor)

    return [[int(value) for value in row] for row in labels]


def horizontal(width: int, height: int, min_value: int, max_value: int, rng: Random) -> LabelMap:
    """Linear gradient from max_value in the first column to min_value in the last."""
    row = []
    for x in range(width):
        t = x / (width - 1) if width > 1 else 0.0
        row.append(int(round(max_value + (min_value - max_value) * t)))
    return [list(row) for _ in range(height)]


def radial(width: int, height: int, min_value: int, max_value: int, rng: Random) -> LabelMap:
    """max_value at the centre, falling off to min_value at the inscribed circle's edge."""
    center_x = width // 2
    center_y = height // 2
    max_distance = float(min(width, height) // 2)

    labels = []
    for y in range(height):
        row = []
        for x in range(width):
            if max_distance == 0:
                row.append(max_value)
                continue
            distance = float(np.hypot(x - center_x, y - center_y))
            spread = max(0.0, (max_value - min_value) * ((max_distance - distance) / max_distance))
            row.append(int(round(min_value + spread)))
        labels.append(row)
    return labels


class PerlinNoise:
    """Classic 2-D gradient noise over a shuffled permutation table."""

    def __init__(self, seed: int):
        generator = np.random.default_rng(seed)
        permutation = generator.permutation(256)
        self._perm = np.concatenate([permutation, permutation])

    @staticmethod
    def _fade(t: np.ndarray) -> np.ndarray:
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _gradient(h: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        h = h & 3
        u = np.where(h & 1, -x, x)
        v = np.where(h & 2, -y, y)
        return u + v

    def sample(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Noise in [0, 1] at the given coordinates."""
        x0 = np.floor(x)
        y0 = np.floor(y)
        xi = x0.astype(int) & 255
        yi = y0.astype(int) & 255
        xf = x - x0
        yf = y - y0
        u = self._fade(xf)
        v = self._fade(yf)

        perm = self._perm
        n00 = self._gradient(perm[perm[xi] + yi], xf, yf)
        n10 = self._gradient(perm[perm[xi + 1] + yi], xf - 1, yf)
        n01 = self._gradient(perm[perm[xi] + yi + 1], xf, yf - 1)
        n11 = self._gradient(perm[perm[xi + 1] + yi + 1], xf - 1, yf - 1)

        nx0 = n00 + u * (n10 - n00)
        nx1 = n01 + u * (n11 - n01)
        value = nx0 + v * (nx1 - nx0)
        return np.clip((value + 1.0) / 2.0, 0.0, 1.0)


def perlin_noise(width: int, height: int, min_value: int, max_value: int, rng: Random) -> LabelMap:
    """Smooth noise field, sampled with a random sub-cell jitter per cell."""
    noise = PerlinNoise(rng.getrandbits(32))
    jitter = np.random.default_rng(rng.getrandbits(32))

    xs = (np.arange(width)[np.newaxis, :] + jitter.random((height, width))) * PERLIN_SCALE
    ys = (np.arange(height)[:, np.newaxis] + jitter.random((height, width))) * PERLIN_SCALE

    values = noise.sample(xs, ys) * (max_value - min_value) + min_value
    labels = np.clip(np.rint(values), min_value, max_value).astype(int)
    return labels.tolist()


_DISTRIBUTIONS: dict[DistributionMethod, Callable[[int, int, int, int, Random], LabelMap]] = {
    DistributionMethod.GROWING_REGIONS: growing_regions,
    DistributionMethod.HORIZONTAL: horizontal,
    DistributionMethod.RADIAL: radial,
    DistributionMethod.PERLIN_NOISE: perlin_noise,
}


def distribute_labels(
    method: DistributionMethod | str | int,
    width: int,
    height: int,
    min_value: int,
    max_value: int,
    rng: Random,
) -> LabelMap:
    """
    Build the fixed-label map for a grid.

    Raises:
        ConfigurationError: On an unknown method, non-positive size or an empty value range
    """
    method = DistributionMethod.parse(method)
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Grid dimensions must be positive, got {width}x{height}")
    if min_value > max_value:
        raise ConfigurationError(
            f"min_value ({min_value}) must not exceed max_value ({max_value})",
            field="min_value",
        )
    return _DISTRIBUTIONS[method](width, height, min_value, max_value, rng)

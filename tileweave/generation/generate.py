"""
Tile generation using Wave Function Collapse.

This module provides the main entry point for turning a tile catalog into a
fully collapsed grid. The solver backtracks on its own; when it runs out of
history to roll back to, the whole grid is regenerated from scratch, up to
`max_retries` times.
"""

import random
from typing import Callable, Sequence

from ..config import GenerationConfig
from ..core.errors import BacktrackExhaustedError
from ..core.types import Position
from ..logging_config import get_logger
from .catalog import TileCatalog
from .wfc import WFCSolver, SolverState

logger = get_logger(__name__)


def generate_tiles(
    catalog: TileCatalog,
    config: GenerationConfig | None = None,
    labels: Sequence[Sequence[int]] | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
    rng: random.Random | None = None,
) -> dict[Position, str]:
    """
    Generate a fully collapsed grid.

    Args:
        catalog: Tile types and adjacency rules
        config: Grid size, weighting, label distribution, seed and retry settings
        labels: Explicit label map indexed [y][x] (default: from config.distribution)
        progress_callback: Optional callback(collapsed_cells, total_cells) after each tick
        rng: Random source (default: seeded from config.seed)

    Returns:
        Dict mapping every Position to its tile ID.

    Raises:
        ConfigurationError: On invalid settings or catalog
        BacktrackExhaustedError: If every attempt ran out of backtracking
            (or hit config.max_ticks)
    """
    config = config or GenerationConfig()
    rng = rng if rng is not None else random.Random(config.seed)
    total_cells = config.width * config.height

    solver = WFCSolver(catalog, config, labels=labels, rng=rng)

    for attempt in range(config.max_retries):
        if attempt > 0:
            # Fresh grid, fresh history; the random state has moved on
            solver.restart(labels=labels)

        ticks = 0
        while True:
            state = solver.step()
            ticks += 1

            if progress_callback is not None:
                progress_callback(solver.grid.collapsed_count, total_cells)

            if state == SolverState.FULLY_COLLAPSED:
                logger.info(
                    f"Generated {config.width}x{config.height} grid on attempt {attempt + 1} "
                    f"({solver.tick_count} ticks, {solver.backtrack_count} backtracks)"
                )
                return solver.placements()
            if state == SolverState.BACKTRACK_EXHAUSTED:
                break
            if config.max_ticks is not None and ticks >= config.max_ticks:
                logger.warning(f"Tick limit {config.max_ticks} reached on attempt {attempt + 1}")
                break

        logger.warning(f"Full restart: attempt {attempt + 1}/{config.max_retries} failed")

    raise BacktrackExhaustedError(
        f"Tile generation failed after {config.max_retries} attempts. "
        "Try a different seed, grid size or sample set.",
        attempts=config.max_retries,
    )


def generate_tile_grid(
    catalog: TileCatalog,
    config: GenerationConfig | None = None,
    **kwargs,
) -> list[list[str]]:
    """
    Generate tiles as a 2D grid of tile IDs, indexed as grid[y][x].

    Convenience wrapper around generate_tiles(); kwargs are passed through.
    """
    config = config or GenerationConfig()
    placements = generate_tiles(catalog, config, **kwargs)
    return [
        [placements[Position(x, y)] for x in range(config.width)]
        for y in range(config.height)
    ]

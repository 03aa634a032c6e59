"""
Wave Function Collapse solver.

This is the heart of WFC - the algorithm that observes (collapses) cells
and propagates constraints until the entire grid is determined.

One tick:
1. Find the uncollapsed cells with lowest entropy, pick one at random
2. Collapse it with a label-weighted random choice, rejecting choices that
   reproduce a grid state already known to be a dead end
3. If every candidate was rejected, backtrack: rewind the grid to the most
   recent decision taken next to this cell and make that neighbour choose again
4. Propagate: recompute every undecided cell's candidates
5. Done when every cell is collapsed; failed when there is nothing left to
   rewind to
"""

from __future__ import annotations

from enum import Enum, auto
import random
from typing import TYPE_CHECKING, Sequence

from ...config import DistributionMethod, GenerationConfig
from ...core.errors import ConfigurationError, InvariantViolation
from ...core.types import Position
from ...logging_config import get_logger, log_backtrack, log_tick
from ..distribution import distribute_labels
from .entropy import EntropyTracker
from .grid import Grid, GridCell
from .history import HistoryLog
from .propagation import ConstraintPropagator

if TYPE_CHECKING:
    from ..catalog import TileCatalog

logger = get_logger(__name__)


class SolverState(Enum):
    """The current state of the WFC solver."""
    RUNNING = auto()              # Still solving, more ticks needed
    PAUSED = auto()               # Halted externally, resume() to continue
    FULLY_COLLAPSED = auto()      # All cells collapsed successfully
    BACKTRACK_EXHAUSTED = auto()  # Contradiction with no history left to roll back to

    @property
    def is_terminal(self) -> bool:
        return self in (SolverState.FULLY_COLLAPSED, SolverState.BACKTRACK_EXHAUSTED)


class WFCSolver:
    """
    The WFC algorithm implementation.

    Usage:
        solver = WFCSolver(catalog, config)
        while True:
            state = solver.step()
            if state.is_terminal:
                break

    Or for bulk solving:
        solver.solve()  # Returns True on success, False when backtracking ran out

    The grid, history and dead-end set belong to the solver and are only
    changed inside step() and restart().
    """

    def __init__(
        self,
        catalog: "TileCatalog",
        config: GenerationConfig | None = None,
        labels: Sequence[Sequence[int]] | None = None,
        rng: random.Random | None = None,
        start_paused: bool = False,
    ):
        """
        Initialize the solver and build the first grid.

        Args:
            catalog: Tile types, weights and adjacency rules
            config: Grid size, collapse factor and label distribution settings
            labels: Explicit label map indexed [y][x]; overrides the distribution
            rng: Random source (default: seeded from config.seed)
            start_paused: Start in PAUSED instead of RUNNING
        """
        if len(catalog) == 0:
            raise ConfigurationError("Catalog has no tile types", field="catalog")

        self.catalog = catalog
        self.config = config or GenerationConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)

        self.entropy = EntropyTracker(catalog)
        self.propagator = ConstraintPropagator(catalog)
        self.history = HistoryLog()

        self.grid: Grid
        self.state = SolverState.RUNNING
        self.tick_count = 0
        self.backtrack_count = 0
        self.last_collapsed: GridCell | None = None

        self.restart(labels=labels, start_paused=start_paused)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def restart(
        self,
        config: GenerationConfig | None = None,
        labels: Sequence[Sequence[int]] | None = None,
        start_paused: bool = False,
    ):
        """
        Tear down and rebuild the grid, history and dead-end set.

        Args:
            config: New settings (default: keep the current ones)
            labels: Explicit label map; generated from the distribution when omitted
            start_paused: Enter PAUSED instead of RUNNING
        """
        if config is not None:
            self.config = config

        if labels is None:
            labels = distribute_labels(
                self.config.distribution,
                self.config.width,
                self.config.height,
                self.config.min_value,
                self.config.max_value,
                self.rng,
            )

        self.grid = Grid(
            self.config.width,
            self.config.height,
            self.catalog,
            labels=labels,
            collapse_factor=self.config.collapse_factor,
        )
        self.history.clear()
        self.tick_count = 0
        self.backtrack_count = 0
        self.last_collapsed = None

        self.propagator.propagate(self.grid)
        self.state = SolverState.PAUSED if start_paused else SolverState.RUNNING
        if self.grid.is_complete():
            self.state = SolverState.FULLY_COLLAPSED

        logger.info(
            f"Solver restarted: {self.config.width}x{self.config.height} grid, "
            f"{len(self.catalog)} types, factor={self.config.collapse_factor}, "
            f"distribution={self.config.distribution.value}"
        )

    def set_distribution_method(self, method: DistributionMethod | str | int):
        """Switch the label distribution and restart from scratch."""
        self.restart(config=self.config.with_updates(distribution=DistributionMethod.parse(method)))

    def pause(self):
        """Halt before the next tick. Terminal states are left alone."""
        if self.state == SolverState.RUNNING:
            self.state = SolverState.PAUSED

    def resume(self):
        if self.state == SolverState.PAUSED:
            self.state = SolverState.RUNNING

    def toggle_pause(self):
        if self.state == SolverState.PAUSED:
            self.resume()
        else:
            self.pause()

    # -------------------------------------------------------------------------
    # Solving
    # -------------------------------------------------------------------------

    def step(self) -> SolverState:
        """
        Perform one tick: collapse (or backtrack) one cell and propagate.

        Does nothing unless the solver is RUNNING.

        Returns the solver state after this tick.
        """
        if self.state != SolverState.RUNNING:
            return self.state

        if self.grid.is_complete():
            self.state = SolverState.FULLY_COLLAPSED
            return self.state

        self.tick_count += 1
        self.last_collapsed = None

        contradictions = self.entropy.contradictions(self.grid)
        if contradictions:
            # Propagation already left a cell with nothing to choose from
            self._handle_contradiction(contradictions[0])
        else:
            cell = self._select_cell()
            if self._try_collapse(cell):
                self.last_collapsed = cell
            else:
                self._handle_contradiction(cell)

        if self.state == SolverState.BACKTRACK_EXHAUSTED:
            return self.state

        self.propagator.propagate(self.grid)

        if self.grid.is_complete():
            self.state = SolverState.FULLY_COLLAPSED
            logger.info(
                f"Fully collapsed after {self.tick_count} ticks "
                f"({self.backtrack_count} backtracks)"
            )

        return self.state

    def _select_cell(self) -> GridCell:
        """Pick uniformly among the lowest-entropy cells."""
        lowest = self.entropy.lowest(self.grid)
        if not lowest:
            raise InvariantViolation("Uncollapsed cells remain but none has candidates")

        cell = self.rng.choice(lowest)
        if not cell.candidates:
            raise InvariantViolation(f"Selected cell ({cell.x}, {cell.y}) has no candidates")
        return cell

    def _try_collapse(self, cell: GridCell) -> bool:
        """
        Trial-collapse a cell until a choice avoids every known dead end.

        Rejected types are removed from the cell's candidates. Returns True
        once a choice is accepted and recorded in the history.
        """
        before = self.grid.current_state()
        tile_data = self.catalog.tile_data

        while cell.candidates:
            chosen = cell.weighted_collapse(tile_data, self.rng)

            if self.history.is_error(self.grid.current_state()):
                cell.remove_type(chosen)
                log_tick(logger, self.tick_count, "REJECT", f"cell=({cell.x}, {cell.y}) | type={self.catalog.index_of(chosen)}")
                continue

            self.history.record(before, cell.position, chosen, self.catalog.index_of(chosen))
            log_tick(
                logger,
                self.tick_count,
                "COLLAPSE",
                f"cell=({cell.x}, {cell.y}) | type={self.catalog.index_of(chosen)} "
                f"| label={self.catalog.tile(chosen).value}/{cell.fixed_label} | {self.percent_collapsed:.1f}%",
            )
            return True

        return False

    def _handle_contradiction(self, cell: GridCell):
        """
        Recover from a cell that cannot be collapsed.

        The state with this cell undecided is a dead end. Rewind to the most
        recent decision taken on one of its collapsed neighbours, mark that
        decision's outcome as a dead end too, and make every collapsed
        neighbour choose again. With no such decision left, give up.
        """
        cell.reset()
        self.history.mark_error(self.grid.current_state())

        neighbors = self.grid.collapsed_neighbors(cell)
        neighbor_positions = {neighbor.position for neighbor in neighbors}
        index = self.history.last_decision_at(neighbor_positions)

        if index is None:
            log_backtrack(logger, self.tick_count, cell.position, None, "no history to roll back to")
            logger.warning(
                f"Backtracking exhausted at ({cell.x}, {cell.y}) after {self.tick_count} ticks"
            )
            self.state = SolverState.BACKTRACK_EXHAUSTED
            return

        entry = self.history.rollback(index)
        self.grid.load_state(entry.state)
        self.history.mark_error(entry.decided_state(self.grid.width))

        for position in neighbor_positions:
            self.grid.cells[position.y][position.x].reset()

        self.backtrack_count += 1
        log_backtrack(
            logger,
            self.tick_count,
            cell.position,
            entry.position,
            f"history={len(self.history)} | dead_ends={len(self.history.error_states)}",
        )

    def solve(self, max_ticks: int | None = None) -> bool:
        """
        Run the solver until it reaches a terminal state.

        A paused solver is resumed first. Stops early (returning False) when
        max_ticks is given and reached.

        Returns True if solved successfully, False otherwise.
        """
        self.resume()
        limit = max_ticks if max_ticks is not None else self.config.max_ticks
        ticks = 0

        while True:
            state = self.step()
            if state == SolverState.FULLY_COLLAPSED:
                return True
            if state == SolverState.BACKTRACK_EXHAUSTED:
                return False
            ticks += 1
            if limit is not None and ticks >= limit:
                return False

    # -------------------------------------------------------------------------
    # Progress and rendering boundary
    # -------------------------------------------------------------------------

    @property
    def percent_collapsed(self) -> float:
        total = self.grid.width * self.grid.height
        return 100.0 * self.grid.collapsed_count / total

    def placements(self) -> dict[Position, str]:
        """Position -> tile ID for every collapsed cell."""
        return {
            cell.position: cell.resolved_type
            for cell in self.grid.all_cells()
            if cell.collapsed and cell.resolved_type is not None
        }

    def labels(self) -> list[list[int]]:
        """The fixed label of every cell, indexed [y][x]."""
        return [[cell.fixed_label for cell in row] for row in self.grid.cells]

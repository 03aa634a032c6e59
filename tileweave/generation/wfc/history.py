"""
Decision history and dead-end memory for backtracking.

Every accepted collapse appends the grid snapshot taken just before it,
together with the decision (cell position, chosen type). On a contradiction
the solver searches this log for the most recent decision next to the
failing cell and rewinds to it.

Snapshots known to lead nowhere are kept in `error_states`. The set only
grows; trial collapses that land on one of them are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection

from ...core.types import Position
from .grid import STATE_SEPARATOR


@dataclass(frozen=True)
class HistoryEntry:
    """
    One accepted decision.

    Attributes:
        state: Grid snapshot before the decision was applied
        position: Cell that was collapsed
        tile_type: Type it was collapsed to
        tile_index: Index of that type in the catalog (its snapshot token)
    """
    state: str
    position: Position
    tile_type: str
    tile_index: int

    def decided_state(self, width: int) -> str:
        """The snapshot with this entry's decision applied."""
        tokens = self.state.split(STATE_SEPARATOR)
        tokens[self.position.y * width + self.position.x] = str(self.tile_index)
        return STATE_SEPARATOR.join(tokens)


class HistoryLog:
    """Append-only decision log with rollback, plus the set of dead-end snapshots."""

    def __init__(self):
        self.entries: list[HistoryEntry] = []
        self.error_states: set[str] = set()

    def __len__(self) -> int:
        return len(self.entries)

    def record(self, state: str, position: Position, tile_type: str, tile_index: int) -> HistoryEntry:
        """Append a decision taken from `state`."""
        entry = HistoryEntry(state, position, tile_type, tile_index)
        self.entries.append(entry)
        return entry

    def mark_error(self, state: str):
        self.error_states.add(state)

    def is_error(self, state: str) -> bool:
        return state in self.error_states

    def last_decision_at(self, positions: Collection[Position]) -> int | None:
        """Index of the most recent entry that decided one of `positions`, or None."""
        for index in range(len(self.entries) - 1, -1, -1):
            if self.entries[index].position in positions:
                return index
        return None

    def rollback(self, index: int) -> HistoryEntry:
        """
        Drop the entry at `index` and everything after it.

        Returns the dropped entry at `index`, whose snapshot is the state to restore.
        """
        entry = self.entries[index]
        del self.entries[index:]
        return entry

    def clear(self):
        """Forget all decisions and dead ends (used on restart)."""
        self.entries.clear()
        self.error_states.clear()

"""In-memory shared state for sources and their breakpoint positions.

The store is the single place published positions live. It is updated only
through ``dispatch`` so every change is one atomic action that listeners on
``on_change`` can observe.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING
from typing import Any

from bpsites.errors import StoreError
from bpsites.utils.events import EventEmitter

if TYPE_CHECKING:
    from bpsites.protocol.structures import BreakpointPositionSet
    from bpsites.protocol.structures import MappedLocation
    from bpsites.protocol.structures import Source

logger = logging.getLogger(__name__)

ADD_SOURCE = "ADD_SOURCE"
REMOVE_SOURCE = "REMOVE_SOURCE"
ADD_BREAKPOINT_POSITIONS = "ADD_BREAKPOINT_POSITIONS"
NAVIGATE = "NAVIGATE"

Action = dict[str, Any]


class SourceStore:
    """Thread-safe source and breakpoint-position table."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sources: dict[str, Source] = {}
        self._positions: dict[str, BreakpointPositionSet] = {}
        self.on_change = EventEmitter()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_source(self, source_id: str) -> Source | None:
        with self._lock:
            return self._sources.get(source_id)

    def has_breakpoint_positions(self, source_id: str) -> bool:
        with self._lock:
            return source_id in self._positions

    def get_breakpoint_positions_for_source(
        self, source_id: str
    ) -> BreakpointPositionSet | None:
        with self._lock:
            positions = self._positions.get(source_id)
            return list(positions) if positions is not None else None

    def get_breakpoint_positions_for_line(
        self, source_id: str, line: int
    ) -> list[MappedLocation]:
        """Return the positions of ``source_id`` that sit on ``line``.

        ``line`` is in the coordinates of ``source_id``: original lines for an
        original source, generated lines otherwise. Positions that failed
        translation have no original line and never match an original source.
        """
        from bpsites.core.source_ids import is_original_id  # noqa: PLC0415

        positions = self.get_breakpoint_positions_for_source(source_id) or []
        if is_original_id(source_id):
            return [p for p in positions if p.location is not None and p.location.line == line]
        return [p for p in positions if p.generated_location.line == line]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def add_source(self, source: Source) -> None:
        self.dispatch({"type": ADD_SOURCE, "source": source})

    def remove_source(self, source_id: str) -> None:
        self.dispatch({"type": REMOVE_SOURCE, "sourceId": source_id})

    def navigate(self) -> None:
        self.dispatch({"type": NAVIGATE})

    def dispatch(self, action: Action) -> None:
        """Apply ``action`` atomically, then notify ``on_change`` listeners."""
        action_type = action.get("type")
        with self._lock:
            if action_type == ADD_SOURCE:
                source = action["source"]
                self._sources[source.id] = source
            elif action_type == REMOVE_SOURCE:
                source_id = action["sourceId"]
                self._sources.pop(source_id, None)
                self._positions.pop(source_id, None)
            elif action_type == ADD_BREAKPOINT_POSITIONS:
                source = action["source"]
                self._positions[source.id] = list(action["positions"])
            elif action_type == NAVIGATE:
                self._sources.clear()
                self._positions.clear()
            else:
                raise StoreError(
                    f"Unknown store action: {action_type!r}",
                    action_type=str(action_type),
                )

        logger.debug("Dispatched %s", action_type)
        self.on_change.emit(action)


__all__ = [
    "ADD_BREAKPOINT_POSITIONS",
    "ADD_SOURCE",
    "NAVIGATE",
    "REMOVE_SOURCE",
    "Action",
    "SourceStore",
]

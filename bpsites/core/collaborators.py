"""Interfaces of the collaborators the resolver depends on.

The resolver never talks to a debuggee or parses a source map itself. It is
handed a ``ResolverContext`` bundling a client, a source-map service and a
store, each described here by the methods the resolver calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

if TYPE_CHECKING:
    from bpsites.protocol.structures import BreakpointPositionSet
    from bpsites.protocol.structures import LineColumnTable
    from bpsites.protocol.structures import Range
    from bpsites.protocol.structures import Source
    from bpsites.protocol.structures import SourceLocation


class BreakpointClient(Protocol):
    """Queries the running program for breakpoint-capable offsets."""

    async def get_breakpoint_positions(
        self, source: Source, range: Range | None = None
    ) -> LineColumnTable:
        """Return line -> columns for ``source``, restricted to ``range`` if given."""
        ...


class SourceMapService(Protocol):
    """Translates between generated and original coordinates."""

    async def get_original_locations(
        self, locations: list[SourceLocation]
    ) -> list[SourceLocation | None]:
        """Translate each location; result[i] corresponds to locations[i]."""
        ...

    async def get_generated_ranges_for_original(
        self, source_id: str, url: str, cover_fully: bool
    ) -> list[Range]:
        """Return the generated ranges that cover the original source."""
        ...


class PositionStore(Protocol):
    """The store reads and the single write the resolver performs."""

    def get_source(self, source_id: str) -> Source | None: ...

    def has_breakpoint_positions(self, source_id: str) -> bool: ...

    def get_breakpoint_positions_for_source(
        self, source_id: str
    ) -> BreakpointPositionSet | None: ...

    def dispatch(self, action: dict[str, Any]) -> None: ...


@dataclass
class ResolverContext:
    """Collaborators handed to each resolution."""

    client: BreakpointClient
    source_maps: SourceMapService
    store: PositionStore


__all__ = [
    "BreakpointClient",
    "PositionStore",
    "ResolverContext",
    "SourceMapService",
]

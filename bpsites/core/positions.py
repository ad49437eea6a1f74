"""Pipeline stages that turn client position tables into mapped locations.

Stages, in the order the resolver runs them:

1. ``normalize_range`` - rewrite unbounded range ends (original sources only)
2. ``fetch_positions`` / ``merge_position_tables`` - query the client per range
3. ``convert_to_list`` - flatten line -> columns into generated locations
4. ``map_locations`` - translate to original locations in one batch
5. ``filter_by_uniq_location`` - drop repeats of the same original site
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bpsites.core.source_ids import make_breakpoint_id
from bpsites.errors import ClientError
from bpsites.errors import SourceMapError
from bpsites.errors import async_handle_collaborator_errors
from bpsites.protocol.structures import MappedLocation
from bpsites.protocol.structures import Position
from bpsites.protocol.structures import Range
from bpsites.protocol.structures import SourceLocation

if TYPE_CHECKING:
    from collections.abc import Iterable
    from collections.abc import Mapping

    from bpsites.core.collaborators import BreakpointClient
    from bpsites.core.collaborators import SourceMapService
    from bpsites.protocol.structures import LineColumnTable
    from bpsites.protocol.structures import Source

logger = logging.getLogger(__name__)


def normalize_range(range: Range) -> Range:
    """Wrap an unbounded end column to the start of the next line.

    Trailing whitespace on the last line is never a breakpoint site, so the
    approximation loses nothing. Finite ranges are returned unchanged.
    """
    if not range.end.is_unbounded:
        return range
    return Range(start=range.start, end=Position(line=range.end.line + 1, column=0))


def merge_position_tables(tables: Iterable[Mapping[int, list[int]]]) -> LineColumnTable:
    """Concatenate column lists line by line across ``tables``.

    Repeated columns are kept; deduplication happens later on translated
    original locations.
    """
    merged: LineColumnTable = {}
    for table in tables:
        for line, columns in table.items():
            merged.setdefault(int(line), []).extend(columns)
    return merged


def convert_to_list(
    results: Mapping[int, list[int]],
    source: Source,
    *,
    sort_lines: bool = True,
) -> list[SourceLocation]:
    """Flatten a line -> columns table into generated locations of ``source``."""
    lines = list(results)
    if sort_lines:
        lines.sort(key=int)

    positions: list[SourceLocation] = []
    for line in lines:
        for column in results[line]:
            positions.append(
                SourceLocation(
                    source_id=source.id,
                    line=int(line),
                    column=column,
                    source_url=source.url,
                )
            )
    return positions


@async_handle_collaborator_errors(ClientError, "get_breakpoint_positions")
async def fetch_positions(
    client: BreakpointClient,
    source: Source,
    range: Range | None = None,
    *,
    source_id: str | None = None,
) -> LineColumnTable:
    """Ask the client for the positions of ``source``, optionally within ``range``."""
    logger.debug("Fetching breakpoint positions for %s (range=%s)", source.id, range)
    return await client.get_breakpoint_positions(source, range)


@async_handle_collaborator_errors(SourceMapError, "get_generated_ranges_for_original")
async def fetch_generated_ranges(
    source_maps: SourceMapService,
    source: Source,
    *,
    source_id: str | None = None,
) -> list[Range]:
    """Return the normalized generated ranges covering original ``source``."""
    ranges = await source_maps.get_generated_ranges_for_original(source.id, source.url, True)
    return [normalize_range(r) for r in ranges]


@async_handle_collaborator_errors(SourceMapError, "get_original_locations")
async def map_locations(
    generated_locations: list[SourceLocation],
    source_maps: SourceMapService,
    *,
    source_id: str | None = None,
) -> list[MappedLocation]:
    """Translate ``generated_locations`` in one batch and pair results by index."""
    original_locations = await source_maps.get_original_locations(generated_locations)

    if len(original_locations) != len(generated_locations):
        raise SourceMapError(
            "Source map returned "
            f"{len(original_locations)} locations for {len(generated_locations)} inputs",
            operation="get_original_locations",
            source_id=source_id,
        )

    return [
        MappedLocation(location=location, generated_location=generated_location)
        for location, generated_location in zip(original_locations, generated_locations)
    ]


def _location_key(position: MappedLocation) -> tuple[str, str]:
    # Untranslated positions key on their generated site, in a separate key space.
    if position.location is None:
        return ("generated", make_breakpoint_id(position.generated_location))
    return ("original", make_breakpoint_id(position.location))


def filter_by_uniq_location(positions: Iterable[MappedLocation]) -> list[MappedLocation]:
    """Keep the first position for each original site, preserving order."""
    seen: set[tuple[str, str]] = set()
    unique: list[MappedLocation] = []
    for position in positions:
        key = _location_key(position)
        if key in seen:
            continue
        seen.add(key)
        unique.append(position)
    return unique


__all__ = [
    "convert_to_list",
    "fetch_generated_ranges",
    "fetch_positions",
    "filter_by_uniq_location",
    "map_locations",
    "merge_position_tables",
    "normalize_range",
]

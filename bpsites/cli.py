"""Command line entry point: resolve breakpoint positions from a JSON fixture.

The fixture describes everything the collaborators would otherwise report::

    {
      "sources": [{"id": "g1", "url": "bundle.js"},
                  {"id": "g1/originalSource-1", "url": "foo.src"}],
      "positions": {"g1": {"10": [2, 5], "11": [0]}},
      "ranges": {"g1/originalSource-1": [
          {"start": {"line": 10, "column": 0}, "end": {"line": 12, "column": null}}]},
      "mappings": {"g1:10:2": {"sourceId": "g1/originalSource-1", "line": 7, "column": 0}}
    }

A ``null`` end column is an unbounded range end. Generated locations missing
from ``mappings`` translate to ``null``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys
from typing import Any

from bpsites.config import ResolverConfig
from bpsites.core.breakpoint_positions import BreakpointPositionResolver
from bpsites.core.collaborators import ResolverContext
from bpsites.core.source_ids import is_original_id
from bpsites.core.source_ids import make_breakpoint_id
from bpsites.errors import BpsitesError
from bpsites.errors import ConfigurationError
from bpsites.errors import ErrorContext
from bpsites.protocol.structures import LineColumnTable
from bpsites.protocol.structures import Range
from bpsites.protocol.structures import Source
from bpsites.protocol.structures import SourceLocation
from bpsites.store import SourceStore

logger = logging.getLogger(__name__)

# Eventually this can just be logging.getLevelNamesMapping()
NAME_TO_LEVEL: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class FixtureClient:
    """Client answering from the fixture's ``positions`` table."""

    def __init__(self, positions: dict[str, dict[str, list[int]]]) -> None:
        self._positions = {
            source_id: {int(line): list(columns) for line, columns in table.items()}
            for source_id, table in positions.items()
        }

    async def get_breakpoint_positions(
        self, source: Source, range: Range | None = None
    ) -> LineColumnTable:
        table = self._positions.get(source.id, {})
        if range is None:
            return {line: list(columns) for line, columns in table.items()}

        start = (range.start.line, range.start.column)
        end = (range.end.line, range.end.column)
        result: LineColumnTable = {}
        for line, columns in table.items():
            inside = [c for c in columns if start <= (line, c) < end]
            if inside:
                result[line] = inside
        return result


class FixtureSourceMaps:
    """Source-map service answering from the fixture's ``ranges`` and ``mappings``."""

    def __init__(
        self,
        ranges: dict[str, list[dict[str, Any]]],
        mappings: dict[str, dict[str, Any] | None],
    ) -> None:
        self._ranges = {
            source_id: [Range.from_dict(r) for r in source_ranges]
            for source_id, source_ranges in ranges.items()
        }
        self._mappings = {
            key: SourceLocation.from_dict(value) if value else None
            for key, value in mappings.items()
        }

    async def get_original_locations(
        self, locations: list[SourceLocation]
    ) -> list[SourceLocation | None]:
        return [self._mappings.get(make_breakpoint_id(loc)) for loc in locations]

    async def get_generated_ranges_for_original(
        self, source_id: str, url: str, cover_fully: bool
    ) -> list[Range]:
        return list(self._ranges.get(source_id, []))


def load_fixture(path: Path) -> tuple[ResolverContext, SourceStore]:
    """Build a resolver context populated from the fixture at ``path``."""
    with ErrorContext("load_fixture", ConfigurationError, path=str(path)):
        data = json.loads(path.read_text(encoding="utf-8"))

        store = SourceStore()
        for entry in data.get("sources", []):
            store.add_source(
                Source(id=entry["id"], url=entry["url"], is_original=is_original_id(entry["id"]))
            )

        context = ResolverContext(
            client=FixtureClient(data.get("positions", {})),
            source_maps=FixtureSourceMaps(data.get("ranges", {}), data.get("mappings", {})),
            store=store,
        )
    return context, store


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bpsites",
        description="Resolve the breakpoint positions of a source from a JSON fixture",
    )
    parser.add_argument("fixture", type=Path, help="Path to the JSON fixture")
    parser.add_argument("--source-id", required=True, help="Source to resolve")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the resolution (default: no limit)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Resolve one source and print its positions as JSON
    """
    args = build_parser().parse_args(argv)

    try:
        config = ResolverConfig.from_mapping(
            {"log_level": args.log_level, "timeout_seconds": args.timeout}
        )
    except BpsitesError as e:
        build_parser().error(str(e))

    logging.basicConfig(
        level=NAME_TO_LEVEL.get(config.log_level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )

    try:
        context, _store = load_fixture(args.fixture)
        resolver = BreakpointPositionResolver(config)
        positions = asyncio.run(resolver.resolve(args.source_id, context))
    except BpsitesError as e:
        logger.error("Failed to resolve %s: %s", args.source_id, e)
        return 1

    payload = [p.to_dict() for p in positions or []]
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0

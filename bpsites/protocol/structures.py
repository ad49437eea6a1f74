"""
Common object shapes used by the resolver: Source, Position, Range, SourceLocation, MappedLocation
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any

# End column reported by source maps for ranges that run to the end of a line.
UNBOUNDED = math.inf

# line -> column offsets, as returned by the client. Not assumed sorted.
LineColumnTable = dict[int, list[int]]


@dataclass(frozen=True)
class Source:
    """A source record held in the store."""

    id: str  # Unique source id; original ids carry an "/originalSource" suffix
    url: str  # The url the source was loaded from
    is_original: bool = False  # True for authored (pre-compilation) sources

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "url": self.url, "isOriginal": self.is_original}


@dataclass(frozen=True)
class Position:
    """A line/column pair. ``column`` may be UNBOUNDED at a range end."""

    line: int
    column: int | float = 0

    @property
    def is_unbounded(self) -> bool:
        return self.column == UNBOUNDED


@dataclass(frozen=True)
class Range:
    """A generated-coordinate span covering (part of) an original source."""

    start: Position
    end: Position

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Range:
        start = data["start"]
        end = data["end"]
        end_column = end.get("column")
        return cls(
            start=Position(int(start["line"]), int(start.get("column", 0))),
            end=Position(
                int(end["line"]),
                UNBOUNDED if end_column is None else end_column,
            ),
        )


@dataclass(frozen=True)
class SourceLocation:
    """One position in one coordinate system."""

    source_id: str
    line: int
    column: int | None = None
    source_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceLocation:
        return cls(
            source_id=data["sourceId"],
            line=int(data["line"]),
            column=data.get("column"),
            source_url=data.get("sourceUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceId": self.source_id,
            "line": self.line,
            "column": self.column,
            "sourceUrl": self.source_url,
        }


@dataclass(frozen=True)
class MappedLocation:
    """An original location paired with the generated location it came from.

    ``location`` is None when the source map could not translate
    ``generated_location``; the pair is still kept.
    """

    location: SourceLocation | None
    generated_location: SourceLocation

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location.to_dict() if self.location else None,
            "generatedLocation": self.generated_location.to_dict(),
        }


# Published per source id; deduplicated and ordered.
BreakpointPositionSet = list[MappedLocation]


__all__ = [
    "UNBOUNDED",
    "BreakpointPositionSet",
    "LineColumnTable",
    "MappedLocation",
    "Position",
    "Range",
    "Source",
    "SourceLocation",
]

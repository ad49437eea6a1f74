"""
bpsites.core - Breakpoint position resolution.

This module provides the request-coalescing resolver and the pipeline
stages it runs: range normalization, flattening, source-map translation,
deduplication and publishing.
"""

from bpsites.core.breakpoint_positions import BreakpointPositionResolver
from bpsites.core.breakpoint_positions import get_resolver
from bpsites.core.breakpoint_positions import publish_positions
from bpsites.core.breakpoint_positions import resolve_breakpoint_positions
from bpsites.core.breakpoint_positions import set_breakpoint_positions
from bpsites.core.collaborators import BreakpointClient
from bpsites.core.collaborators import PositionStore
from bpsites.core.collaborators import ResolverContext
from bpsites.core.collaborators import SourceMapService
from bpsites.core.positions import convert_to_list
from bpsites.core.positions import filter_by_uniq_location
from bpsites.core.positions import map_locations
from bpsites.core.positions import merge_position_tables
from bpsites.core.positions import normalize_range

__all__ = [
    # Collaborators
    "BreakpointClient",
    # Resolver
    "BreakpointPositionResolver",
    "PositionStore",
    "ResolverContext",
    "SourceMapService",
    # Pipeline stages
    "convert_to_list",
    "filter_by_uniq_location",
    "get_resolver",
    "map_locations",
    "merge_position_tables",
    "normalize_range",
    "publish_positions",
    "resolve_breakpoint_positions",
    "set_breakpoint_positions",
]

"""Shared state for sources and published breakpoint positions."""

from bpsites.store.source_store import ADD_BREAKPOINT_POSITIONS
from bpsites.store.source_store import SourceStore

__all__ = [
    "ADD_BREAKPOINT_POSITIONS",
    "SourceStore",
]

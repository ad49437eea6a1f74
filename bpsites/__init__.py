"""bpsites - breakpoint position resolution for source-mapped debugging."""

from bpsites.core.breakpoint_positions import BreakpointPositionResolver
from bpsites.core.breakpoint_positions import get_resolver
from bpsites.core.breakpoint_positions import resolve_breakpoint_positions
from bpsites.core.collaborators import ResolverContext

__all__ = [
    "BreakpointPositionResolver",
    "ResolverContext",
    "__version__",
    "get_resolver",
    "resolve_breakpoint_positions",
]
__version__ = "0.1.0"

"""Error handling for bpsites."""

from bpsites.errors.bpsites_errors import BpsitesError
from bpsites.errors.bpsites_errors import ClientError
from bpsites.errors.bpsites_errors import CollaboratorError
from bpsites.errors.bpsites_errors import ConfigurationError
from bpsites.errors.bpsites_errors import ResolutionTimeoutError
from bpsites.errors.bpsites_errors import SourceMapError
from bpsites.errors.bpsites_errors import SourceNotFoundError
from bpsites.errors.bpsites_errors import StoreError
from bpsites.errors.error_patterns import ErrorContext
from bpsites.errors.error_patterns import async_handle_collaborator_errors

__all__ = [
    "BpsitesError",
    "ClientError",
    "CollaboratorError",
    "ConfigurationError",
    "ErrorContext",
    "ResolutionTimeoutError",
    "SourceMapError",
    "SourceNotFoundError",
    "StoreError",
    "async_handle_collaborator_errors",
]

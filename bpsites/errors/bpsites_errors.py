"""Centralized error handling for bpsites.

This module provides a hierarchy of exceptions for the failures that can
occur while resolving breakpoint positions: collaborator failures (client,
source maps), missing sources, store misuse, configuration problems and
waiter timeouts.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class BpsitesError(Exception):
    """Base exception for all bpsites errors.

    All bpsites-specific exceptions inherit from this class so callers can
    catch a single type at the resolver boundary.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for reporting."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause!s})"
        return self.message


class ConfigurationError(BpsitesError):
    """Raised when there's a configuration problem."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, error_code="ConfigurationError", details=details, **kwargs)
        self.config_key = config_key


class CollaboratorError(BpsitesError):
    """Base for failures raised by an external collaborator call."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        source_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        if source_id:
            details["source_id"] = source_id
        kwargs.setdefault("error_code", self.__class__.__name__)
        super().__init__(message, details=details, **kwargs)
        self.operation = operation
        self.source_id = source_id


class ClientError(CollaboratorError):
    """Raised when the client fails to report breakpoint positions."""


class SourceMapError(CollaboratorError):
    """Raised when a source-map lookup fails or breaks its contract."""


class SourceNotFoundError(BpsitesError):
    """Raised when a source needed by the pipeline is not in the store."""

    def __init__(self, source_id: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["source_id"] = source_id
        super().__init__(
            f"Source not found: {source_id}",
            error_code="SourceNotFoundError",
            details=details,
            **kwargs,
        )
        self.source_id = source_id


class StoreError(BpsitesError):
    """Raised when the store receives an action it cannot apply."""

    def __init__(
        self,
        message: str,
        *,
        action_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if action_type:
            details["action_type"] = action_type
        super().__init__(message, error_code="StoreError", details=details, **kwargs)
        self.action_type = action_type


class ResolutionTimeoutError(BpsitesError):
    """Raised to a waiter that gave up on an in-flight resolution."""

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        source_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        if source_id:
            details["source_id"] = source_id
        super().__init__(message, error_code="TimeoutError", details=details, **kwargs)
        self.timeout_seconds = timeout_seconds
        self.source_id = source_id

"""Standardized error handling patterns for bpsites.

Collaborator calls (client, source maps) are wrapped so that whatever they
raise reaches every waiter of a resolution as a single ``BpsitesError``
subtype with the original exception chained as its cause.
"""

from __future__ import annotations

from functools import wraps
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Coroutine
    import types

    R = TypeVar("R")
else:
    R = TypeVar("R")

from bpsites.errors.bpsites_errors import BpsitesError
from bpsites.errors.bpsites_errors import CollaboratorError

logger = logging.getLogger(__name__)


def _wrap_collaborator_exception(
    e: Exception,
    *,
    error_type: type[CollaboratorError],
    operation: str,
    source_id: str | None,
) -> BpsitesError:
    if isinstance(e, BpsitesError):
        return e
    return error_type(
        f"Error in {operation}: {e!s}",
        operation=operation,
        source_id=source_id,
        cause=e,
    )


def async_handle_collaborator_errors(
    error_type: type[CollaboratorError],
    operation: str | None = None,
    *,
    log_level: int = logging.DEBUG,
) -> Callable[
    [Callable[..., Coroutine[Any, Any, R]]], Callable[..., Coroutine[Any, Any, R]]
]:
    """Decorator for async collaborator calls.

    Exceptions that are not already ``BpsitesError`` are wrapped in
    ``error_type``; the result is logged and always re-raised. A
    ``source_id`` keyword argument, when present, is recorded on the error.

    Args:
        error_type: CollaboratorError subtype to raise
        operation: Name of the operation (defaults to the function name)
        log_level: Logging level for the failure

    Returns:
        Decorated coroutine function
    """

    def decorator(
        func: Callable[..., Coroutine[Any, Any, R]],
    ) -> Callable[..., Coroutine[Any, Any, R]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                op = operation or func.__name__
                wrapped_error = _wrap_collaborator_exception(
                    e,
                    error_type=error_type,
                    operation=op,
                    source_id=kwargs.get("source_id"),
                )
                logger.log(log_level, "%s failed: %s", op, wrapped_error)
                if wrapped_error is e:
                    raise
                raise wrapped_error from e

        return wrapper

    return decorator


class ErrorContext:
    """Context manager that wraps non-bpsites exceptions in ``error_type``."""

    def __init__(
        self,
        operation: str,
        error_type: type[BpsitesError] = BpsitesError,
        **context_kwargs: Any,
    ):
        self.operation = operation
        self.error_type = error_type
        self.context = context_kwargs

    def __enter__(self) -> None:
        return None

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> bool:
        if isinstance(exc_val, Exception) and not isinstance(exc_val, BpsitesError):
            wrapped_error = self.error_type(
                f"Error in {self.operation}: {exc_val!s}",
                cause=exc_val,
                details={"operation": self.operation, **self.context},
            )
            logger.debug("Wrapped error in %s: %s", self.operation, wrapped_error)
            raise wrapped_error from exc_val
        return False

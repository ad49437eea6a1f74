"""Small event utilities used by the store.

Provides a minimal synchronous EventEmitter with add_listener/remove_listener/emit.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventEmitter:
    """Tiny synchronous event emitter.

    Listeners run in registration order. A listener that raises is logged
    and skipped; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: Listener) -> None:
        try:
            self._listeners.remove(fn)
        except ValueError:
            pass

    def emit(self, *args: Any, **kwargs: Any) -> None:
        # Snapshot so listeners may unsubscribe while being notified
        listeners = list(self._listeners)
        for fn in listeners:
            try:
                fn(*args, **kwargs)
            except Exception:
                logger.exception("error in event listener")

"""Resolve and publish the breakpoint positions of a source.

``BreakpointPositionResolver.resolve`` is the entry point. It returns cached
positions when the store has them, joins an in-flight resolution for the
same source when there is one, and otherwise starts a single resolution task
that runs the pipeline:

- original sources: look up the generated ranges covering the source, query
  the client once per range and merge the results
- generated sources: query the client once for the whole source
- flatten, translate to original locations, deduplicate, publish

Every caller waiting on the same task sees the same outcome: the published
positions, or the exception that aborted the task.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING

from bpsites.config import get_config
from bpsites.core.positions import convert_to_list
from bpsites.core.positions import fetch_generated_ranges
from bpsites.core.positions import fetch_positions
from bpsites.core.positions import filter_by_uniq_location
from bpsites.core.positions import map_locations
from bpsites.core.positions import merge_position_tables
from bpsites.core.source_ids import is_original_id
from bpsites.core.source_ids import original_to_generated_id
from bpsites.errors import ResolutionTimeoutError
from bpsites.errors import SourceNotFoundError
from bpsites.store.source_store import ADD_BREAKPOINT_POSITIONS
from bpsites.utils.threadsafe_async import await_on_loop

if TYPE_CHECKING:
    from bpsites.config import ResolverConfig
    from bpsites.core.collaborators import PositionStore
    from bpsites.core.collaborators import ResolverContext
    from bpsites.protocol.structures import BreakpointPositionSet
    from bpsites.protocol.structures import LineColumnTable
    from bpsites.protocol.structures import MappedLocation
    from bpsites.protocol.structures import Source

logger = logging.getLogger(__name__)


def publish_positions(
    store: PositionStore,
    source_id: str,
    positions: list[MappedLocation],
) -> bool:
    """Record ``positions`` for ``source_id`` if the source still exists.

    Returns False without writing when the source was removed while the
    positions were being resolved (for example by a navigation).
    """
    source = store.get_source(source_id)
    if source is None:
        logger.debug("Source %s went away before publish; dropping positions", source_id)
        return False

    store.dispatch(
        {
            "type": ADD_BREAKPOINT_POSITIONS,
            "source": source,
            "positions": positions,
        }
    )
    return True


async def _fetch_original_positions(
    original: Source,
    context: ResolverContext,
) -> tuple[Source, LineColumnTable]:
    ranges = await fetch_generated_ranges(context.source_maps, original, source_id=original.id)

    generated_id = original_to_generated_id(original.id)
    generated_source = context.store.get_source(generated_id)
    if generated_source is None:
        raise SourceNotFoundError(generated_id, details={"original_id": original.id})

    # Usually a single range, rarely more than a handful.
    tables = []
    for generated_range in ranges:
        tables.append(
            await fetch_positions(
                context.client, generated_source, generated_range, source_id=original.id
            )
        )
    return generated_source, merge_position_tables(tables)


async def set_breakpoint_positions(
    source_id: str,
    context: ResolverContext,
    *,
    sort_lines: bool = True,
) -> bool:
    """Run the full pipeline for ``source_id`` and publish the result.

    Returns True when positions were published. Collaborator failures
    propagate and nothing is published.
    """
    source = context.store.get_source(source_id)
    if source is None:
        logger.debug("Source %s is not loaded; nothing to resolve", source_id)
        return False

    if is_original_id(source_id):
        generated_source, results = await _fetch_original_positions(source, context)
    else:
        generated_source = source
        results = await fetch_positions(context.client, source, source_id=source_id)

    positions = convert_to_list(results, generated_source, sort_lines=sort_lines)
    mapped = await map_locations(positions, context.source_maps, source_id=source_id)
    unique = filter_by_uniq_location(mapped)
    logger.debug(
        "Resolved %d positions (%d before dedup) for %s", len(unique), len(mapped), source_id
    )
    return publish_positions(context.store, source_id, unique)


def _consume_task_error(task: asyncio.Task[bool]) -> None:
    # Waiters that timed out may leave nobody to observe a failure.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Breakpoint position task failed: %s", task.exception())


async def _await_shielded(task: asyncio.Task[bool]) -> bool:
    return await asyncio.shield(task)


def _join(task: asyncio.Task[bool]) -> asyncio.Future[bool]:
    """Return an awaitable for ``task`` that is safe to cancel or time out.

    Shielded so a waiter giving up never cancels the shared task. A task
    owned by another thread's loop is awaited on that loop.
    """
    task_loop = task.get_loop()
    if task_loop is asyncio.get_running_loop():
        return asyncio.shield(task)
    return await_on_loop(_await_shielded(task), task_loop)


class BreakpointPositionResolver:
    """Coalesces concurrent resolutions so each source resolves at most once at a time."""

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._requests: dict[str, asyncio.Task[bool]] = {}

    @property
    def config(self) -> ResolverConfig:
        return self._config or get_config()

    def is_pending(self, source_id: str) -> bool:
        """Return True while a resolution for ``source_id`` is in flight."""
        with self._lock:
            return source_id in self._requests

    @property
    def pending_source_ids(self) -> list[str]:
        with self._lock:
            return list(self._requests)

    async def resolve(
        self, source_id: str, context: ResolverContext
    ) -> BreakpointPositionSet | None:
        """Return the breakpoint positions of ``source_id``, resolving them if needed.

        Returns None if the source is unknown or disappeared before the
        positions could be published.

        Raises:
            BpsitesError: If a collaborator failed; every concurrent caller
                for the same source receives the same error.
            ResolutionTimeoutError: If ``timeout_seconds`` is configured and
                elapsed. The resolution keeps running.
        """
        store = context.store
        if store.has_breakpoint_positions(source_id):
            return store.get_breakpoint_positions_for_source(source_id)

        with self._lock:
            task = self._requests.get(source_id)
            if task is None:
                task = asyncio.ensure_future(self._run(source_id, context))
                task.add_done_callback(_consume_task_error)
                self._requests[source_id] = task
            else:
                logger.debug("Joining in-flight resolution for %s", source_id)

        await self._wait(task, source_id)
        return store.get_breakpoint_positions_for_source(source_id)

    async def _run(self, source_id: str, context: ResolverContext) -> bool:
        try:
            return await set_breakpoint_positions(
                source_id, context, sort_lines=self.config.sort_lines
            )
        finally:
            with self._lock:
                self._requests.pop(source_id, None)

    async def _wait(self, task: asyncio.Task[bool], source_id: str) -> None:
        timeout = self.config.timeout_seconds
        if timeout is None:
            await _join(task)
            return
        try:
            await asyncio.wait_for(_join(task), timeout)
        except asyncio.TimeoutError as e:
            raise ResolutionTimeoutError(
                f"Timed out after {timeout}s waiting for breakpoint positions of {source_id}",
                timeout_seconds=timeout,
                source_id=source_id,
            ) from e


# Module-level singleton for convenience
_default_resolver: BreakpointPositionResolver | None = None


def get_resolver() -> BreakpointPositionResolver:
    """Get the process-wide BreakpointPositionResolver instance."""
    global _default_resolver  # noqa: PLW0603
    if _default_resolver is None:
        _default_resolver = BreakpointPositionResolver()
    return _default_resolver


async def resolve_breakpoint_positions(
    source_id: str, context: ResolverContext
) -> BreakpointPositionSet | None:
    """Resolve ``source_id`` through the process-wide resolver."""
    return await get_resolver().resolve(source_id, context)


__all__ = [
    "BreakpointPositionResolver",
    "get_resolver",
    "publish_positions",
    "resolve_breakpoint_positions",
    "set_breakpoint_positions",
]

"""Tests for BreakpointPositionResolver and the resolution pipeline."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from bpsites.config import ResolverConfig
from bpsites.core.breakpoint_positions import BreakpointPositionResolver
from bpsites.core.breakpoint_positions import get_resolver
from bpsites.core.breakpoint_positions import publish_positions
from bpsites.core.breakpoint_positions import resolve_breakpoint_positions
from bpsites.errors import ClientError
from bpsites.errors import ResolutionTimeoutError
from bpsites.errors import SourceMapError
from bpsites.errors import SourceNotFoundError
from bpsites.protocol.structures import UNBOUNDED
from bpsites.protocol.structures import MappedLocation
from bpsites.protocol.structures import Position
from bpsites.protocol.structures import Range
from bpsites.protocol.structures import Source
from bpsites.protocol.structures import SourceLocation
from bpsites.store.source_store import ADD_BREAKPOINT_POSITIONS
from tests.mocks import FakeClient
from tests.mocks import FakeSourceMaps
from tests.mocks import MappingSourceMaps
from tests.mocks import make_context


async def _let_tasks_run() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestCacheFirst:
    @pytest.mark.asyncio
    async def test_cached_positions_returned_without_collaborator_calls(self, generated_source):
        client = FakeClient({"g1": {1: [0]}})
        source_maps = FakeSourceMaps()
        context = make_context(generated_source, client=client, source_maps=source_maps)
        cached = [
            MappedLocation(
                SourceLocation("g1", 3, 1, generated_source.url),
                SourceLocation("g1", 3, 1, generated_source.url),
            )
        ]
        context.store.dispatch(
            {"type": ADD_BREAKPOINT_POSITIONS, "source": generated_source, "positions": cached}
        )

        result = await BreakpointPositionResolver().resolve("g1", context)

        assert result == cached
        assert client.calls == []
        assert source_maps.location_calls == []

    @pytest.mark.asyncio
    async def test_second_call_hits_cache(self, generated_source):
        client = FakeClient({"g1": {1: [0, 4]}})
        context = make_context(generated_source, client=client)
        resolver = BreakpointPositionResolver()

        first = await resolver.resolve("g1", context)
        second = await resolver.resolve("g1", context)

        assert first == second
        assert len(client.calls) == 1


class TestCoalescing:
    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_resolution(self, generated_source):
        client = FakeClient({"g1": {1: [0], 2: [3]}})
        client.gate = asyncio.Event()
        source_maps = FakeSourceMaps()
        context = make_context(generated_source, client=client, source_maps=source_maps)
        resolver = BreakpointPositionResolver()

        tasks = [asyncio.ensure_future(resolver.resolve("g1", context)) for _ in range(5)]
        await _let_tasks_run()
        assert resolver.is_pending("g1")
        assert resolver.pending_source_ids == ["g1"]

        client.gate.set()
        results = await asyncio.gather(*tasks)

        assert len(client.calls) == 1
        assert len(source_maps.location_calls) == 1
        assert all(r == results[0] for r in results)
        assert len(results[0]) == 2
        assert not resolver.is_pending("g1")

    @pytest.mark.asyncio
    async def test_different_sources_resolve_independently(self):
        a = Source(id="a", url="a.js")
        b = Source(id="b", url="b.js")
        client = FakeClient({"a": {1: [0]}, "b": {2: [0]}})
        context = make_context(a, b, client=client)
        resolver = BreakpointPositionResolver()

        ra, rb = await asyncio.gather(resolver.resolve("a", context), resolver.resolve("b", context))

        assert [p.generated_location.line for p in ra] == [1]
        assert [p.generated_location.line for p in rb] == [2]
        assert sorted(sid for sid, _ in client.calls) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_waiter_cancellation_does_not_cancel_resolution(self, generated_source):
        client = FakeClient({"g1": {1: [0]}})
        client.gate = asyncio.Event()
        context = make_context(generated_source, client=client)
        resolver = BreakpointPositionResolver()

        owner = asyncio.ensure_future(resolver.resolve("g1", context))
        waiter = asyncio.ensure_future(resolver.resolve("g1", context))
        await _let_tasks_run()
        waiter.cancel()
        await _let_tasks_run()

        client.gate.set()
        result = await owner

        assert waiter.cancelled()
        assert len(result) == 1

    def test_caller_on_another_loop_joins_in_flight_resolution(self, generated_source):
        client = FakeClient({"g1": {1: [0], 2: [3]}})
        context = make_context(generated_source, client=client)
        resolver = BreakpointPositionResolver()

        owner_loop = asyncio.new_event_loop()
        thread = threading.Thread(target=owner_loop.run_forever, daemon=True)
        thread.start()
        try:

            async def make_gate():
                client.gate = asyncio.Event()

            asyncio.run_coroutine_threadsafe(make_gate(), owner_loop).result(timeout=5)
            owner = asyncio.run_coroutine_threadsafe(resolver.resolve("g1", context), owner_loop)

            deadline = time.monotonic() + 5
            while not client.calls and time.monotonic() < deadline:
                time.sleep(0.01)
            assert resolver.is_pending("g1")

            async def join_from_this_loop():
                joiner = asyncio.ensure_future(resolver.resolve("g1", context))
                await asyncio.sleep(0.05)
                owner_loop.call_soon_threadsafe(client.gate.set)
                return await joiner

            joined = asyncio.run(join_from_this_loop())
            owned = owner.result(timeout=5)
        finally:
            owner_loop.call_soon_threadsafe(owner_loop.stop)
            thread.join(timeout=5)
            owner_loop.close()

        assert len(client.calls) == 1
        assert joined == owned
        assert len(joined) == 2
        assert not resolver.is_pending("g1")


class TestFailure:
    @pytest.mark.asyncio
    async def test_failure_clears_registration_and_allows_retry(self, generated_source):
        client = FakeClient({"g1": {1: [0]}})
        client.error = ConnectionError("lost connection")
        context = make_context(generated_source, client=client)
        resolver = BreakpointPositionResolver()

        with pytest.raises(ClientError):
            await resolver.resolve("g1", context)

        assert not resolver.is_pending("g1")
        assert not context.store.has_breakpoint_positions("g1")

        client.error = None
        result = await resolver.resolve("g1", context)

        assert len(client.calls) == 2
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_all_waiters_see_the_same_failure(self, generated_source):
        client = FakeClient({"g1": {1: [0]}})
        client.gate = asyncio.Event()
        source_maps = FakeSourceMaps()
        source_maps.error = RuntimeError("bad map")
        context = make_context(generated_source, client=client, source_maps=source_maps)
        resolver = BreakpointPositionResolver()

        tasks = [asyncio.ensure_future(resolver.resolve("g1", context)) for _ in range(3)]
        await _let_tasks_run()
        client.gate.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, SourceMapError) for r in results)
        assert results[0] is results[1] is results[2]
        assert len(client.calls) == 1
        assert not context.store.has_breakpoint_positions("g1")

    @pytest.mark.asyncio
    async def test_missing_generated_source_fails(self, original_source):
        source_maps = FakeSourceMaps(
            ranges={original_source.id: [Range(Position(0, 0), Position(1, 0))]}
        )
        context = make_context(original_source, source_maps=source_maps)

        with pytest.raises(SourceNotFoundError) as exc_info:
            await BreakpointPositionResolver().resolve(original_source.id, context)

        assert exc_info.value.source_id == "g1"


class TestTimeout:
    @pytest.mark.asyncio
    async def test_waiter_times_out_but_resolution_completes(self, generated_source):
        client = FakeClient({"g1": {1: [0]}})
        client.gate = asyncio.Event()
        context = make_context(generated_source, client=client)
        resolver = BreakpointPositionResolver(ResolverConfig(timeout_seconds=0.01))

        with pytest.raises(ResolutionTimeoutError) as exc_info:
            await resolver.resolve("g1", context)

        assert exc_info.value.timeout_seconds == 0.01
        assert resolver.is_pending("g1")

        client.gate.set()
        await _let_tasks_run()

        assert not resolver.is_pending("g1")
        assert context.store.has_breakpoint_positions("g1")


class TestUnknownAndStaleSources:
    @pytest.mark.asyncio
    async def test_unknown_source_returns_none(self):
        client = FakeClient()
        context = make_context(client=client)
        resolver = BreakpointPositionResolver()

        assert await resolver.resolve("missing", context) is None
        assert client.calls == []
        assert not resolver.is_pending("missing")

    @pytest.mark.asyncio
    async def test_source_removed_before_publish_is_a_no_op(self, generated_source):
        client = FakeClient({"g1": {1: [0]}})
        client.gate = asyncio.Event()
        context = make_context(generated_source, client=client)
        actions = []
        context.store.on_change.add_listener(actions.append)
        resolver = BreakpointPositionResolver()

        task = asyncio.ensure_future(resolver.resolve("g1", context))
        await _let_tasks_run()
        context.store.navigate()
        actions.clear()
        client.gate.set()

        assert await task is None
        assert actions == []
        assert not resolver.is_pending("g1")


class TestPublishPositions:
    def test_publishes_single_action(self, generated_source):
        context = make_context(generated_source)
        actions = []
        context.store.on_change.add_listener(actions.append)
        positions = [MappedLocation(None, SourceLocation("g1", 1, 0))]

        assert publish_positions(context.store, "g1", positions) is True

        assert actions == [
            {"type": ADD_BREAKPOINT_POSITIONS, "source": generated_source, "positions": positions}
        ]
        assert context.store.get_breakpoint_positions_for_source("g1") == positions

    def test_absent_source_writes_nothing(self):
        context = make_context()
        actions = []
        context.store.on_change.add_listener(actions.append)

        assert publish_positions(context.store, "gone", []) is False
        assert actions == []


class TestGeneratedSourcePath:
    @pytest.mark.asyncio
    async def test_single_unranged_fetch(self, generated_source):
        client = FakeClient({"g1": {2: [4], 1: [0]}})
        source_maps = FakeSourceMaps()
        context = make_context(generated_source, client=client, source_maps=source_maps)

        result = await BreakpointPositionResolver().resolve("g1", context)

        assert client.calls == [("g1", None)]
        assert source_maps.range_calls == []
        assert [(p.location.line, p.location.column) for p in result] == [(1, 0), (2, 4)]


class TestOriginalSourcePath:
    @pytest.mark.asyncio
    async def test_end_to_end(self):
        original = Source(id="G1/originalSource-1", url="foo.src", is_original=True)
        generated = Source(id="G1", url="bundle.js")
        client = FakeClient(range_tables={"G1": [{10: [2, 5], 11: [0]}]})
        mappings = {
            "G1:10:2": SourceLocation(original.id, 7, 0, "foo.src"),
            "G1:10:5": SourceLocation(original.id, 7, 1, "foo.src"),
            "G1:11:0": SourceLocation(original.id, 7, 2, "foo.src"),
        }
        source_maps = MappingSourceMaps(
            mappings,
            ranges={original.id: [Range(Position(10, 0), Position(12, 0))]},
        )
        context = make_context(original, generated, client=client, source_maps=source_maps)

        result = await resolve_breakpoint_positions(original.id, context)

        assert source_maps.range_calls == [(original.id, "foo.src", True)]
        assert client.calls == [("G1", Range(Position(10, 0), Position(12, 0)))]
        assert len(source_maps.location_calls) == 1
        assert len(source_maps.location_calls[0]) == 3
        assert len(result) == 3
        assert [p.location.column for p in result] == [0, 1, 2]
        assert all(p.location.line == 7 for p in result)
        assert [(p.generated_location.line, p.generated_location.column) for p in result] == [
            (10, 2),
            (10, 5),
            (11, 0),
        ]
        assert all(p.generated_location.source_id == "G1" for p in result)
        assert context.store.get_breakpoint_positions_for_source(original.id) == result
        assert get_resolver().pending_source_ids == []

    @pytest.mark.asyncio
    async def test_ranges_normalized_and_merged(self, original_source):
        generated = Source(id="g1", url="bundle.js")
        client = FakeClient(range_tables={"g1": [{1: [0, 4]}, {1: [4], 3: [2]}]})
        source_maps = FakeSourceMaps(
            translate=lambda loc: SourceLocation(original_source.id, 0, loc.column, "foo.src"),
            ranges={
                original_source.id: [
                    Range(Position(0, 0), Position(1, UNBOUNDED)),
                    Range(Position(1, 4), Position(3, 8)),
                ]
            },
        )
        context = make_context(original_source, generated, client=client, source_maps=source_maps)

        result = await BreakpointPositionResolver().resolve(original_source.id, context)

        assert [r for _, r in client.calls] == [
            Range(Position(0, 0), Position(2, 0)),
            Range(Position(1, 4), Position(3, 8)),
        ]
        # The raw merge keeps both copies of column 4.
        assert len(source_maps.location_calls[0]) == 4
        # Dedup on original location collapses them and keeps the first.
        assert [p.location.column for p in result] == [0, 4, 2]
        assert [p.generated_location.line for p in result] == [1, 1, 3]

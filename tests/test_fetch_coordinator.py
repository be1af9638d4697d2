"""
Tests for the fetch coordinator.

Tests cover:
- staleness: only the latest issued generation is applied
- debounce and minimum-interval suppression
- failure, cancellation and subscription
"""

import asyncio

import pytest

from pimattr.core.errors import TransportError
from pimattr.core.fetch.coordinator import ChannelState, FetchCoordinator, FetchStatus


class RecordingIssuer:
    """Fake query function: records params, optionally blocks or fails per params."""

    def __init__(self):
        self.calls = []
        self.gates = {}
        self.failing = set()

    async def __call__(self, params):
        self.calls.append(params)
        gate = self.gates.get(params)
        if gate is not None:
            await gate.wait()
        if params in self.failing:
            raise ConnectionError(f"lost connection while fetching {params}")
        return f"result:{params}"


def _coordinator(issue, clock, *, debounce=0.0, min_interval=1.0):
    return FetchCoordinator(
        issue,
        debounce_seconds=debounce,
        min_interval_seconds=min_interval,
        operation="list_attributes",
        clock=clock,
    )


def test_late_response_of_older_request_is_discarded(clock):
    async def scenario():
        issue = RecordingIssuer()
        issue.gates["slow"] = asyncio.Event()
        issue.gates["fast"] = asyncio.Event()
        coordinator = _coordinator(issue, clock)

        first = asyncio.create_task(coordinator.run("pool", "slow"))
        await asyncio.sleep(0)
        clock.advance(1.5)
        second = asyncio.create_task(coordinator.run("pool", "fast"))
        await asyncio.sleep(0)

        issue.gates["fast"].set()
        fast_outcome = await second
        issue.gates["slow"].set()
        slow_outcome = await first
        return coordinator, issue, slow_outcome, fast_outcome

    coordinator, issue, slow_outcome, fast_outcome = asyncio.run(scenario())

    assert issue.calls == ["slow", "fast"]
    assert fast_outcome.status == FetchStatus.APPLIED
    assert fast_outcome.data == "result:fast"
    assert slow_outcome.status == FetchStatus.SUPERSEDED
    assert slow_outcome.data is None

    state = coordinator.snapshot("pool")
    assert state.data == "result:fast"
    assert state.generation == 2
    assert state.state == ChannelState.IDLE
    assert not state.loading


def test_rapid_schedules_are_debounced_to_the_last(clock):
    async def scenario():
        issue = RecordingIssuer()
        coordinator = _coordinator(issue, clock, debounce=0.01)
        coordinator.schedule("list", "a")
        coordinator.schedule("list", "b")
        await coordinator.wait("list")
        return coordinator, issue

    coordinator, issue = asyncio.run(scenario())

    assert issue.calls == ["b"]
    assert coordinator.snapshot("list").data == "result:b"


def test_schedule_within_min_interval_is_dropped(clock):
    async def scenario():
        issue = RecordingIssuer()
        coordinator = _coordinator(issue, clock)
        coordinator.schedule("list", "a")
        await coordinator.wait("list")

        clock.advance(0.5)
        coordinator.schedule("list", "b")
        await coordinator.wait("list")
        dropped_state = coordinator.snapshot("list")

        clock.advance(1.0)
        coordinator.schedule("list", "c")
        await coordinator.wait("list")
        return coordinator, issue, dropped_state

    coordinator, issue, dropped_state = asyncio.run(scenario())

    assert dropped_state.data == "result:a"
    assert dropped_state.state == ChannelState.IDLE
    assert issue.calls == ["a", "c"]
    assert coordinator.snapshot("list").data == "result:c"


def test_dropped_run_coalesces_onto_same_in_flight_request(clock):
    async def scenario():
        issue = RecordingIssuer()
        issue.gates["a"] = asyncio.Event()
        coordinator = _coordinator(issue, clock)

        first = asyncio.create_task(coordinator.run("pool", "a"))
        await asyncio.sleep(0)
        second = asyncio.create_task(coordinator.run("pool", "a"))
        await asyncio.sleep(0)
        issue.gates["a"].set()
        return issue, await asyncio.gather(first, second)

    issue, (first, second) = asyncio.run(scenario())

    assert issue.calls == ["a"]
    assert first.status == second.status == FetchStatus.APPLIED
    assert second.data == "result:a"
    assert second.params == "a"


def test_dropped_run_with_other_params_is_not_answered_by_in_flight_request(clock):
    async def scenario():
        issue = RecordingIssuer()
        issue.gates["a"] = asyncio.Event()
        coordinator = _coordinator(issue, clock)

        first = asyncio.create_task(coordinator.run("pool", "a"))
        await asyncio.sleep(0)
        second = await coordinator.run("pool", "b")
        issue.gates["a"].set()
        return issue, await first, second

    issue, first, second = asyncio.run(scenario())

    assert issue.calls == ["a"]
    assert first.status == FetchStatus.APPLIED
    assert first.params == "a"
    assert second.status == FetchStatus.DROPPED
    assert second.params == "b"
    assert second.data is None


def test_dropped_run_without_in_flight_request(clock):
    async def scenario():
        issue = RecordingIssuer()
        coordinator = _coordinator(issue, clock)
        applied = await coordinator.run("pool", "a")
        dropped = await coordinator.run("pool", "b")
        return coordinator, issue, applied, dropped

    coordinator, issue, applied, dropped = asyncio.run(scenario())

    assert applied.applied
    assert dropped.status == FetchStatus.DROPPED
    assert issue.calls == ["a"]
    assert coordinator.snapshot("pool").data == "result:a"


def test_failure_is_wrapped_and_channel_recovers(clock):
    async def scenario():
        issue = RecordingIssuer()
        issue.failing.add("a")
        coordinator = _coordinator(issue, clock)
        failed = await coordinator.run("pool", "a")
        failed_state = coordinator.snapshot("pool")
        clock.advance(2)
        recovered = await coordinator.run("pool", "b")
        return coordinator, failed, failed_state, recovered

    coordinator, failed, failed_state, recovered = asyncio.run(scenario())

    assert failed.status == FetchStatus.FAILED
    assert isinstance(failed.error, TransportError)
    assert failed.error.channel == "pool"
    assert failed.error.operation == "list_attributes"
    assert isinstance(failed.error.cause, ConnectionError)
    assert failed_state.error is failed.error
    assert failed_state.state == ChannelState.IDLE

    assert recovered.status == FetchStatus.APPLIED
    assert coordinator.snapshot("pool").error is None


def test_transport_error_gets_channel_context(clock):
    async def issue(params):
        raise TransportError("list_attributes", cause=TimeoutError("slow upstream"))

    async def scenario():
        coordinator = _coordinator(issue, clock)
        return await coordinator.run("options-pool", "q")

    outcome = asyncio.run(scenario())

    assert outcome.error.channel == "options-pool"
    assert isinstance(outcome.error.cause, TimeoutError)


def test_cancel_supersedes_in_flight_response(clock):
    async def scenario():
        issue = RecordingIssuer()
        issue.gates["a"] = asyncio.Event()
        coordinator = _coordinator(issue, clock)
        task = asyncio.create_task(coordinator.run("pool", "a"))
        await asyncio.sleep(0)
        coordinator.cancel("pool")
        issue.gates["a"].set()
        return coordinator, await task

    coordinator, outcome = asyncio.run(scenario())

    assert outcome.status == FetchStatus.SUPERSEDED
    assert coordinator.snapshot("pool").data is None
    assert coordinator.snapshot("pool").state == ChannelState.IDLE


def test_close_cancels_pending_timers(clock):
    async def scenario():
        issue = RecordingIssuer()
        coordinator = _coordinator(issue, clock, debounce=0.05)
        coordinator.schedule("list", "a")
        coordinator.close()
        await asyncio.sleep(0.1)
        with pytest.raises(RuntimeError):
            coordinator.schedule("list", "b")
        return coordinator, issue

    coordinator, issue = asyncio.run(scenario())

    assert issue.calls == []
    assert coordinator.closed


def test_snapshot_reports_scheduled_state(clock):
    async def scenario():
        coordinator = _coordinator(RecordingIssuer(), clock, debounce=0.05)
        coordinator.schedule("list", "a")
        scheduled = coordinator.snapshot("list")
        await coordinator.wait("list")
        return scheduled, coordinator.snapshot("list")

    scheduled, settled = asyncio.run(scenario())

    assert scheduled.state == ChannelState.SCHEDULED
    assert scheduled.loading
    assert settled.state == ChannelState.IDLE
    assert settled.data == "result:a"


def test_subscribers_see_applied_outcomes(clock):
    seen = []

    async def scenario():
        coordinator = _coordinator(RecordingIssuer(), clock)
        unsubscribe = coordinator.subscribe("pool", seen.append)
        await coordinator.run("pool", "a")
        unsubscribe()
        clock.advance(2)
        await coordinator.run("pool", "b")

    asyncio.run(scenario())

    assert [outcome.data for outcome in seen] == ["result:a"]


def test_channels_are_independent(clock):
    async def scenario():
        issue = RecordingIssuer()
        coordinator = _coordinator(issue, clock)
        await coordinator.run("pool", "a")
        await coordinator.run("list", "b")
        return coordinator, issue

    coordinator, issue = asyncio.run(scenario())

    assert issue.calls == ["a", "b"]
    assert coordinator.snapshot("pool").data == "result:a"
    assert coordinator.snapshot("list").data == "result:b"

"""
Fetch Coordinator: request coalescing for incremental selectors.

Every logical query stream ("options pool", "attribute list page") is a
channel. Per channel:

    Idle -> Scheduled -> InFlight -> (Applied | Superseded | Failed) -> Idle

- schedule() debounces rapid parameter changes; only the last params survive.
- A request issued less than ``min_interval_seconds`` after the channel's
  previous *issued* request is dropped; the caller re-triggers on the next
  user action.
- Issued requests carry a per-channel generation. Only the response of the
  channel's current generation is applied; anything older is superseded and
  never touches visible state.
- cancel()/close() cancel pending timers and bump the generation so that any
  in-flight response is superseded.

Everything runs on one asyncio loop; the channel table is the only shared
state and is only touched from that loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from pimattr.core.errors import TransportError

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_MIN_INTERVAL_SECONDS = 1.0


class ChannelState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    IN_FLIGHT = "in_flight"


class FetchStatus(str, Enum):
    APPLIED = "applied"
    SUPERSEDED = "superseded"  # stale response discarded
    DROPPED = "dropped"  # suppressed by the minimum interval
    FAILED = "failed"


@dataclass(frozen=True)
class FetchRequest(Generic[P]):
    channel: str
    params: P
    generation: int
    issued_at: float


@dataclass(frozen=True)
class FetchOutcome(Generic[R]):
    channel: str
    status: FetchStatus
    generation: int
    params: Any = None
    data: Optional[R] = None
    error: Optional[TransportError] = None

    @property
    def applied(self) -> bool:
        return self.status == FetchStatus.APPLIED


@dataclass(frozen=True)
class QueryState(Generic[R]):
    """Visible state of a channel, the shape list/selector components bind to."""

    data: Optional[R]
    loading: bool
    error: Optional[TransportError]
    generation: int
    state: ChannelState


Listener = Callable[[FetchOutcome], None]


@dataclass
class _Channel:
    name: str
    state: ChannelState = ChannelState.IDLE
    pending_params: Any = None
    timer: Optional[asyncio.Task] = None
    generation: int = 0
    last_issued_at: Optional[float] = None
    in_flight: Dict[int, asyncio.Task] = field(default_factory=dict)
    requests: Dict[int, FetchRequest] = field(default_factory=dict)
    data: Any = None
    error: Optional[TransportError] = None
    listeners: List[Listener] = field(default_factory=list)

    def timer_pending(self) -> bool:
        return self.timer is not None and not self.timer.done()


class FetchCoordinator(Generic[P, R]):
    """Debounces, rate-limits and orders queries issued through ``issue``."""

    def __init__(
        self,
        issue: Callable[[P], Awaitable[R]],
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        operation: str = "query",
        clock: Callable[[], float] = time.monotonic,
    ):
        self._issue = issue
        self.debounce_seconds = debounce_seconds
        self.min_interval_seconds = min_interval_seconds
        self.operation = operation
        self._clock = clock
        self._channels: Dict[str, _Channel] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def schedule(self, channel: str, params: P) -> None:
        """Debounce ``params`` on ``channel``; replaces any pending request."""
        ch = self._open_channel(channel)
        self._cancel_timer(ch)
        ch.pending_params = params
        ch.timer = asyncio.get_running_loop().create_task(self._fire_after_delay(ch))
        ch.state = ChannelState.SCHEDULED
        logger.debug("Scheduled %s on channel %s", params, channel)

    async def run(self, channel: str, params: P) -> FetchOutcome[R]:
        """Issue ``params`` now (no debounce) and wait for its outcome.

        When the minimum interval suppresses the request, the outcome of the
        request already in flight is returned if it carries the same params;
        otherwise the outcome is DROPPED and the caller re-triggers later.
        """
        ch = self._open_channel(channel)
        self._cancel_timer(ch)
        ch.pending_params = None
        task = self._start(ch, params)
        if task is None:
            latest = self._latest_in_flight(ch)
            if latest is not None and latest[0].params == params:
                return await asyncio.shield(latest[1])
            return FetchOutcome(channel=channel, status=FetchStatus.DROPPED, generation=ch.generation, params=params)
        return await asyncio.shield(task)

    async def wait(self, channel: str) -> None:
        """Wait until the channel has no pending timer and nothing in flight."""
        ch = self._channels.get(channel)
        if ch is None:
            return
        while ch.timer_pending() or ch.in_flight:
            pending: List[asyncio.Task] = list(ch.in_flight.values())
            if ch.timer_pending():
                pending.append(ch.timer)
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel(self, channel: str) -> None:
        """Cancel the pending timer and supersede anything in flight."""
        ch = self._channels.get(channel)
        if ch is None:
            return
        self._cancel_timer(ch)
        ch.pending_params = None
        if ch.in_flight:
            ch.generation += 1
            logger.debug("Channel %s cancelled; %d in-flight response(s) superseded", channel, len(ch.in_flight))
        self._settle(ch)

    def close(self) -> None:
        for name in list(self._channels):
            self.cancel(name)
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self, channel: str) -> QueryState[R]:
        ch = self._channels.get(channel) or _Channel(name=channel)
        return QueryState(
            data=ch.data,
            loading=bool(ch.in_flight) or ch.timer_pending(),
            error=ch.error,
            generation=ch.generation,
            state=ch.state,
        )

    def subscribe(self, channel: str, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` on every applied or failed outcome of ``channel``."""
        ch = self._channel(channel)
        ch.listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in ch.listeners:
                ch.listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _channel(self, channel: str) -> _Channel:
        ch = self._channels.get(channel)
        if ch is None:
            ch = self._channels[channel] = _Channel(name=channel)
        return ch

    def _open_channel(self, channel: str) -> _Channel:
        if self._closed:
            raise RuntimeError("FetchCoordinator is closed")
        return self._channel(channel)

    @staticmethod
    def _cancel_timer(ch: _Channel) -> None:
        if ch.timer_pending():
            ch.timer.cancel()
        ch.timer = None

    async def _fire_after_delay(self, ch: _Channel) -> None:
        await asyncio.sleep(self.debounce_seconds)
        params, ch.pending_params = ch.pending_params, None
        ch.timer = None
        self._start(ch, params)

    def _start(self, ch: _Channel, params: P) -> Optional[asyncio.Task]:
        now = self._clock()
        if ch.last_issued_at is not None and now - ch.last_issued_at < self.min_interval_seconds:
            logger.debug(
                "Dropped %s on channel %s: %.3fs since last request (minimum %.3fs)",
                params,
                ch.name,
                now - ch.last_issued_at,
                self.min_interval_seconds,
            )
            self._settle(ch)
            return None

        ch.generation += 1
        ch.last_issued_at = now
        request = FetchRequest(channel=ch.name, params=params, generation=ch.generation, issued_at=now)
        task = asyncio.get_running_loop().create_task(self._execute(ch, request))
        ch.in_flight[request.generation] = task
        ch.requests[request.generation] = request
        ch.state = ChannelState.IN_FLIGHT
        logger.debug("Issued %s on channel %s (generation %d)", params, ch.name, request.generation)
        return task

    def _latest_in_flight(self, ch: _Channel) -> Optional[Tuple[FetchRequest, asyncio.Task]]:
        if not ch.in_flight:
            return None
        generation = max(ch.in_flight)
        return ch.requests[generation], ch.in_flight[generation]

    @staticmethod
    def _land(ch: _Channel, generation: int) -> None:
        ch.in_flight.pop(generation, None)
        ch.requests.pop(generation, None)

    async def _execute(self, ch: _Channel, request: FetchRequest[P]) -> FetchOutcome[R]:
        try:
            data = await self._issue(request.params)
        except asyncio.CancelledError:
            self._land(ch, request.generation)
            self._settle(ch)
            raise
        except TransportError as exc:
            error = exc if exc.channel else TransportError(exc.operation, channel=ch.name, cause=exc.cause or exc)
            outcome = self._complete(ch, request, error=error)
        except Exception as exc:
            error = TransportError(self.operation, channel=ch.name, cause=exc)
            outcome = self._complete(ch, request, error=error)
        else:
            outcome = self._complete(ch, request, data=data)
        return outcome

    def _complete(
        self,
        ch: _Channel,
        request: FetchRequest[P],
        *,
        data: Optional[R] = None,
        error: Optional[TransportError] = None,
    ) -> FetchOutcome[R]:
        self._land(ch, request.generation)
        if request.generation != ch.generation:
            logger.debug(
                "Discarded stale response on channel %s (generation %d, current %d)",
                ch.name,
                request.generation,
                ch.generation,
            )
            self._settle(ch)
            return FetchOutcome(
                channel=ch.name,
                status=FetchStatus.SUPERSEDED,
                generation=request.generation,
                params=request.params,
            )

        if error is not None:
            logger.warning("Request on channel %s failed: %s", ch.name, error)
            ch.error = error
            outcome = FetchOutcome(
                channel=ch.name,
                status=FetchStatus.FAILED,
                generation=request.generation,
                params=request.params,
                error=error,
            )
        else:
            ch.data = data
            ch.error = None
            outcome = FetchOutcome(
                channel=ch.name,
                status=FetchStatus.APPLIED,
                generation=request.generation,
                params=request.params,
                data=data,
            )
        self._settle(ch)
        self._notify(ch, outcome)
        return outcome

    @staticmethod
    def _settle(ch: _Channel) -> None:
        if ch.in_flight:
            ch.state = ChannelState.IN_FLIGHT
        elif ch.timer_pending():
            ch.state = ChannelState.SCHEDULED
        else:
            ch.state = ChannelState.IDLE

    @staticmethod
    def _notify(ch: _Channel, outcome: FetchOutcome) -> None:
        for listener in list(ch.listeners):
            listener(outcome)


__all__ = [
    "ChannelState",
    "FetchStatus",
    "FetchRequest",
    "FetchOutcome",
    "QueryState",
    "FetchCoordinator",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_MIN_INTERVAL_SECONDS",
]

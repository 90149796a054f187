"""
Per-widget fetch lifecycle.

Each widget owns one FetchLifecycleManager, which moves through
Idle -> Loading -> Ready | Failed. Every configure/refetch starts a new
generation. A completion is applied only if its generation is still the
current one, so a slow stale request can never overwrite a newer result or
touch a closed widget. Cancellation also signals the transport, but the
generation check is what guarantees correctness.

Everything here runs on the event loop thread. The only suspension point is
awaiting the transport.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
import logging
from typing import Any, Callable

from .errors import DashboardError, MissingEndpoint
from .paths import JSONValue, NOT_FOUND
from .transport import CancelToken, RequestsTransport, Transport
from .widgets import adapt

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchState:
    phase: Phase = Phase.IDLE
    data: Any = None
    error: DashboardError | None = None
    last_updated_at: datetime | None = None
    generation: int = 0

    @property
    def loading(self) -> bool:
        return self.phase is Phase.LOADING

    @property
    def ready(self) -> bool:
        return self.phase is Phase.READY

    @property
    def failed(self) -> bool:
        return self.phase is Phase.FAILED

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None


Listener = Callable[[FetchState], None]


def _now() -> datetime:
    return datetime.now().astimezone()


class FetchLifecycleManager:
    def __init__(
        self,
        widget_type: str,
        fields: list[str] | tuple[str, ...],
        *,
        seed: JSONValue = None,
        transport: Transport | None = None,
        refresh_interval: int = 0,
        clock: Callable[[], datetime] = _now,
        name: str = "widget",
    ):
        self.name = name
        self._widget_type = widget_type
        self._fields = list(fields)
        self._seed = seed
        self._transport = transport or RequestsTransport()
        self._refresh_interval = refresh_interval
        self._clock = clock

        self._endpoint: str | None = None
        self._auth_key: str | None = None
        self._generation = 0
        self._state = FetchState()
        self._raw: JSONValue = NOT_FOUND
        self._fetched_at: datetime | None = None
        # whether the most recent request failed, as opposed to the adapter
        self._fetch_failed = False
        self._token: CancelToken | None = None
        self._tasks: set[asyncio.Task] = set()
        self._timer: asyncio.Task | None = None
        self._listeners: list[Listener] = []
        self._waiters: list[asyncio.Future] = []
        self._closed = False

    # -- observable surface ------------------------------------------------

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def data(self) -> Any:
        return self._state.data

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> DashboardError | None:
        return self._state.error

    @property
    def last_updated_at(self) -> datetime | None:
        return self._state.last_updated_at

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait(self) -> FetchState:
        """Return the current state once it is no longer Loading."""
        if not self._state.loading or self._closed:
            return self._state
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        return await fut

    # -- transitions -------------------------------------------------------

    def configure(self, endpoint: str | None, auth_key: str | None = None) -> None:
        """Point the widget at ``endpoint`` and start a new cycle.

        The first cycle of a fresh instance settles from the seed response,
        when there is one, without touching the network.
        """
        if self._closed:
            return
        self._endpoint = endpoint or None
        self._auth_key = auth_key or None

        if self._state.phase is Phase.IDLE and self._generation == 0 and self._seed is not None:
            self._consume_seed()
        else:
            self._start_fetch()
        self._restart_timer()

    def refetch(self) -> None:
        if self._closed:
            return
        self._start_fetch()

    def cancel(self) -> None:
        """Abandon the in-flight request, if any, and stop periodic refresh.

        A late result is discarded. The next configure() starts the timer again.
        """
        self._stop_timer()
        if self._token is None:
            return
        self._abort()
        self._generation += 1
        if self._state.loading:
            self._set(replace(self._state, phase=Phase.IDLE, generation=self._generation))

    def close(self) -> None:
        if self._closed:
            return
        self.cancel()
        self._closed = True
        self._listeners.clear()
        self._release_waiters()

    def set_fields(self, widget_type: str, fields: list[str] | tuple[str, ...]) -> None:
        """Change what is extracted; re-adapts the last payload without refetching.

        Only a Ready widget, or one that failed in its adapter, can become
        Ready again this way. After a failed request the retained data is
        reshaped but the widget stays Failed with its error and timestamp.
        """
        self._widget_type = widget_type
        self._fields = list(fields)
        if self._closed or self._state.loading or self._raw is NOT_FOUND:
            return
        if self._state.ready or (self._state.failed and not self._fetch_failed):
            self._settle(self._state.generation, self._raw)
        else:
            self._set(replace(self._state, data=self._retained()))

    def set_refresh_interval(self, seconds: int) -> None:
        self._refresh_interval = seconds
        if not self._closed and self._endpoint is not None:
            self._restart_timer()

    # -- internals ---------------------------------------------------------

    def _set(self, state: FetchState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        if not state.loading:
            self._release_waiters()

    def _release_waiters(self) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(self._state)

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _abort(self) -> None:
        token, self._token = self._token, None
        if token is not None:
            token.cancel()

    def _consume_seed(self) -> None:
        self._generation += 1
        seed, self._seed = self._seed, None
        logger.debug(f"{self.name}: first render from cached response, no request issued")
        self._raw = seed
        self._fetched_at = self._clock()
        self._settle(self._generation, seed)

    def _start_fetch(self) -> None:
        self._abort()
        self._generation += 1
        generation = self._generation
        if not self._endpoint:
            self._fetch_failed = True
            self._fail(generation, MissingEndpoint())
            return

        token = self._token = CancelToken()
        self._set(replace(self._state, phase=Phase.LOADING, error=None, generation=generation))
        task = asyncio.get_running_loop().create_task(
            self._run(generation, token, self._endpoint, self._auth_key)
        )
        # superseded tasks still run to completion and are then dropped
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, generation: int, token: CancelToken, endpoint: str, auth_key: str | None) -> None:
        try:
            payload = await self._transport.get_json(endpoint, auth_key, token)
        except Exception as e:
            if not self._is_current(generation):
                logger.debug(f"{self.name}: dropping failure of superseded fetch #{generation}")
                return
            self._token = None
            self._fetch_failed = True
            self._fail(generation, e if isinstance(e, DashboardError) else DashboardError(str(e)))
            return

        if not self._is_current(generation):
            logger.debug(f"{self.name}: dropping result of superseded fetch #{generation}")
            return
        self._token = None
        self._raw = payload
        self._fetched_at = self._clock()
        self._fetch_failed = False
        logger.info(f"{self.name}: fetched {endpoint}")
        self._settle(generation, payload)

    def _settle(self, generation: int, payload: JSONValue) -> None:
        try:
            data = adapt(self._widget_type, payload, self._fields)
        except DashboardError as e:
            self._fail(generation, e, keep_data=False)
            return
        except Exception as e:
            # a bad payload must only ever take down its own widget
            logger.exception(f"{self.name}: adapter crashed")
            self._fail(generation, DashboardError(str(e)), keep_data=False)
            return
        self._set(FetchState(
            phase=Phase.READY,
            data=data,
            error=None,
            last_updated_at=self._fetched_at,
            generation=generation,
        ))

    def _retained(self) -> Any:
        try:
            return adapt(self._widget_type, self._raw, self._fields)
        except Exception as e:
            logger.debug(f"{self.name}: retained data does not fit the new fields: {e}")
            return None

    def _fail(self, generation: int, error: DashboardError, keep_data: bool = True) -> None:
        # adapter failures drop the data, which may no longer match the widget type
        logger.warning(f"{self.name}: {error.message}")
        data = self._state.data if keep_data else None
        self._set(replace(self._state, phase=Phase.FAILED, data=data, error=error, generation=generation))

    def _restart_timer(self) -> None:
        self._stop_timer()
        if self._refresh_interval > 0:
            self._timer = asyncio.get_running_loop().create_task(self._tick(self._refresh_interval))

    def _stop_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    async def _tick(self, interval: int) -> None:
        while True:
            await asyncio.sleep(interval)
            logger.debug(f"{self.name}: refresh timer fired")
            self.refetch()

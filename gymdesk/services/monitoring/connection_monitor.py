"""
Connection Monitor - Decides whether the backing store is reachable.

Owns the single store client handle and publishes a four-state status plus the
result of the most recent connection test.

State machine:
- TESTING is the initial state and is entered whenever a test starts
- TESTING -> CONNECTED when a probe succeeds (an empty probe table counts)
- TESTING -> ERROR once every attempt of a test has failed
- DISCONNECTED only when no client could be built; it is terminal until
  initialize() is called again with a usable configuration

Probes are retried with linear backoff inside one test. Errors never escape to
callers: they end up in ConnectionTestResult.error.
"""

import asyncio
import time
from contextlib import suppress
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional

from supabase import Client

from gymdesk.core.constants import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PROBE_TABLE,
    DEFAULT_RETEST_INTERVAL,
    DEFAULT_RETRY_DELAY,
    EMPTY_RESOURCE_CODE,
    OFFLINE_ERROR,
    STORE_TIMEOUT,
)
from gymdesk.core.logger import logger
from gymdesk.core.settings import StoreSettings
from gymdesk.core.types import ConnectionState, ConnectionTestResult
from gymdesk.services.retry import linear_backoff, retry_async
from gymdesk.services.store_client import StoreGateway, create_store_client

PROBE_TIMEOUT = STORE_TIMEOUT  # seconds for a single probe

CANCELLED_ERROR = "Test cancelled"

Subscriber = Callable[[ConnectionState, ConnectionTestResult], None]


class TransientConnectivityError(Exception):
    """A probe failed for a reason worth retrying (network, timeout, service error)."""

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionMonitor:
    """
    Health checker for the store connection.

    Usage:
        monitor = ConnectionMonitor.from_settings(StoreSettings.from_env())
        monitor.initialize(settings.url, settings.key)
        async with monitor:          # immediate test, then every interval
            ...
    """

    def __init__(
        self,
        probe_table: str = DEFAULT_PROBE_TABLE,
        interval: float = DEFAULT_RETEST_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        probe_timeout: float = PROBE_TIMEOUT,
        client_factory: Callable[[str, str], Optional[Client]] = create_store_client,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            probe_table: Table read by the probe (select id ... limit 1)
            interval: Seconds between background re-tests
            max_attempts: Default attempt budget of one test
            retry_delay: Backoff unit; attempt n waits n * retry_delay
            probe_timeout: Seconds before a single probe counts as failed
            client_factory: Builds the store client from (url, key) or returns None
            sleep, now, monotonic: Time sources, injectable for tests
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must not be negative, got {retry_delay}")

        self._probe_table = probe_table
        self._interval = interval
        self._max_attempts = max_attempts
        self._backoff = linear_backoff(retry_delay)
        self._probe_timeout = probe_timeout
        self._client_factory = client_factory
        self._sleep = sleep
        self._now = now
        self._monotonic = monotonic

        self._client: Optional[Client] = None
        self._gateway = StoreGateway(None)

        self._state = ConnectionState.TESTING
        self._last_result = ConnectionTestResult(success=False)
        self._last_tested_at: Optional[float] = None
        self._subscribers: List[Subscriber] = []

        self._in_flight: Optional[asyncio.Task] = None
        self._loop_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: StoreSettings, **kwargs) -> "ConnectionMonitor":
        """Create a monitor tuned by StoreSettings (client is not built yet)."""
        return cls(
            probe_table=settings.probe_table,
            interval=settings.retest_interval,
            max_attempts=settings.max_attempts,
            retry_delay=settings.retry_delay,
            **kwargs,
        )

    # --- Client handle ---

    def initialize(self, url: str, key: str) -> Optional[Client]:
        """
        Build the store client. Never raises.

        Returns:
            The client, or None when URL/key are missing or malformed. In that
            case the monitor is DISCONNECTED and data access fails fast.
        """
        try:
            client = self._client_factory(url, key)
        except Exception as e:
            logger.error(f"[ConnectionMonitor] Client factory failed: {e}")
            client = None

        self._client = client
        self._gateway = StoreGateway(client)

        if client is None:
            logger.warning("[ConnectionMonitor] No store client, running in offline mode")
            self._publish(ConnectionState.DISCONNECTED)
            return None

        if self._state == ConnectionState.DISCONNECTED:
            # Reconfigured after an offline start: pending first test again
            self._publish(ConnectionState.TESTING)

        logger.info("[ConnectionMonitor] Store client initialized")
        return client

    @property
    def client(self) -> Optional[Client]:
        """Raw store client for CRUD performed elsewhere (None when offline)."""
        return self._client

    @property
    def gateway(self) -> StoreGateway:
        """Gateway bound to the current client; offline gateway without one."""
        return self._gateway

    @property
    def is_online(self) -> bool:
        return self._client is not None

    # --- Published surface ---

    def get_status(self) -> ConnectionState:
        return self._state

    def get_last_result(self) -> ConnectionTestResult:
        return self._last_result

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register callback(state, result), called after every published change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def _unsubscribe():
            with suppress(ValueError):
                self._subscribers.remove(callback)

        return _unsubscribe

    async def force_test(self) -> ConnectionTestResult:
        """Manual re-test (e.g. a "Test" button)."""
        return await self.test_connection()

    async def test_connection(self, max_attempts: Optional[int] = None) -> ConnectionTestResult:
        """
        Probe the store, retrying with linear backoff.

        While a test is in flight, further calls join it and return its result
        instead of starting an overlapping probe sequence.
        """
        if self._client is None:
            logger.debug("[ConnectionMonitor] Test skipped, no client (offline mode)")
            return ConnectionTestResult(success=False, error=OFFLINE_ERROR, timestamp=self._now())

        if self._in_flight is not None and not self._in_flight.done():
            logger.debug("[ConnectionMonitor] Test already in flight, joining it")
            return await self._await_test(self._in_flight)

        attempts = max_attempts if max_attempts is not None else self._max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")

        self._publish(ConnectionState.TESTING)
        self._in_flight = asyncio.ensure_future(self._run_test(attempts))
        return await self._await_test(self._in_flight)

    # --- Background loop ---

    def start(self) -> None:
        """Schedule the re-test loop on the running event loop (idempotent)."""
        if self._loop_task is not None and not self._loop_task.done():
            return

        if self._client is None:
            logger.warning("[ConnectionMonitor] Background checks disabled, no client")
            return

        self._loop_task = asyncio.get_running_loop().create_task(self._run_loop())
        logger.info(f"[ConnectionMonitor] Background checks started (every {self._interval}s)")

    async def stop(self) -> None:
        """
        Cancel the re-test loop and any test still in flight.

        Callers awaiting that test receive a failed "Test cancelled" result.
        """
        task, self._loop_task = self._loop_task, None
        for pending in (task, self._in_flight):
            if pending is not None and not pending.done():
                pending.cancel()
                with suppress(asyncio.CancelledError):
                    await pending
        if task is not None:
            logger.info("[ConnectionMonitor] Background checks stopped")

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def __aenter__(self) -> "ConnectionMonitor":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def is_due(self) -> bool:
        """True when no test finished within the last interval."""
        if self._last_tested_at is None:
            return True
        return self._monotonic() - self._last_tested_at >= self._interval

    async def _run_loop(self) -> None:
        await self._background_test()
        while True:
            await self._sleep(self._interval)

            if not self.is_due():
                logger.debug("[ConnectionMonitor] Recent manual test, skipping cycle")
                continue

            await self._background_test()

    async def _background_test(self) -> None:
        try:
            await self.test_connection()
        except Exception as e:
            logger.error(f"[ConnectionMonitor] Background test error: {e}")

    # --- Internals ---

    async def _await_test(self, task: asyncio.Task) -> ConnectionTestResult:
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                # This caller was cancelled, the test keeps running
                raise
            logger.debug("[ConnectionMonitor] In-flight test cancelled by stop()")
            return ConnectionTestResult(success=False, error=CANCELLED_ERROR, timestamp=self._now())

    async def _run_test(self, max_attempts: int) -> ConnectionTestResult:
        def _on_retry(attempt: int, error: Exception):
            logger.warning(f"[ConnectionMonitor] Probe attempt {attempt}/{max_attempts} failed: {error}")

        try:
            elapsed_ms = await retry_async(
                self._probe,
                max_attempts=max_attempts,
                backoff=self._backoff,
                sleep=self._sleep,
                on_retry=_on_retry,
            )
        except TransientConnectivityError as e:
            result = ConnectionTestResult(
                success=False,
                error=str(e) or type(e).__name__,
                timestamp=self._next_timestamp(),
            )
            logger.error(f"[ConnectionMonitor] Store unreachable after {max_attempts} attempts: {result.error}")
            self._record(ConnectionState.ERROR, result)
        else:
            result = ConnectionTestResult(
                success=True,
                timestamp=self._next_timestamp(),
                response_time_ms=elapsed_ms,
            )
            logger.info(f"[ConnectionMonitor] Store reachable ({elapsed_ms}ms)")
            self._record(ConnectionState.CONNECTED, result)

        return result

    async def _probe(self) -> int:
        """One bounded read of the probe table. Returns elapsed milliseconds."""
        started = self._monotonic()
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self._gateway.select, self._probe_table, "id", None, 1),
                timeout=self._probe_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientConnectivityError("timeout") from e
        except Exception as e:
            raise TransientConnectivityError(str(e) or type(e).__name__) from e

        elapsed_ms = int(round((self._monotonic() - started) * 1000))

        if result.ok:
            return elapsed_ms
        if result.code == EMPTY_RESOURCE_CODE:
            logger.debug(f"[ConnectionMonitor] Probe table '{self._probe_table}' is empty, store reachable")
            return elapsed_ms
        raise TransientConnectivityError(result.error)

    def _next_timestamp(self) -> datetime:
        """Wall-clock time, forced strictly past the previous result's timestamp."""
        timestamp = self._now()
        previous = self._last_result.timestamp
        if timestamp <= previous:
            timestamp = previous + timedelta(microseconds=1)
        return timestamp

    def _record(self, state: ConnectionState, result: ConnectionTestResult) -> None:
        self._last_tested_at = self._monotonic()
        self._last_result = result
        self._publish(state, changed=True)

    def _publish(self, state: ConnectionState, changed: bool = False) -> None:
        if state == self._state and not changed:
            return

        if state != self._state:
            logger.debug(f"[ConnectionMonitor] {self._state} -> {state}")
        self._state = state

        for callback in list(self._subscribers):
            try:
                callback(self._state, self._last_result)
            except Exception as e:
                logger.error(f"[ConnectionMonitor] Subscriber error: {e}")

"""
result_poller.py – wait for the asynchronous video result of one session.

One asyncio task per polling session. Every tick performs a single lookup and
folds the answer into the state machine:

    idle -> polling -> succeeded | failed | cancelled

Terminal outcomes are delivered exactly once through ``on_result`` or
``on_error``; nothing raises out of the poller once it is running. ``stop()``
bumps the run id before cancelling, so a lookup that resolves after the stop
is discarded instead of reaching a callback.
"""

import asyncio
import math
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from ugcvideo.models.video_schema import PollOutcome
from ugcvideo.services.errors import (
    PollingError,
    PollingTransportError,
    PollingTimeoutError,
    PollingExhaustedError,
)
from ugcvideo.utils.config import POLL_INTERVAL, POLL_INITIAL_DELAY, POLL_MAX_RETRIES, POLL_MAX_DURATION
from ugcvideo.utils.logger import get_logger, session_logger


logger = get_logger("result-poller")

Lookup = Callable[[str], Awaitable[PollOutcome]]
ResultCallback = Callable[[str, Any], None]
ErrorCallback = Callable[[str, PollingError], None]


class PollerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = {PollerState.SUCCEEDED, PollerState.FAILED, PollerState.CANCELLED}


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class ResultPoller:
    def __init__(
        self,
        lookup: Lookup,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        interval: float = POLL_INTERVAL,
        initial_delay: float = POLL_INITIAL_DELAY,
        max_retries: int = POLL_MAX_RETRIES,
        max_duration: Optional[float] = POLL_MAX_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._lookup = lookup
        self.on_result = on_result
        self.on_error = on_error
        self.interval = interval
        self.initial_delay = initial_delay
        self.max_retries = max_retries
        self.max_duration = max_duration
        self._clock = clock

        self.state = PollerState.IDLE
        self.session_id: Optional[str] = None
        self.retries = 0
        self.payload: Any = None
        self.error: Optional[PollingError] = None
        self._started_at: Optional[float] = None
        self._task: Optional[asyncio.Task] = None
        self._run_id = 0

    @property
    def is_polling(self) -> bool:
        return self.state is PollerState.POLLING

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def start(self, session_id: str) -> bool:
        """Begin polling for ``session_id``. Must be called from a running event loop."""
        if self.state is PollerState.POLLING:
            logger.warning("start(%s) rejected: already polling %s; stop() it first", session_id, self.session_id)
            return False
        if self.state in TERMINAL_STATES:
            logger.warning("start(%s) rejected: poller is %s; reset() it first", session_id, self.state.value)
            return False
        if not session_id:
            logger.warning("start() rejected: empty session id")
            return False

        loop = asyncio.get_running_loop()
        self._run_id += 1
        self.session_id = session_id
        self.state = PollerState.POLLING
        self.retries = 0
        self._started_at = self._clock()
        self._task = loop.create_task(self._run(self._run_id, session_id))
        session_logger(logger, session_id).info("Polling started (every %.1fs, max %s retries)", self.interval, self.max_retries)
        return True

    def stop(self) -> None:
        """Cancel an active session. Idempotent; a no-op once terminal."""
        if self.state is not PollerState.POLLING:
            return
        self.state = PollerState.CANCELLED
        self._run_id += 1
        task = self._task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        session_logger(logger, self.session_id).info("Polling cancelled")

    def reset(self) -> bool:
        if self.state is PollerState.POLLING:
            logger.warning("reset() rejected while polling %s; stop() it first", self.session_id)
            return False
        self.state = PollerState.IDLE
        self.session_id = None
        self.retries = 0
        self.payload = None
        self.error = None
        self._started_at = None
        self._task = None
        return True

    async def wait(self) -> PollerState:
        """Wait for the current polling task to finish and return the state."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait([task])
        return self.state

    def _remaining(self) -> float:
        if self.max_duration is None or self._started_at is None:
            return math.inf
        return self.max_duration - (self._clock() - self._started_at)

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id and self.state is PollerState.POLLING

    async def _run(self, run_id: int, session_id: str) -> None:
        log = session_logger(logger, session_id)
        try:
            if self.initial_delay > 0:
                await asyncio.sleep(min(self.initial_delay, max(self._remaining(), 0)))

            while self._is_current(run_id):
                remaining = self._remaining()
                if remaining <= 0:
                    self._fail(run_id, self._timeout_error())
                    return

                outcome: Optional[PollOutcome] = None
                error: Optional[BaseException] = None
                log.debug("Lookup (attempt after %d consecutive errors)", self.retries)
                try:
                    outcome = await asyncio.wait_for(
                        self._lookup(session_id),
                        timeout=None if math.isinf(remaining) else remaining,
                    )
                except asyncio.TimeoutError as e:
                    if self._remaining() <= 0:
                        if self._is_current(run_id):
                            self._fail(run_id, self._timeout_error())
                        return
                    error = e
                except Exception as e:  # noqa: BLE001
                    error = e
                else:
                    if not isinstance(outcome, PollOutcome):
                        error = PollingTransportError(f"Lookup returned {type(outcome).__name__}, not a PollOutcome")
                        outcome = None

                if not self._is_current(run_id):
                    log.debug("Discarding lookup result for stale run")
                    return

                if error is not None:
                    self.retries += 1
                    if not isinstance(error, PollingTransportError):
                        error = PollingTransportError(str(error) or error.__class__.__name__)
                    if self.retries >= self.max_retries:
                        self._fail(run_id, PollingExhaustedError(
                            f"Result lookup failed {self.retries} times in a row: {error}",
                            last_error=error,
                        ))
                        return
                    log.warning("Lookup error %d/%d: %s", self.retries, self.max_retries, error)
                elif outcome.status == "completed":
                    self._succeed(run_id, outcome.payload)
                    return
                elif outcome.status == "failed":
                    self._fail(run_id, PollingError(outcome.reason or "Workflow reported a failure"))
                    return
                else:
                    self.retries = 0

                await asyncio.sleep(max(0.0, min(self.interval, self._remaining())))
        except asyncio.CancelledError:
            log.debug("Polling task cancelled")
            raise

    def _timeout_error(self) -> PollingTimeoutError:
        return PollingTimeoutError(f"No result after {self.max_duration:.0f}s")

    def _succeed(self, run_id: int, payload: Any) -> None:
        if not self._is_current(run_id):
            return
        self.state = PollerState.SUCCEEDED
        self.payload = payload
        session_logger(logger, self.session_id).info("Result received")
        self._notify(self.on_result, payload)

    def _fail(self, run_id: int, error: PollingError) -> None:
        if not self._is_current(run_id):
            return
        self.state = PollerState.FAILED
        self.error = error
        session_logger(logger, self.session_id).error("Polling failed: %s", error.reason)
        self._notify(self.on_error, error)

    def _notify(self, callback: Optional[Callable[[str, Any], None]], value: Any) -> None:
        if callback is None:
            return
        try:
            callback(self.session_id, value)
        except Exception:  # noqa: BLE001
            logger.exception("Poller callback raised for session %s", self.session_id)

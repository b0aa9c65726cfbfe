"""
Completion Polling.

Some API operations finish on the server after the request returns (a
backup is created with complete = false). when_complete() wraps such a
resource in a PendingOperation that can block until the resource reaches a
terminal state, then run one continuation:

    when_complete(backup, timeout=0).then(lambda b: b.download(path)).wait()

State machine:
    PENDING → COMPLETE    predicate returned True
    PENDING → FAILED      predicate raised an ApplicationError (remote failure,
                          API or transport error)
    PENDING → TIMED_OUT   bounded timeout elapsed

Timeouts: 0 polls until a terminal state, None checks once without blocking.
> 0 bounds the wait in wall-clock time, including the time each check takes:
no sleep is started that would end past the bound, and at most
floor(timeout / interval) + 1 checks run. Polls are never closer together than
MIN_POLL_INTERVAL seconds. Polling runs on tenacity.Retrying.
"""

import math
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_before_delay,
    stop_never,
    wait_fixed,
)

from hostctl.core.exceptions import ApplicationError, ConfigurationError, OperationTimeoutError
from hostctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

MIN_POLL_INTERVAL = 1.0
DEFAULT_POLL_INTERVAL = 5.0


@runtime_checkable
class Completable(Protocol):
    """A resource whose server-side work finishes asynchronously."""

    def is_complete(self) -> bool:
        """Refresh and report whether the resource reached its terminal success state."""
        ...


class OperationState(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


def log_poll(retry_state: RetryCallState) -> None:
    """Tenacity before_sleep callback that records each unfinished poll."""
    log_with_source(
        logger,
        "cli",
        "debug",
        "Operation still pending",
        attempt=retry_state.attempt_number,
        elapsed_s=round(retry_state.seconds_since_start or 0, 1),
        next_poll_s=getattr(retry_state.next_action, "sleep", None),
    )


class PendingOperation:
    """
    Future-like handle on a resource that has not reached a terminal state.

    Usage:
        operation = PendingOperation(backup, timeout=0)
        backup = operation.wait()
    """

    def __init__(
        self,
        resource: Completable,
        timeout: float | None = 0,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if timeout is not None and timeout < 0:
            raise ConfigurationError(f"Timeout must be >= 0, got {timeout}")
        self.resource = resource
        self.timeout = timeout
        self.interval = max(float(interval), MIN_POLL_INTERVAL)
        self.state = OperationState.PENDING
        self.polls = 0
        self._sleep = sleep
        self._continuation: Callable[[Any], Any] | None = None
        self._result: Any = None
        self._error: BaseException | None = None

    def then(self, continuation: Callable[[Any], Any]) -> "PendingOperation":
        """
        Attach the continuation to run once the resource is complete.

        Its return value becomes the resolved value; returning None keeps
        the resource.

        Raises:
            ConfigurationError: If a continuation is already attached
        """
        if self._continuation is not None:
            raise ConfigurationError("A continuation is already attached to this operation")
        self._continuation = continuation
        return self

    def _poll(self) -> bool:
        self.polls += 1
        return bool(self.resource.is_complete())

    def _stop(self) -> Any:
        if self.timeout is None:
            return stop_after_attempt(1)
        if self.timeout == 0:
            return stop_never
        attempts = math.floor(self.timeout / self.interval) + 1
        return stop_after_attempt(attempts) | stop_before_delay(self.timeout)

    def _complete(self) -> Any:
        self.state = OperationState.COMPLETE
        result = self.resource
        if self._continuation is not None:
            value = self._continuation(self.resource)
            if value is not None:
                result = value
        self._result = result
        return result

    def wait(self) -> Any:
        """
        Block until the operation reaches a terminal state.

        Returns:
            The resource, or the continuation's result when one is attached.
            With timeout=None an unfinished resource is returned as is.

        Raises:
            OperationTimeoutError: The bounded timeout elapsed
            ApplicationError: The check failed; RemoteOperationError when the
                API reported the operation failed
        """
        if self.state is OperationState.COMPLETE:
            return self._result
        if self._error is not None:
            raise self._error

        retrying = Retrying(
            retry=retry_if_result(lambda complete: not complete),
            wait=wait_fixed(self.interval),
            stop=self._stop(),
            sleep=self._sleep,
            before_sleep=log_poll,
        )

        try:
            retrying(self._poll)
        except RetryError as e:
            if self.timeout is None:
                return self.resource
            self.state = OperationState.TIMED_OUT
            self._error = OperationTimeoutError(
                f"Operation did not complete within {self.timeout:g} seconds"
            )
            log_with_source(
                logger, "cli", "warning", "Operation timed out",
                timeout_s=self.timeout, polls=self.polls,
            )
            raise self._error from e
        except ApplicationError as e:
            self.state = OperationState.FAILED
            self._error = e
            log_with_source(logger, "cli", "error", "Operation failed", code=e.code, error=e.message)
            raise

        log_with_source(logger, "cli", "debug", "Operation complete", polls=self.polls)
        return self._complete()


def when_complete(
    resource: Completable,
    timeout: float | None = 0,
    interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> PendingOperation:
    """Wrap a resource in a PendingOperation."""
    return PendingOperation(resource, timeout=timeout, interval=interval, sleep=sleep)

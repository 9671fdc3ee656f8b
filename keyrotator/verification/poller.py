"""Bounded polling of asynchronous downstream work."""

import logging
import time
from enum import Enum
from typing import Any, Callable, Iterable, Optional, TypeVar

from keyrotator.utils.errors import VerificationError, VerificationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollState(Enum):
    """States of a verification poll."""

    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class JobPoller:
    """Locates a downstream job and waits for it to reach a terminal state.

    Both phases poll on the same fixed interval and each is limited to
    ``attempts`` calls. Explicit failure is reported at once and never retried.
    """

    def __init__(
        self,
        attempts: int = 60,
        interval: float = 5.0,
        success_statuses: Iterable[str] = ("success", "fixed"),
        failure_statuses: Iterable[str] = ("failed", "canceled", "infrastructure_fail", "timedout"),
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize poller.

        Args:
            attempts: Maximum number of calls per phase
            interval: Seconds to wait between calls
            success_statuses: Job statuses treated as success
            failure_statuses: Job statuses treated as explicit failure
            sleep: Sleep function, replaceable in tests
        """
        self.attempts = attempts
        self.interval = interval
        self.success_statuses = set(success_statuses)
        self.failure_statuses = set(failure_statuses)
        self.sleep = sleep
        self.state = PollState.POLLING

    def locate(self, find: Callable[[], Optional[T]], description: str = "job") -> T:
        """Call ``find`` until it returns a job reference."""
        self.state = PollState.POLLING
        for attempt in range(1, self.attempts + 1):
            job = find()
            if job is not None:
                return job
            if attempt < self.attempts:
                self.sleep(self.interval)

        self.state = PollState.TIMED_OUT
        raise VerificationTimeoutError(
            f"Unable to locate {description} after {self.attempts} attempts",
        )

    def wait_for(self, job: T, status: Callable[[T], str], description: str = "job") -> PollState:
        """Poll ``status(job)`` until success, failure or the attempt budget runs out."""
        self.state = PollState.POLLING
        logger.info("Polling for status of %s %s", description, job)
        for attempt in range(1, self.attempts + 1):
            current = status(job)
            if current in self.success_statuses:
                logger.info("Detected success of %s %s", description, job)
                self.state = PollState.SUCCEEDED
                return self.state
            if current in self.failure_statuses:
                self.state = PollState.FAILED
                raise VerificationError(f"{description} {job} has failed with status: {current}")
            if attempt < self.attempts:
                self.sleep(self.interval)

        self.state = PollState.TIMED_OUT
        raise VerificationTimeoutError(f"Unable to verify {description} {job} was a success")

    def verify(
        self,
        find: Callable[[], Optional[T]],
        status: Callable[[T], str],
        description: str = "job",
    ) -> PollState:
        """Locate the job, then wait for it to succeed."""
        job = self.locate(find, description)
        return self.wait_for(job, status, description)


def retry_with_backoff(
    operation: Callable[[], Any],
    initial_interval: float = 0.5,
    multiplier: float = 1.5,
    max_interval: float = 60.0,
    max_elapsed: float = 900.0,
    retry_on: tuple = (Exception,),
    sleep: Optional[Callable[[float], None]] = None,
    clock: Optional[Callable[[], float]] = None,
) -> Any:
    """
    Retry an idempotent operation with exponential backoff.

    Args:
        operation: Callable to retry
        initial_interval: First wait in seconds
        multiplier: Factor applied to the wait after each failure
        max_interval: Upper bound for a single wait
        max_elapsed: Wall-clock seconds after which the last error is raised
        retry_on: Exception types that trigger a retry
        sleep: Sleep function, defaults to time.sleep
        clock: Monotonic clock, defaults to time.monotonic

    Returns:
        Any: The operation's result
    """
    sleep = sleep or time.sleep
    clock = clock or time.monotonic
    start = clock()
    interval = initial_interval
    while True:
        try:
            return operation()
        except retry_on as e:
            elapsed = clock() - start
            if elapsed + interval > max_elapsed:
                raise
            logger.debug("Retrying in %.1fs after error: %s", interval, e)
            sleep(interval)
            interval = min(interval * multiplier, max_interval)

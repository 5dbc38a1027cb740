from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class PollPolicy:
    interval_seconds: float = 2.0
    timeout_seconds: float | None = 600.0
    backoff_factor: float = 1.0
    max_interval_seconds: float = 30.0

    def next_interval(self, current: float) -> float:
        return min(self.max_interval_seconds, current * max(1.0, self.backoff_factor))


@dataclass(slots=True)
class JobOutcome:
    state: JobState
    result: Mapping[str, object] | None
    attempts: int
    last_status: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.SUCCEEDED


class JobPoller:
    """Polls a remote job location until it reaches a terminal status.

    ``running`` and ``notStarted`` keep the loop going, ``succeeded`` returns
    the payload, any other status fails the job. When ``timeout_seconds`` is
    set the loop gives up once the deadline passes. Exceptions raised by
    ``fetch_status`` end the loop and propagate to the caller.
    """

    PENDING_STATUSES = frozenset({"running", "notStarted"})
    SUCCESS_STATUS = "succeeded"

    def __init__(
        self,
        policy: PollPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.policy = policy or PollPolicy()
        self._sleep = sleep
        self._clock = clock

    def await_job(
        self,
        location: str,
        fetch_status: Callable[[str], Mapping[str, object]],
    ) -> JobOutcome:
        deadline = None
        if self.policy.timeout_seconds is not None:
            deadline = self._clock() + self.policy.timeout_seconds
        interval = self.policy.interval_seconds
        attempts = 0

        while True:
            attempts += 1
            payload = fetch_status(location)
            status = str(payload.get("status")) if payload.get("status") is not None else None

            if status == self.SUCCESS_STATUS:
                logger.info("Remote job succeeded after %d poll(s)", attempts)
                return JobOutcome(state=JobState.SUCCEEDED, result=payload, attempts=attempts, last_status=status)
            if status not in self.PENDING_STATUSES:
                logger.error("Unexpected job status %r from %s: %s", status, location, payload)
                return JobOutcome(state=JobState.FAILED, result=None, attempts=attempts, last_status=status)

            if deadline is not None and self._clock() + interval > deadline:
                logger.error(
                    "Remote job at %s still %r after %.1fs; giving up",
                    location,
                    status,
                    self.policy.timeout_seconds,
                )
                return JobOutcome(state=JobState.ABORTED, result=None, attempts=attempts, last_status=status)

            logger.info("Still processing (%s)... waiting %.1fs to retry", status, interval)
            self._sleep(interval)
            interval = self.policy.next_interval(interval)

"""Watcher for asynchronous server-side operations.

Ingesting an article package and publishing or unpublishing entities are
jobs the service runs in the background. A ``Watch`` submits such a job and
polls the entity's status feed until the job is confirmed, the polling
budget runs out, or the submission is rejected.

The watch is a small state machine::

    CAPTURING_BASELINE -> SUBMITTING -> POLLING -> COMPLETED
                                   |          \\-> EXHAUSTED
                                   \\-> FAILED

Each call to ``Watch.step()`` performs at most one network round trip or
one wait, which keeps every transition observable in tests.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .errors import ServerError
from .status import (
    UNKNOWN_STATUS,
    Aspect,
    StatusEvent,
    aspect_name,
    baseline_time,
    scan,
)

logger = logging.getLogger(__name__)

VERBS = {
    Aspect.INGESTION.value: "ingested",
    Aspect.PUBLISHING.value: "published",
    Aspect.UNPUBLISHING.value: "unpublished",
}


class WatchState(str, Enum):
    CAPTURING_BASELINE = "capturing_baseline"
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


TERMINAL_STATES = {WatchState.COMPLETED, WatchState.EXHAUSTED, WatchState.FAILED}


class OutcomeKind(str, Enum):
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass
class WatchRequest:
    """Parameters of one watch.

    ``max_attempts`` bounds the poll loop: at most ``max_attempts + 1``
    status fetches are made after submission. ``deadline`` optionally caps
    the wall-clock time spent polling (seconds).
    """

    entity_key: str
    aspect: str
    max_attempts: int
    poll_interval: float
    baseline_time: int = 0
    deadline: float | None = None


@dataclass
class WatchOutcome:
    """How a watch ended.

    ``payload`` is the submission response for completed and exhausted
    watches. ``status`` is the status reported by the last feed polled,
    including the one that confirmed completion.
    """

    kind: OutcomeKind
    payload: Any = None
    status: str = UNKNOWN_STATUS
    polls: int = 0
    error: ServerError | None = None

    @property
    def completed(self) -> bool:
        return self.kind is OutcomeKind.COMPLETED

    @property
    def message(self) -> str | None:
        return str(self.error) if self.error else None


class Watch:
    """One run of the submit-and-poll protocol."""

    def __init__(
        self,
        request: WatchRequest,
        fetch_status: Callable[[str], list[StatusEvent]],
        submit: Callable[[], Any],
        *,
        capture_baseline: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.request = request
        self._fetch_status = fetch_status
        self._submit = submit
        self._sleep = sleep
        self._clock = clock

        self.state = (
            WatchState.CAPTURING_BASELINE if capture_baseline else WatchState.SUBMITTING
        )
        self.attempt = 0
        self.polls = 0
        self.status = UNKNOWN_STATUS
        self.payload: Any = None
        self.error: ServerError | None = None
        self._started_at: float | None = None

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def step(self) -> WatchState:
        """Advance the watch by one transition and return the new state."""
        if self.state is WatchState.CAPTURING_BASELINE:
            self._capture_baseline()
        elif self.state is WatchState.SUBMITTING:
            self._submit_job()
        elif self.state is WatchState.POLLING:
            self._poll()
        return self.state

    def run(self) -> WatchOutcome:
        """Drive the watch to a terminal state."""
        while not self.done:
            self.step()
        return self.outcome()

    def outcome(self) -> WatchOutcome:
        if not self.done:
            raise RuntimeError(f"Watch is still {self.state.value}")
        return WatchOutcome(
            kind=OutcomeKind(self.state.value),
            payload=None if self.state is WatchState.FAILED else self.payload,
            status=self.status,
            polls=self.polls,
            error=self.error,
        )

    def _capture_baseline(self) -> None:
        events = self._fetch_status(self.request.entity_key)
        self.request.baseline_time = baseline_time(events, self.request.aspect)
        logger.debug(
            "Baseline for %s %s: %d",
            self.request.entity_key,
            aspect_name(self.request.aspect),
            self.request.baseline_time,
        )
        self.state = WatchState.SUBMITTING

    def _submit_job(self) -> None:
        try:
            self.payload = self._submit()
        except ServerError as e:
            self.error = e
            logger.error("Failed %s: %s", aspect_name(self.request.aspect), e)
            self.state = WatchState.FAILED
            return
        self._started_at = self._clock()
        logger.info("Checking %s", self.request.entity_key)
        self.state = WatchState.POLLING

    def _poll(self) -> None:
        aspect = aspect_name(self.request.aspect)
        remaining = self._remaining()

        if self.attempt > self.request.max_attempts or (
            remaining is not None and remaining <= 0
        ):
            logger.warning("Failed to wait for %s to finish. (Tries exceeded)", aspect)
            self.state = WatchState.EXHAUSTED
            return

        interval = self.request.poll_interval
        if remaining is not None:
            interval = min(interval, remaining)
        self._sleep(interval)
        events = self._fetch_status(self.request.entity_key)
        self.polls += 1

        result = scan(events, self.request.aspect, self.request.baseline_time)
        self.status = result.status
        if result.completed:
            logger.info(
                "Successfully %s %s",
                VERBS.get(aspect, "finished"),
                self.request.entity_key,
            )
            self.state = WatchState.COMPLETED
            return

        logger.info("Waiting... (%s)", result.status)
        self.attempt += 1

    def _remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self.request.deadline is None or self._started_at is None:
            return None
        return self.request.deadline - (self._clock() - self._started_at)

"""
Polling orchestrator

Repeatedly queries the status of an analysis job until it completes, fails,
or the attempt budget is used up. The wait between queries grows by
``backoff_factor`` and is capped at ``max_interval_ms``:

    2000, 3000, 4500, 6750, 8000, 8000, ...  (defaults, milliseconds)

The timeout is attempt-count based; total wall time follows from the
schedule. Sleep and transport are injected so tests run without timers or
network access.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Iterator, Optional

from .aggregator import aggregate
from .errors import (
    AnalysisFailedError,
    MalformedResponseError,
    ScanCancelledError,
    ScanTimeoutError,
    TransportError,
)
from .models import AnalysisStatus, PollAttempt, PollOptions, ScanReport, parse_status
from .transport import ProxyTransport

logger = logging.getLogger(__name__)

STATUS_PATH = "/api/analyses/{job_id}"

ProgressCallback = Callable[[PollAttempt, float], None]
SleepFn = Callable[[float], Awaitable[None]]


class PollState(str, Enum):
    """States of a polling run."""

    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not PollState.POLLING


def next_interval(interval_ms: float, options: PollOptions) -> float:
    return min(interval_ms * options.backoff_factor, options.max_interval_ms)


def backoff_schedule(options: Optional[PollOptions] = None) -> Iterator[float]:
    """Interval in effect for each attempt, first attempt first."""
    options = options or PollOptions()
    interval = options.initial_interval_ms
    for _ in range(options.max_attempts):
        yield interval
        interval = next_interval(interval, options)


def estimate_remaining_seconds(attempts: int, interval_ms: float, options: PollOptions) -> float:
    """Rough time left, as shown to users while waiting."""
    return (options.max_attempts - attempts) * interval_ms / 1000


class PollingOrchestrator:
    """
    Drives one analysis job to a terminal state.

    An instance keeps its own attempt counter and interval, so separate
    instances can poll different jobs concurrently. Queries within one run
    are strictly sequential.
    """

    def __init__(
        self,
        transport: ProxyTransport,
        *,
        status_path: str = STATUS_PATH,
        sleep: SleepFn = asyncio.sleep,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.transport = transport
        self.status_path = status_path
        self._sleep = sleep
        self._on_progress = on_progress
        self._cancel_event = cancel_event

        self.state = PollState.POLLING
        self.attempts = 0
        self.interval_ms = 0.0

    def _transition(self, state: PollState) -> None:
        if state is not self.state:
            logger.debug(f"Poll state {self.state.value} -> {state.value}")
        self.state = state

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            self._transition(PollState.CANCELLED)
            raise ScanCancelledError()

    def _status_url(self, job_id: str) -> str:
        return self.status_path.format(job_id=job_id)

    async def _query(self, job_id: str, options: PollOptions):
        """Issue one status query. Returns None when a transport error is retried."""
        try:
            payload = await self.transport.get_json(self._status_url(job_id))
        except TransportError as exc:
            if not options.retry_on_transport_error:
                self._transition(PollState.ERRORED)
                raise
            logger.warning(f"Status query for {job_id} failed, will retry: {exc.message}")
            return None

        try:
            return parse_status(payload)
        except MalformedResponseError:
            self._transition(PollState.ERRORED)
            raise

    async def poll_until_done(
        self,
        job_id: str,
        options: Optional[PollOptions] = None,
    ) -> ScanReport:
        """
        Poll ``job_id`` until it reaches a terminal state.

        Raises:
            AnalysisFailedError: provider reported ``failed``
            ScanTimeoutError: ``max_attempts`` non-terminal responses in a row
            MalformedResponseError: status field missing or unusable
            TransportError: a status query failed (unless retried)
            ScanCancelledError: the cancel event was set
        """
        options = options or PollOptions()
        self.state = PollState.POLLING
        self.attempts = 0
        self.interval_ms = options.initial_interval_ms

        while True:
            self._check_cancelled()

            attempt = PollAttempt(attempt_index=self.attempts, interval_ms=self.interval_ms)
            if self._on_progress is not None:
                self._on_progress(
                    attempt,
                    estimate_remaining_seconds(self.attempts, self.interval_ms, options),
                )

            snapshot = await self._query(job_id, options)
            status = snapshot.status if snapshot else None
            logger.debug(
                f"Poll {attempt.attempt_index + 1}/{options.max_attempts} for {job_id}: "
                f"{snapshot.raw_status if snapshot else 'transport error'}"
            )

            if status is AnalysisStatus.COMPLETED:
                self._transition(PollState.COMPLETED)
                logger.info(f"Analysis {job_id} completed after {self.attempts + 1} queries")
                return aggregate(snapshot.payload, analysis_id=job_id)

            if status is AnalysisStatus.FAILED:
                self._transition(PollState.FAILED)
                logger.warning(f"Analysis {job_id} failed at provider")
                raise AnalysisFailedError()

            self.attempts += 1
            if self.attempts >= options.max_attempts:
                self._transition(PollState.TIMED_OUT)
                logger.warning(f"Analysis {job_id} still pending after {self.attempts} queries")
                raise ScanTimeoutError()

            self.interval_ms = next_interval(self.interval_ms, options)
            self._check_cancelled()
            await self._sleep(self.interval_ms / 1000)

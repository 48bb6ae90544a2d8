"""End-to-end scan of a single URL: submit, wait, poll, aggregate."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from .errors import ScanCancelledError, UnsupportedOperationError
from .models import PollOptions, ScanReport
from .polling import STATUS_PATH, PollingOrchestrator, ProgressCallback, SleepFn
from .submission import SubmissionClient
from .transport import ProxyTransport

logger = logging.getLogger(__name__)


class ScanService:
    """Runs one scan per call. Instances hold no per-scan state."""

    def __init__(
        self,
        transport: ProxyTransport,
        *,
        poll_options: Optional[PollOptions] = None,
        status_path: str = STATUS_PATH,
        settle_delay: float = 3.0,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.transport = transport
        self.poll_options = poll_options or PollOptions()
        self.status_path = status_path
        self.settle_delay = settle_delay
        self._sleep = sleep
        self.submitter = SubmissionClient(transport)

    @classmethod
    def from_config(cls, config) -> "ScanService":
        transport = ProxyTransport(config.proxy_url, timeout=config.request_timeout)
        return cls(
            transport,
            poll_options=config.poll,
            status_path=config.status_path,
            settle_delay=config.settle_delay,
        )

    def _orchestrator(
        self,
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> PollingOrchestrator:
        return PollingOrchestrator(
            self.transport,
            status_path=self.status_path,
            sleep=self._sleep,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

    async def scan(
        self,
        url: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScanReport:
        """
        Scan ``url`` and return the aggregated report.

        Any ScanError raised along the way is terminal for this scan; callers
        show its message and let the user try again.
        """
        submission = await self.submitter.submit(url)

        if self.settle_delay > 0:
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelledError()
            await self._sleep(self.settle_delay)

        orchestrator = self._orchestrator(on_progress, cancel_event)
        return await orchestrator.poll_until_done(submission.job_id, self.poll_options)

    async def scan_file(self, path: Path) -> ScanReport:
        logger.info(f"Rejected file scan request for {path}")
        raise UnsupportedOperationError(
            "File scan is not implemented for the proxy backend yet."
        )

"""Submits URLs to the scanning provider through the proxy."""

from __future__ import annotations

import logging

from .models import ScanRequest, SubmissionResult, parse_submission
from .transport import ProxyTransport

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/scan-url"


class SubmissionClient:
    """Sends one URL per call; retries are left to the caller."""

    def __init__(self, transport: ProxyTransport, submit_path: str = SUBMIT_PATH):
        self.transport = transport
        self.submit_path = submit_path

    async def submit(self, url: str) -> SubmissionResult:
        """
        Submit a URL for analysis.

        Raises:
            InvalidInputError: url is blank or not an absolute URL (no request is made)
            TransportError: the proxy could not be reached or answered with an error
            MalformedResponseError: the response carries no analysis id
        """
        request = ScanRequest.parse(url)
        logger.info(f"Submitting {request.url} for scanning")

        payload = await self.transport.post_json(self.submit_path, {"url": request.url})
        result = parse_submission(payload)

        logger.info(f"Analysis id for {request.url}: {result.job_id}")
        return result

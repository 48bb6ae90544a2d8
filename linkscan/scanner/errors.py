"""Exceptions raised while scanning a URL.

Every error carries a ``message`` that is safe to show to a user as-is.
"""

from __future__ import annotations

from typing import Optional


class ScanError(Exception):
    """Base exception for scan failures."""

    default_message = "Scan failed!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(ScanError):
    """The URL was rejected before any request was made."""

    default_message = "Please enter a valid URL (e.g., https://example.com)"


class TransportError(ScanError):
    """Network, HTTP or JSON decoding failure."""

    default_message = "Request failed!"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class MalformedResponseError(ScanError):
    """A provider response lacked a field we rely on."""

    default_message = "Invalid analysis response!"


class AnalysisFailedError(ScanError):
    """The provider reported the analysis as failed."""

    default_message = "Analysis failed!"


class ScanTimeoutError(ScanError, TimeoutError):
    """The attempt budget ran out before the analysis finished."""

    default_message = "Analysis timeout - please try again!"


class ScanCancelledError(ScanError):
    """Polling was stopped through the cancellation event."""

    default_message = "Scan cancelled"


class InvalidReportError(ScanError):
    """A completed analysis had no usable stats block."""

    default_message = "Invalid response format!"


class EmptyReportError(ScanError):
    """No engine reported anything for the analysis."""

    default_message = "No analysis results available!"


class UnsupportedOperationError(ScanError):
    """Requested scan type is not available."""

    default_message = "File scan is not supported yet."

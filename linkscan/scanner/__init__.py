"""Scan orchestration: submission, polling and aggregation."""

from .aggregator import aggregate, category_label, decide_verdict, engine_display_class
from .errors import (
    AnalysisFailedError,
    EmptyReportError,
    InvalidInputError,
    InvalidReportError,
    MalformedResponseError,
    ScanCancelledError,
    ScanError,
    ScanTimeoutError,
    TransportError,
    UnsupportedOperationError,
)
from .models import (
    AnalysisStatus,
    EngineResult,
    PollAttempt,
    PollOptions,
    ScanReport,
    ScanRequest,
    SubmissionResult,
    Verdict,
)
from .polling import PollingOrchestrator, PollState, backoff_schedule
from .service import ScanService
from .submission import SubmissionClient
from .transport import ProxyTransport

__all__ = [
    # Steps
    "ProxyTransport",
    "SubmissionClient",
    "PollingOrchestrator",
    "PollState",
    "ScanService",
    "aggregate",
    "backoff_schedule",
    "category_label",
    "decide_verdict",
    "engine_display_class",
    # Models
    "AnalysisStatus",
    "EngineResult",
    "PollAttempt",
    "PollOptions",
    "ScanReport",
    "ScanRequest",
    "SubmissionResult",
    "Verdict",
    # Errors
    "ScanError",
    "InvalidInputError",
    "TransportError",
    "MalformedResponseError",
    "AnalysisFailedError",
    "ScanTimeoutError",
    "ScanCancelledError",
    "InvalidReportError",
    "EmptyReportError",
    "UnsupportedOperationError",
]

"""Data types shared by the submission, polling and aggregation steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from .errors import InvalidInputError, MalformedResponseError

STANDARD_CATEGORIES = ("malicious", "suspicious", "harmless", "undetected")

DetectionStats = Dict[str, int]

# Characters a URL host may never contain (WHATWG forbidden host code points)
_FORBIDDEN_HOST_CHARS = frozenset(" \t\r\n<>\\^|\"`{}")


class AnalysisStatus(str, Enum):
    """Status of an analysis job as reported by the provider."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: str) -> "AnalysisStatus":
        """
        Map a provider status string.

        Terminal states must match exactly; only the in-progress spelling is
        tolerated. Anything else is UNKNOWN and keeps polling.
        """
        normalized = value.strip()
        if normalized in ("in-progress", "inProgress"):
            normalized = "in_progress"
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


class Verdict(str, Enum):
    """Overall classification of a scanned URL."""

    MALICIOUS = "malicious"
    SUSPICIOUS = "suspicious"
    SAFE = "safe"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class ScanRequest:
    """A URL queued for submission."""

    url: str

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ScanRequest":
        """Validate user input, raising InvalidInputError for anything unusable."""
        url = (raw or "").strip()
        if not url:
            raise InvalidInputError("Please enter a URL!")
        try:
            parsed = urlparse(url)
        except ValueError as exc:
            raise InvalidInputError() from exc
        if not parsed.scheme or not parsed.netloc or not parsed.hostname:
            raise InvalidInputError()
        if any(ch in _FORBIDDEN_HOST_CHARS for ch in parsed.hostname):
            raise InvalidInputError()
        try:
            parsed.port
        except ValueError as exc:
            raise InvalidInputError() from exc
        return cls(url=url)


@dataclass(frozen=True)
class SubmissionResult:
    """Analysis id returned by the provider for a submitted URL."""

    job_id: str


@dataclass(frozen=True)
class PollAttempt:
    """One status query within a polling run."""

    attempt_index: int
    interval_ms: float


@dataclass(frozen=True)
class EngineResult:
    """Verdict of a single detection engine."""

    engine_name: str
    category: str
    result: Optional[str] = None
    method: Optional[str] = None


@dataclass(frozen=True)
class ScanReport:
    """Aggregated outcome of a completed analysis."""

    stats: DetectionStats
    percentages: Dict[str, float]
    engine_results: Dict[str, EngineResult]
    verdict: Verdict
    total: int
    analysis_id: Optional[str] = None

    @property
    def detection_rate(self) -> float:
        return self.percentages.get("malicious", 0.0)

    @property
    def has_engine_results(self) -> bool:
        return bool(self.engine_results)

    def to_dict(self) -> dict:
        return {
            "analysis_id": self.analysis_id,
            "verdict": self.verdict.value,
            "total": self.total,
            "detection_rate": self.detection_rate,
            "stats": dict(self.stats),
            "percentages": dict(self.percentages),
            "engines": {
                name: {
                    "category": engine.category,
                    "result": engine.result,
                    "method": engine.method,
                }
                for name, engine in self.engine_results.items()
            },
        }


@dataclass
class PollOptions:
    """Tuning knobs for the polling loop."""

    max_attempts: int = 20
    initial_interval_ms: float = 2000
    backoff_factor: float = 1.5
    max_interval_ms: float = 8000
    retry_on_transport_error: bool = False

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.max_attempts < 1:
            errors.append("max_attempts must be at least 1")
        if self.initial_interval_ms < 0:
            errors.append("initial_interval_ms must not be negative")
        if self.backoff_factor < 1:
            errors.append("backoff_factor must be >= 1")
        if self.max_interval_ms < self.initial_interval_ms:
            errors.append("max_interval_ms must be >= initial_interval_ms")
        return errors


@dataclass
class StatusSnapshot:
    """Validated view of a status response."""

    status: AnalysisStatus
    raw_status: str
    payload: Dict[str, Any] = field(default_factory=dict)


def _attributes(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    data = payload.get("data")
    if not isinstance(data, dict):
        return {}
    attrs = data.get("attributes")
    return attrs if isinstance(attrs, dict) else {}


def parse_submission(payload: Any) -> SubmissionResult:
    """Pull the analysis id out of a submission response."""
    data = payload.get("data") if isinstance(payload, dict) else None
    job_id = data.get("id") if isinstance(data, dict) else None
    if not isinstance(job_id, str) or not job_id.strip():
        raise MalformedResponseError("Failed to get analysis ID")
    return SubmissionResult(job_id=job_id.strip())


def parse_status(payload: Any) -> StatusSnapshot:
    """Validate a status response and classify its status field."""
    raw_status = _attributes(payload).get("status")
    if not isinstance(raw_status, str) or not raw_status.strip():
        raise MalformedResponseError("Invalid analysis response!")
    return StatusSnapshot(
        status=AnalysisStatus.from_raw(raw_status),
        raw_status=raw_status,
        payload=payload,
    )


def report_attributes(payload: Any) -> Dict[str, Any]:
    """Return ``data.attributes`` of a report payload, or an empty dict."""
    return _attributes(payload)

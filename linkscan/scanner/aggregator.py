"""Turns a completed analysis payload into a ScanReport."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .errors import EmptyReportError, InvalidReportError
from .models import (
    STANDARD_CATEGORIES,
    DetectionStats,
    EngineResult,
    ScanReport,
    Verdict,
    report_attributes,
)

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    "malicious": "Malicious",
    "suspicious": "Suspicious",
    "harmless": "Clean",
    "undetected": "Undetected",
}


def category_label(category: str) -> str:
    """Human label for a stats category."""
    return CATEGORY_LABELS.get(category, category.replace("-", " ").replace("_", " ").title())


def engine_display_class(category: Optional[str]) -> str:
    """Collapse an engine category to malicious/suspicious/safe for display."""
    if category == "malicious":
        return "malicious"
    if category == "suspicious":
        return "suspicious"
    return "safe"


def decide_verdict(stats: Mapping[str, int]) -> Verdict:
    # Only malicious and suspicious counts matter; first match wins.
    if stats.get("malicious", 0) > 0:
        return Verdict.MALICIOUS
    if stats.get("suspicious", 0) > 0:
        return Verdict.SUSPICIOUS
    return Verdict.SAFE


def compute_percentages(stats: Mapping[str, int], total: int) -> Dict[str, float]:
    """Percent per category, each rounded to one decimal on its own."""
    percentages = {key: 0.0 for key in STANDARD_CATEGORIES}
    for key, value in stats.items():
        percentages[key] = round(value / total * 100, 1)
    return percentages


def _validate_stats(raw: Any) -> DetectionStats:
    if not isinstance(raw, dict):
        raise InvalidReportError()
    stats: DetectionStats = {}
    for key, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidReportError()
        stats[str(key)] = value
    return stats


def _parse_engines(raw: Any) -> Dict[str, EngineResult]:
    engines: Dict[str, EngineResult] = {}
    if not isinstance(raw, dict):
        return engines

    for name, entry in raw.items():
        if not isinstance(entry, dict):
            logger.debug(f"Skipping engine entry without details: {name}")
            continue
        category = entry.get("category")
        engines[str(name)] = EngineResult(
            engine_name=str(entry.get("engine_name") or name),
            category=str(category) if category else "unknown",
            result=entry.get("result"),
            method=entry.get("method"),
        )
    return engines


def aggregate(payload: Any, analysis_id: Optional[str] = None) -> ScanReport:
    """
    Build a ScanReport from a completed analysis response.

    Raises:
        InvalidReportError: stats are missing or not non-negative integers
        EmptyReportError: every count is zero
    """
    attrs = report_attributes(payload)
    if "stats" not in attrs:
        raise InvalidReportError()

    stats = _validate_stats(attrs["stats"])
    total = sum(stats.values())
    if total == 0:
        raise EmptyReportError()

    engines = _parse_engines(attrs.get("results"))
    verdict = decide_verdict(stats)

    logger.info(
        f"Analysis {analysis_id or '?'}: {verdict.label} "
        f"({stats.get('malicious', 0)}/{total} malicious, {len(engines)} engines)"
    )

    return ScanReport(
        stats=stats,
        percentages=compute_percentages(stats, total),
        engine_results=engines,
        verdict=verdict,
        total=total,
        analysis_id=analysis_id,
    )

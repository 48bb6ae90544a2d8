"""Tests for report formatting."""

from linkscan.render.formatters import ReportFormatter
from linkscan.scanner.aggregator import aggregate
from linkscan.scanner.errors import AnalysisFailedError, TransportError
from linkscan.scanner.models import PollAttempt


def _report(stats, results=None, analysis_id="u-1"):
    attrs = {"status": "completed", "stats": stats}
    if results is not None:
        attrs["results"] = results
    return aggregate({"data": {"attributes": attrs}}, analysis_id=analysis_id)


def test_summary_shows_verdict_rate_and_categories():
    report = _report({"malicious": 3, "suspicious": 2, "harmless": 90, "undetected": 5})
    text = ReportFormatter.format_summary(report)

    assert "Verdict:" in text and "Malicious" in text
    assert "Detection Rate: 3.0%" in text
    assert "Clean" in text
    assert "(90.0%)" in text
    assert "Undetected" in text
    assert "Analysis: u-1" in text


def test_summary_lists_extra_categories_after_standard_ones():
    text = ReportFormatter.format_summary(_report({"harmless": 9, "timeout": 1}))
    lines = text.splitlines()

    clean_line = next(i for i, line in enumerate(lines) if "Clean" in line)
    timeout_line = next(i for i, line in enumerate(lines) if "Timeout" in line)
    assert clean_line < timeout_line
    assert "Safe" in text


def test_full_report_lists_engines_in_order():
    results = {
        "Zeta": {"category": "harmless", "result": "clean"},
        "Alpha": {"category": "malicious", "result": "phishing"},
    }
    text = ReportFormatter.format_full_report(_report({"malicious": 1, "harmless": 1}, results))
    lines = text.splitlines()

    zeta = next(line for line in lines if "Zeta" in line)
    alpha = next(line for line in lines if "Alpha" in line)
    assert lines.index(zeta) < lines.index(alpha)
    assert "malicious (phishing) !!" in alpha
    assert "!!" not in zeta


def test_full_report_without_engines():
    text = ReportFormatter.format_full_report(_report({"harmless": 4}))
    assert "No detailed results available!" in text


def test_format_error_uses_display_message():
    assert ReportFormatter.format_error(AnalysisFailedError()) == "Error: Analysis failed!"
    assert ReportFormatter.format_error(TransportError("Wrong API key", 401)) == "Error: Wrong API key"


def test_format_progress():
    first = ReportFormatter.format_progress(PollAttempt(attempt_index=0, interval_ms=2000), 40.0)
    later = ReportFormatter.format_progress(PollAttempt(attempt_index=3, interval_ms=6750), 114.75)

    assert first == "Getting scan results... (40s remaining)"
    assert later == "Analyzing... (115s remaining)"

"""Plain-text formatters for scan reports."""

from ..scanner.aggregator import category_label, engine_display_class
from ..scanner.errors import ScanError
from ..scanner.models import STANDARD_CATEGORIES, PollAttempt, ScanReport


class ReportFormatter:
    """Formats scan reports and errors for terminal output."""

    VERDICT_MARK = {
        "malicious": "\u26a0\ufe0f",  # Warning sign
        "suspicious": "\u2753",  # Question mark
        "safe": "\u2705",  # Check mark
    }

    DISPLAY_MARK = {
        "malicious": "!!",
        "suspicious": "?",
        "safe": "",
    }

    @staticmethod
    def _categories(report: ScanReport) -> list[str]:
        extra = [key for key in report.stats if key not in STANDARD_CATEGORIES]
        return list(STANDARD_CATEGORIES) + extra

    @classmethod
    def format_summary(cls, report: ScanReport) -> str:
        """Verdict, detection rate and per-category counts."""
        mark = cls.VERDICT_MARK.get(report.verdict.value, "")
        lines = [
            "Scan Report",
            "",
            f"Verdict: {mark} {report.verdict.label}",
            f"Detection Rate: {report.detection_rate:.1f}%",
            "",
            "Detection Results:",
        ]

        categories = cls._categories(report)
        width = max(len(category_label(key)) for key in categories)
        for key in categories:
            count = report.stats.get(key, 0)
            percent = report.percentages.get(key, 0.0)
            lines.append(f"  {category_label(key):<{width}}  {count:>4}  ({percent:.1f}%)")

        if report.analysis_id:
            lines.append("")
            lines.append(f"Analysis: {report.analysis_id}")

        return "\n".join(lines)

    @classmethod
    def format_full_report(cls, report: ScanReport) -> str:
        """Engine-by-engine results."""
        lines = ["Full Report Details", ""]
        if not report.has_engine_results:
            lines.append("No detailed results available!")
            return "\n".join(lines)

        width = max(len("Engine"), *(len(name) for name in report.engine_results))
        lines.append(f"  {'Engine':<{width}}  Result")
        lines.append(f"  {'-' * width}  ------")
        for name, engine in report.engine_results.items():
            flag = cls.DISPLAY_MARK[engine_display_class(engine.category)]
            detail = f" ({engine.result})" if engine.result and engine.result != engine.category else ""
            lines.append(f"  {name:<{width}}  {engine.category}{detail} {flag}".rstrip())

        return "\n".join(lines)

    @staticmethod
    def format_error(error: ScanError) -> str:
        return f"Error: {error.message}"

    @staticmethod
    def format_progress(attempt: PollAttempt, remaining_seconds: float) -> str:
        """Progress line shown while waiting on the provider."""
        if attempt.attempt_index == 0:
            return f"Getting scan results... ({remaining_seconds:.0f}s remaining)"
        return f"Analyzing... ({remaining_seconds:.0f}s remaining)"

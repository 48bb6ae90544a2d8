"""Output formatting for scan reports."""

from .formatters import ReportFormatter

__all__ = ["ReportFormatter"]

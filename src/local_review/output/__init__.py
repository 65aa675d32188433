"""Report rendering for local-review."""

from local_review.output.formatter import ReportFormatter, format_report_as_json

__all__ = ["ReportFormatter", "format_report_as_json"]

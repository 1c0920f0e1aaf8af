"""Output formatters for issues and CPD token streams."""

from treemetrics.reporting.formatters import format_cpd_json, format_json, format_sarif, format_text

__all__ = ["format_cpd_json", "format_json", "format_sarif", "format_text"]

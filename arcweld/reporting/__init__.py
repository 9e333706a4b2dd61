"""Reporting and data export functionality."""

from .json_reporter import JSONReporter, generate_json_report

__all__ = [
    "JSONReporter",
    "generate_json_report",
]

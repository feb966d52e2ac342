"""Crash Triage Engine - Parsing Layer

Converts a raw submission into IncomingReport values and validates the
fields that later feed catalog queries.
"""
from .report_parser import ReportParser, parse_report, parse_reports
from .validators import CharacterClass, validate_string, require_valid, validate_crash_app_version

__all__ = [
    "ReportParser", "parse_report", "parse_reports",
    "CharacterClass", "validate_string", "require_valid", "validate_crash_app_version",
]

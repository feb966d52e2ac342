"""Crash Triage Engine - Data Models"""
from .triage import (
    RemediationStatus, REJECTED_CODE,
    IncomingReport, TriageResult,
)

__all__ = [
    "RemediationStatus", "REJECTED_CODE",
    "IncomingReport", "TriageResult",
]

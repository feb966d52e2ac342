"""
Crash Triage Engine - Triage Value Models

Plain data carried between the pipeline stages:
- Raw xmlstring -> ReportParser -> IncomingReport
- IncomingReport -> TriageEngine -> TriageResult
- TriageResult -> TriageEffects -> CrashRecordDB

IncomingReport is immutable once the parser emits it. Nothing downstream
re-reads the raw submission.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# ENUMS
# =============================================================================

class RemediationStatus(str, Enum):
    """
    Lifecycle stage of a known crash signature.

    Several stages share wire code 0; the name keeps the cause apart
    while the client only ever sees the integer.
    """
    UNKNOWN = "unknown"
    MEMORY_PRESSURE = "memory_pressure"
    KNOWN_UNFIXED = "known_unfixed"
    KNOWN_NEW_SIGNATURE = "known_new_signature"
    FIX_PENDING_REVIEW = "fix_pending_review"
    FIX_SUBMITTED_FOR_APPROVAL = "fix_submitted_for_approval"
    FIX_SHIPPED = "fix_shipped"

    @property
    def code(self) -> int:
        """Integer code reported back to the submitting client."""
        return _STATUS_CODES[self]

    @classmethod
    def from_release_code(cls, code: int) -> Optional["RemediationStatus"]:
        """Map a release_statuses.status value to a stage, None if unmapped."""
        return _RELEASE_CODES.get(code)


_STATUS_CODES = {
    RemediationStatus.UNKNOWN: 0,
    RemediationStatus.MEMORY_PRESSURE: 0,
    RemediationStatus.KNOWN_UNFIXED: 0,
    RemediationStatus.KNOWN_NEW_SIGNATURE: 1,
    RemediationStatus.FIX_PENDING_REVIEW: 2,
    RemediationStatus.FIX_SUBMITTED_FOR_APPROVAL: 3,
    RemediationStatus.FIX_SHIPPED: 4,
}

# Codes stored in the release_statuses table
_RELEASE_CODES = {
    0: RemediationStatus.KNOWN_UNFIXED,
    1: RemediationStatus.KNOWN_NEW_SIGNATURE,
    2: RemediationStatus.FIX_PENDING_REVIEW,
    3: RemediationStatus.FIX_SUBMITTED_FOR_APPROVAL,
    4: RemediationStatus.FIX_SHIPPED,
}

# Wire code used for every rejected submission
REJECTED_CODE = 0


# =============================================================================
# PARSER OUTPUT
# =============================================================================

@dataclass(frozen=True)
class IncomingReport:
    """One crash report as submitted by a deployed application."""
    app_version: str = ""
    crash_app_version: str = ""
    start_memory: str = ""
    end_memory: str = ""
    contact: str = ""
    log_text: str = ""

    @property
    def is_complete(self) -> bool:
        """Reports without a log body or an app version are dropped."""
        return bool(self.log_text) and bool(self.app_version)


# =============================================================================
# TRIAGE OUTPUT
# =============================================================================

@dataclass(frozen=True)
class TriageResult:
    """Outcome of classifying one log against the signature catalog."""
    matched: bool
    status: RemediationStatus
    signature_id: Optional[int] = None

    @property
    def code(self) -> int:
        return self.status.code

    @classmethod
    def unmatched(cls, status: RemediationStatus = RemediationStatus.UNKNOWN) -> "TriageResult":
        return cls(matched=False, status=status, signature_id=None)

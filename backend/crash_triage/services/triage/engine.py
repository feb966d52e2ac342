"""
Crash Triage Engine - Triage Engine

Classifies one crash log against the signature catalog. The same rule runs
for fresh submissions and for backlog records during reconciliation.

Rules:
1. Logs containing the memory warning sentinel are never pattern matched.
2. Candidates are the signatures affecting the crash app version.
3. Candidates are scanned in catalog order; the FIRST whose pattern is a
   substring of the log wins. No ranking, no search for a better match.
4. The winner's remediation status comes from its fix version.
"""
from __future__ import annotations
import logging
from typing import Optional

from ...models.db_models import SignatureDB
from ...models.triage import RemediationStatus, TriageResult
from ..catalog import SignatureCatalog

logger = logging.getLogger(__name__)


# Logged by the client when the app was killed under memory pressure
MEMORY_WARNING_SENTINEL = "Memory Warning!"


def is_memory_pressure(log_text: str) -> bool:
    return MEMORY_WARNING_SENTINEL in log_text


def pattern_in_log(pattern: str, log_text: str) -> bool:
    """Case-sensitive literal substring test. An empty pattern matches nothing."""
    return bool(pattern) and pattern in log_text


class TriageEngine:
    """
    Matches crash logs to known signatures and resolves remediation status.

    Usage:
        engine = TriageEngine(SignatureCatalog(db))
        result = engine.triage(report.log_text, report.crash_app_version)
    """

    def __init__(self, catalog: SignatureCatalog):
        self.catalog = catalog

    def triage(self, log_text: str, crash_app_version: str) -> TriageResult:
        """
        Classify a crash log.

        Args:
            log_text: Full crash log body
            crash_app_version: Validated version of the app that crashed

        Returns:
            TriageResult, unmatched with UNKNOWN or MEMORY_PRESSURE status
            when no signature applies

        Raises:
            StorageError: Catalog read failed
        """
        if is_memory_pressure(log_text):
            return TriageResult.unmatched(RemediationStatus.MEMORY_PRESSURE)

        signature = self.first_match(log_text, crash_app_version)
        if signature is None:
            return TriageResult.unmatched()

        status = self.resolve_status(signature)
        logger.debug(f"Crash log matched signature {signature.id} ({status.value})")
        return TriageResult(matched=True, status=status, signature_id=signature.id)

    def first_match(self, log_text: str, crash_app_version: str) -> Optional[SignatureDB]:
        """First candidate, in catalog order, whose pattern occurs in the log."""
        for candidate in self.catalog.find_candidates(crash_app_version):
            if pattern_in_log(candidate.pattern, log_text):
                return candidate
        return None

    def resolve_status(self, signature: SignatureDB) -> RemediationStatus:
        """
        Remediation status of a matched signature.

        - fix version identical to the affected pattern: the upcoming
          version is not named yet, assume the fix is pending review
        - fix version set: whatever release_statuses records for it,
          KNOWN_UNFIXED if the version is not registered
        - no fix version: KNOWN_UNFIXED
        """
        fix_version = signature.fix_version or ""

        if fix_version == (signature.affected_version_pattern or ""):
            return RemediationStatus.FIX_PENDING_REVIEW

        if not fix_version:
            return RemediationStatus.KNOWN_UNFIXED

        code = self.catalog.release_status(fix_version)
        if code is None:
            return RemediationStatus.KNOWN_UNFIXED

        status = RemediationStatus.from_release_code(code)
        if status is None:
            logger.warning(f"Unmapped release status {code} for version {fix_version!r}")
            return RemediationStatus.KNOWN_UNFIXED
        return status

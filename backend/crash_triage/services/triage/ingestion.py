"""
Crash Ingestion Service

Single-submission pipeline:
    xmlstring -> ReportParser -> validate -> TriageEngine -> TriageEffects -> code

Every failure (parse, validation, storage) is handled here and reported
to the client as code 0, the same code as "no known issue". The client
gets a classification signal, not diagnostics.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from ...models.triage import IncomingReport, RemediationStatus, REJECTED_CODE
from ..catalog import SignatureCatalog
from ..errors import ParseError, ValidationError, StorageError
from ..parsing import ReportParser, validate_crash_app_version
from .effects import TriageEffects
from .engine import TriageEngine

logger = logging.getLogger(__name__)


@dataclass
class IngestionOutcome:
    """What happened to one submission."""
    code: int = REJECTED_CODE
    status: Optional[RemediationStatus] = None
    record_ids: List[int] = field(default_factory=list)
    rejected_reason: Optional[str] = None

    @property
    def rejected(self) -> bool:
        return self.rejected_reason is not None


class CrashIngestionService:
    """
    Parses, triages and stores crash report submissions.

    Usage:
        service = CrashIngestionService(db)
        outcome = service.submit(xmlstring)
        return render_result(outcome.code)
    """

    def __init__(self, db: Session, parser: Optional[ReportParser] = None):
        self.db = db
        self.parser = parser or ReportParser()
        self.engine = TriageEngine(SignatureCatalog(db))
        self.effects = TriageEffects(db)

    def submit(self, xmlstring: Optional[str]) -> IngestionOutcome:
        """
        Handle one submission end to end.

        Args:
            xmlstring: <crashlog> document from the client

        Returns:
            IngestionOutcome; code is the status of the last report stored
        """
        if not xmlstring or not xmlstring.strip():
            return self._reject("empty submission")

        try:
            reports = self.parser.parse(xmlstring)
        except ParseError as e:
            return self._reject(f"parse error: {e}")

        # Validate everything before the catalog is touched
        try:
            for report in reports:
                validate_crash_app_version(report.crash_app_version)
        except ValidationError as e:
            return self._reject(f"invalid {e.field_name}")

        if not reports:
            logger.info("Submission contained no complete crash report")
            return IngestionOutcome(status=RemediationStatus.UNKNOWN)

        outcome = IngestionOutcome()
        for report in reports:
            try:
                status, record_id = self._triage_and_store(report)
            except StorageError as e:
                logger.exception("Crash submission aborted on storage failure")
                return self._reject(f"storage error: {e}", record_ids=outcome.record_ids)

            outcome.status = status
            outcome.code = status.code
            outcome.record_ids.append(record_id)

        return outcome

    def _triage_and_store(self, report: IncomingReport):
        result = self.engine.triage(report.log_text, report.crash_app_version)
        record_id = self.effects.record_submission(report, result)

        logger.info(
            f"Stored crash record {record_id} for app version {report.app_version}: "
            f"{result.status.value} (signature {result.signature_id})"
        )
        return result.status, record_id

    def _reject(self, reason: str, record_ids: Optional[List[int]] = None) -> IngestionOutcome:
        logger.warning(f"Crash submission rejected: {reason}")
        return IngestionOutcome(
            code=REJECTED_CODE,
            record_ids=list(record_ids or []),
            rejected_reason=reason,
        )


def render_result(code: int) -> str:
    """Fixed-shape response document returned to the submitting client."""
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<result>{int(code)}</result>\n'


def submit_crash_report(db: Session, xmlstring: Optional[str]) -> IngestionOutcome:
    """Convenience function to ingest one submission."""
    return CrashIngestionService(db).submit(xmlstring)

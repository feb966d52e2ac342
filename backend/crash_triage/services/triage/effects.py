"""
Crash Triage Engine - Persistence Effects

Applies triage decisions to the database. Each method is one unit of work:
either every write in it commits or the session is rolled back.

Occurrence counters are incremented with a single UPDATE ... SET
occurrence_count = occurrence_count + n so concurrent submissions and
sweeps never lose an increment. All values are bound parameters.
"""
from datetime import datetime
from typing import List, Sequence, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.db_models import CrashRecordDB, SignatureDB
from ...models.triage import IncomingReport, TriageResult
from ..errors import StorageError

logger = logging.getLogger(__name__)


class TriageEffects:
    """
    Writes for live submissions and backlog reconciliation.

    Usage:
        effects = TriageEffects(db)
        record = effects.record_submission(report, result)
    """

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # LIVE SUBMISSIONS
    # =========================================================================

    def record_submission(self, report: IncomingReport, result: TriageResult) -> int:
        """
        Insert the crash record and, on a match, bump the signature counter.

        Both writes commit together.

        Returns:
            Id of the new crash record

        Raises:
            StorageError: Either write failed; nothing was committed
        """
        record = CrashRecordDB(
            contact=report.contact,
            app_version=report.app_version,
            crash_app_version=report.crash_app_version,
            start_memory=report.start_memory,
            end_memory=report.end_memory,
            log_text=report.log_text,
            resolved=result.matched,
            signature_id=result.signature_id if result.matched else None,
            resolved_at=datetime.utcnow() if result.matched else None,
        )

        try:
            self.db.add(record)
            self.db.flush()
            record_id = record.id
            if result.matched:
                self._increment_occurrences(result.signature_id, 1)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to persist crash record: {e}")
            raise StorageError("Crash record write failed") from e

        return record_id

    # =========================================================================
    # BACKLOG RECONCILIATION
    # =========================================================================

    def resolve_backlog(self, signature_id: int, record_ids: Sequence[int]) -> int:
        """
        Mark unresolved records as matched to a signature.

        Only rows still unresolved are flipped, and the counter grows by the
        number actually flipped, so a record resolved by a concurrent run is
        never counted twice.

        Returns:
            Number of records resolved

        Raises:
            StorageError: The batch failed; nothing was committed
        """
        if not record_ids:
            return 0

        try:
            flipped = self.db.query(CrashRecordDB).filter(
                CrashRecordDB.id.in_(list(record_ids)),
                CrashRecordDB.resolved.is_(False),
            ).update(
                {
                    CrashRecordDB.resolved: True,
                    CrashRecordDB.signature_id: signature_id,
                    CrashRecordDB.resolved_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
            if flipped:
                self._increment_occurrences(signature_id, flipped)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to resolve backlog for signature {signature_id}: {e}")
            raise StorageError("Backlog resolution failed") from e

        return flipped

    def unresolved_candidates(
        self,
        signature_id: int,
        affected_version_pattern: str,
        pattern: str,
        after_id: int,
        limit: int,
    ) -> List[Tuple[int, str]]:
        """
        (id, log_text) of unresolved records that may match a signature.

        app_version is matched with affected_version_pattern as a LIKE
        pattern. The log test here is a LIKE prefilter only: it is
        case-insensitive on some backends, so callers re-check each log
        with the triage rule. Rows come in id order after after_id.

        Raises:
            StorageError: Backlog read failed
        """
        try:
            rows = self.db.query(CrashRecordDB.id, CrashRecordDB.log_text).filter(
                CrashRecordDB.resolved.is_(False),
                CrashRecordDB.id > after_id,
                CrashRecordDB.app_version.like(affected_version_pattern),
                CrashRecordDB.log_text.contains(pattern, autoescape=True),
            ).order_by(CrashRecordDB.id).limit(limit).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Backlog read failed for signature {signature_id}: {e}")
            raise StorageError("Backlog read failed") from e

        return [(row.id, row.log_text) for row in rows]

    def count_unresolved(self) -> int:
        try:
            return self.db.query(CrashRecordDB).filter(
                CrashRecordDB.resolved.is_(False)
            ).count()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Backlog count failed: {e}")
            raise StorageError("Backlog read failed") from e

    def _increment_occurrences(self, signature_id: int, amount: int) -> None:
        self.db.query(SignatureDB).filter(SignatureDB.id == signature_id).update(
            {SignatureDB.occurrence_count: SignatureDB.occurrence_count + amount},
            synchronize_session=False,
        )

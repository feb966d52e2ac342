"""
Reconciliation Sweep

Scheduled job re-applying the current signature catalog to crash records
that were unmatched when they arrived. Signatures are usually authored
after the first reports of a crash come in; this is what links those
early reports to them.

Outer loop: signatures in catalog order.
Inner loop: matching unresolved records, in batches. Each batch is one
transaction, so a failure costs at most one batch of idempotent work.
Resolved records never come back into the backlog, which makes a second
run over an unchanged catalog a no-op.
"""

from datetime import datetime, timezone
from typing import Dict, Any, List
import logging
import os

from sqlalchemy.orm import Session

from ..catalog import SignatureCatalog
from ..errors import StorageError
from .effects import TriageEffects
from .engine import is_memory_pressure, pattern_in_log


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = int(os.getenv("CRASH_TRIAGE_SWEEP_BATCH_SIZE", "200"))


class ReconciliationSweep:
    """
    Links unresolved crash records to signatures added since ingestion.

    Usage:
        sweep = ReconciliationSweep(db)
        result = sweep.run()
    """

    def __init__(self, db: Session, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.db = db
        self.batch_size = batch_size
        self.catalog = SignatureCatalog(db)
        self.effects = TriageEffects(db)

    def run(self) -> Dict[str, Any]:
        """
        Run one sweep over the whole catalog.

        Storage failures are logged and recorded per signature; the sweep
        moves on to the next signature instead of aborting.

        Returns:
            Summary of the run
        """
        started_at = datetime.now(timezone.utc)
        resolved_by_signature: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []

        try:
            signatures = self.catalog.list_signatures()
        except StorageError as e:
            logger.error(f"Reconciliation sweep could not read the catalog: {e}")
            signatures = []
            errors.append({"signature_id": None, "error": str(e)})

        for signature in signatures:
            # Plain values, a failed batch rolls back and expires the ORM row
            signature_id = signature.id
            pattern = signature.pattern
            affected_version_pattern = signature.affected_version_pattern
            if not pattern:
                continue
            try:
                resolved = self._sweep_signature(signature_id, affected_version_pattern, pattern)
            except StorageError as e:
                logger.error(f"Reconciliation failed for signature {signature_id}: {e}")
                errors.append({"signature_id": signature_id, "error": str(e)})
                continue

            if resolved:
                resolved_by_signature.append({
                    "signature_id": signature_id,
                    "records_resolved": resolved,
                })

        records_resolved = sum(item["records_resolved"] for item in resolved_by_signature)
        completed_at = datetime.now(timezone.utc)

        logger.info(
            f"Reconciliation sweep complete: {len(signatures)} signatures, "
            f"{records_resolved} records resolved, {len(errors)} errors"
        )

        return {
            "run_date": started_at.isoformat(),
            "signatures_scanned": len(signatures),
            "records_resolved": records_resolved,
            "errors": len(errors),
            "details": {
                "resolved_by_signature": resolved_by_signature,
                "errors": errors,
            },
            "completed_at": completed_at.isoformat(),
            "duration_seconds": (completed_at - started_at).total_seconds(),
        }

    def _sweep_signature(self, signature_id: int, affected_version_pattern: str, pattern: str) -> int:
        """
        Resolve matching backlog records batch by batch until none remain.

        The SQL prefilter may be case-insensitive; every log is re-checked
        with the same rule live triage applies before it is resolved.
        """
        total = 0
        after_id = 0

        while True:
            rows = self.effects.unresolved_candidates(
                signature_id, affected_version_pattern, pattern, after_id, self.batch_size
            )
            if not rows:
                break
            after_id = rows[-1][0]

            record_ids = [
                record_id for record_id, log_text in rows
                if pattern_in_log(pattern, log_text) and not is_memory_pressure(log_text)
            ]
            total += self.effects.resolve_backlog(signature_id, record_ids)

        return total


def run_reconciliation_sweep(db: Session, batch_size: int = DEFAULT_BATCH_SIZE) -> Dict[str, Any]:
    """
    Convenience function to run the reconciliation sweep.

    Args:
        db: Database session
        batch_size: Records resolved per transaction

    Returns:
        Sweep results
    """
    sweep = ReconciliationSweep(db, batch_size=batch_size)
    return sweep.run()

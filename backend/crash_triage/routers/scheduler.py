"""
Scheduler API Routes

Internal endpoints for system-automatic tasks and monitoring:
- Reconciliation sweep over the unresolved backlog
- Backlog size
- Signature occurrence ranking
"""
import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Header, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.catalog import SignatureCatalog
from ..services.errors import StorageError
from ..services.triage import TriageEngine, TriageEffects, ReconciliationSweep
from ..services.triage.reconciliation import DEFAULT_BATCH_SIZE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["scheduler"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class BacklogResponse(BaseModel):
    unresolved: int


class SignatureSummary(BaseModel):
    id: int
    pattern: str
    fix_version: str
    affected_version_pattern: str
    occurrence_count: int
    status: str
    status_code: int


class SignatureRankingResponse(BaseModel):
    count: int
    signatures: List[SignatureSummary]


# =============================================================================
# INTERNAL API KEY VALIDATION
# =============================================================================

INTERNAL_API_KEY = os.getenv("CRASH_TRIAGE_INTERNAL_KEY", "scheduler-internal-key-change-in-production")


async def verify_internal_key(x_internal_key: str = Header(...)):
    """Verify internal API key for scheduler endpoints."""
    if x_internal_key != INTERNAL_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid internal API key")
    return True


# =============================================================================
# SCHEDULER ENDPOINTS (SYSTEM-ONLY)
# =============================================================================

@router.post("/reconcile", response_model=dict)
def run_reconciliation(
    batch_size: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    _: bool = Depends(verify_internal_key),
):
    """
    Re-triage unresolved crash records against the current catalog.

    Storage failures are reported in the summary, not as HTTP errors.
    """
    logger.info("Reconciliation sweep triggered via scheduler endpoint")
    sweep = ReconciliationSweep(db, batch_size=batch_size or DEFAULT_BATCH_SIZE)
    return sweep.run()


# =============================================================================
# MONITORING ENDPOINTS (READ-ONLY)
# =============================================================================

@router.get("/backlog", response_model=BacklogResponse)
def get_backlog(
    db: Session = Depends(get_db),
    _: bool = Depends(verify_internal_key),
):
    """Number of crash records not linked to any signature yet."""
    try:
        unresolved = TriageEffects(db).count_unresolved()
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return BacklogResponse(unresolved=unresolved)


@router.get("/signatures", response_model=SignatureRankingResponse)
def get_top_signatures(
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: bool = Depends(verify_internal_key),
):
    """Signatures ranked by occurrence count, with their current status code."""
    catalog = SignatureCatalog(db)
    engine = TriageEngine(catalog)

    try:
        signatures = catalog.top_signatures(limit=limit)
        items = []
        for signature in signatures:
            status = engine.resolve_status(signature)
            items.append(SignatureSummary(
                id=signature.id,
                pattern=signature.pattern,
                fix_version=signature.fix_version or "",
                affected_version_pattern=signature.affected_version_pattern,
                occurrence_count=signature.occurrence_count,
                status=status.value,
                status_code=status.code,
            ))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return SignatureRankingResponse(count=len(items), signatures=items)

"""
Crash Triage Engine - Crash Submission Router

Clients POST a form field `xmlstring` holding one <crashlog> document and
get back <result>CODE</result>. The response is always HTTP 200; rejected
submissions answer with code 0.
"""
from fastapi import APIRouter, Depends, Form, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.triage import CrashIngestionService, render_result

router = APIRouter(prefix="/crashes", tags=["crashes"])


@router.post("/submit")
def submit_crash(
    xmlstring: str = Form(""),
    db: Session = Depends(get_db),
):
    """
    Ingest one crash report and return its remediation status code.

    Codes:
    - 0: unknown, not fixed yet, or rejected
    - 1: new known signature
    - 2: fixed, fix ships in the next release
    - 3: fixed, release submitted for approval
    - 4: fixed and released
    """
    service = CrashIngestionService(db)
    outcome = service.submit(xmlstring)
    return Response(content=render_result(outcome.code), media_type="application/xml")

"""
Crash Triage Engine - FastAPI Application

Main entry point for the crash triage backend.

Architecture:
- xmlstring → ReportParser → IncomingReport
- IncomingReport → TriageEngine (SignatureCatalog) → TriageResult
- TriageResult → TriageEffects → CrashRecordDB + occurrence counter
- ReconciliationSweep re-triages the unresolved backlog on a schedule
"""
from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI

from .routers import crashes_router, scheduler_router
from .database import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Crash Triage Engine",
    description="""
    Crash Triage Engine - Crash Report Classification Service

    Receives crash reports from deployed applications, matches them against
    the catalog of known crash signatures and tells the client whether a fix
    for its crash exists.

    ## Pipeline
    1. **Parser**: xmlstring → IncomingReport
    2. **Validator**: crashappversion gated before any catalog query
    3. **Triage Engine**: first matching signature, remediation status
    4. **Effects**: crash record insert + occurrence counter, one transaction
    5. **Reconciliation**: scheduled re-triage of unmatched records
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.include_router(crashes_router)
app.include_router(scheduler_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Crash Triage Engine",
        "version": "1.0.0",
        "description": "Crash Report Classification Service",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""
Crash Triage Engine - Triage Services

- TriageEngine: first-match signature classification
- TriageEffects: crash record and occurrence counter writes
- CrashIngestionService: live submission pipeline
- ReconciliationSweep: scheduled backlog re-triage
"""
from .engine import TriageEngine, MEMORY_WARNING_SENTINEL, is_memory_pressure, pattern_in_log
from .effects import TriageEffects
from .ingestion import CrashIngestionService, IngestionOutcome, render_result, submit_crash_report
from .reconciliation import ReconciliationSweep, run_reconciliation_sweep

__all__ = [
    "TriageEngine",
    "MEMORY_WARNING_SENTINEL",
    "is_memory_pressure",
    "pattern_in_log",
    "TriageEffects",
    "CrashIngestionService",
    "IngestionOutcome",
    "render_result",
    "submit_crash_report",
    "ReconciliationSweep",
    "run_reconciliation_sweep",
]

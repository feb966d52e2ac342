"""Crash Triage Engine - API Routers"""
from .crashes import router as crashes_router
from .scheduler import router as scheduler_router

__all__ = [
    "crashes_router",
    "scheduler_router",
]

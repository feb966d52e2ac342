"""Crash Triage Engine - Signature Catalog Access"""
from .signature_catalog import SignatureCatalog

__all__ = ["SignatureCatalog"]

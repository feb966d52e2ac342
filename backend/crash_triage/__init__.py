"""Crash Triage Engine - crash report ingestion, classification and reconciliation."""

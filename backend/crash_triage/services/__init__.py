"""Crash Triage Engine - Services"""

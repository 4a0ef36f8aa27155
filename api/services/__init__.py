# api/services/__init__.py
"""
API Services Package
"""

from api.services.triage_service import TriageService, get_triage_service

__all__ = ["TriageService", "get_triage_service"]

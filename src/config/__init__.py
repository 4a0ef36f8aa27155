"""
Configuration package for notification triage.
"""

from .triage_config import TRIAGE_CONFIG
from .settings import TriageSettings, get_triage_settings

__all__ = [
    'TRIAGE_CONFIG',
    'TriageSettings',
    'get_triage_settings'
]

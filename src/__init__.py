"""
Source package initialization.
"""

from . import config
from . import integrations
from . import notification_triage
from . import utils

__all__ = [
    'config',
    'integrations',
    'notification_triage',
    'utils'
]

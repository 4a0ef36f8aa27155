"""
API Routes Package
"""

from api.routes import notifications
from api.routes import context

__all__ = ["notifications", "context"]

"""
Bake timeline API v1 routers.
"""

from .alarms import alarms_router
from .bakes import bakes_router

__all__ = ["alarms_router", "bakes_router"]

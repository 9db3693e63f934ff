"""
Supabase-backed repository implementations for the bake timeline module.
"""

from .supabase_bake_repository import SupabaseBakeRepository
from .supabase_sensor_repository import SupabaseSensorRepository

__all__ = [
    "SupabaseBakeRepository",
    "SupabaseSensorRepository",
]

"""
Bake timeline repository interfaces.

Concrete implementations live in the infrastructure layer.
"""

from .bake_repository import BakeRepository
from .sensor_repository import SensorRepository

__all__ = [
    "BakeRepository",
    "SensorRepository",
]

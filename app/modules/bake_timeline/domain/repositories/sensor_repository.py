# 📄 File: app/modules/bake_timeline/domain/repositories/sensor_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines how the engine asks for the most recent kitchen temperature and humidity.
# 🧪 Purpose (Technical Summary):
# Repository interface for the sensor collaborator (latest reading only).
# 🔗 Dependencies:
# Domain models (SensorReading), typing, abc
# 🔄 Connected Modules / Calls From:
# domain.services.recalibration_service, infrastructure.database.supabase_sensor_repository

from abc import ABC, abstractmethod
from typing import Optional

from ..models.bake import SensorReading


class SensorRepository(ABC):
    """Sensor collaborator exposing the latest environment reading."""

    @abstractmethod
    async def get_latest_reading(self) -> Optional[SensorReading]:
        """
        Get the most recent sensor reading.

        Returns:
            Optional[SensorReading]: Latest reading, or None if nothing was recorded
        """
        pass

# 📄 File: app/modules/bake_timeline/infrastructure/database/supabase_sensor_repository.py
# 🧭 Purpose (Layman Explanation):
# Fetches the newest kitchen temperature and humidity reading from the database.
# 🧪 Purpose (Technical Summary):
# Concrete SensorRepository over Supabase: newest row of the sensor readings table.
# A malformed row is reported as no reading.
# 🔗 Dependencies:
# supabase / postgrest, httpx, domain models, StorageError
# 🔄 Connected Modules / Calls From:
# app.modules.bake_timeline.presentation.dependencies

import asyncio
import logging
from typing import Optional

import httpx
from postgrest import APIError
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from app.modules.bake_timeline.domain.models.bake import SensorReading
from app.modules.bake_timeline.domain.repositories.sensor_repository import SensorRepository
from app.shared.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class SupabaseSensorRepository(SensorRepository):
    def __init__(self, client: Client, table: str = "sensor_readings"):
        self._client = client
        self._table = table

    async def get_latest_reading(self) -> Optional[SensorReading]:
        try:
            response = await asyncio.to_thread(
                lambda: self._client.table(self._table)
                .select("temperature, humidity, timestamp")
                .order("timestamp", desc=True)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise StorageError(f"Failed to read sensors: {e}", operation="select", table=self._table) from e

        rows = response.data or []
        if not rows:
            return None

        try:
            return SensorReading.model_validate(rows[0])
        except PydanticValidationError as e:
            logger.warning(f"Ignoring malformed sensor reading: {e}")
            return None

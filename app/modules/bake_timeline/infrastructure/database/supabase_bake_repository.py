# 📄 File: app/modules/bake_timeline/infrastructure/database/supabase_bake_repository.py
# 🧭 Purpose (Layman Explanation):
# Reads a bake from the Supabase database and saves its new finish time and adjustment
# history after a recalibration.
# 🧪 Purpose (Technical Summary):
# Concrete BakeRepository over the Supabase PostgREST client. The client is synchronous,
# so calls run in a worker thread; PostgREST/HTTP failures are mapped to StorageError.
#
# 🔗 Dependencies:
# - supabase / postgrest (APIError), httpx (transport errors)
# - app.modules.bake_timeline.domain.repositories.bake_repository (interface)
# - app.shared.core.exceptions (StorageError)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.bake_timeline.presentation.dependencies

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from postgrest import APIError
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from app.modules.bake_timeline.domain.models.bake import Bake
from app.modules.bake_timeline.domain.repositories.bake_repository import BakeRepository
from app.shared.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class SupabaseBakeRepository(BakeRepository):
    """Supabase implementation of the BakeRepository interface."""

    def __init__(self, client: Client, table: str = "bakes"):
        self._client = client
        self._table = table

    async def get_bake(self, bake_id: str) -> Optional[Bake]:
        try:
            response = await asyncio.to_thread(
                lambda: self._client.table(self._table).select("*").eq("id", bake_id).limit(1).execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Failed to load bake {bake_id}: {e}")
            raise StorageError(f"Failed to load bake: {e}", operation="select", table=self._table) from e

        rows = response.data or []
        if not rows:
            return None
        return self._row_to_domain(rows[0])

    async def update_bake(self, bake_id: str, patch: Dict[str, Any]) -> Optional[Bake]:
        try:
            response = await asyncio.to_thread(
                lambda: self._client.table(self._table).update(patch).eq("id", bake_id).execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Failed to update bake {bake_id}: {e}")
            raise StorageError(f"Failed to update bake: {e}", operation="update", table=self._table) from e

        rows = response.data or []
        logger.info(f"Updated bake {bake_id}: {sorted(patch)}")
        if not rows:
            return None
        return self._row_to_domain(rows[0])

    def _row_to_domain(self, row: Dict[str, Any]) -> Bake:
        try:
            return Bake.model_validate(row)
        except PydanticValidationError as e:
            logger.error(f"Malformed bake row {row.get('id')}: {e}")
            raise StorageError("Malformed bake row", operation="decode", table=self._table) from e

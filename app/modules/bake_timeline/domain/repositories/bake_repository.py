# 📄 File: app/modules/bake_timeline/domain/repositories/bake_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines how the engine asks the bake storage for a bake and how it saves the new finish time.
# 🧪 Purpose (Technical Summary):
# Repository interface for the externally-owned Bake aggregate (read + partial update only).
# 🔗 Dependencies:
# Domain models (Bake), typing, abc
# 🔄 Connected Modules / Calls From:
# domain.services.recalibration_service, infrastructure.database.supabase_bake_repository

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models.bake import Bake


class BakeRepository(ABC):
    """
    Storage collaborator for bakes.

    The engine never creates or deletes bakes; it reads one and writes back
    the recalibrated estimate with the appended adjustment history.
    """

    @abstractmethod
    async def get_bake(self, bake_id: str) -> Optional[Bake]:
        """
        Get a bake by its identifier.

        Returns:
            Optional[Bake]: Bake if found, None otherwise

        Raises:
            StorageError: If the storage backend fails
        """
        pass

    @abstractmethod
    async def update_bake(self, bake_id: str, patch: Dict[str, Any]) -> Optional[Bake]:
        """
        Apply a partial update to a bake.

        Args:
            bake_id: Bake identifier
            patch: JSON-ready column values keyed by field name

        Returns:
            Optional[Bake]: The stored bake after the update, if the backend returns it

        Raises:
            StorageError: If the storage backend fails
        """
        pass

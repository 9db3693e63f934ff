"""
Supabase client configuration for the bake and sensor storage collaborators.
Handles Supabase initialization with proper error handling and connection management.
"""

import logging
from functools import lru_cache
from typing import Optional

from postgrest import APIError
from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from .settings import get_settings

logger = logging.getLogger(__name__)


class SupabaseManager:
    """
    Supabase client manager with lazy connection handling.
    Provides the database client used by the bake and sensor repositories.
    """

    def __init__(self):
        self._client: Optional[Client] = None
        self.settings = get_settings()

    @property
    def client(self) -> Client:
        """Get or create Supabase client with lazy initialization."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Client:
        """Create Supabase client with the service role key (server-side access)."""
        try:
            client_options = ClientOptions(
                schema="public",
                headers={
                    "User-Agent": f"CrumbCoach/{self.settings.APP_VERSION}",
                },
                auto_refresh_token=False,
                persist_session=False,
            )

            client = create_client(
                supabase_url=self.settings.SUPABASE_URL,
                supabase_key=self.settings.SUPABASE_SERVICE_ROLE_KEY,
                options=client_options
            )

            logger.info("Supabase client initialized successfully")
            return client

        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise ConnectionError(f"Supabase initialization failed: {e}")

    def get_database_client(self) -> Client:
        """Get Supabase database client for table queries."""
        return self.client

    def health_check(self) -> dict:
        """
        Perform a lightweight health check against the bakes table.

        Returns:
            dict: Health status of the Supabase database service
        """
        health_status = {
            "database_service": False,
            "error": None
        }

        try:
            self.client.table(self.settings.SUPABASE_BAKES_TABLE).select("id").limit(1).execute()
            health_status["database_service"] = True

        except APIError as e:
            error_msg = f"Supabase API error: {e}"
            logger.error(error_msg)
            health_status["error"] = error_msg

        except Exception as e:
            error_msg = f"Supabase health check failed: {e}"
            logger.error(error_msg)
            health_status["error"] = error_msg

        return health_status


@lru_cache()
def get_supabase_manager() -> SupabaseManager:
    """Get the process-wide Supabase manager."""
    return SupabaseManager()


def get_supabase_client() -> Client:
    """Dependency helper returning the Supabase database client."""
    return get_supabase_manager().get_database_client()

# 📄 File: app/shared/config/settings.py
#
# 🧭 Purpose (Layman Explanation):
# The main configuration center that reads all settings from environment variables
# and hands them to the bake timer engine and the API in one organized place.
#
# 🧪 Purpose (Technical Summary):
# Pydantic-based settings management with environment variable loading,
# validation, and type safety for application, storage, engine timing and
# recalibration parameters.
#
# 🔗 Dependencies:
# - pydantic-settings for configuration management
# - python-dotenv for .env file loading
#
# 🔄 Connected Modules / Calls From:
# - app.main (application startup)
# - app.modules.bake_timeline.engine.engine (EngineConfig.from_settings)
# - app.modules.bake_timeline.domain.services.recalibration_service
# - Supabase / Redis configuration modules

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety. Settings are loaded
    from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================

    APP_NAME: str = Field(default="Crumb Coach API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    APP_DESCRIPTION: str = Field(
        default="Bake timeline notifications and environmental recalibration",
        description="Application description"
    )
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    DEBUG: bool = Field(default=True, description="Debug mode flag")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format: json or text")
    LOG_FILE: Optional[str] = Field(None, description="Optional log file path")

    # =========================================================================
    # SERVER CONFIGURATION
    # =========================================================================

    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")
    RELOAD: bool = Field(default=True, description="Auto-reload on changes")

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins"
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True, description="CORS allow credentials")

    # =========================================================================
    # SUPABASE (bake + sensor storage collaborator)
    # =========================================================================

    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(..., description="Supabase anonymous key")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")
    SUPABASE_BAKES_TABLE: str = Field(default="bakes", description="Bakes table name")
    SUPABASE_SENSOR_TABLE: str = Field(
        default="sensor_readings",
        description="Sensor readings table name"
    )

    # =========================================================================
    # REDIS (durable scheduling intent + push gateway)
    # =========================================================================

    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    REDIS_MAX_CONNECTIONS: int = Field(default=20, description="Redis connection pool size")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Redis socket timeout (seconds)")

    NOTIFICATION_STORE_KEY: str = Field(
        default="crumbcoach:scheduled-notifications",
        description="Durable store key holding the scheduled notification map"
    )
    TIMEZONE_STATE_KEY: str = Field(
        default="crumbcoach:timezone",
        description="Durable store key prefix for timezone tracking"
    )
    PUSH_GATEWAY_CHANNEL: Optional[str] = Field(
        default="crumbcoach:push",
        description="Redis pub/sub channel consumed by the device push gateway"
    )
    PUSH_PERMISSION_GRANTED: bool = Field(
        default=True,
        description="Whether the user granted notification permission to the push gateway"
    )

    # =========================================================================
    # NOTIFICATION ENGINE TIMING
    # =========================================================================

    SCHEDULE_DEBOUNCE_MS: int = Field(default=500, description="Per-step schedule debounce window")
    HEADS_UP_LEAD_MINUTES: int = Field(default=5, description="Heads-up lead time before a step")
    MISSED_CHECK_MINUTES: int = Field(default=10, description="Missed-step check after start")
    ADAPTIVE_CHECK_INTERVAL_MINUTES: int = Field(
        default=30,
        description="Default interval between adaptive readiness checks"
    )
    RECONCILIATION_WINDOW_MINUTES: int = Field(
        default=30,
        description="How late a missed alarm may still be delivered after restart"
    )
    TIMEZONE_POLL_INTERVAL_MS: int = Field(default=300_000, description="Timezone poll interval")
    FOREGROUND_DEBOUNCE_MS: int = Field(default=1_000, description="Foreground transition debounce")
    DND_POLL_INTERVAL_MS: int = Field(default=30_000, description="Do-not-disturb poll interval")
    QUIET_HOURS_START: int = Field(default=21, description="Quiet hours start (local hour)")
    QUIET_HOURS_END: int = Field(default=7, description="Quiet hours end (local hour)")
    NOTIFY_LOW_PRIORITY_SOUND: bool = Field(
        default=False,
        description="Play the alert tone for low-priority notifications"
    )

    # =========================================================================
    # ENVIRONMENTAL RECALIBRATION
    # =========================================================================

    RECAL_DEFAULT_TEMPERATURE_C: float = Field(default=24.0, description="Assumed temperature")
    RECAL_DEFAULT_HUMIDITY: float = Field(default=65.0, description="Assumed humidity")
    RECAL_COLD_THRESHOLD_C: float = Field(default=22.0, description="Below this fermentation slows")
    RECAL_WARM_THRESHOLD_C: float = Field(default=26.0, description="Above this fermentation speeds up")
    RECAL_COLD_BASE_MINUTES: float = Field(default=20.0, description="Cold base delay")
    RECAL_COLD_MINUTES_PER_DEGREE: float = Field(default=5.0, description="Cold delay per degree")
    RECAL_WARM_BASE_MINUTES: float = Field(default=15.0, description="Warm base speed-up")
    RECAL_WARM_MINUTES_PER_DEGREE: float = Field(default=3.0, description="Warm speed-up per degree")
    RECAL_HUMID_THRESHOLD: float = Field(default=70.0, description="Humid band lower edge")
    RECAL_MODERATE_HUMID_THRESHOLD: float = Field(default=55.0, description="Moderate humid band lower edge")
    RECAL_VERY_DRY_THRESHOLD: float = Field(default=30.0, description="Very dry band upper edge")
    RECAL_DRY_THRESHOLD: float = Field(default=40.0, description="Dry band upper edge")
    RECAL_HUMID_MULTIPLIER: float = Field(default=0.85, description="Humidity >= 70%")
    RECAL_MODERATE_HUMID_MULTIPLIER: float = Field(default=0.90, description="55% <= humidity < 70%")
    RECAL_VERY_DRY_MULTIPLIER: float = Field(default=1.15, description="Humidity <= 30%")
    RECAL_DRY_MULTIPLIER: float = Field(default=1.10, description="30% < humidity <= 40%")

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed_environments = ["development", "staging", "production", "test"]
        if v.lower() not in allowed_environments:
            raise ValueError(f"Environment must be one of {allowed_environments}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("CORS_ORIGINS")
    @classmethod
    def validate_cors_origins(cls, v: str) -> str:
        """Validate CORS origins format."""
        origins = [origin.strip() for origin in v.split(",")]
        for origin in origins:
            if not origin.startswith(("http://", "https://", "*")):
                raise ValueError(f"Invalid CORS origin format: {origin}")
        return v

    @field_validator("QUIET_HOURS_START", "QUIET_HOURS_END")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Quiet-hour bounds are clock hours."""
        if not 0 <= v <= 24:
            raise ValueError("Quiet hours must be between 0 and 24")
        return v

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.ENVIRONMENT == "test"


# ============================================================================
# SETTINGS FACTORY
# ============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Uses lru_cache to ensure settings are loaded only once
    and reused throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()

# 📄 File: app/modules/bake_timeline/domain/services/recalibration_service.py
# 🧭 Purpose (Layman Explanation):
# Works out how much a cold, warm, humid or dry kitchen will slow down or speed up
# the dough, moves the bake's finish time accordingly and writes down why.
# 🧪 Purpose (Technical Summary):
# Pure environmental recalibration function (temperature term + humidity multiplier on
# remaining time) with product-tuned constants kept as configuration, and the domain
# service backing POST /bakes/{id}/recalibrate.
# 🔗 Dependencies:
# Domain models, bake/sensor repositories, settings, logging
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.bakes (recalibrate endpoint), tests

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from app.shared.config.settings import Settings
from app.shared.core.exceptions import BakeNotFoundError

from ..models.bake import Bake, SensorReading, TimelineAdjustment
from ..repositories.bake_repository import BakeRepository
from ..repositories.sensor_repository import SensorRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecalibrationConstants:
    """
    Product-tuned recalibration numbers.

    These are undocumented magic numbers carried over unchanged; override
    them through settings rather than re-deriving them.
    """
    default_temperature_c: float = 24.0
    default_humidity: float = 65.0

    cold_threshold_c: float = 22.0
    warm_threshold_c: float = 26.0
    cold_base_minutes: float = 20.0
    cold_minutes_per_degree: float = 5.0
    warm_base_minutes: float = 15.0
    warm_minutes_per_degree: float = 3.0

    humid_threshold: float = 70.0
    moderate_humid_threshold: float = 55.0
    very_dry_threshold: float = 30.0
    dry_threshold: float = 40.0
    humid_multiplier: float = 0.85
    moderate_humid_multiplier: float = 0.90
    very_dry_multiplier: float = 1.15
    dry_multiplier: float = 1.10

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecalibrationConstants":
        return cls(
            default_temperature_c=settings.RECAL_DEFAULT_TEMPERATURE_C,
            default_humidity=settings.RECAL_DEFAULT_HUMIDITY,
            cold_threshold_c=settings.RECAL_COLD_THRESHOLD_C,
            warm_threshold_c=settings.RECAL_WARM_THRESHOLD_C,
            cold_base_minutes=settings.RECAL_COLD_BASE_MINUTES,
            cold_minutes_per_degree=settings.RECAL_COLD_MINUTES_PER_DEGREE,
            warm_base_minutes=settings.RECAL_WARM_BASE_MINUTES,
            warm_minutes_per_degree=settings.RECAL_WARM_MINUTES_PER_DEGREE,
            humid_threshold=settings.RECAL_HUMID_THRESHOLD,
            moderate_humid_threshold=settings.RECAL_MODERATE_HUMID_THRESHOLD,
            very_dry_threshold=settings.RECAL_VERY_DRY_THRESHOLD,
            dry_threshold=settings.RECAL_DRY_THRESHOLD,
            humid_multiplier=settings.RECAL_HUMID_MULTIPLIER,
            moderate_humid_multiplier=settings.RECAL_MODERATE_HUMID_MULTIPLIER,
            very_dry_multiplier=settings.RECAL_VERY_DRY_MULTIPLIER,
            dry_multiplier=settings.RECAL_DRY_MULTIPLIER,
        )


@dataclass(frozen=True)
class RecalibrationResult:
    """Every intermediate value of one recalibration, for auditing and tests."""
    temperature_c: float
    humidity: float
    temperature_measured: bool
    humidity_measured: bool
    temperature_adjustment: float
    humidity_multiplier: float
    remaining_minutes: float
    humidity_adjustment: float
    total_adjustment: float
    new_estimated_end: datetime
    reason: str


def _coerce_number(value) -> Optional[float]:
    """Malformed sensor values count as absent."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


class EnvironmentalRecalibrator:
    """
    Computes a bake's new estimated end time from the kitchen environment.

    ``calculate`` is a pure function of its arguments and the constants.
    """

    def __init__(self, constants: Optional[RecalibrationConstants] = None):
        self.constants = constants or RecalibrationConstants()

    def temperature_adjustment(self, temperature_c: float) -> float:
        c = self.constants
        if temperature_c < c.cold_threshold_c:
            return c.cold_base_minutes + (c.cold_threshold_c - temperature_c) * c.cold_minutes_per_degree
        if temperature_c > c.warm_threshold_c:
            return -(c.warm_base_minutes + (temperature_c - c.warm_threshold_c) * c.warm_minutes_per_degree)
        return 0.0

    def humidity_multiplier(self, humidity: float) -> float:
        # First matching band wins, in this order.
        c = self.constants
        if humidity >= c.humid_threshold:
            return c.humid_multiplier
        if c.moderate_humid_threshold <= humidity < c.humid_threshold:
            return c.moderate_humid_multiplier
        if humidity <= c.very_dry_threshold:
            return c.very_dry_multiplier
        if c.very_dry_threshold < humidity <= c.dry_threshold:
            return c.dry_multiplier
        return 1.0

    def calculate(
        self,
        temperature_tenths,
        humidity_percent,
        estimated_end_time: datetime,
        now: datetime,
    ) -> RecalibrationResult:
        c = self.constants
        tenths = _coerce_number(temperature_tenths)
        measured_humidity = _coerce_number(humidity_percent)

        temperature_c = tenths / 10 if tenths is not None else c.default_temperature_c
        humidity = measured_humidity if measured_humidity is not None else c.default_humidity

        temp_adj = self.temperature_adjustment(temperature_c)

        multiplier = self.humidity_multiplier(humidity)
        remaining = 0.0
        humidity_adj = 0.0
        if multiplier != 1.0:
            remaining = max(0.0, (estimated_end_time - now).total_seconds() / 60)
            humidity_adj = remaining * (multiplier - 1)

        total = temp_adj + humidity_adj
        new_end = estimated_end_time + timedelta(minutes=total)

        reason = self._describe(
            temperature_c=temperature_c,
            humidity=humidity,
            temperature_measured=tenths is not None,
            humidity_measured=measured_humidity is not None,
            temp_adj=temp_adj,
            multiplier=multiplier,
            remaining=remaining,
            humidity_adj=humidity_adj,
            total=total,
        )

        return RecalibrationResult(
            temperature_c=temperature_c,
            humidity=humidity,
            temperature_measured=tenths is not None,
            humidity_measured=measured_humidity is not None,
            temperature_adjustment=temp_adj,
            humidity_multiplier=multiplier,
            remaining_minutes=remaining,
            humidity_adjustment=humidity_adj,
            total_adjustment=total,
            new_estimated_end=new_end,
            reason=reason,
        )

    def apply(
        self,
        bake: Bake,
        reading: Optional[SensorReading],
        now: datetime,
    ) -> Tuple[RecalibrationResult, Bake]:
        """
        Recalibrate a bake and append the audit entry.

        The entry is appended even when no reading was available and even
        when the total adjustment is zero.
        """
        # Without an estimate the adjustment is anchored on now.
        estimated_end = bake.estimated_end_time or now

        result = self.calculate(
            reading.temperature if reading else None,
            reading.humidity if reading else None,
            estimated_end,
            now,
        )
        entry = TimelineAdjustment(
            timestamp=now,
            adjustment_minutes=result.total_adjustment,
            reason=result.reason,
        )
        return result, bake.with_adjustment(result.new_estimated_end, entry)

    def _describe(
        self,
        *,
        temperature_c: float,
        humidity: float,
        temperature_measured: bool,
        humidity_measured: bool,
        temp_adj: float,
        multiplier: float,
        remaining: float,
        humidity_adj: float,
        total: float,
    ) -> str:
        c = self.constants

        if not temperature_measured and not humidity_measured:
            source = (
                f"No sensor reading available; assumed {temperature_c:.1f}°C "
                f"and {humidity:g}% humidity"
            )
        else:
            temp_part = (
                f"{temperature_c:.1f}°C" if temperature_measured
                else f"temperature missing (assumed {temperature_c:.1f}°C)"
            )
            humidity_part = (
                f"{humidity:g}% humidity" if humidity_measured
                else f"humidity missing (assumed {humidity:g}%)"
            )
            source = f"Sensor reading {temp_part}, {humidity_part}"

        rules: List[str] = []
        if temperature_c < c.cold_threshold_c:
            rules.append(f"cold (below {c.cold_threshold_c:g}°C) {temp_adj:+.1f} min")
        elif temperature_c > c.warm_threshold_c:
            rules.append(f"warm (above {c.warm_threshold_c:g}°C) {temp_adj:+.1f} min")
        if multiplier != 1.0:
            rules.append(
                f"humidity x{multiplier:.2f} on {remaining:.0f} min remaining {humidity_adj:+.1f} min"
            )

        if not rules:
            return f"{source}: no adjustment needed"
        return f"{source}: {'; '.join(rules)} (total {total:+.1f} min)"


class RecalibrationService:
    """
    Domain service behind the bake recalibration endpoint.

    Loads the bake, reads the latest sensor value, applies the recalibrator
    and writes the new estimate plus the appended history back to storage.
    """

    def __init__(
        self,
        bake_repository: BakeRepository,
        sensor_repository: SensorRepository,
        recalibrator: Optional[EnvironmentalRecalibrator] = None,
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self.bake_repository = bake_repository
        self.sensor_repository = sensor_repository
        self.recalibrator = recalibrator or EnvironmentalRecalibrator()
        self._now = now_provider or (lambda: datetime.now(timezone.utc))

    async def recalibrate(self, bake_id: str) -> Bake:
        """
        Recalibrate a bake's estimated end time.

        Raises:
            BakeNotFoundError: If the bake does not exist
            StorageError: If the storage collaborator fails
        """
        bake = await self.bake_repository.get_bake(bake_id)
        if bake is None:
            raise BakeNotFoundError(bake_id)

        reading = await self._latest_reading()
        now = self._now()
        result, recalibrated = self.recalibrator.apply(bake, reading, now)

        patch = recalibrated.model_dump(
            mode="json",
            include={"estimated_end_time", "timeline_adjustments"},
        )
        saved = await self.bake_repository.update_bake(bake_id, patch)

        logger.info(
            f"Recalibrated bake {bake_id}: {result.total_adjustment:+.1f} min "
            f"-> {result.new_estimated_end.isoformat()}"
        )
        return saved or recalibrated

    async def _latest_reading(self) -> Optional[SensorReading]:
        # A failing sensor collaborator is treated like a missing reading.
        try:
            return await self.sensor_repository.get_latest_reading()
        except Exception as e:
            logger.warning(f"Sensor reading unavailable, using neutral defaults: {e}")
            return None

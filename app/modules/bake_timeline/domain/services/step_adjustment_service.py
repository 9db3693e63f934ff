# 📄 File: app/modules/bake_timeline/domain/services/step_adjustment_service.py
# 🧭 Purpose (Layman Explanation):
# Looks at each baking step that cares about temperature or humidity and says how much
# longer or shorter it will take in today's kitchen, plus tips like "cover the dough".
# 🧪 Purpose (Technical Summary):
# Per-step duration adjustment factors from the difference between current and optimal
# conditions (temperature, humidity, altitude), applying them to a step list and
# producing condition-based recommendations.
# 🔗 Dependencies:
# Domain models (TimelineStep), pydantic, datetime
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.bakes (timeline adjustments endpoint), tests

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.bake import TimelineStep

logger = logging.getLogger(__name__)


class EnvironmentalConditions(BaseModel):
    """Current kitchen conditions in degrees Celsius, percent and metres."""
    temperature: float
    humidity: float
    altitude: Optional[float] = None


class StepAdjustment(BaseModel):
    step_key: str
    original_duration: int
    adjusted_duration: int
    factors: List[str] = Field(default_factory=list)
    timestamp: datetime


def step_key(step: TimelineStep) -> str:
    """Steps are matched by id, falling back to their index."""
    return step.id if step.id is not None else str(step.step_index)


class StepAdjustmentCalculator:
    """
    Duration adjustments for environment-sensitive steps.

    Steps without an optimal temperature or humidity are never adjusted.
    """

    def calculate_adjustments(
        self,
        conditions: EnvironmentalConditions,
        steps: List[TimelineStep],
        now: Optional[datetime] = None,
    ) -> List[StepAdjustment]:
        now = now or datetime.now(timezone.utc)
        adjustments: List[StepAdjustment] = []

        for step in steps:
            if not step.is_environment_sensitive:
                continue

            factor, factors = self._factor_for(step, conditions)
            # Halves round up.
            adjusted = math.floor(step.estimated_duration_minutes * factor + 0.5)

            if adjusted != step.estimated_duration_minutes:
                adjustments.append(StepAdjustment(
                    step_key=step_key(step),
                    original_duration=step.estimated_duration_minutes,
                    adjusted_duration=adjusted,
                    factors=factors,
                    timestamp=now,
                ))

        logger.debug(f"Calculated {len(adjustments)} step adjustments for {len(steps)} steps")
        return adjustments

    def _factor_for(self, step: TimelineStep, conditions: EnvironmentalConditions):
        factor = 1.0
        factors: List[str] = []

        if step.optimal_temperature:
            diff = conditions.temperature - step.optimal_temperature
            if diff < -3:
                factor *= 1.3 + abs(diff) * 0.05
                factors.append(
                    f"Cold temperature ({conditions.temperature:g}°C vs optimal "
                    f"{step.optimal_temperature:g}°C)"
                )
            elif diff < -1:
                factor *= 1.1 + abs(diff) * 0.05
                factors.append("Cool temperature")
            elif diff > 3:
                factor *= 0.8 - diff * 0.02
                factors.append(
                    f"Warm temperature ({conditions.temperature:g}°C vs optimal "
                    f"{step.optimal_temperature:g}°C)"
                )
            elif diff > 1:
                factor *= 0.9 - diff * 0.02
                factors.append("Warm temperature")

        if step.optimal_humidity:
            diff = conditions.humidity - step.optimal_humidity
            if diff < -10:
                factor *= 1.1
                factors.append(
                    f"Low humidity ({conditions.humidity:g}% vs optimal {step.optimal_humidity:g}%)"
                )
            elif diff > 15:
                factor *= 0.95
                factors.append("High humidity")

        if conditions.altitude and conditions.altitude > 1000:
            factor *= 1 + (conditions.altitude - 1000) / 10000
            factors.append(f"High altitude ({conditions.altitude:g}m)")

        return factor, factors

    def apply_adjustments(
        self,
        steps: List[TimelineStep],
        adjustments: List[StepAdjustment],
    ) -> List[TimelineStep]:
        by_key: Dict[str, StepAdjustment] = {a.step_key: a for a in adjustments}
        adjusted_steps = []
        for step in steps:
            adjustment = by_key.get(step_key(step))
            if adjustment:
                step = step.model_copy(
                    update={"estimated_duration_minutes": adjustment.adjusted_duration}
                )
            adjusted_steps.append(step)
        return adjusted_steps

    @staticmethod
    def total_duration(steps: List[TimelineStep]) -> int:
        return sum(step.estimated_duration_minutes for step in steps)

    def recommendations(
        self,
        conditions: EnvironmentalConditions,
        step: Optional[TimelineStep],
    ) -> List[str]:
        tips: List[str] = []
        if step is None:
            return tips

        if step.optimal_temperature:
            diff = conditions.temperature - step.optimal_temperature
            if diff < -3:
                tips.append("Consider moving to a warmer location or using a proofing box")
            elif diff > 3:
                tips.append("Move to a cooler location to slow fermentation")

        if step.optimal_humidity:
            diff = conditions.humidity - step.optimal_humidity
            if diff < -10:
                tips.append("Cover dough to prevent surface drying")
            elif diff > 15:
                tips.append("Ensure good air circulation to prevent over-proofing")

        return tips

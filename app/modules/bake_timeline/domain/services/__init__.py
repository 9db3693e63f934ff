# 📄 File: app/modules/bake_timeline/domain/services/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups the calculations that move a bake's finish time and adjust step durations.
# 🧪 Purpose (Technical Summary):
# Package initialization for bake timeline domain services.
# 🔗 Dependencies:
# Domain services
# 🔄 Connected Modules / Calls From:
# Presentation layer, engine composition, tests

from .recalibration_service import (
    EnvironmentalRecalibrator,
    RecalibrationConstants,
    RecalibrationResult,
    RecalibrationService,
)
from .step_adjustment_service import (
    EnvironmentalConditions,
    StepAdjustment,
    StepAdjustmentCalculator,
)

__all__ = [
    "EnvironmentalRecalibrator",
    "RecalibrationConstants",
    "RecalibrationResult",
    "RecalibrationService",
    "EnvironmentalConditions",
    "StepAdjustment",
    "StepAdjustmentCalculator",
]

import pytest

from app.modules.bake_timeline.domain.models.bake import TimelineStep
from app.modules.bake_timeline.domain.services.step_adjustment_service import (
    EnvironmentalConditions,
    StepAdjustmentCalculator,
    step_key,
)
from tests.conftest import NOW


@pytest.fixture
def calculator():
    return StepAdjustmentCalculator()


def proof_step(**overrides):
    fields = dict(id="proof", step_index=2, name="Final proof", estimated_duration_minutes=60, optimal_temperature=24)
    fields.update(overrides)
    return TimelineStep(**fields)


@pytest.mark.parametrize("temperature,adjusted,factor", [
    (18, 96, "Cold temperature (18°C vs optimal 24°C)"),
    (22, 72, "Cool temperature"),
    (30, 41, "Warm temperature (30°C vs optimal 24°C)"),
    (26, 52, "Warm temperature"),
])
def test_temperature_difference_scales_duration(calculator, temperature, adjusted, factor):
    conditions = EnvironmentalConditions(temperature=temperature, humidity=60)

    [adjustment] = calculator.calculate_adjustments(conditions, [proof_step()], now=NOW)

    assert adjustment.step_key == "proof"
    assert adjustment.original_duration == 60
    assert adjustment.adjusted_duration == adjusted
    assert adjustment.factors == [factor]
    assert adjustment.timestamp == NOW


def test_close_to_optimal_is_not_reported(calculator):
    conditions = EnvironmentalConditions(temperature=24.5, humidity=60)

    assert calculator.calculate_adjustments(conditions, [proof_step()]) == []


def test_steps_without_optimal_conditions_are_left_alone(calculator):
    mix = TimelineStep(step_index=0, name="Mix", estimated_duration_minutes=15)
    conditions = EnvironmentalConditions(temperature=10, humidity=10, altitude=3000)

    assert calculator.calculate_adjustments(conditions, [mix]) == []


def test_low_humidity_and_altitude_compound(calculator):
    step = proof_step(optimal_temperature=None, optimal_humidity=75)
    conditions = EnvironmentalConditions(temperature=24, humidity=60, altitude=2000)

    [adjustment] = calculator.calculate_adjustments(conditions, [step])

    assert adjustment.adjusted_duration == round(60 * 1.1 * 1.1)
    assert adjustment.factors == ["Low humidity (60% vs optimal 75%)", "High altitude (2000m)"]


def test_half_minutes_round_up(calculator):
    step = proof_step(estimated_duration_minutes=15)
    conditions = EnvironmentalConditions(temperature=24, humidity=60, altitude=2000)

    [adjustment] = calculator.calculate_adjustments(conditions, [step])

    # 15 * 1.1 is 16.5
    assert adjustment.adjusted_duration == 17


def test_apply_adjustments_matches_by_id_or_index(calculator):
    steps = [
        TimelineStep(step_index=0, name="Bulk", estimated_duration_minutes=240, optimal_temperature=24),
        proof_step(),
        TimelineStep(step_index=3, name="Bake", estimated_duration_minutes=45),
    ]
    conditions = EnvironmentalConditions(temperature=18, humidity=60)

    adjustments = calculator.calculate_adjustments(conditions, steps)
    adjusted = calculator.apply_adjustments(steps, adjustments)

    assert [a.step_key for a in adjustments] == ["0", "proof"]
    assert [s.estimated_duration_minutes for s in adjusted] == [384, 96, 45]
    assert calculator.total_duration(steps) == 345
    assert calculator.total_duration(adjusted) == 525
    assert steps[0].estimated_duration_minutes == 240


def test_step_key_prefers_id():
    assert step_key(proof_step()) == "proof"
    assert step_key(proof_step(id=None)) == "2"


def test_recommendations_for_cold_dry_kitchen(calculator):
    step = proof_step(optimal_humidity=75)
    conditions = EnvironmentalConditions(temperature=18, humidity=50)

    assert calculator.recommendations(conditions, step) == [
        "Consider moving to a warmer location or using a proofing box",
        "Cover dough to prevent surface drying",
    ]


def test_recommendations_for_hot_humid_kitchen(calculator):
    step = proof_step(optimal_humidity=60)
    conditions = EnvironmentalConditions(temperature=29, humidity=80)

    assert calculator.recommendations(conditions, step) == [
        "Move to a cooler location to slow fermentation",
        "Ensure good air circulation to prevent over-proofing",
    ]


def test_no_current_step_means_no_recommendations(calculator):
    assert calculator.recommendations(EnvironmentalConditions(temperature=18, humidity=50), None) == []

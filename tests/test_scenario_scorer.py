"""
Tests for Scenario Risk Scorer — verify scoring, categories and alignment.
"""

import pytest

from counterweight.core.scenario_scorer import (
    calculate_score,
    categorize,
    misalignment,
    summarize_alignment,
    validate_scenario,
)
from counterweight.errors import MalformedWeightSet
from counterweight.models.consequence_models import CONSEQUENCE_KEYS
from counterweight.models.scenario_models import RiskCategory, ScenarioDefinition

EXAMPLE_WEIGHTS = {"fatalities": 57, "property_damage": 29, "reputational": 14}


def test_worked_example_scores_medium(sample_scenarios):
    flood = sample_scenarios[0]
    assert calculate_score(flood.consequence_values, EXAMPLE_WEIGHTS) == pytest.approx(48.6)

    validation = validate_scenario(flood, EXAMPLE_WEIGHTS, "high")
    assert validation.computed_category == RiskCategory.MEDIUM
    assert validation.user_rating == RiskCategory.HIGH
    assert not validation.aligned
    assert validation.misalignment_magnitude == 1


def test_fraction_weights_give_same_score(sample_scenarios):
    fractions = {k: v / 100 for k, v in EXAMPLE_WEIGHTS.items()}
    values = sample_scenarios[0].consequence_values
    assert calculate_score(values, fractions) == pytest.approx(48.6)


def test_missing_impact_counts_as_zero():
    score = calculate_score({"fatalities": 5}, EXAMPLE_WEIGHTS)
    assert score == pytest.approx(57.0)


def test_maximum_scenario_scores_one_hundred(ten_key_weights):
    values = {key: 5 for key in CONSEQUENCE_KEYS}
    assert calculate_score(values, ten_key_weights) == pytest.approx(100.0)


def test_score_is_monotonic_in_every_impact(ten_key_weights):
    base = {key: 2 for key in CONSEQUENCE_KEYS}
    base_score = calculate_score(base, ten_key_weights)
    for key in CONSEQUENCE_KEYS:
        raised = dict(base, **{key: 3})
        assert calculate_score(raised, ten_key_weights) >= base_score


@pytest.mark.parametrize(
    "score,expected",
    [
        (0, RiskCategory.LOW),
        (24.999, RiskCategory.LOW),
        (25, RiskCategory.MEDIUM),
        (49.99, RiskCategory.MEDIUM),
        (50, RiskCategory.HIGH),
        (75, RiskCategory.EXTREME),
        (100, RiskCategory.EXTREME),
    ],
)
def test_category_boundaries(score, expected):
    assert categorize(score) == expected


def test_misalignment_magnitude():
    assert misalignment(RiskCategory.LOW, RiskCategory.EXTREME) == 3
    assert misalignment(RiskCategory.HIGH, RiskCategory.HIGH) == 0


def test_negative_weight_rejected():
    with pytest.raises(MalformedWeightSet):
        calculate_score({"fatalities": 3}, {"fatalities": -10, "economic": 110})


def test_impact_levels_validated():
    with pytest.raises(ValueError):
        ScenarioDefinition(id="bad", consequence_values={"fatalities": 6})


def test_alignment_summary(sample_scenarios):
    validations = [
        validate_scenario(sample_scenarios[0], EXAMPLE_WEIGHTS, "medium"),
        validate_scenario(sample_scenarios[1], EXAMPLE_WEIGHTS, "medium"),
        validate_scenario(sample_scenarios[2], EXAMPLE_WEIGHTS, "low"),
    ]
    summary = summarize_alignment(validations)

    assert summary.total == 3
    assert summary.aligned_count == 2
    assert summary.alignment_rate == pytest.approx(2 / 3)
    assert summary.mean_misalignment == pytest.approx(1.0)
    assert summary.verdict == "review_recommended"


def test_alignment_good_at_threshold(sample_scenarios):
    validations = [
        validate_scenario(sample_scenarios[0], EXAMPLE_WEIGHTS, "medium"),
        validate_scenario(sample_scenarios[1], EXAMPLE_WEIGHTS, "medium"),
    ]
    summary = summarize_alignment(validations)
    assert summary.alignment_rate == 1.0
    assert summary.is_good


def test_alignment_with_no_ratings():
    summary = summarize_alignment([])
    assert summary.total == 0
    assert summary.alignment_rate == 0.0
    assert summary.verdict == "review_recommended"

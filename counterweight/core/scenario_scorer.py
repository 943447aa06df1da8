"""
Scenario Risk Scorer — Cross-checks derived weights against human intuition.

    score = Σ_c (impact_c / 5) × weight_c        (weights on the 0-100 scale)

The score is bucketed into low / medium / high / extreme and compared with
the rating the user gave the same scenario. Scores are non-decreasing in
every impact level because weights are never negative.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from counterweight.config import settings
from counterweight.core.weight_utils import to_percent_scale, validate_weight_map
from counterweight.models.scenario_models import (
    CATEGORY_ORDER,
    CATEGORY_THRESHOLDS,
    AlignmentSummary,
    RiskCategory,
    ScenarioDefinition,
    ScenarioValidation,
)

logger = logging.getLogger("counterweight.scenario")

MAX_IMPACT = 5


def calculate_score(
    consequence_values: Mapping[str, int],
    weights: Mapping[str, float],
) -> float:
    """
    Weighted risk score for one scenario.

    Consequences without an impact level contribute nothing. Weight maps
    that sum to 1.0 are rescaled to 0-100 first.

    Raises:
        MalformedWeightSet: if any weight is negative, non-finite or not a number.
    """
    percent = to_percent_scale(validate_weight_map(weights))
    values = {str(getattr(k, "value", k)): v for k, v in consequence_values.items()}

    score = 0.0
    for key, weight in percent.items():
        impact = values.get(key, 0)
        score += (impact / MAX_IMPACT) * weight
    return score


def categorize(score: float) -> RiskCategory:
    """Bucket a 0-100 score; each band is left-inclusive."""
    for category in (RiskCategory.LOW, RiskCategory.MEDIUM, RiskCategory.HIGH):
        if score < CATEGORY_THRESHOLDS[category]:
            return category
    return RiskCategory.EXTREME


def misalignment(user_rating: RiskCategory, computed: RiskCategory) -> int:
    return abs(CATEGORY_ORDER.index(user_rating) - CATEGORY_ORDER.index(computed))


def validate_scenario(
    scenario: ScenarioDefinition,
    weights: Mapping[str, float],
    user_rating: RiskCategory | str,
) -> ScenarioValidation:
    """Score a scenario with ``weights`` and compare against the user's rating."""
    rating = RiskCategory(user_rating)
    raw_score = calculate_score(scenario.consequence_values, weights)
    score = min(100.0, max(0.0, raw_score))
    computed = categorize(score)
    magnitude = misalignment(rating, computed)

    validation = ScenarioValidation(
        scenario_id=scenario.id,
        user_rating=rating,
        computed_score=round(score, 4),
        computed_category=computed,
        aligned=magnitude == 0,
        misalignment_magnitude=magnitude,
    )

    if validation.aligned:
        logger.debug(f"Scenario {scenario.id}: {score:.1f} → {computed.value}, aligned")
    else:
        logger.info(
            f"Scenario {scenario.id}: user rated {rating.value}, weights give "
            f"{score:.1f} → {computed.value} (off by {magnitude})"
        )
    return validation


def summarize_alignment(
    validations: Iterable[ScenarioValidation],
    threshold: float | None = None,
) -> AlignmentSummary:
    """
    Aggregate alignment across rated scenarios.

    A rate at or above the threshold (0.75 by default) is "good alignment";
    anything lower, including having no ratings at all, recommends review.
    The verdict never blocks progression.
    """
    cutoff = threshold if threshold is not None else settings.alignment_threshold
    rated = list(validations)
    total = len(rated)
    if total == 0:
        return AlignmentSummary()

    aligned_count = sum(1 for v in rated if v.aligned)
    rate = aligned_count / total
    summary = AlignmentSummary(
        total=total,
        aligned_count=aligned_count,
        alignment_rate=rate,
        mean_misalignment=sum(v.misalignment_magnitude for v in rated) / total,
        verdict="good_alignment" if rate >= cutoff else "review_recommended",
    )
    logger.info(
        f"Scenario alignment {aligned_count}/{total} ({rate:.0%}): {summary.verdict}"
    )
    return summary

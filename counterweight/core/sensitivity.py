"""
Sensitivity Analysis — How much each weight moves the scenario scores.

Each consequence weight is varied by ±N % (20 % by default) while the
others are rebalanced to keep the total at 100. The spread of the mean
scenario score gives one bar of a tornado diagram; results come back
widest bar first.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from counterweight.config import settings
from counterweight.core.scenario_scorer import calculate_score
from counterweight.core.weight_utils import to_percent_scale, validate_weight_map
from counterweight.errors import UnknownItem
from counterweight.models.scenario_models import ScenarioDefinition, SensitivityResult
from counterweight.synthesis.normalizer import TARGET_TOTAL, scale_with_floor

logger = logging.getLogger("counterweight.sensitivity")


def rebalance_weights(
    weights: Mapping[str, float],
    key: str,
    new_value: float,
    floor: float | None = None,
) -> dict[str, float]:
    """
    Set one weight and rescale the others so the total stays 100.

    The new value is clamped so neither it nor any other weight drops
    below the floor.
    """
    min_weight = floor if floor is not None else settings.weight_floor
    base = to_percent_scale(validate_weight_map(weights))
    if key not in base:
        raise UnknownItem(key)

    others = {k: v for k, v in base.items() if k != key}
    ceiling = TARGET_TOTAL - min_weight * len(others)
    value = min(max(new_value, min_weight), ceiling)

    rebalanced = scale_with_floor(others, min_weight, total=TARGET_TOTAL - value)
    rebalanced[key] = value
    return {k: rebalanced[k] for k in base}


def mean_score(
    scenarios: Iterable[ScenarioDefinition], weights: Mapping[str, float]
) -> float:
    scores = [calculate_score(s.consequence_values, weights) for s in scenarios]
    return sum(scores) / len(scores) if scores else 0.0


def run_sensitivity(
    base_weights: Mapping[str, float],
    scenarios: Iterable[ScenarioDefinition],
    variation_percent: float | None = None,
) -> list[SensitivityResult]:
    """
    Tornado data for every consequence weight.

    Args:
        base_weights: Weights on a 0-1 or 0-100 scale
        scenarios: Scenarios whose mean score is tracked
        variation_percent: ± variation applied to each weight

    Returns:
        One SensitivityResult per consequence, largest impact first.
        Empty when there are no scenarios to score.
    """
    variation = (
        variation_percent
        if variation_percent is not None
        else settings.sensitivity_variation_percent
    )
    pool = list(scenarios)
    base = to_percent_scale(validate_weight_map(base_weights))
    if not pool:
        logger.info("Sensitivity analysis skipped: no scenarios")
        return []

    base_score = mean_score(pool, base)
    results: list[SensitivityResult] = []

    for key, weight in base.items():
        low = rebalance_weights(base, key, weight * (1 - variation / 100))
        high = rebalance_weights(base, key, weight * (1 + variation / 100))
        low_score = mean_score(pool, low)
        high_score = mean_score(pool, high)
        results.append(
            SensitivityResult(
                consequence=key,
                base_weight=round(weight, 4),
                low_weight=round(low[key], 4),
                high_weight=round(high[key], 4),
                base_score=round(base_score, 4),
                min_score=round(min(low_score, high_score), 4),
                max_score=round(max(low_score, high_score), 4),
                impact=round(abs(high_score - low_score), 4),
            )
        )

    results.sort(key=lambda r: r.impact, reverse=True)
    logger.info(
        f"Sensitivity analysis over {len(pool)} scenarios at ±{variation:g}%: "
        f"most sensitive is {results[0].consequence}"
    )
    return results

"""
Weight Synthesis Normalizer — The invariant boundary before activation.

Advisory weights are untrusted. Before anything can be activated:

1. every expected key is present and every value is finite and ≥ 0
2. a total more than 0.1 away from 100 is rescaled proportionally
3. no weight may sit below the floor (1.00); zero would erase a
   consequence type from every future assessment
4. the set is re-normalized to exactly 100.00 with floored weights held
   at the floor
5. deltas against the AHP baseline are computed for the comparison report
6. sum / positivity / bounds checks are recorded

Running the normalizer on its own output returns the same values.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from counterweight.config import settings
from counterweight.core.weight_utils import to_percent_scale, validate_weight_map
from counterweight.models.consequence_models import CONSEQUENCE_KEYS
from counterweight.models.synthesis_models import (
    FinalWeightSet,
    SynthesisInput,
    WeightChange,
    WeightChecks,
)

logger = logging.getLogger("counterweight.synthesis")

TARGET_TOTAL = 100.0
TOTAL_CENTS = 10_000


def scale_with_floor(
    weights: Mapping[str, float], floor: float, total: float = TARGET_TOTAL
) -> dict[str, float]:
    """
    Scale ``weights`` to sum ``total`` while holding every weight at or
    above ``floor``.

    Weights that would fall below the floor are pinned to it and the
    remaining mass is shared proportionally among the rest, repeating until
    no free weight drops below the floor.
    """
    if floor * len(weights) > total + 1e-9:
        raise ValueError(
            f"Floor {floor} is infeasible for {len(weights)} weights summing to {total}"
        )

    pinned: set[str] = set()
    while True:
        free = {k: v for k, v in weights.items() if k not in pinned}
        free_total = sum(free.values())
        remaining = total - floor * len(pinned)

        if free_total <= 0:
            # Every unpinned weight is zero: share the remainder equally.
            share = remaining / len(free) if free else 0.0
            scaled = {k: share for k in free}
        else:
            scaled = {k: v / free_total * remaining for k, v in free.items()}

        below = {k for k, v in scaled.items() if v < floor}
        if not below or below == set(free):
            if below:
                # Equal split of the remainder cannot be below the floor
                # because floor × n ≤ total.
                scaled = {k: remaining / len(free) for k in free}
            result = {k: floor for k in pinned}
            result.update(scaled)
            return {k: result[k] for k in weights}
        pinned |= below


def _round_to_total(weights: dict[str, float], floor: float) -> dict[str, float]:
    """
    Round to 2 decimals so the values add up to exactly 100.00.

    Largest-remainder rounding on integer cents: every value is first
    rounded down, then the leftover cents go to the largest remainders.
    Values never end below the floor because the floor itself is a whole
    number of cents.
    """
    floor_cents = math.ceil(floor * 100 - 1e-9)
    cents = {k: v * 100 for k, v in weights.items()}
    base = {k: max(math.floor(c + 1e-9), floor_cents) for k, c in cents.items()}
    leftover = TOTAL_CENTS - sum(base.values())

    order = sorted(cents, key=lambda k: (cents[k] - base[k], cents[k]), reverse=True)
    if leftover > 0:
        for k in order[:leftover]:
            base[k] += 1
    elif leftover < 0:
        for k in reversed(order):
            if leftover == 0:
                break
            if base[k] > floor_cents:
                base[k] -= 1
                leftover += 1

    return {k: base[k] / 100 for k in weights}


def normalize_weights(
    raw_weights: Mapping[Any, Any],
    keys: Iterable[Any] | None = None,
    floor: float | None = None,
) -> dict[str, float]:
    """
    Turn an untrusted weight map into one that sums to 100.00 with every
    value at or above the floor.

    Args:
        raw_weights: Weights on the 0-100 scale
        keys: Keys that must be present, and the only keys allowed
            (defaults to all ten consequence types)
        floor: Minimum weight (defaults to settings.weight_floor)

    Raises:
        MalformedWeightSet: on missing/unexpected keys or invalid values.
    """
    required = list(keys) if keys is not None else list(CONSEQUENCE_KEYS)
    weights = validate_weight_map(raw_weights, required_keys=required)
    min_weight = floor if floor is not None else settings.weight_floor

    # ── Step 2: proportional rescale ──
    total = sum(weights.values())
    if abs(total - TARGET_TOTAL) > settings.rescale_tolerance:
        if total > 0:
            logger.warning(f"Weights sum to {total:.4f}, rescaling to 100")
            weights = {k: v / total * TARGET_TOTAL for k, v in weights.items()}
        else:
            logger.warning("All weights are zero, falling back to an equal split")

    # ── Step 3: floor ──
    below_floor = [k for k, v in weights.items() if v < min_weight]
    for key in below_floor:
        logger.warning(
            f"{key} weight {weights[key]:.4f} is below the {min_weight:.2f} floor, raising it"
        )

    # ── Step 4: re-normalize with floored weights held in place ──
    balanced = scale_with_floor(weights, min_weight)
    return _round_to_total(balanced, min_weight)


def compute_checks(
    weights: Mapping[str, float],
    upper_bound: float | None = None,
    floor: float | None = None,
) -> WeightChecks:
    min_weight = floor if floor is not None else settings.weight_floor
    total = sum(weights.values())
    return WeightChecks(
        sum_ok=abs(total - TARGET_TOTAL) <= settings.sum_tolerance,
        all_positive=all(w >= min_weight - 1e-9 for w in weights.values()),
        bounds_ok=upper_bound is None or all(w <= upper_bound for w in weights.values()),
    )


def compute_deltas(
    final_weights: Mapping[str, float],
    ahp_baseline: Mapping[str, float],
) -> dict[str, float]:
    """final - baseline per consequence, baseline converted to 0-100 first."""
    baseline = to_percent_scale(ahp_baseline)
    return {
        key: round(weight - baseline.get(key, 0.0), 2)
        for key, weight in final_weights.items()
    }


def synthesize(synthesis_input: SynthesisInput) -> FinalWeightSet:
    """
    Normalize advisory weights against the AHP baseline's key set.

    Raises:
        MalformedWeightSet: if the advisory weights fail validation.
    """
    keys = list(synthesis_input.ahp_baseline.keys())
    weights = normalize_weights(synthesis_input.raw_weights, keys=keys)
    checks = compute_checks(weights, upper_bound=synthesis_input.upper_bound)

    if not checks.all_passed:
        logger.warning(f"Final weight checks did not all pass: {checks.model_dump()}")

    return FinalWeightSet(
        weights=weights,
        deltas_vs_ahp=compute_deltas(weights, synthesis_input.ahp_baseline),
        checks=checks,
    )


def compare_weights(
    ahp_weights: Mapping[str, float],
    final_weights: Mapping[str, float],
    significant_threshold: float | None = None,
) -> list[WeightChange]:
    """Rows for the AHP-vs-final comparison table, highest final weight first."""
    threshold = (
        significant_threshold
        if significant_threshold is not None
        else settings.significant_change_threshold
    )
    baseline = to_percent_scale(ahp_weights)

    rows: list[WeightChange] = []
    for key, final in final_weights.items():
        ahp = baseline.get(key, 0.0)
        delta = final - ahp
        if abs(delta) < 0.1:
            label = "0"
        elif delta > 0:
            label = f"+{delta:.1f}"
        else:
            label = f"{delta:.1f}"
        rows.append(
            WeightChange(
                consequence=key,
                ahp_weight=round(ahp, 2),
                final_weight=round(final, 2),
                delta=round(delta, 2),
                change_label=label,
                significant=abs(delta) >= threshold,
            )
        )
    rows.sort(key=lambda r: r.final_weight, reverse=True)
    return rows

"""
Weight map validation and scale helpers shared by the scorer and synthesis.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Iterable, Mapping

from counterweight.errors import MalformedWeightSet

# A weight map whose total is within this distance of 1.0 is on the 0-1 scale.
FRACTION_SCALE_TOLERANCE = 1e-3


def _key(name: Any) -> str:
    return str(name.value) if isinstance(name, Enum) else str(name)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def collect_weight_errors(
    weights: Mapping[Any, Any],
    required_keys: Iterable[Any] | None = None,
    allow_extra: bool = False,
) -> list[str]:
    """Every problem with a weight map, without raising."""
    errors: list[str] = []
    present = {_key(k) for k in weights}

    if required_keys is not None:
        required = [_key(k) for k in required_keys]
        missing = [k for k in required if k not in present]
        if missing:
            errors.append(f"Missing weights for: {', '.join(missing)}")
        if not allow_extra:
            unexpected = sorted(present - set(required))
            if unexpected:
                errors.append(f"Unexpected weight keys: {', '.join(unexpected)}")

    for key, value in weights.items():
        if not is_number(value):
            errors.append(f"Weight for '{_key(key)}' is not a number: {value!r}")
        elif not math.isfinite(value):
            errors.append(f"Weight for '{_key(key)}' is not finite: {value}")
        elif value < 0:
            errors.append(f"Weight for '{_key(key)}' is negative: {value}")

    return errors


def validate_weight_map(
    weights: Mapping[Any, Any],
    required_keys: Iterable[Any] | None = None,
    allow_extra: bool = False,
) -> dict[str, float]:
    """
    Check a weight map and return it with plain string keys and float values.

    Raises:
        MalformedWeightSet: listing every missing key, unexpected key and
            non-finite or negative value found.
    """
    errors = collect_weight_errors(weights, required_keys, allow_extra)
    if errors:
        raise MalformedWeightSet(errors)
    return {_key(k): float(v) for k, v in weights.items()}


def is_fraction_scale(weights: Mapping[str, float]) -> bool:
    """True when the weights look like fractions summing to 1.0."""
    total = sum(weights.values())
    return abs(total - 1.0) <= FRACTION_SCALE_TOLERANCE


def to_percent_scale(weights: Mapping[Any, float]) -> dict[str, float]:
    """Express weights on the 0-100 scale; 0-1 maps are multiplied by 100."""
    plain = {_key(k): float(v) for k, v in weights.items()}
    if is_fraction_scale(plain):
        return {k: v * 100 for k, v in plain.items()}
    return plain

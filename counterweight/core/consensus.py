"""
Group Consensus — Combines several executives' AHP weights into one set.

    consensus_c = (Π_s w_{s,c}) ^ (1 / S)      geometric mean over sessions
    final_c     = consensus_c / Σ consensus × 100

Every session must cover the same consequence keys with positive weights.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from counterweight.core.weight_utils import to_percent_scale, validate_weight_map
from counterweight.errors import InsufficientSessions, MalformedWeightSet
from counterweight.models.ahp_models import AHPResult

logger = logging.getLogger("counterweight.consensus")

MIN_SESSIONS = 2


def _as_weights(result: AHPResult | Mapping[Any, Any]) -> dict[str, float]:
    weights = result.weights if isinstance(result, AHPResult) else result
    return to_percent_scale(validate_weight_map(weights))


def aggregate_group_weights(
    results: Iterable[AHPResult | Mapping[Any, Any]],
) -> dict[str, float]:
    """
    Group consensus weights on the 0-100 scale.

    Args:
        results: One AHPResult or weight map (0-1 or 0-100 scale) per
            completed session

    Returns:
        Weights keyed like the inputs, summing to 100.

    Raises:
        InsufficientSessions: fewer than two sessions were given.
        MalformedWeightSet: the sessions disagree on the consequence keys,
            or a weight is invalid or zero.
    """
    sessions = [_as_weights(r) for r in results]
    if len(sessions) < MIN_SESSIONS:
        raise InsufficientSessions(len(sessions), MIN_SESSIONS)

    keys = list(sessions[0])
    errors: list[str] = []
    for index, weights in enumerate(sessions[1:], start=2):
        missing = [k for k in keys if k not in weights]
        extra = sorted(set(weights) - set(keys))
        if missing:
            errors.append(f"Session {index} is missing: {', '.join(missing)}")
        if extra:
            errors.append(f"Session {index} has unexpected keys: {', '.join(extra)}")
    for index, weights in enumerate(sessions, start=1):
        zeros = [k for k, v in weights.items() if v <= 0]
        if zeros:
            errors.append(f"Session {index} has zero weights for: {', '.join(zeros)}")
    if errors:
        raise MalformedWeightSet(errors)

    consensus = {
        key: math.exp(sum(math.log(s[key]) for s in sessions) / len(sessions))
        for key in keys
    }
    total = sum(consensus.values())
    aggregated = {key: value / total * 100 for key, value in consensus.items()}

    logger.info(f"Group consensus computed from {len(sessions)} sessions")
    return aggregated

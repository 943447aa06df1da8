"""
AHP-only Fallback — Final weights when advisory input is unusable.

Used when:
- The advisory subsystem times out or fails on every attempt
- Its response fails validation
- Its weights cannot be normalized
- No advisory client is configured

The AHP baseline goes through the same normalizer as advisory weights, so
the fallback result honors the same invariants. It is always flagged
"limited" so the degradation stays visible.
"""

from __future__ import annotations

import logging
from typing import Mapping

from counterweight.core.weight_utils import to_percent_scale
from counterweight.models.synthesis_models import SynthesisInput, SynthesisOutcome
from counterweight.synthesis.normalizer import synthesize

logger = logging.getLogger("counterweight.advisory.fallback")


def build_fallback_outcome(
    ahp_baseline: Mapping[str, float],
    reason: str,
    attempts: int = 0,
    upper_bound: float | None = None,
) -> SynthesisOutcome:
    """Limited-data outcome built from the AHP weights alone."""
    logger.warning(f"Falling back to AHP-only weights: {reason}")
    baseline = dict(ahp_baseline)
    final = synthesize(
        SynthesisInput(
            raw_weights=to_percent_scale(baseline),
            ahp_baseline=baseline,
            upper_bound=upper_bound,
        )
    )
    return SynthesisOutcome(
        final=final,
        data_quality="limited",
        degraded_reason=reason,
        source_contributions={"ahp": 100.0},
        justification=None,
        attempts=attempts,
    )

"""
Synthesis Pipeline — Advisory call → validation → normalization, or fallback.

Full pipeline:
1. Request raw weights from the advisory subsystem (timeout + retries)
2. Validate the payload and resolve consequence names
3. Normalize into a FinalWeightSet against the AHP baseline
4. On any failure in 1-3 → AHP-only weights flagged "limited"

Nothing here raises on advisory problems; only cancellation propagates.
"""

from __future__ import annotations

import logging
import time

from counterweight.advisory.fallback import build_fallback_outcome
from counterweight.advisory.gateway import AdvisoryGateway, ProgressCallback
from counterweight.advisory.response_validator import validate_advisory_response
from counterweight.errors import AdvisoryUnavailable, MalformedWeightSet
from counterweight.models.synthesis_models import (
    AdvisoryRequest,
    SynthesisInput,
    SynthesisOutcome,
)
from counterweight.synthesis.normalizer import synthesize

logger = logging.getLogger("counterweight.synthesis.pipeline")


class SynthesisPipeline:
    """
    Produces the final weight set for stage 5.

    Ties together: advisory gateway → response validator → normalizer,
    with the AHP-only fallback at every failure point.
    """

    def __init__(
        self,
        gateway: AdvisoryGateway | None = None,
        upper_bound: float | None = None,
    ) -> None:
        self.gateway = gateway
        self.upper_bound = upper_bound

    async def run(
        self,
        request: AdvisoryRequest,
        on_progress: ProgressCallback | None = None,
    ) -> SynthesisOutcome:
        """
        Execute the synthesis pipeline.

        Args:
            request: Structured advisory context (carries the AHP baseline)
            on_progress: Optional cosmetic progress callback

        Returns:
            SynthesisOutcome with data_quality "full", or "limited" when the
            advisory input could not be used
        """
        start_time = time.monotonic()
        baseline = dict(request.ahp_weights)

        if self.gateway is None:
            return self._fallback(baseline, "No advisory subsystem configured", 0)

        # ── Step 1: advisory call ──
        try:
            reply = await self.gateway.request(request, on_progress=on_progress)
        except AdvisoryUnavailable as e:
            return self._fallback(baseline, f"Advisory subsystem unavailable: {e.last_error}", e.attempts)

        attempts = reply.attempts

        # ── Step 2: validate ──
        validation = validate_advisory_response(reply.payload, keys=list(baseline))
        if not validation.valid:
            return self._fallback(
                baseline,
                "Advisory response rejected: " + "; ".join(validation.errors),
                attempts,
            )

        # ── Step 3: normalize ──
        try:
            final = synthesize(
                SynthesisInput(
                    raw_weights=validation.weights,
                    ahp_baseline=baseline,
                    upper_bound=self.upper_bound,
                )
            )
        except MalformedWeightSet as e:
            return self._fallback(baseline, f"Advisory weights malformed: {e}", attempts)

        elapsed = (time.monotonic() - start_time) * 1000
        logger.info(
            f"Synthesis complete in {elapsed:.0f}ms after {attempts} attempt(s), "
            f"checks passed: {final.checks.all_passed}"
        )

        return SynthesisOutcome(
            final=final,
            data_quality="full",
            source_contributions=validation.source_contributions,
            justification=validation.response.justification if validation.response else None,
            attempts=attempts,
        )

    def _fallback(self, baseline: dict[str, float], reason: str, attempts: int) -> SynthesisOutcome:
        return build_fallback_outcome(
            baseline, reason, attempts=attempts, upper_bound=self.upper_bound
        )

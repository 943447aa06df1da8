"""
Request Builder — Structured advisory context from the earlier stages.

The advisory subsystem never receives raw session state. It receives:
- Organization context captured in stage 1
- AHP weights (0-100 scale) and the consistency verdict
- Scenario validations and the alignment summary
- Research findings, when the research step produced any
- The exact consequence keys its weights must use
"""

from __future__ import annotations

from typing import Any, Iterable

from counterweight.core.scenario_scorer import summarize_alignment
from counterweight.models.ahp_models import AHPResult
from counterweight.models.scenario_models import ScenarioValidation
from counterweight.models.synthesis_models import AdvisoryRequest


def build_advisory_request(
    ahp_result: AHPResult,
    validations: Iterable[ScenarioValidation] = (),
    research_findings: dict[str, Any] | None = None,
    organization_context: dict[str, Any] | None = None,
) -> AdvisoryRequest:
    """
    Build the request sent to the advisory subsystem.

    Args:
        ahp_result: Solved AHP baseline
        validations: Scenario ratings from stage 3
        research_findings: Stage 4 output, if any
        organization_context: Stage 1 answers

    Returns:
        AdvisoryRequest ready for AdvisoryGateway.request()
    """
    rated = list(validations)
    return AdvisoryRequest(
        organization_context=dict(organization_context or {}),
        ahp_weights={k: round(w * 100, 4) for k, w in ahp_result.weights.items()},
        consistency_ratio=ahp_result.consistency_ratio,
        is_consistent=ahp_result.is_consistent,
        scenario_validations=rated,
        alignment=summarize_alignment(rated) if rated else None,
        research_findings=research_findings,
        consequence_keys=list(ahp_result.weights.keys()),
    )

"""
Synthesis Data Models — Advisory input/output contracts and the final weight set.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from counterweight.models.scenario_models import AlignmentSummary, ScenarioValidation


class SynthesisInput(BaseModel):
    """Raw advisory weights plus the AHP baseline they are compared against."""

    raw_weights: dict[str, Any] = Field(
        ..., description="Untrusted weights from the advisory subsystem (0-100 scale)"
    )
    ahp_baseline: dict[str, float] = Field(
        ..., description="AHP weights, on a 0-1 or 0-100 scale"
    )
    upper_bound: float | None = Field(
        default=None, description="Optional caller-imposed maximum for any single weight"
    )


class WeightChecks(BaseModel):
    """Invariant checks on a final weight set."""

    sum_ok: bool
    all_positive: bool
    bounds_ok: bool

    @property
    def all_passed(self) -> bool:
        return self.sum_ok and self.all_positive and self.bounds_ok


class FinalWeightSet(BaseModel):
    """The only weight set eligible for activation into risk assessments."""

    model_config = ConfigDict(frozen=True)

    weights: dict[str, float] = Field(
        ..., description="Final weights, sum 100.00, each at least the floor"
    )
    deltas_vs_ahp: dict[str, float] = Field(
        default_factory=dict, description="final - AHP baseline, in percentage points"
    )
    checks: WeightChecks


class WeightChange(BaseModel):
    """One row of the AHP-vs-final comparison report."""

    consequence: str
    ahp_weight: float
    final_weight: float
    delta: float
    change_label: str = Field(..., description="'+x.x', '-x.x' or '0'")
    significant: bool = False


class AdvisoryRequest(BaseModel):
    """Structured context sent to the advisory subsystem."""

    organization_context: dict[str, Any] = Field(default_factory=dict)
    ahp_weights: dict[str, float] = Field(
        ..., description="AHP weights on the 0-100 scale"
    )
    consistency_ratio: float = 0.0
    is_consistent: bool = True
    scenario_validations: list[ScenarioValidation] = Field(default_factory=list)
    alignment: AlignmentSummary | None = None
    research_findings: dict[str, Any] | None = None
    consequence_keys: list[str] = Field(
        default_factory=list, description="Keys the response must use"
    )


class AdvisoryResponse(BaseModel):
    """Advisory payload after schema parsing. Weights are still untrusted."""

    recommended_weights: dict[str, Any] = Field(default_factory=dict)
    source_contributions: dict[str, Any] = Field(default_factory=dict)
    justification: Any = Field(
        default=None, description="Opaque pass-through payload, never interpreted"
    )


class SynthesisOutcome(BaseModel):
    """Final weights plus how they were obtained."""

    final: FinalWeightSet
    data_quality: Literal["full", "limited"] = "full"
    degraded_reason: str | None = None
    source_contributions: dict[str, float] = Field(default_factory=dict)
    justification: Any = None
    attempts: int = 0

    @property
    def is_limited(self) -> bool:
        return self.data_quality == "limited"


class AdvisoryReply(BaseModel):
    """Raw advisory payload plus the number of attempts it took to get it."""

    payload: dict[str, Any]
    attempts: int = Field(..., ge=1)

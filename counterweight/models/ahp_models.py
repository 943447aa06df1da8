"""
AHP Data Models — Solver output for a pairwise comparison matrix.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AHPResult(BaseModel):
    """Weights and consistency verdict derived from one matrix version."""

    model_config = ConfigDict(frozen=True)

    weights: dict[str, float] = Field(
        ..., description="Normalized priority weights, summing to 1.0"
    )
    percent_weights: dict[str, float] = Field(
        default_factory=dict,
        description="Weights on a 0-100 scale, rounded to 2 decimals",
    )
    lambda_max: float = Field(..., description="Principal eigenvalue estimate")
    consistency_index: float = Field(..., description="CI = (λmax - n) / (n - 1)")
    consistency_ratio: float = Field(..., ge=0.0, description="CR = CI / RI(n)")
    is_consistent: bool = Field(..., description="CR within the configured threshold")
    iterations: int = Field(default=0, description="Power iteration steps used")
    matrix_version: int = Field(
        default=0, description="Version of the matrix snapshot this result was solved from"
    )

    @property
    def consistency_percent(self) -> float:
        return round(self.consistency_ratio * 100, 1)

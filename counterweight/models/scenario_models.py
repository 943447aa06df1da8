"""
Scenario Data Models — Reference scenarios, user ratings and alignment results.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskCategory(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def ordinal(self) -> int:
        return CATEGORY_ORDER.index(self)


CATEGORY_ORDER: list[RiskCategory] = [
    RiskCategory.LOW,
    RiskCategory.MEDIUM,
    RiskCategory.HIGH,
    RiskCategory.EXTREME,
]

# Left-inclusive upper bounds; anything at or above 75 is extreme.
CATEGORY_THRESHOLDS: dict[RiskCategory, float] = {
    RiskCategory.LOW: 25.0,
    RiskCategory.MEDIUM: 50.0,
    RiskCategory.HIGH: 75.0,
}


class ScenarioDefinition(BaseModel):
    """A reference scenario with per-consequence impact levels (1-5)."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    consequence_values: dict[str, int] = Field(
        ..., description="Impact level 1-5 per consequence type"
    )
    expected_category: RiskCategory | None = Field(
        default=None, description="Category the scenario author expected"
    )

    @field_validator("consequence_values")
    @classmethod
    def _impact_levels_in_range(cls, values: dict[str, int]) -> dict[str, int]:
        for key, level in values.items():
            if not 1 <= level <= 5:
                raise ValueError(f"Impact level for '{key}' must be 1-5, got {level}")
        return values


class ScenarioValidation(BaseModel):
    """One user rating compared against the weight-derived category."""

    model_config = ConfigDict(frozen=True)

    scenario_id: str
    user_rating: RiskCategory
    computed_score: float = Field(..., ge=0.0, le=100.0)
    computed_category: RiskCategory
    aligned: bool
    misalignment_magnitude: int = Field(..., ge=0, le=3)


class AlignmentSummary(BaseModel):
    """Aggregate alignment across all rated scenarios. Advisory only."""

    total: int = 0
    aligned_count: int = 0
    alignment_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    mean_misalignment: float = 0.0
    verdict: Literal["good_alignment", "review_recommended"] = "review_recommended"

    @property
    def is_good(self) -> bool:
        return self.verdict == "good_alignment"


class SensitivityResult(BaseModel):
    """Effect of varying one consequence weight on the mean scenario score."""

    consequence: str
    base_weight: float
    low_weight: float
    high_weight: float
    base_score: float
    min_score: float
    max_score: float
    impact: float = Field(..., ge=0.0, description="max_score - min_score")

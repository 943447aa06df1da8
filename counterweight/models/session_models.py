"""
Session Data Models — Stage bookkeeping and the persistable session snapshot.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from counterweight.models.ahp_models import AHPResult
from counterweight.models.scenario_models import ScenarioDefinition, ScenarioValidation
from counterweight.models.synthesis_models import SynthesisOutcome


class Stage(IntEnum):
    CONTEXT = 1
    PAIRWISE_JUDGMENT = 2
    SCENARIO_VALIDATION = 3
    RESEARCH = 4
    SYNTHESIS = 5
    APPROVAL = 6

    @property
    def title(self) -> str:
        return STAGE_TITLES[self]


STAGE_TITLES: dict[Stage, str] = {
    Stage.CONTEXT: "Organization Context",
    Stage.PAIRWISE_JUDGMENT: "Executive Judgment",
    Stage.SCENARIO_VALIDATION: "Scenario Validation",
    Stage.RESEARCH: "Regulatory & Mission Research",
    Stage.SYNTHESIS: "Synthesis",
    Stage.APPROVAL: "Approval & Activation",
}

STAGE_COUNT = len(Stage)


class SessionState(BaseModel):
    """Where a session is, and which stages have been completed."""

    current_stage: int = Field(default=1, ge=1, le=STAGE_COUNT)
    completed: list[bool] = Field(default_factory=lambda: [False] * STAGE_COUNT)
    version: int = Field(default=0, ge=0, description="Bumped on every mutation")

    @field_validator("completed")
    @classmethod
    def _six_flags(cls, flags: list[bool]) -> list[bool]:
        if len(flags) != STAGE_COUNT:
            raise ValueError(f"Expected {STAGE_COUNT} completion flags, got {len(flags)}")
        return flags

    def is_completed(self, stage: int) -> bool:
        return self.completed[stage - 1]

    @property
    def is_finished(self) -> bool:
        return self.completed[STAGE_COUNT - 1]

    @property
    def progress(self) -> float:
        return sum(self.completed) / STAGE_COUNT


class ApprovalRecord(BaseModel):
    """Explicit sign-off on a final weight set."""

    approved_by: str = Field(..., min_length=1)
    notes: str = ""
    approved_at: datetime


class SessionSnapshot(BaseModel):
    """Everything a persistence collaborator needs to restore a session."""

    session_id: str
    state: SessionState = Field(default_factory=SessionState)
    items: list[str]
    context: dict[str, Any] | None = None
    comparisons: list[tuple[str, str, float]] = Field(
        default_factory=list, description="(row, col, value) for every judged pair"
    )
    matrix_version: int = 0
    scenarios: list[ScenarioDefinition] = Field(default_factory=list)
    validations: list[ScenarioValidation] = Field(default_factory=list)
    research_acknowledged: bool = False
    research_findings: dict[str, Any] | None = None
    ahp_result: AHPResult | None = None
    synthesis: SynthesisOutcome | None = None
    synthesis_accepted: bool = False
    approval: ApprovalRecord | None = None

"""
Elicitation Session — Six-stage state machine over the weighting components.

Stages:
1. Context               → exit: context captured
2. Pairwise judgment     → exit: matrix complete and AHP solved for it
3. Scenario validation   → exit: every loaded scenario rated
4. Research              → exit: research step acknowledged
5. Synthesis             → exit: a final weight set produced and accepted
6. Approval              → exit: explicit approval recorded (terminal)

The session holds no numeric logic of its own. Mutations are serialized by
a per-session lock and may carry an expected version; a mismatch raises
StaleSessionState and leaves the session untouched.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Iterator

from counterweight.advisory.gateway import ProgressCallback
from counterweight.advisory.request_builder import build_advisory_request
from counterweight.core import ahp_solver
from counterweight.core.pairwise_matrix import PairwiseMatrix
from counterweight.core.scenario_scorer import summarize_alignment, validate_scenario
from counterweight.errors import (
    ApprovalNotRecorded,
    ContextNotCaptured,
    JudgmentsIncomplete,
    NavigationError,
    ResearchNotAcknowledged,
    ScenariosNotRated,
    SessionClosed,
    StagePreconditionError,
    StaleSessionState,
    SynthesisNotAccepted,
    UnknownItem,
)
from counterweight.models.ahp_models import AHPResult
from counterweight.models.scenario_models import (
    AlignmentSummary,
    RiskCategory,
    ScenarioDefinition,
    ScenarioValidation,
)
from counterweight.models.session_models import (
    STAGE_COUNT,
    ApprovalRecord,
    SessionSnapshot,
    SessionState,
    Stage,
)
from counterweight.models.synthesis_models import (
    AdvisoryRequest,
    FinalWeightSet,
    SynthesisOutcome,
)
from counterweight.synthesis.pipeline import SynthesisPipeline

logger = logging.getLogger("counterweight.session")


class ElicitationSession:
    """
    One user's weighting session.

    Usage:
        session = ElicitationSession()
        session.capture_context({"industry": "healthcare"})
        session.advance()
        session.set_comparison("fatalities", "injuries", 3)
        ...
        session.solve_ahp()
        session.advance()
    """

    def __init__(
        self,
        session_id: str | None = None,
        items: Iterable[str | Enum] | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._lock = threading.Lock()
        self._state = SessionState()
        self._context: dict[str, Any] | None = None
        self._matrix = PairwiseMatrix.create(items)
        self._ahp_result: AHPResult | None = None
        self._scenarios: dict[str, ScenarioDefinition] = {}
        self._validations: dict[str, ScenarioValidation] = {}
        self._research_acknowledged = False
        self._research_findings: dict[str, Any] | None = None
        self._synthesis: SynthesisOutcome | None = None
        self._synthesis_accepted = False
        self._approval: ApprovalRecord | None = None

    # ── Read-only views ──

    @property
    def state(self) -> SessionState:
        return self._state.model_copy(deep=True)

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def current_stage(self) -> Stage:
        return Stage(self._state.current_stage)

    @property
    def items(self) -> tuple[str, ...]:
        return self._matrix.items

    @property
    def context(self) -> dict[str, Any] | None:
        return self._context

    @property
    def matrix(self) -> PairwiseMatrix:
        return self._matrix

    @property
    def ahp_result(self) -> AHPResult | None:
        return self._ahp_result

    @property
    def scenarios(self) -> list[ScenarioDefinition]:
        return list(self._scenarios.values())

    @property
    def validations(self) -> list[ScenarioValidation]:
        return [self._validations[s] for s in self._scenarios if s in self._validations]

    @property
    def research_findings(self) -> dict[str, Any] | None:
        return self._research_findings

    @property
    def synthesis(self) -> SynthesisOutcome | None:
        return self._synthesis

    @property
    def synthesis_accepted(self) -> bool:
        return self._synthesis_accepted

    @property
    def approval(self) -> ApprovalRecord | None:
        return self._approval

    @property
    def final_weights(self) -> FinalWeightSet | None:
        """The accepted final weight set, if any."""
        if self._synthesis is not None and self._synthesis_accepted:
            return self._synthesis.final
        return None

    @property
    def is_finished(self) -> bool:
        return self._state.is_finished

    def alignment_summary(self) -> AlignmentSummary:
        return summarize_alignment(self.validations)

    # ── Concurrency ──

    @contextmanager
    def _mutation(self, expected_version: int | None) -> Iterator[None]:
        """Serialize a mutation and bump the version if it succeeds."""
        with self._lock:
            if expected_version is not None and expected_version != self._state.version:
                logger.warning(
                    f"Session {self.session_id}: rejected stale write "
                    f"(expected v{expected_version}, at v{self._state.version})"
                )
                raise StaleSessionState(expected_version, self._state.version)
            yield
            self._state = self._state.model_copy(
                update={"version": self._state.version + 1}
            )

    def _require_open(self) -> None:
        if self._state.is_finished:
            raise SessionClosed(f"Session {self.session_id} has been approved and is closed")

    def _require_stage(self, stage: Stage, action: str) -> None:
        self._require_open()
        if self._state.current_stage != stage:
            raise NavigationError(
                f"Cannot {action} at stage {self._state.current_stage}; "
                f"it belongs to stage {int(stage)} ({stage.title})"
            )

    # ── Navigation ──

    def check_exit(self, stage: Stage | int | None = None) -> None:
        """
        Raise the stage-specific precondition error if ``stage`` (default:
        current stage) cannot be left yet.
        """
        target = Stage(stage if stage is not None else self._state.current_stage)

        if target is Stage.CONTEXT:
            if self._context is None:
                raise ContextNotCaptured("organization context has not been captured")

        elif target is Stage.PAIRWISE_JUDGMENT:
            if not self._matrix.is_complete():
                missing = len(self._matrix.missing_pairs())
                raise JudgmentsIncomplete(
                    f"{missing} of {self._matrix.total_pairs} comparisons are missing"
                )
            if (
                self._ahp_result is None
                or self._ahp_result.matrix_version != self._matrix.version
            ):
                raise JudgmentsIncomplete("AHP weights have not been solved for the current judgments")

        elif target is Stage.SCENARIO_VALIDATION:
            unrated = [s for s in self._scenarios if s not in self._validations]
            if unrated:
                raise ScenariosNotRated(f"unrated scenarios: {', '.join(unrated)}")

        elif target is Stage.RESEARCH:
            if not self._research_acknowledged:
                raise ResearchNotAcknowledged("research step has not been acknowledged")

        elif target is Stage.SYNTHESIS:
            if self._synthesis is None:
                raise SynthesisNotAccepted("no final weight set has been produced")
            if not self._synthesis_accepted:
                raise SynthesisNotAccepted("the final weight set has not been accepted")

        elif target is Stage.APPROVAL:
            if self._approval is None:
                raise ApprovalNotRecorded("no approval has been recorded")

    def can_advance(self) -> bool:
        try:
            self._require_open()
            self.check_exit()
        except (SessionClosed, StagePreconditionError):
            return False
        return True

    def advance(self, expected_version: int | None = None) -> SessionState:
        """
        Complete the current stage and move to the next one.

        Raises:
            StagePreconditionError subclass: the current stage's exit
                condition does not hold; nothing changes.
            SessionClosed: the session is already finished.
            StaleSessionState: ``expected_version`` is out of date.
        """
        with self._mutation(expected_version):
            self._require_open()
            stage = self._state.current_stage
            self.check_exit(stage)

            completed = list(self._state.completed)
            completed[stage - 1] = True
            self._state = self._state.model_copy(
                update={
                    "completed": completed,
                    "current_stage": min(stage + 1, STAGE_COUNT),
                }
            )

        if self._state.is_finished:
            logger.info(f"Session {self.session_id}: approved, session finished")
        else:
            logger.info(
                f"Session {self.session_id}: stage {stage} complete, "
                f"now at stage {self._state.current_stage} ({self.current_stage.title})"
            )
        return self.state

    def retreat(self, expected_version: int | None = None) -> SessionState:
        """Go back one stage for review. Completion flags are kept."""
        with self._mutation(expected_version):
            self._require_open()
            stage = self._state.current_stage
            if stage <= 1:
                raise NavigationError("Already at the first stage")
            self._state = self._state.model_copy(update={"current_stage": stage - 1})

        logger.info(f"Session {self.session_id}: back to stage {self._state.current_stage}")
        return self.state

    # ── Stage 1: context ──

    def capture_context(
        self, context: dict[str, Any], expected_version: int | None = None
    ) -> None:
        with self._mutation(expected_version):
            self._require_stage(Stage.CONTEXT, "capture context")
            self._context = dict(context)

    # ── Stage 2: pairwise judgment ──

    def set_comparison(
        self,
        i: str | Enum,
        j: str | Enum,
        value: float,
        expected_version: int | None = None,
    ) -> PairwiseMatrix:
        """
        Record one judgment. Any AHP result for the old matrix is dropped,
        and a synthesis computed from it must be redone.
        """
        with self._mutation(expected_version):
            self._require_stage(Stage.PAIRWISE_JUDGMENT, "edit judgments")
            self._matrix = self._matrix.set_comparison(i, j, value)
            self._ahp_result = None
            self._invalidate_synthesis()
        return self._matrix

    def solve_ahp(self, expected_version: int | None = None) -> AHPResult:
        """
        Raises:
            IncompleteMatrix: when some pairs have not been judged.
        """
        with self._mutation(expected_version):
            self._require_stage(Stage.PAIRWISE_JUDGMENT, "solve AHP weights")
            self._ahp_result = ahp_solver.solve(self._matrix)
        return self._ahp_result

    def _invalidate_synthesis(self) -> None:
        synthesis_done = self._state.is_completed(Stage.SYNTHESIS)
        if self._synthesis is None and not synthesis_done:
            return
        logger.warning(
            f"Session {self.session_id}: judgments changed, "
            f"synthesis must be recomputed"
        )
        self._synthesis = None
        self._synthesis_accepted = False
        self._approval = None
        completed = list(self._state.completed)
        completed[Stage.SYNTHESIS - 1] = False
        self._state = self._state.model_copy(update={"completed": completed})

    # ── Stage 3: scenario validation ──

    def load_scenarios(
        self,
        scenarios: Iterable[ScenarioDefinition],
        expected_version: int | None = None,
    ) -> None:
        """Replace the scenario set; ratings of scenarios still present are kept."""
        loaded = list(scenarios)
        ids = [s.id for s in loaded]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate scenario ids: {ids}")

        with self._mutation(expected_version):
            self._require_stage(Stage.SCENARIO_VALIDATION, "load scenarios")
            self._scenarios = {s.id: s for s in loaded}
            self._validations = {
                k: v for k, v in self._validations.items() if k in self._scenarios
            }
        logger.info(f"Session {self.session_id}: {len(loaded)} scenarios loaded")

    def rate_scenario(
        self,
        scenario_id: str,
        rating: RiskCategory | str,
        expected_version: int | None = None,
    ) -> ScenarioValidation:
        with self._mutation(expected_version):
            self._require_stage(Stage.SCENARIO_VALIDATION, "rate scenarios")
            scenario = self._scenarios.get(scenario_id)
            if scenario is None:
                raise UnknownItem(scenario_id)
            if self._ahp_result is None:
                raise JudgmentsIncomplete("AHP weights are required to score scenarios")
            validation = validate_scenario(scenario, self._ahp_result.weights, rating)
            self._validations[scenario_id] = validation
        return validation

    # ── Stage 4: research ──

    def acknowledge_research(
        self,
        findings: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> None:
        """Mark research as reviewed; empty findings are acceptable."""
        with self._mutation(expected_version):
            self._require_stage(Stage.RESEARCH, "acknowledge research")
            self._research_findings = dict(findings) if findings else None
            self._research_acknowledged = True
        if findings is None:
            logger.info(f"Session {self.session_id}: research acknowledged without data")

    # ── Stage 5: synthesis ──

    def build_advisory_request(self) -> AdvisoryRequest:
        if self._ahp_result is None:
            raise JudgmentsIncomplete("AHP weights are required for synthesis")
        return build_advisory_request(
            self._ahp_result,
            validations=self.validations,
            research_findings=self._research_findings,
            organization_context=self._context,
        )

    async def run_synthesis(
        self,
        pipeline: SynthesisPipeline,
        on_progress: ProgressCallback | None = None,
    ) -> SynthesisOutcome:
        """
        Run the synthesis pipeline and record its outcome.

        The session version is captured before the advisory wait; if the
        session changed meanwhile the outcome is rejected as stale.
        """
        self._require_stage(Stage.SYNTHESIS, "run synthesis")
        version = self._state.version
        request = self.build_advisory_request()
        outcome = await pipeline.run(request, on_progress=on_progress)
        self.record_synthesis(outcome, expected_version=version)
        return outcome

    def record_synthesis(
        self, outcome: SynthesisOutcome, expected_version: int | None = None
    ) -> None:
        with self._mutation(expected_version):
            self._require_stage(Stage.SYNTHESIS, "record a synthesis")
            self._synthesis = outcome
            self._synthesis_accepted = False
        logger.info(
            f"Session {self.session_id}: synthesis recorded "
            f"(data quality: {outcome.data_quality})"
        )

    def accept_synthesis(self, expected_version: int | None = None) -> FinalWeightSet:
        """
        Raises:
            SynthesisNotAccepted: no synthesis exists or its checks failed.
        """
        with self._mutation(expected_version):
            self._require_stage(Stage.SYNTHESIS, "accept a synthesis")
            if self._synthesis is None:
                raise SynthesisNotAccepted("no final weight set has been produced")
            checks = self._synthesis.final.checks
            if not checks.all_passed:
                raise SynthesisNotAccepted(
                    f"final weights failed invariant checks: {checks.model_dump()}"
                )
            self._synthesis_accepted = True
        return self._synthesis.final

    # ── Stage 6: approval ──

    def approve(
        self,
        approved_by: str,
        notes: str = "",
        expected_version: int | None = None,
    ) -> ApprovalRecord:
        with self._mutation(expected_version):
            self._require_stage(Stage.APPROVAL, "approve weights")
            if self.final_weights is None:
                raise SynthesisNotAccepted("there is no accepted weight set to approve")
            self._approval = ApprovalRecord(
                approved_by=approved_by,
                notes=notes,
                approved_at=datetime.now(timezone.utc),
            )
        logger.info(f"Session {self.session_id}: approval recorded by {approved_by}")
        return self._approval

    # ── Persistence hand-off ──

    def snapshot(self) -> SessionSnapshot:
        """Everything needed to restore this session later."""
        with self._lock:
            return SessionSnapshot(
                session_id=self.session_id,
                state=self._state.model_copy(deep=True),
                items=list(self._matrix.items),
                context=self._context,
                comparisons=self._matrix.comparisons(),
                matrix_version=self._matrix.version,
                scenarios=list(self._scenarios.values()),
                validations=list(self._validations.values()),
                research_acknowledged=self._research_acknowledged,
                research_findings=self._research_findings,
                ahp_result=self._ahp_result,
                synthesis=self._synthesis,
                synthesis_accepted=self._synthesis_accepted,
                approval=self._approval,
            )

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> ElicitationSession:
        session = cls(session_id=snapshot.session_id, items=snapshot.items)
        session._state = snapshot.state.model_copy(deep=True)
        session._context = snapshot.context
        session._matrix = PairwiseMatrix.from_comparisons(
            snapshot.items, snapshot.comparisons, version=snapshot.matrix_version
        )
        session._scenarios = {s.id: s for s in snapshot.scenarios}
        session._validations = {v.scenario_id: v for v in snapshot.validations}
        session._research_acknowledged = snapshot.research_acknowledged
        session._research_findings = snapshot.research_findings
        session._ahp_result = snapshot.ahp_result
        session._synthesis = snapshot.synthesis
        session._synthesis_accepted = snapshot.synthesis_accepted
        session._approval = snapshot.approval
        return session

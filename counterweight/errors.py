"""
Domain Errors — Every failure mode of the weighting core.

Each error carries structured attributes so the presentation layer can
re-prompt or reload without parsing messages.
"""

from __future__ import annotations


class WeightingError(Exception):
    """Base class for all Counterweight errors."""


# ── Matrix / solver ──


class InvalidScaleValue(WeightingError, ValueError):
    """A comparison value that is not a positive finite number."""

    def __init__(self, value: object, message: str | None = None) -> None:
        self.value = value
        super().__init__(message or f"Comparison value must be positive and finite, got {value!r}")


class UnknownItem(WeightingError, KeyError):
    """An item key that is not part of the matrix."""

    def __init__(self, item: object) -> None:
        self.item = item
        super().__init__(f"Unknown item: {item!r}")

    def __str__(self) -> str:
        return self.args[0]


class IncompleteMatrix(WeightingError):
    """The solver was invoked before every pair was judged."""

    def __init__(self, missing_pairs: list[tuple[str, str]]) -> None:
        self.missing_pairs = missing_pairs
        super().__init__(
            f"Pairwise matrix is incomplete: {len(missing_pairs)} comparisons missing"
        )


# ── Synthesis ──


class MalformedWeightSet(WeightingError, ValueError):
    """A weight set with missing keys, unexpected keys or invalid values."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Malformed weight set: " + "; ".join(errors))


class InsufficientSessions(WeightingError, ValueError):
    """Group consensus needs at least two completed sessions."""

    def __init__(self, count: int, required: int = 2) -> None:
        self.count = count
        self.required = required
        super().__init__(
            f"Group consensus needs at least {required} completed sessions, got {count}"
        )


class AdvisoryUnavailable(WeightingError):
    """The advisory subsystem failed or timed out on every attempt."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Advisory subsystem unavailable after {attempts} attempts: {last_error}"
        )


# ── Session ──


class StaleSessionState(WeightingError):
    """A concurrent writer changed the session first; reload and retry."""

    def __init__(self, expected_version: int, actual_version: int) -> None:
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Session state is stale: expected version {expected_version}, "
            f"current version is {actual_version}"
        )


class NavigationError(WeightingError):
    """Invalid stage navigation (e.g. retreating from the first stage)."""


class SessionClosed(WeightingError):
    """The session has been approved and no longer accepts changes."""


class StagePreconditionError(WeightingError):
    """The current stage's exit condition does not hold."""

    stage: int = 0

    def __init__(self, message: str) -> None:
        super().__init__(f"Stage {self.stage}: {message}")


class ContextNotCaptured(StagePreconditionError):
    stage = 1


class JudgmentsIncomplete(StagePreconditionError):
    stage = 2


class ScenariosNotRated(StagePreconditionError):
    stage = 3


class ResearchNotAcknowledged(StagePreconditionError):
    stage = 4


class SynthesisNotAccepted(StagePreconditionError):
    stage = 5


class ApprovalNotRecorded(StagePreconditionError):
    stage = 6

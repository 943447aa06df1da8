"""
Response Validator — Strict validation of advisory subsystem output.

Rejects responses that:
- Are not JSON objects or fail the response schema
- Use consequence names that cannot be resolved
- Omit a consequence type or name one twice
- Carry non-numeric, non-finite or negative weights

The justification payload is carried through untouched.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from pydantic import ValidationError

from counterweight.core.weight_utils import collect_weight_errors, is_number
from counterweight.models.consequence_models import CONSEQUENCE_KEYS, resolve_consequence
from counterweight.models.synthesis_models import AdvisoryResponse

logger = logging.getLogger("counterweight.advisory.validator")


class ValidationResult:
    """Result of response validation."""

    def __init__(self) -> None:
        self.valid = True
        self.errors: list[str] = []
        self.response: AdvisoryResponse | None = None
        self.weights: dict[str, Any] = {}
        self.source_contributions: dict[str, float] = {}

    def add_error(self, error: str) -> None:
        self.valid = False
        self.errors.append(error)


def _resolve_key(name: str, allowed: set[str]) -> str | None:
    if name in allowed:
        return name
    resolved = resolve_consequence(name)
    if resolved is not None and resolved.value in allowed:
        return resolved.value
    return None


def validate_advisory_response(
    parsed: dict[str, Any] | None,
    keys: Iterable[str] | None = None,
) -> ValidationResult:
    """
    Validate an advisory payload against the expected consequence keys.

    Args:
        parsed: Decoded JSON payload from the advisory subsystem
        keys: Consequence keys the weights must cover (defaults to all ten)

    Returns:
        ValidationResult with .valid, .errors, .response, .weights
        (re-keyed to canonical consequence keys) and the in-range
        .source_contributions.
    """
    result = ValidationResult()
    expected = list(keys) if keys is not None else list(CONSEQUENCE_KEYS)
    allowed = set(expected)

    if parsed is None:
        result.add_error("Advisory subsystem returned an empty or non-JSON response")
        return result

    # Schema validation via Pydantic
    try:
        response = AdvisoryResponse(**parsed)
    except (ValidationError, TypeError) as e:
        result.add_error(f"Schema validation failed: {e}")
        return result

    result.response = response

    if not response.recommended_weights:
        result.add_error("Response contains no recommended_weights")
        return result

    weights: dict[str, Any] = {}
    for name, value in response.recommended_weights.items():
        key = _resolve_key(name, allowed)
        if key is None:
            result.add_error(f"Unknown consequence type in response: '{name}'")
            continue
        if key in weights:
            result.add_error(f"Consequence '{key}' appears more than once (as '{name}')")
            continue
        weights[key] = value

    for error in collect_weight_errors(weights, required_keys=expected):
        result.add_error(error)

    for source, share in response.source_contributions.items():
        if is_number(share) and math.isfinite(share) and 0 <= share <= 100:
            result.source_contributions[source] = float(share)
        else:
            logger.warning(f"Ignoring out-of-range source contribution {source}={share!r}")

    result.weights = weights

    if result.errors:
        logger.warning(
            f"Advisory response validation failed with {len(result.errors)} errors: "
            f"{result.errors}"
        )

    return result

"""
Consequence Models — The ten consequence types and the Saaty judgment scale.
"""

from __future__ import annotations

import re
from enum import Enum


class ConsequenceType(str, Enum):
    FATALITIES = "fatalities"
    INJURIES = "injuries"
    DISPLACEMENT = "displacement"
    PSYCHOSOCIAL = "psychosocial"
    SUPPORT_SYSTEMS = "support_systems"
    PROPERTY_DAMAGE = "property_damage"
    INFRASTRUCTURE = "infrastructure"
    ENVIRONMENTAL = "environmental"
    ECONOMIC = "economic"
    REPUTATIONAL = "reputational"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]


# Display order is the declaration order above.
CONSEQUENCE_TYPES: tuple[ConsequenceType, ...] = tuple(ConsequenceType)
CONSEQUENCE_KEYS: tuple[str, ...] = tuple(c.value for c in ConsequenceType)

DISPLAY_NAMES: dict[ConsequenceType, str] = {
    ConsequenceType.FATALITIES: "Fatalities",
    ConsequenceType.INJURIES: "Injuries/Illness",
    ConsequenceType.DISPLACEMENT: "Displacement",
    ConsequenceType.PSYCHOSOCIAL: "Psychosocial",
    ConsequenceType.SUPPORT_SYSTEMS: "Support Systems",
    ConsequenceType.PROPERTY_DAMAGE: "Property Damage",
    ConsequenceType.INFRASTRUCTURE: "Infrastructure",
    ConsequenceType.ENVIRONMENTAL: "Environmental",
    ConsequenceType.ECONOMIC: "Economic",
    ConsequenceType.REPUTATIONAL: "Reputational",
}

# Spellings used by the advisory service and the assessment tables,
# normalized with _slug() before lookup.
CONSEQUENCE_ALIASES: dict[str, ConsequenceType] = {
    "injuries_illness": ConsequenceType.INJURIES,
    "injury": ConsequenceType.INJURIES,
    "psychosocial_impact": ConsequenceType.PSYCHOSOCIAL,
    "support_system": ConsequenceType.SUPPORT_SYSTEMS,
    "support_system_impact": ConsequenceType.SUPPORT_SYSTEMS,
    "property": ConsequenceType.PROPERTY_DAMAGE,
    "infrastructure_impact": ConsequenceType.INFRASTRUCTURE,
    "environmental_damage": ConsequenceType.ENVIRONMENTAL,
    "economic_impact": ConsequenceType.ECONOMIC,
    "reputational_impact": ConsequenceType.REPUTATIONAL,
    "reputation": ConsequenceType.REPUTATIONAL,
}


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


def resolve_consequence(name: str) -> ConsequenceType | None:
    """Map any known spelling of a consequence type to its enum member."""
    slug = _slug(name)
    try:
        return ConsequenceType(slug)
    except ValueError:
        return CONSEQUENCE_ALIASES.get(slug)


# ── Saaty scale ──

SAATY_SCALE: tuple[float, ...] = (9, 7, 5, 3, 1, 1 / 3, 1 / 5, 1 / 7, 1 / 9)

SAATY_LABELS: dict[float, str] = {
    9: "Extremely More Important",
    7: "Very Strongly More Important",
    5: "Strongly More Important",
    3: "Moderately More Important",
    1: "Equally Important",
    1 / 3: "Moderately Less Important",
    1 / 5: "Strongly Less Important",
    1 / 7: "Very Strongly Less Important",
    1 / 9: "Extremely Less Important",
}


def snap_to_saaty(value: float) -> float:
    """Return the Saaty scale value closest to ``value``.

    Ties resolve toward equality (1), matching how the judgment slider
    initializes untouched comparisons.
    """
    closest = 1.0
    min_diff = abs(value - 1)
    for scale_value in SAATY_SCALE:
        diff = abs(value - scale_value)
        if diff < min_diff:
            min_diff = diff
            closest = scale_value
    return closest


def describe_intensity(value: float) -> str:
    """Verbal label for a (possibly continuous) comparison value.

    Values below 1 are described by their reciprocal, so 1/5 reads as
    "Strongly Less Important".
    """
    if value <= 0:
        raise ValueError(f"Comparison value must be positive, got {value}")
    if abs(value - 1) < 1e-9:
        return "Equally Important"
    direction = "More" if value > 1 else "Less"
    # Tolerance keeps 1 / (1/3) from landing just under 3.
    magnitude = max(value, 1 / value) + 1e-9
    if magnitude >= 9:
        intensity = "Extremely"
    elif magnitude >= 7:
        intensity = "Very Strongly"
    elif magnitude >= 5:
        intensity = "Strongly"
    elif magnitude >= 3:
        intensity = "Moderately"
    else:
        intensity = "Slightly"
    return f"{intensity} {direction} Important"

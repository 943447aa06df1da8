"""
Test fixtures shared across all Counterweight tests.
"""

import pytest

from counterweight.core.pairwise_matrix import PairwiseMatrix
from counterweight.models.consequence_models import CONSEQUENCE_KEYS
from counterweight.models.scenario_models import ScenarioDefinition

THREE_ITEMS = ["fatalities", "property_damage", "reputational"]


@pytest.fixture
def three_items():
    return list(THREE_ITEMS)


@pytest.fixture
def consistent_matrix():
    """Exactly transitive: F:P = 2, P:R = 2, F:R = 4."""
    m = PairwiseMatrix.create(THREE_ITEMS)
    m = m.set_comparison("fatalities", "property_damage", 2)
    m = m.set_comparison("property_damage", "reputational", 2)
    m = m.set_comparison("fatalities", "reputational", 4)
    return m


@pytest.fixture
def inconsistent_matrix():
    """Same pairs but F:R = 1, which contradicts transitivity."""
    m = PairwiseMatrix.create(THREE_ITEMS)
    m = m.set_comparison("fatalities", "property_damage", 2)
    m = m.set_comparison("property_damage", "reputational", 2)
    m = m.set_comparison("fatalities", "reputational", 1)
    return m


@pytest.fixture
def ten_key_weights():
    """A plausible 0-100 weight set over all ten consequence types."""
    return {
        "fatalities": 30.0,
        "injuries": 20.0,
        "displacement": 10.0,
        "psychosocial": 5.0,
        "support_systems": 5.0,
        "property_damage": 10.0,
        "infrastructure": 5.0,
        "environmental": 5.0,
        "economic": 5.0,
        "reputational": 5.0,
    }


@pytest.fixture
def equal_fractions():
    return {key: 0.1 for key in CONSEQUENCE_KEYS}


@pytest.fixture
def sample_scenarios():
    return [
        ScenarioDefinition(
            id="flood",
            title="Riverine flood",
            consequence_values={"fatalities": 3, "property_damage": 2, "reputational": 1},
        ),
        ScenarioDefinition(
            id="breach",
            title="Data breach",
            consequence_values={"fatalities": 1, "property_damage": 1, "reputational": 5},
        ),
        ScenarioDefinition(
            id="fire",
            title="Warehouse fire",
            consequence_values={"fatalities": 4, "property_damage": 5, "reputational": 2},
        ),
    ]


@pytest.fixture
def advisory_payload(ten_key_weights):
    """A well-formed advisory response over all ten keys."""
    return {
        "recommended_weights": dict(ten_key_weights),
        "source_contributions": {"ahp": 60, "scenarios": 25, "research": 15},
        "justification": {"fatalities": "Life safety dominates the mission."},
    }

"""
Tests for Weight Synthesis Normalizer — verify sum, floor and report invariants.
"""

import math

import pytest

from counterweight.errors import MalformedWeightSet
from counterweight.models.synthesis_models import SynthesisInput
from counterweight.synthesis.normalizer import (
    compare_weights,
    compute_checks,
    normalize_weights,
    scale_with_floor,
    synthesize,
)

ABC = ["a", "b", "c"]


def test_worked_example_rescales_to_100():
    result = normalize_weights({"a": 50, "b": 30, "c": 15}, keys=ABC)

    assert result == {"a": 52.63, "b": 31.58, "c": 15.79}
    assert sum(result.values()) == pytest.approx(100.0, abs=1e-9)
    assert result["a"] / result["c"] == pytest.approx(50 / 15, rel=1e-3)


def test_idempotent(ten_key_weights):
    once = normalize_weights({"a": 50, "b": 30, "c": 15}, keys=ABC)
    twice = normalize_weights(once, keys=ABC)
    for key in ABC:
        assert twice[key] == pytest.approx(once[key], abs=0.01)

    once = normalize_weights(ten_key_weights)
    assert normalize_weights(once) == once


def test_zero_weight_raised_to_floor():
    result = normalize_weights({"a": 0, "b": 60, "c": 40}, keys=ABC)

    assert result["a"] == pytest.approx(1.0)
    assert result["b"] == pytest.approx(59.4)
    assert result["c"] == pytest.approx(39.6)
    assert sum(result.values()) == pytest.approx(100.0, abs=1e-9)


def test_floor_invariant_over_ten_keys(ten_key_weights):
    raw = dict(ten_key_weights, psychosocial=0, economic=0, reputational=0.2)
    result = normalize_weights(raw)

    assert min(result.values()) >= 1.0
    assert sum(result.values()) == pytest.approx(100.0, abs=1e-9)
    assert result["psychosocial"] == 1.0


def test_all_zero_becomes_equal_split():
    result = normalize_weights({"a": 0, "b": 0, "c": 0}, keys=ABC)
    assert sum(result.values()) == pytest.approx(100.0, abs=1e-9)
    assert all(33.33 <= v <= 33.34 for v in result.values())


def test_results_have_two_decimals(ten_key_weights):
    raw = {k: v * 1.234567 for k, v in ten_key_weights.items()}
    for value in normalize_weights(raw).values():
        assert round(value, 2) == value


@pytest.mark.parametrize(
    "raw",
    [
        {"a": 50, "b": 50},
        {"a": 50, "b": 30, "c": -1},
        {"a": 50, "b": 30, "c": math.nan},
        {"a": 50, "b": 30, "c": math.inf},
        {"a": 50, "b": 30, "c": "twenty"},
        {"a": 50, "b": 30, "c": True},
        {"a": 40, "b": 30, "c": 20, "d": 10},
    ],
)
def test_malformed_weight_sets_rejected(raw):
    with pytest.raises(MalformedWeightSet) as exc_info:
        normalize_weights(raw, keys=ABC)
    assert exc_info.value.errors


def test_malformed_error_lists_every_problem():
    with pytest.raises(MalformedWeightSet) as exc_info:
        normalize_weights({"a": -1, "d": 5}, keys=ABC)
    errors = " ".join(exc_info.value.errors)
    assert "Missing weights for: b, c" in errors
    assert "Unexpected weight keys: d" in errors
    assert "negative" in errors


def test_scale_with_floor_respects_total():
    scaled = scale_with_floor({"a": 0.0, "b": 3.0, "c": 1.0}, floor=1.0, total=50.0)
    assert scaled["a"] == pytest.approx(1.0)
    assert sum(scaled.values()) == pytest.approx(50.0)
    assert scaled["b"] / scaled["c"] == pytest.approx(3.0)


def test_scale_with_infeasible_floor():
    with pytest.raises(ValueError):
        scale_with_floor({"a": 1.0, "b": 1.0}, floor=60.0)


def test_synthesize_reports_deltas_and_checks():
    final = synthesize(
        SynthesisInput(
            raw_weights={"a": 50, "b": 30, "c": 15},
            ahp_baseline={"a": 0.5, "b": 0.3, "c": 0.2},
        )
    )
    assert final.weights == {"a": 52.63, "b": 31.58, "c": 15.79}
    assert final.deltas_vs_ahp == {"a": 2.63, "b": 1.58, "c": -4.21}
    assert final.checks.all_passed


def test_upper_bound_check():
    final = synthesize(
        SynthesisInput(
            raw_weights={"a": 50, "b": 30, "c": 20},
            ahp_baseline={"a": 40, "b": 30, "c": 30},
            upper_bound=45,
        )
    )
    assert final.checks.sum_ok
    assert final.checks.all_positive
    assert not final.checks.bounds_ok


def test_compute_checks_detects_bad_sum():
    checks = compute_checks({"a": 50, "b": 49})
    assert not checks.sum_ok
    assert not checks.all_passed


def test_compare_weights_labels_and_order():
    rows = compare_weights(
        {"a": 0.5, "b": 0.3, "c": 0.2},
        {"a": 54.5, "b": 30.05, "c": 15.5},
    )
    assert [r.consequence for r in rows] == ["a", "b", "c"]

    by_key = {r.consequence: r for r in rows}
    assert by_key["a"].change_label == "+4.5"
    assert by_key["a"].significant
    assert by_key["b"].change_label == "0"
    assert not by_key["b"].significant
    assert by_key["c"].change_label == "-4.5"
    assert by_key["c"].ahp_weight == pytest.approx(20.0)

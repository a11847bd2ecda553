"""Tests for the lines-of-code estimator."""

from __future__ import annotations

import threading

import pytest

from ccstats.config import DEFAULT_LINE_WEIGHTS
from ccstats.services.code_estimator import CodeEstimator, read_edit_counts


@pytest.fixture
def estimator() -> CodeEstimator:
    return CodeEstimator()


def test_empty_usage_estimates_zero(estimator: CodeEstimator) -> None:
    assert estimator.estimate({}) == 0
    assert estimator.estimate(None) == 0
    assert estimator.estimate({"Read": 50, "Grep": 10}) == 0


def test_raw_estimate_is_weighted_sum(estimator: CodeEstimator) -> None:
    assert estimator.raw_estimate({"Edit": 6, "Write": 2}) == 6 * 15 + 2 * 60
    assert estimator.raw_estimate({"SomethingNew": 3}) == 30


def test_edit_heavy_usage_is_corrected_upward(estimator: CodeEstimator) -> None:
    assert estimator.estimate({"Edit": 6, "Write": 2}) == 265


def test_bad_counts_contribute_nothing(estimator: CodeEstimator) -> None:
    usage = {"Edit": -5, "Write": "2", "Bash": None, "Task": "lots"}
    assert estimator.raw_estimate(usage) == 120
    assert estimator.estimate(usage) == 144


@pytest.mark.parametrize(
    "usage",
    [
        {"Edit": 6, "Write": 2},
        {"Bash": 40},
        {"Edit": 100, "MultiEdit": 30, "Write": 25, "Task": 3, "Bash": 9, "Read": 80},
        {"Unknown": 1},
    ],
)
def test_correction_factor_is_bounded(estimator: CodeEstimator, usage: dict[str, int]) -> None:
    assert 0.5 <= estimator.correction_factor(usage) <= 2.0


def test_correction_factor_for_empty_usage(estimator: CodeEstimator) -> None:
    assert estimator.correction_factor({}) == 1.0


@pytest.mark.parametrize("tool", ["Edit", "MultiEdit", "Write", "Bash", "Read", "Task", "Other"])
def test_estimate_never_decreases_with_more_calls(estimator: CodeEstimator, tool: str) -> None:
    base = {"Edit": 3, "Bash": 5, "Read": 4, "Write": 1}
    previous = -1
    for count in range(0, 80):
        value = estimator.estimate({**base, tool: count})
        assert value >= previous, f"{tool}={count}"
        previous = value


def test_weights_are_injected_per_instance() -> None:
    heavy = CodeEstimator({"Edit": 100})
    default = CodeEstimator()
    assert heavy.raw_estimate({"Edit": 1}) == 100
    assert default.raw_estimate({"Edit": 1}) == 15
    assert heavy.weight_for("Write") == 10


def test_update_model_merges_and_replaces(estimator: CodeEstimator) -> None:
    estimator.update_model({"Edit": 100})
    model = estimator.get_model()
    assert model["Edit"] == 100
    assert model["Write"] == DEFAULT_LINE_WEIGHTS["Write"]
    assert estimator.estimate({"Edit": 1}) == 120

    estimator.update_model({"Foo": 5}, replace=True)
    assert estimator.get_model() == {"Foo": 5}


@pytest.mark.parametrize("weights", [None, ["Edit", 5], "Edit"])
def test_update_model_ignores_non_mapping(estimator: CodeEstimator, weights: object) -> None:
    before = estimator.get_model()
    estimator.update_model(weights)  # type: ignore[arg-type]
    assert estimator.get_model() == before


def test_get_model_returns_a_copy(estimator: CodeEstimator) -> None:
    model = estimator.get_model()
    model["Edit"] = 9999
    assert estimator.get_model()["Edit"] == 15


def test_concurrent_reads_during_updates(estimator: CodeEstimator) -> None:
    errors: list[Exception] = []

    def reader() -> None:
        try:
            for _ in range(200):
                assert estimator.estimate({"Edit": 6, "Write": 2}) > 0
        except Exception as exc:  # pragma: no cover - surfaced by the assert below
            errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for weight in range(20, 60):
        estimator.update_model({"Edit": weight})
    for thread in threads:
        thread.join()
    assert errors == []


def test_read_edit_counts() -> None:
    assert read_edit_counts({"Read": 4, "Grep": 2, "Edit": 1, "MultiEdit": 2, "Bash": 9}) == (6, 3)
    assert read_edit_counts(None) == (0, 0)

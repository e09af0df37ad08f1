import numpy as np
import pytest

from schedule_analytics import probability_on_or_before, run_monte_carlo_simulation
from schedule_analytics.cpm import monte_carlo
from schedule_analytics.cpm.monte_carlo import sample_triangular_durations
from schedule_analytics.tests.builders import make_task


# ----------------------------------------------------------------
# 1. SAMPLING
# ----------------------------------------------------------------

def test_triangular_bounds_and_mode():
    """
    Base 10 -> min 8, mode 10, max 15.
    c = (10 - 8) / (15 - 8) = 2/7
    """
    base = np.full(5, 10.0)
    u = np.array([0.0, 2 / 7, 0.5, 0.999999, 1.0])
    drawn = sample_triangular_durations(base, u)

    assert drawn[0] == pytest.approx(8.0)
    assert drawn[1] == pytest.approx(10.0)
    assert drawn[-1] == pytest.approx(15.0)
    assert np.all((drawn >= 8.0) & (drawn <= 15.0))


def test_left_branch_formula():
    # u < c: min + sqrt(u * (max - min) * (mode - min))
    drawn = sample_triangular_durations(np.array([10.0]), np.array([0.1]))
    assert drawn[0] == pytest.approx(8.0 + np.sqrt(0.1 * 7.0 * 2.0))


def test_zero_duration_has_no_spread():
    drawn = sample_triangular_durations(np.array([0.0, 0.0]), np.array([0.2, 0.9]))
    assert list(drawn) == [0.0, 0.0]


# ----------------------------------------------------------------
# 2. SIMULATION
# ----------------------------------------------------------------

def test_single_iteration(abc_tasks):
    res = run_monte_carlo_simulation(abc_tasks, iterations=1, random_state=7)

    assert res["standard_deviation"] == 0
    assert len(res["probability_distribution"]) == 1
    only = int(res["probability_distribution"][0])
    assert res["mean_duration"] == only
    assert set(res["percentiles"].values()) == {only}


def test_durations_stay_within_triangular_envelope(abc_tasks):
    """
    Critical chain A -> C is 9 days; every draw lies in [0.8, 1.5] of it
    (floor to whole days on the low side).
    """
    res = run_monte_carlo_simulation(abc_tasks, iterations=500, random_state=42)
    samples = res["probability_distribution"]

    assert len(samples) == 500
    assert samples.min() >= 7
    assert samples.max() <= 14
    assert list(samples) == sorted(samples)


def test_percentiles_by_index(abc_tasks):
    res = run_monte_carlo_simulation(abc_tasks, iterations=200, random_state=3)
    samples = res["probability_distribution"]

    assert res["percentiles"]["P10"] == samples[20]
    assert res["percentiles"]["P50"] == samples[100]
    assert res["percentiles"]["P90"] == samples[180]
    assert res["percentiles"]["P10"] <= res["percentiles"]["P50"] <= res["percentiles"]["P90"]
    assert res["mean_duration"] == pytest.approx(samples.mean())
    assert res["standard_deviation"] == pytest.approx(samples.std())


def test_seed_is_reproducible(abc_tasks):
    a = run_monte_carlo_simulation(abc_tasks, iterations=50, random_state=11)
    b = run_monte_carlo_simulation(abc_tasks, iterations=50, random_state=11)
    assert list(a["probability_distribution"]) == list(b["probability_distribution"])


def test_cancel_between_iterations(abc_tasks):
    calls = {"n": 0}

    def stop_after_ten():
        calls["n"] += 1
        return calls["n"] > 10

    res = run_monte_carlo_simulation(
        abc_tasks, iterations=1000, random_state=1, should_cancel=stop_after_ten
    )

    assert res["iterations_completed"] == 10
    assert len(res["probability_distribution"]) == 10


def test_invalid_iterations(abc_tasks):
    with pytest.raises(ValueError, match="iterations"):
        run_monte_carlo_simulation(abc_tasks, iterations=0)


def test_empty_task_list():
    res = run_monte_carlo_simulation([], iterations=5)
    assert res["mean_duration"] == 0
    assert res["standard_deviation"] == 0


def test_probability_on_or_before():
    tasks = [make_task("A", 10)]
    res = run_monte_carlo_simulation(tasks, iterations=300, random_state=5)

    assert probability_on_or_before(res, 15) == 1.0
    assert probability_on_or_before(res, 7) == 0.0
    assert 0.0 < probability_on_or_before(res, 10) < 1.0


def test_sampled_fractions_are_cut_to_whole_days(monkeypatch):
    """Both tasks draw 4.5 days; A -> B takes 4 + 4 = 8."""
    monkeypatch.setattr(
        monte_carlo, "sample_triangular_durations",
        lambda base, u, **kwargs: np.full_like(u, 4.5),
    )
    tasks = [make_task("A", 5), make_task("B", 5, deps=["A"])]

    res = run_monte_carlo_simulation(tasks, iterations=1)

    assert res["mean_duration"] == 8
    assert list(res["probability_distribution"]) == [8]


def test_custom_spread_and_percentiles(abc_tasks):
    res = run_monte_carlo_simulation(
        abc_tasks, iterations=20, random_state=2,
        low=1.0, mode=1.0, high=1.0, percentiles={"P80": 0.8},
    )

    assert set(res["probability_distribution"]) == {9}
    assert res["standard_deviation"] == 0
    assert res["percentiles"] == {"P80": 9}

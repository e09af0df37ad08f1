# schedule_analytics/cpm/monte_carlo.py

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from schedule_analytics.cpm.critical_path_engine import (
    build_graph,
    compute_cpm,
    start_offsets,
    topological_order,
    whole_days,
)
from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import Task

logger = get_logger("cpm.monte_carlo")

# Triangular spread relative to the declared duration
LOW_FACTOR = 0.8
MODE_FACTOR = 1.0
HIGH_FACTOR = 1.5

PERCENTILES = {
    "P10": 0.10,
    "P25": 0.25,
    "P50": 0.50,
    "P75": 0.75,
    "P90": 0.90,
}


# -----------------------------
# Sampling
# -----------------------------

def sample_triangular_durations(
    base: np.ndarray,
    u: np.ndarray,
    low: float = LOW_FACTOR,
    mode: float = MODE_FACTOR,
    high: float = HIGH_FACTOR,
) -> np.ndarray:
    """
    Inverse-CDF triangular draw for each base duration.

    With a = low*d, m = mode*d, b = high*d and c = (m - a) / (b - a):
        u <  c  ->  a + sqrt(u (b - a) (m - a))
        u >= c  ->  b - sqrt((1 - u) (b - a) (b - m))

    Durations with no spread (zero or negative) are returned unchanged.
    """
    base = np.asarray(base, dtype=float)
    u = np.asarray(u, dtype=float)

    a = base * low
    m = base * mode
    b = base * high
    span = b - a

    with np.errstate(divide="ignore", invalid="ignore"):
        c = np.where(span > 0, (m - a) / span, 0.0)
        left = a + np.sqrt(u * span * (m - a))
        right = b - np.sqrt((1.0 - u) * span * (b - m))

    drawn = np.where(u < c, left, right)
    return np.where(span > 0, drawn, base)


# -----------------------------
# Simulation
# -----------------------------

def run_monte_carlo_simulation(
    tasks: Sequence[Task],
    iterations: int = 1000,
    random_state: int | None = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    low: float = LOW_FACTOR,
    mode: float = MODE_FACTOR,
    high: float = HIGH_FACTOR,
    percentiles: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    """
    Schedule-risk simulation: every iteration redraws all task durations
    from a triangular (80% / 100% / 150%) distribution and reruns the
    full CPM pass on the same dependency graph.

    ``should_cancel`` is polled between iterations; a cancelled run
    reports statistics over the iterations that completed.
    ``low`` / ``mode`` / ``high`` scale each declared duration into the
    triangle; ``percentiles`` maps labels to fractions (default P10..P90).

    Returns:
      {
        "mean_duration": float,
        "standard_deviation": float,      (population)
        "percentiles": {"P10": int, ..., "P90": int},
        "probability_distribution": np.ndarray (sorted durations),
        "iterations_completed": int,
      }
    """
    if iterations < 1:
        raise ValueError(f"iterations must be >= 1, got {iterations}")

    rng = np.random.default_rng(random_state)

    nodes, task_map, edges_from, edges_to = build_graph(tasks)
    if not nodes:
        samples = np.zeros(iterations, dtype=int)
        return _summarize(samples, percentiles)

    order = topological_order(nodes, edges_to)
    _, offsets = start_offsets(task_map)
    base = np.array([float(task_map[n].duration) for n in nodes])

    # One uniform per task per iteration, drawn up front
    draws = sample_triangular_durations(
        base, rng.random((iterations, len(nodes))), low=low, mode=mode, high=high
    )

    totals = []
    for i in range(iterations):
        if should_cancel is not None and should_cancel():
            logger.warning("Monte-Carlo cancelled after %d of %d iterations", i, iterations)
            break

        # compute_cpm cuts each draw to whole days
        durations = dict(zip(nodes, draws[i]))
        es, _, _, _, project_end = compute_cpm(order, offsets, durations, edges_from, edges_to)
        totals.append(whole_days(project_end - min(es.values())))

    if not totals:
        raise ValueError("Monte-Carlo cancelled before the first iteration completed.")

    return _summarize(np.array(totals, dtype=int), percentiles)


def _summarize(samples: np.ndarray, percentiles: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    durations = np.sort(samples)
    n = len(durations)

    mean = float(durations.mean())
    std = float(durations.std())

    # Index lookup into the sorted samples; no interpolation
    points = {
        key: int(durations[min(int(math.floor(n * p)), n - 1)])
        for key, p in (percentiles or PERCENTILES).items()
    }

    logger.debug("Monte-Carlo over %d runs: mean=%.2f std=%.2f %s", n, mean, std, points)

    return {
        "mean_duration": mean,
        "standard_deviation": std,
        "percentiles": points,
        "probability_distribution": durations,
        "iterations_completed": n,
    }


def probability_on_or_before(result: Dict[str, Any], target_duration: float) -> float:
    """Share of simulated durations at or under ``target_duration`` days."""
    samples = np.asarray(result["probability_distribution"])
    if samples.size == 0:
        return 0.0
    return float(np.mean(samples <= target_duration))

# schedule_analytics/baseline/baseline_manager.py

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

import pandas as pd

from schedule_analytics.baseline.baseline_store import BaselineStore, InMemoryBaselineStore
from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import (
    BaselineSnapshot,
    BaselineStatus,
    HealthStatus,
    ScopeChangeType,
    Task,
    copy_tasks,
)

logger = get_logger("baseline")

ONE_DAY = pd.Timedelta(days=1)

# Health thresholds
CRITICAL_SCHEDULE_DAYS = 7
SIGNIFICANT_COST = 5000
RED_SCHEDULE_COUNT = 2
RED_COST_COUNT = 2
RED_SCOPE_COUNT = 5
YELLOW_SCOPE_COUNT = 0


def calculate_total_duration(tasks: Sequence[Task]) -> int:
    """Whole days from the earliest start to the latest end (0 when empty)."""
    if not tasks:
        return 0
    start = min(t.start_date for t in tasks)
    end = max(t.end_date for t in tasks)
    return int(math.floor((end - start) / ONE_DAY))


def _day_difference(later: pd.Timestamp, earlier: pd.Timestamp) -> int:
    return int(math.floor((later - earlier) / ONE_DAY))


# ---------------------------------------------------------
# COMPARISON
# ---------------------------------------------------------

def classify_health(
    schedule_variances: List[Dict[str, Any]],
    cost_variances: List[Dict[str, Any]],
    scope_changes: List[Dict[str, Any]],
    critical_schedule_days: float = CRITICAL_SCHEDULE_DAYS,
    significant_cost: float = SIGNIFICANT_COST,
    red_schedule_count: int = RED_SCHEDULE_COUNT,
    red_cost_count: int = RED_COST_COUNT,
    red_scope_count: int = RED_SCOPE_COUNT,
    yellow_scope_count: int = YELLOW_SCOPE_COUNT,
) -> HealthStatus:
    """
    red:    > 2 schedule slips over 7 days, > 2 cost swings over 5000,
            or > 5 scope changes
    yellow: one such slip or cost swing, or more scope changes
            than ``yellow_scope_count`` (0)
    green:  otherwise

    The figures above are the defaults; each has a keyword override.
    """
    critical = sum(1 for v in schedule_variances if abs(v["variance"]) > critical_schedule_days)
    costly = sum(1 for v in cost_variances if abs(v["variance"]) > significant_cost)
    scope = len(scope_changes)

    if critical > red_schedule_count or costly > red_cost_count or scope > red_scope_count:
        return HealthStatus.RED
    if critical > 0 or costly > 0 or scope > yellow_scope_count:
        return HealthStatus.YELLOW
    return HealthStatus.GREEN


def compare_with_baseline(
    current_tasks: Sequence[Task],
    baseline_tasks: Sequence[Task],
    **health_thresholds: float,
) -> Dict[str, Any]:
    """
    Diff a current task set against baseline tasks, matched by id.
    ``health_thresholds`` are keyword overrides passed to classify_health.

    Returns:
      {
        "schedule_variances": [{task_id, task_name, variance (days)}],
        "cost_variances":     [{task_id, task_name, variance}],
        "scope_changes":      [{task_id, change_type, details}],
        "overall_health":     HealthStatus,
      }
    """
    current_map = {t.id: t for t in current_tasks}
    baseline_ids = {t.id for t in baseline_tasks}

    schedule_variances = []
    cost_variances = []
    scope_changes = []

    for base in baseline_tasks:
        cur = current_map.get(base.id)
        if cur is None:
            scope_changes.append({
                "task_id": base.id,
                "change_type": ScopeChangeType.REMOVED,
                "details": f"Task removed: {base.name}",
            })
            continue

        slip = _day_difference(cur.end_date, base.end_date)
        if slip != 0:
            schedule_variances.append({
                "task_id": cur.id,
                "task_name": cur.name,
                "variance": slip,
            })

        cost_delta = (cur.actual_cost or 0.0) - (base.cost or 0.0)
        if cost_delta != 0:
            cost_variances.append({
                "task_id": cur.id,
                "task_name": cur.name,
                "variance": cost_delta,
            })

        if cur.name != base.name or cur.duration != base.duration:
            scope_changes.append({
                "task_id": cur.id,
                "change_type": ScopeChangeType.MODIFIED,
                "details": f"Changes detected in: {cur.name}",
            })

    for cur in current_tasks:
        if cur.id not in baseline_ids:
            scope_changes.append({
                "task_id": cur.id,
                "change_type": ScopeChangeType.ADDED,
                "details": f"New task added: {cur.name}",
            })

    health = classify_health(
        schedule_variances, cost_variances, scope_changes, **health_thresholds
    )

    return {
        "schedule_variances": schedule_variances,
        "cost_variances": cost_variances,
        "scope_changes": scope_changes,
        "overall_health": health,
    }


def comparison_frames(comparison: Dict[str, Any]) -> Dict[str, pd.DataFrame]:
    """Variance lists as DataFrames for display."""
    return {
        "schedule_variances": pd.DataFrame(
            comparison["schedule_variances"], columns=["task_id", "task_name", "variance"]
        ),
        "cost_variances": pd.DataFrame(
            comparison["cost_variances"], columns=["task_id", "task_name", "variance"]
        ),
        "scope_changes": pd.DataFrame(
            comparison["scope_changes"], columns=["task_id", "change_type", "details"]
        ),
    }


# ---------------------------------------------------------
# MANAGER
# ---------------------------------------------------------

class BaselineManager:
    """
    Baseline snapshots per project over an injected store.

    At most one snapshot per project is active; saving a new one
    archives the previous active snapshot in the same write.
    """

    def __init__(
        self,
        store: Optional[BaselineStore] = None,
        clock: Optional[Callable[[], pd.Timestamp]] = None,
    ):
        self.store = store if store is not None else InMemoryBaselineStore()
        self.clock = clock or pd.Timestamp.now

    def get_baselines(self, project_id: str) -> List[BaselineSnapshot]:
        return [BaselineSnapshot.from_dict(r) for r in self.store.load(project_id)]

    def get_active_baseline(self, project_id: str) -> Optional[BaselineSnapshot]:
        for b in self.get_baselines(project_id):
            if b.status == BaselineStatus.ACTIVE:
                return b
        return None

    def save_baseline(
        self,
        project_id: str,
        name: str,
        description: str,
        tasks: Sequence[Task],
        total_budget: float,
        created_by: str,
    ) -> BaselineSnapshot:
        existing = self.get_baselines(project_id)

        snapshot = BaselineSnapshot(
            id=f"baseline_{uuid4().hex}",
            project_id=project_id,
            name=name,
            description=description,
            created_at=self.clock(),
            created_by=created_by,
            tasks=tuple(copy_tasks(tasks)),
            total_budget=float(total_budget),
            total_duration=calculate_total_duration(tasks),
            status=BaselineStatus.ACTIVE,
            version=f"v{len(existing) + 1}.0",
        )

        archived = [
            b.with_status(BaselineStatus.ARCHIVED) if b.status == BaselineStatus.ACTIVE else b
            for b in existing
        ]
        self.store.save(project_id, [b.to_dict() for b in archived + [snapshot]])

        logger.info(
            "Saved baseline %s (%s) for project %s with %d tasks",
            snapshot.version, snapshot.id, project_id, len(snapshot.tasks),
        )
        return snapshot

    def compare_with_baseline(
        self,
        current_tasks: Sequence[Task],
        baseline_tasks: Sequence[Task],
        **health_thresholds: float,
    ) -> Dict[str, Any]:
        return compare_with_baseline(current_tasks, baseline_tasks, **health_thresholds)

    def generate_baseline_report(self, project_id: str, current_tasks: Sequence[Task]) -> Dict[str, Any]:
        """
        Compare current tasks with the project's active baseline.

        With no active baseline, ``comparison`` is None and there are
        no recommendations.
        """
        baseline = self.get_active_baseline(project_id)
        comparison = None
        recommendations = []

        if baseline is None:
            logger.info("No active baseline for project %s", project_id)
        else:
            comparison = compare_with_baseline(current_tasks, baseline.tasks)

            if comparison["schedule_variances"]:
                recommendations.append("Review the schedule of tasks with significant variance")
            if comparison["cost_variances"]:
                recommendations.append("Analyze the causes of cost variances")
            if comparison["scope_changes"]:
                recommendations.append("Document and formally approve scope changes")
            if comparison["overall_health"] == HealthStatus.RED:
                recommendations.append("URGENT ACTION: project shows critical deviations")

        return {
            "report_date": self.clock(),
            "baseline_info": baseline,
            "comparison": comparison,
            "recommendations": recommendations,
        }

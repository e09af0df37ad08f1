# schedule_analytics/cpm/resource_leveling.py

from __future__ import annotations

from typing import Any, Dict, Sequence

import pandas as pd

from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import Task, copy_tasks

logger = get_logger("cpm.resource_leveling")

FULL_ALLOCATION = 100.0

# Summed fractions like 3 x (100/3) must not read as overallocated
_TOLERANCE = 1e-9


def build_utilization_frame(tasks: Sequence[Task]) -> pd.DataFrame:
    """
    Long-format daily load: one row per (Resource, Date, TaskID).

    Each task spreads 100 / duration percent over every calendar day
    from its start date to its end date, both inclusive. Zero-length
    tasks count as a full day of load.
    """
    rows = []
    for t in tasks:
        if not t.resources:
            continue
        share = FULL_ALLOCATION / t.duration if t.duration > 0 else FULL_ALLOCATION
        days = pd.date_range(t.start_date.normalize(), t.end_date.normalize(), freq="D")
        for resource in t.resources:
            for day in days:
                rows.append((resource, day, t.id, share))

    return pd.DataFrame(rows, columns=["Resource", "Date", "TaskID", "Utilization"])


def compute_resource_utilization(tasks: Sequence[Task]) -> pd.DataFrame:
    """
    Summed utilization per resource per day.

    Columns: Resource, Date, Utilization, TaskCount, Overallocated
    """
    long_df = build_utilization_frame(tasks)
    if long_df.empty:
        return pd.DataFrame(
            columns=["Resource", "Date", "Utilization", "TaskCount", "Overallocated"]
        )

    daily = (
        long_df.groupby(["Resource", "Date"], sort=True)
        .agg(
            Utilization=("Utilization", "sum"),
            TaskCount=("TaskID", "nunique"),
        )
        .reset_index()
    )
    daily["Overallocated"] = daily["Utilization"] > FULL_ALLOCATION + _TOLERANCE
    return daily


def optimize_resource_leveling(tasks: Sequence[Task]) -> Dict[str, Any]:
    """
    Resource conflict diagnosis. Tasks are not moved: ``optimized_tasks``
    are unchanged copies of the input.

    Returns:
      {
        "optimized_tasks": list[Task],
        "resource_utilization": {resource: {"YYYY-MM-DD": percent}},
        "overallocated_days": {resource: ["YYYY-MM-DD", ...]},
        "recommendations": list[str],
        "utilization_frame": DataFrame,
      }
    """
    daily = compute_resource_utilization(tasks)

    utilization: Dict[str, Dict[str, float]] = {}
    overallocated: Dict[str, list] = {}
    recommendations = []

    for resource, grp in daily.groupby("Resource", sort=False):
        utilization[resource] = {
            d.strftime("%Y-%m-%d"): float(u) for d, u in zip(grp["Date"], grp["Utilization"])
        }
        over = [d.strftime("%Y-%m-%d") for d in grp.loc[grp["Overallocated"], "Date"]]
        if over:
            overallocated[resource] = over
            recommendations.append(
                f"Resource {resource} is overallocated on {len(over)} days"
            )

    if overallocated:
        logger.info("Overallocated resources: %s", sorted(overallocated))

    return {
        "optimized_tasks": copy_tasks(tasks),
        "resource_utilization": utilization,
        "overallocated_days": overallocated,
        "recommendations": recommendations,
        "utilization_frame": daily,
    }

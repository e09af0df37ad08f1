# schedule_analytics/cpm/critical_path_engine.py

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from schedule_analytics.exceptions import CyclicDependencyError
from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import CPMResult, Task, copy_tasks

logger = get_logger("cpm")

ONE_DAY = pd.Timedelta(days=1)

# Offsets are float days; keeps floor() stable for whole-day arithmetic
_EPS = 1e-9

FLOAT_BUCKET_BINS = [-1e9, -0.01, 0.01, 1, 5, 10, 999999999]
FLOAT_BUCKET_LABELS = [
    "Negative float",
    "Critical (0)",
    "≤ 1 day",
    "1–5 days",
    "5–10 days",
    "> 10 days",
]


# ---------------------------------------------------------
# GRAPH CONSTRUCTION
# ---------------------------------------------------------

def build_graph(tasks: Sequence[Task]):
    """
    Build the dependency graph once per call.

    nodes:      task IDs in input order (first occurrence wins the slot,
                last occurrence wins the data, as a dict would)
    task_map:   {task_id: Task}
    edges_to:   {succ: [pred, ...]}  declared order, dangling preds dropped
    edges_from: {pred: [succ, ...]}
    """
    task_map: Dict[str, Task] = {}
    nodes: List[str] = []
    for t in tasks:
        if t.id not in task_map:
            nodes.append(t.id)
        task_map[t.id] = t

    edges_to: Dict[str, List[str]] = {n: [] for n in nodes}
    edges_from: Dict[str, List[str]] = defaultdict(list)

    for n in nodes:
        for pred in task_map[n].dependencies:
            if pred not in task_map:
                logger.warning("Task %s depends on unknown task %s; dependency ignored", n, pred)
                continue
            if pred in edges_to[n]:
                continue
            edges_to[n].append(pred)
            edges_from[pred].append(n)

    return nodes, task_map, edges_from, edges_to


def topological_order(nodes: Sequence[str], edges_to: Dict[str, List[str]]) -> List[str]:
    """
    Depth-first post-order: every predecessor is emitted before the task.

    Iterative so long chains don't hit the recursion limit.
    Raises CyclicDependencyError on the first cycle found.
    """
    state: Dict[str, int] = {}   # 1 = on stack, 2 = done
    order: List[str] = []

    for root in nodes:
        if state.get(root):
            continue

        stack: List[Tuple[str, int]] = [(root, 0)]
        state[root] = 1

        while stack:
            node, idx = stack[-1]
            preds = edges_to.get(node, [])

            if idx < len(preds):
                stack[-1] = (node, idx + 1)
                pred = preds[idx]
                seen = state.get(pred)
                if seen == 1:
                    path = [n for n, _ in stack]
                    cycle = path[path.index(pred):] + [pred]
                    raise CyclicDependencyError(cycle)
                if seen is None:
                    state[pred] = 1
                    stack.append((pred, 0))
                continue

            stack.pop()
            state[node] = 2
            order.append(node)

    return order


# ---------------------------------------------------------
# CPM ALGORITHM
# ---------------------------------------------------------

def compute_cpm(order, start_offsets, durations, edges_from, edges_to):
    """
    Forward/backward pass on day offsets.

    A task starts at its own start offset or at the latest early finish
    of its predecessors, whichever is later. Tasks without successors
    finish late at the project end. Durations are cut to whole days
    (toward zero) before scheduling, so 4.5 days occupies 4.

    Returns:
      es, ef, ls, lf (dicts keyed by task ID), project_end
    """
    days = {n: truncate_days(durations[n]) for n in order}

    es: Dict[str, float] = {}
    ef: Dict[str, float] = {}

    for n in order:
        start = start_offsets[n]
        for pred in edges_to[n]:
            start = max(start, ef[pred])
        es[n] = start
        ef[n] = start + days[n]

    project_end = max(ef.values()) if ef else 0.0

    ls: Dict[str, float] = {}
    lf: Dict[str, float] = {}

    for n in reversed(order):
        succs = edges_from.get(n, [])
        if not succs:
            lf[n] = project_end
        else:
            lf[n] = min([project_end] + [ls[s] for s in succs])
        ls[n] = lf[n] - days[n]

    return es, ef, ls, lf, project_end


def whole_days(value: float) -> int:
    return int(math.floor(value + _EPS))


def truncate_days(value: float) -> float:
    return float(math.trunc(value + math.copysign(_EPS, value)))


def start_offsets(task_map: Dict[str, Task]) -> Tuple[pd.Timestamp, Dict[str, float]]:
    origin = min(t.start_date for t in task_map.values())
    offsets = {tid: (t.start_date - origin) / ONE_DAY for tid, t in task_map.items()}
    return origin, offsets


def calculate_critical_path(tasks: Sequence[Task]) -> CPMResult:
    """
    Critical Path Method over a task list.

    Durations are calendar days (no working calendar). Float is
    LS - ES in whole days; the critical path is every task with
    zero float, in input order.
    """
    nodes, task_map, edges_from, edges_to = build_graph(tasks)

    if not nodes:
        return CPMResult([], 0, {}, {}, {}, {}, {})

    order = topological_order(nodes, edges_to)
    origin, offsets = start_offsets(task_map)
    durations = {n: float(task_map[n].duration) for n in nodes}

    es, ef, ls, lf, project_end = compute_cpm(order, offsets, durations, edges_from, edges_to)

    def to_date(off):
        return origin + pd.Timedelta(days=off)

    total_float = {n: whole_days(ls[n] - es[n]) for n in nodes}
    critical = [n for n in nodes if total_float[n] == 0]
    duration = whole_days(project_end - min(es.values()))

    logger.debug(
        "CPM computed for %d tasks: duration=%d days, critical=%s",
        len(nodes), duration, critical,
    )

    return CPMResult(
        critical_path=critical,
        total_project_duration=duration,
        float=total_float,
        early_start={n: to_date(es[n]) for n in nodes},
        early_finish={n: to_date(ef[n]) for n in nodes},
        late_start={n: to_date(ls[n]) for n in nodes},
        late_finish={n: to_date(lf[n]) for n in nodes},
    )


# ---------------------------------------------------------
# RESULT HELPERS
# ---------------------------------------------------------

def apply_critical_flags(tasks: Sequence[Task], result: CPMResult) -> List[Task]:
    """Copies of the tasks with ``critical`` recomputed from a CPM result."""
    on_path = set(result.critical_path)
    flagged = copy_tasks(tasks)
    for t in flagged:
        t.critical = t.id in on_path
    return flagged


def compile_cpm_frame(
    tasks: Sequence[Task],
    result: CPMResult,
    bucket_bins: Sequence[float] = FLOAT_BUCKET_BINS,
    bucket_labels: Sequence[str] = FLOAT_BUCKET_LABELS,
) -> pd.DataFrame:
    """
    One row per task with the CPM view, ready for display:
      TaskID, Name, Duration, ES, EF, LS, LF, Float, IsCritical, FloatBucket

    ``bucket_labels`` needs one label fewer than ``bucket_bins``.
    """
    rows = []
    seen = set()
    for t in tasks:
        if t.id in seen or t.id not in result.float:
            continue
        seen.add(t.id)
        rows.append({
            "TaskID": t.id,
            "Name": t.name,
            "Duration": t.duration,
            "ES": result.early_start[t.id],
            "EF": result.early_finish[t.id],
            "LS": result.late_start[t.id],
            "LF": result.late_finish[t.id],
            "Float": result.float[t.id],
        })

    df = pd.DataFrame(
        rows,
        columns=["TaskID", "Name", "Duration", "ES", "EF", "LS", "LF", "Float"],
    )
    critical = set(result.critical_path)
    df["IsCritical"] = df["TaskID"].isin(critical)

    f = pd.to_numeric(df["Float"], errors="coerce").fillna(0)
    df["FloatBucket"] = pd.cut(
        f, bins=list(bucket_bins), labels=list(bucket_labels), include_lowest=True
    ).astype(str)

    return df

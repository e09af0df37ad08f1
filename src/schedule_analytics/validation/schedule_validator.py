# schedule_analytics/validation/schedule_validator.py

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Dict, List, Sequence

import pandas as pd

from schedule_analytics.cpm.critical_path_engine import build_graph, topological_order
from schedule_analytics.exceptions import CyclicDependencyError
from schedule_analytics.models import Task, WBSItem
from schedule_analytics.wbs.wbs_hierarchy import has_circular_reference

ISSUE_COLUMNS = ["TaskID", "Name", "Severity", "IssueType", "Description", "SuggestedFix"]


# ------------------------------------------------------------------
# Helper: make a consistent issue dictionary
# ------------------------------------------------------------------
def make_issue(task_id, name, severity, issue_type, description, suggestion):
    return {
        "TaskID": task_id,
        "Name": name,
        "Severity": severity,
        "IssueType": issue_type,
        "Description": description,
        "SuggestedFix": suggestion,
    }


def issues_to_frame(issues: Sequence[Dict]) -> pd.DataFrame:
    return pd.DataFrame(list(issues), columns=ISSUE_COLUMNS)


# ------------------------------------------------------------------
# Task validation
# ------------------------------------------------------------------
def validate_tasks(tasks: Sequence[Task]) -> List[Dict]:
    """
    Report malformed schedule input without touching it.

    The engines stay permissive (dangling links dropped, zero ratios);
    this pass tells the caller what was tolerated. Only a cycle stops
    calculate_critical_path.
    """
    issues = []

    # 1. Duplicate IDs
    counts = Counter(t.id for t in tasks)
    dups = sorted(tid for tid, n in counts.items() if n > 1)
    if dups:
        issues.append(make_issue(
            ", ".join(dups), "",
            "critical", "DuplicateTaskID",
            f"Duplicate task IDs detected: {dups}",
            "Give every task a unique ID; later duplicates override earlier ones.",
        ))

    all_ids = set(counts)

    for t in tasks:
        # 2. Duration
        if t.duration < 0:
            issues.append(make_issue(
                t.id, t.name,
                "critical", "NegativeDuration",
                f"Duration is negative ({t.duration}).",
                "Duration must be zero or positive.",
            ))

        # 3. Dates
        if t.end_date < t.start_date:
            issues.append(make_issue(
                t.id, t.name,
                "critical", "InvalidDateOrder",
                "Start date is after End date.",
                "Fix Start/End ordering.",
            ))

        # 4. Progress
        if not 0 <= t.progress <= 100:
            issues.append(make_issue(
                t.id, t.name,
                "error", "ProgressOutOfRange",
                f"Progress {t.progress} is outside 0–100.",
                "Progress is a percentage between 0 and 100.",
            ))

        # 5. Dependencies
        for pred in t.dependencies:
            if pred == t.id:
                issues.append(make_issue(
                    t.id, t.name,
                    "critical", "SelfDependency",
                    "Task depends on itself.",
                    "Remove the self-reference from the dependency list.",
                ))
            elif pred not in all_ids:
                issues.append(make_issue(
                    t.id, t.name,
                    "error", "MissingPredecessorTask",
                    f"Task depends on missing task {pred}; the link is ignored.",
                    "Fix dependency: remove or correct the missing task ID.",
                ))

    # 6. Cycles (self-loops are already reported above)
    graph_tasks = [
        t if t.id not in t.dependencies else _without_self(t)
        for t in tasks
    ]
    nodes, _, _, edges_to = build_graph(graph_tasks)
    try:
        topological_order(nodes, edges_to)
    except CyclicDependencyError as e:
        issues.append(make_issue(
            e.cycle[0], "",
            "critical", "CyclicDependency",
            f"Dependency cycle: {' -> '.join(e.cycle)}",
            "Break the loop by removing one of the dependencies.",
        ))

    return issues


def _without_self(task: Task) -> Task:
    return replace(task, dependencies=[d for d in task.dependencies if d != task.id])


# ------------------------------------------------------------------
# WBS validation
# ------------------------------------------------------------------
def validate_wbs_items(items: Sequence[WBSItem]) -> List[Dict]:
    issues = []

    counts = Counter(item.id for item in items)
    dups = sorted(i for i, n in counts.items() if n > 1)
    if dups:
        issues.append(make_issue(
            ", ".join(dups), "",
            "critical", "DuplicateItemID",
            f"Duplicate WBS item IDs detected: {dups}",
            "Give every WBS item a unique ID.",
        ))

    ids = set(counts)
    reported_loop = set()

    for item in items:
        segments = item.code.split(".")
        if not all(s.strip().isdigit() for s in segments):
            issues.append(make_issue(
                item.id, item.name,
                "warning", "InvalidCode",
                f"WBS code '{item.code}' has non-numeric segments.",
                "Use dotted numeric codes such as 1.2.3.",
            ))

        if item.parent_id and item.parent_id not in ids:
            issues.append(make_issue(
                item.id, item.name,
                "error", "MissingParent",
                f"Parent {item.parent_id} does not exist; item is left out of the hierarchy.",
                "Reassign the item to an existing parent or make it a root.",
            ))
        elif item.parent_id and item.id not in reported_loop:
            if has_circular_reference(item.parent_id, item.id, items):
                reported_loop.add(item.id)
                issues.append(make_issue(
                    item.id, item.name,
                    "critical", "CircularParent",
                    f"Item is its own ancestor through parent {item.parent_id}.",
                    "Reparent one item in the loop.",
                ))

    return issues

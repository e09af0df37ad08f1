"""
Typed exceptions for the schedule analytics core.

Most bad input is tolerated (dangling dependencies, zero denominators,
malformed WBS codes). These are raised only when a computation cannot
produce a meaningful answer.

    ScheduleAnalyticsError (base)
    |
    +-- CyclicDependencyError   (also ValueError)
    +-- TaskFrameError          (also ValueError)
    +-- BaselineStoreError
"""

from __future__ import annotations

from typing import Sequence


class ScheduleAnalyticsError(Exception):
    """Base class. ``code`` is a stable machine-readable identifier."""

    code: str = "SCHEDULE_ANALYTICS_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CyclicDependencyError(ScheduleAnalyticsError, ValueError):
    """The dependency graph has a cycle; CPM cannot order it."""

    code = "CYCLIC_DEPENDENCY"

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        path = " -> ".join(str(c) for c in self.cycle)
        super().__init__(f"Graph is not acyclic; cannot compute CPM. Cycle: {path}")


class TaskFrameError(ScheduleAnalyticsError, ValueError):
    """A task table cannot be normalized into tasks."""

    code = "TASK_FRAME_INVALID"


class BaselineStoreError(ScheduleAnalyticsError):
    """Stored baseline records could not be read or written."""

    code = "BASELINE_STORE_ERROR"

    def __init__(self, project_id: str, reason: str):
        self.project_id = project_id
        super().__init__(f"Baseline store failure for project {project_id!r}: {reason}")

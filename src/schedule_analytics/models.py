# schedule_analytics/models.py

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd


# ---------------------------------------------------------
# ENUMS
# ---------------------------------------------------------

class TaskStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    LATE = "late"


class DependencyType(str, Enum):
    FINISH_TO_START = "FS"
    START_TO_START = "SS"
    FINISH_TO_FINISH = "FF"
    START_TO_FINISH = "SF"


class BaselineStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class HealthStatus(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class ScopeChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class WBSItemType(str, Enum):
    PROJECT = "project"
    DELIVERABLE = "deliverable"
    COMPONENT = "component"
    WORK_PACKAGE = "work-package"


def to_timestamp(value: Any) -> pd.Timestamp:
    """Coerce a date-like value to a tz-naive Timestamp."""
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"Not a valid date: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


# ---------------------------------------------------------
# TASKS
# ---------------------------------------------------------

@dataclass(frozen=True)
class Dependency:
    """Typed predecessor link. Type and lag are carried, not scheduled."""

    predecessor_id: str
    dep_type: DependencyType = DependencyType.FINISH_TO_START
    lag: float = 0.0


@dataclass
class Task:
    """
    A schedulable unit.

    ``duration`` is in calendar days and is what CPM schedules with;
    ``critical`` and ``level`` are derived views and get recomputed.
    Cost fields are optional and read as 0 when absent.
    """

    id: str
    name: str
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    duration: float
    progress: float = 0.0
    parent_id: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    links: List[Dependency] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.NOT_STARTED
    milestone: bool = False
    critical: bool = False
    level: int = 1
    cost: Optional[float] = None
    planned_value: Optional[float] = None
    earned_value: Optional[float] = None
    actual_cost: Optional[float] = None

    def __post_init__(self):
        self.id = str(self.id)
        self.start_date = to_timestamp(self.start_date)
        self.end_date = to_timestamp(self.end_date)
        self.status = TaskStatus(self.status)
        self.dependencies = [str(d) for d in self.dependencies]
        if self.parent_id is not None:
            self.parent_id = str(self.parent_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "duration": self.duration,
            "progress": self.progress,
            "parentId": self.parent_id,
            "dependencies": list(self.dependencies),
            "links": [
                {"predecessorId": l.predecessor_id, "type": l.dep_type.value, "lag": l.lag}
                for l in self.links
            ],
            "resources": list(self.resources),
            "status": self.status.value,
            "milestone": self.milestone,
            "critical": self.critical,
            "level": self.level,
            "cost": self.cost,
            "plannedValue": self.planned_value,
            "earnedValue": self.earned_value,
            "actualCost": self.actual_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        links = [
            Dependency(str(l["predecessorId"]), DependencyType(l.get("type", "FS")), float(l.get("lag", 0.0)))
            for l in data.get("links") or []
        ]
        return cls(
            id=data["id"],
            name=data["name"],
            start_date=data["startDate"],
            end_date=data["endDate"],
            duration=data["duration"],
            progress=data.get("progress", 0.0),
            parent_id=data.get("parentId"),
            dependencies=list(data.get("dependencies") or []),
            links=links,
            resources=list(data.get("resources") or []),
            status=data.get("status", TaskStatus.NOT_STARTED.value),
            milestone=bool(data.get("milestone", False)),
            critical=bool(data.get("critical", False)),
            level=int(data.get("level", 1)),
            cost=data.get("cost"),
            planned_value=data.get("plannedValue"),
            earned_value=data.get("earnedValue"),
            actual_cost=data.get("actualCost"),
        )


def copy_tasks(tasks) -> List[Task]:
    """Deep, independent copies."""
    return [copy.deepcopy(t) for t in tasks]


# ---------------------------------------------------------
# CPM / EVM RESULTS
# ---------------------------------------------------------

@dataclass
class CPMResult:
    critical_path: List[str]
    total_project_duration: int
    float: Dict[str, int]
    early_start: Dict[str, pd.Timestamp]
    early_finish: Dict[str, pd.Timestamp]
    late_start: Dict[str, pd.Timestamp]
    late_finish: Dict[str, pd.Timestamp]


@dataclass(frozen=True)
class EVMMetrics:
    planned_value: float = 0.0
    earned_value: float = 0.0
    actual_cost: float = 0.0
    budget_at_completion: float = 0.0
    schedule_variance: float = 0.0
    cost_variance: float = 0.0
    schedule_performance_index: float = 0.0
    cost_performance_index: float = 0.0
    estimate_at_completion: float = 0.0
    estimate_to_complete: float = 0.0
    variance_at_completion: float = 0.0
    to_complete_performance_index: float = 0.0


@dataclass(frozen=True)
class VarianceReport:
    task_id: str
    task_name: str
    schedule_variance: float
    cost_variance: float
    schedule_performance_index: float
    cost_performance_index: float
    estimate_at_completion: float
    variance_at_completion: float


# ---------------------------------------------------------
# BASELINES
# ---------------------------------------------------------

@dataclass(frozen=True)
class BaselineSnapshot:
    """Immutable snapshot; only ``status`` ever changes, via with_status()."""

    id: str
    project_id: str
    name: str
    description: str
    created_at: pd.Timestamp
    created_by: str
    tasks: Tuple[Task, ...]
    total_budget: float
    total_duration: int
    status: BaselineStatus
    version: str

    def with_status(self, status: BaselineStatus) -> "BaselineSnapshot":
        return replace(self, status=BaselineStatus(status))

    def task_list(self) -> List[Task]:
        return copy_tasks(self.tasks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at.isoformat(),
            "createdBy": self.created_by,
            "tasks": [t.to_dict() for t in self.tasks],
            "totalBudget": self.total_budget,
            "totalDuration": self.total_duration,
            "status": self.status.value,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaselineSnapshot":
        return cls(
            id=data["id"],
            project_id=data.get("projectId", ""),
            name=data["name"],
            description=data.get("description", ""),
            created_at=to_timestamp(data["createdAt"]),
            created_by=data.get("createdBy", ""),
            tasks=tuple(Task.from_dict(t) for t in data.get("tasks", [])),
            total_budget=float(data.get("totalBudget", 0.0)),
            total_duration=int(data.get("totalDuration", 0)),
            status=BaselineStatus(data.get("status", BaselineStatus.ARCHIVED.value)),
            version=data.get("version", "v1.0"),
        )


# ---------------------------------------------------------
# WBS
# ---------------------------------------------------------

@dataclass
class WBSItem:
    id: str
    code: str
    name: str = ""
    item_type: WBSItemType = WBSItemType.COMPONENT
    parent_id: Optional[str] = None
    responsible: str = ""
    estimated_cost: float = 0.0
    actual_cost: float = 0.0

    def __post_init__(self):
        self.id = str(self.id)
        self.code = str(self.code)
        self.item_type = WBSItemType(self.item_type)
        if self.parent_id is not None:
            self.parent_id = str(self.parent_id)


@dataclass
class WBSNode:
    item: WBSItem
    level: int
    children: List["WBSNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def code(self) -> str:
        return self.item.code


@dataclass
class WBSStatistics:
    total_items: int
    items_by_level: Dict[int, int]
    total_cost: float
    unique_responsibles: List[str]
    cost_by_branch: Dict[str, float]

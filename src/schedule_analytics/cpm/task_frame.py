# schedule_analytics/cpm/task_frame.py

from __future__ import annotations

import re
from typing import List, Sequence

import numpy as np
import pandas as pd

from schedule_analytics.exceptions import TaskFrameError
from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import Dependency, DependencyType, Task, TaskStatus

logger = get_logger("cpm.task_frame")

COST_COLUMNS = {
    "Cost": "cost",
    "PlannedValue": "planned_value",
    "EarnedValue": "earned_value",
    "ActualCost": "actual_cost",
}

FRAME_COLUMNS = [
    "TaskID", "Name", "Start", "Finish", "Duration", "PercentComplete",
    "Parent", "Predecessors", "Resources", "Status", "Milestone", "Critical",
    "Level", *COST_COLUMNS.keys(),
]

# ---------------------------------------------------------
# PREDECESSOR PARSING
# ---------------------------------------------------------

_DEP_PATTERN = re.compile(
    r"""
    ^\s*
    (?P<pred>[^\s,;+-]+?)
    \s*
    (?P<type>FS|SS|FF|SF)?    # optional type
    \s*
    (?P<lag>[+-]\s*\d+(?:\.\d+)?)?   # optional +N or -N
    \s*[dD]?                  # optional 'd'
    \s*$
    """,
    re.VERBOSE,
)


def parse_dependency_cell(cell) -> List[Dependency]:
    """
    Parse a Predecessors cell like:
      "5"
      "5FS+3d"
      "12SS-2"
      "7FF+1d, 9SS"
    into typed links:
      [Dependency("5", FS, 3.0), ...]
    """
    if cell is None:
        return []
    if isinstance(cell, float) and np.isnan(cell):
        return []

    text = str(cell).strip()
    if not text:
        return []

    results = []
    for raw in re.split(r"[;,]", text):
        s = raw.strip()
        if not s:
            continue
        m = _DEP_PATTERN.match(s)
        if not m:
            logger.debug("Skipping unparseable predecessor entry %r", s)
            continue

        dep_type = DependencyType(m.group("type") or "FS")
        lag_str = m.group("lag")
        lag = float(lag_str.replace(" ", "")) if lag_str else 0.0
        results.append(Dependency(m.group("pred"), dep_type, lag))

    return results


def _split_list(cell) -> List[str]:
    if cell is None or (isinstance(cell, float) and np.isnan(cell)):
        return []
    return [p.strip() for p in re.split(r"[;,]", str(cell)) if p.strip()]


# ---------------------------------------------------------
# FIELD CLEANUP & PREPARATION
# ---------------------------------------------------------

def process_task_dataframe(df_input: pd.DataFrame) -> pd.DataFrame:
    """
    Clean and normalize a task table (CSV export, spreadsheet, etc.).

    Guarantees:
      - TaskID is a string, Name present
      - Start / Finish are datetimes; Finish defaults to Start + Duration
      - Duration numeric; derived from Finish - Start when missing
      - PercentComplete numeric (0–100)
      - Predecessors / Resources / Parent exist or are safely defaulted
    """
    df = df_input.copy()

    # Normalize column names (strip whitespace)
    df.columns = [str(c).strip() for c in df.columns]

    # ---- TaskID / Name ----
    for col in ("TaskID", "Name", "Start"):
        if col not in df.columns:
            raise TaskFrameError(f"Missing required column: '{col}'")

    if df["TaskID"].isna().any():
        raise TaskFrameError("Some TaskID values are blank.")
    df["TaskID"] = df["TaskID"].map(
        lambda v: str(int(v)) if isinstance(v, float) and v.is_integer() else str(v).strip()
    )

    # ---- Dates ----
    df["Start"] = pd.to_datetime(df["Start"], errors="coerce")
    if df["Start"].isna().any():
        bad = df[df["Start"].isna()][["TaskID", "Name"]].head()
        raise TaskFrameError(
            "Unparseable Start dates. Example rows:\n"
            f"{bad.to_string(index=False)}"
        )
    if "Finish" in df.columns:
        df["Finish"] = pd.to_datetime(df["Finish"], errors="coerce")
    else:
        df["Finish"] = pd.NaT

    # ---- Duration ----
    if "Duration" in df.columns:
        df["Duration"] = pd.to_numeric(df["Duration"], errors="coerce")
    else:
        df["Duration"] = np.nan

    derived = (df["Finish"] - df["Start"]).dt.days
    df["Duration"] = df["Duration"].fillna(derived)
    if df["Duration"].isna().any():
        bad = df[df["Duration"].isna()][["TaskID", "Name"]].head()
        raise TaskFrameError(
            "Rows need a Duration or a Finish date. Example rows:\n"
            f"{bad.to_string(index=False)}"
        )
    df["Finish"] = df["Finish"].fillna(df["Start"] + pd.to_timedelta(df["Duration"], unit="D"))

    # ---- Percent Complete → PercentComplete (0–100) ----
    if "% Complete" in df.columns:
        pct = df["% Complete"].astype(str).str.replace("%", "", regex=False)
        df["PercentComplete"] = pd.to_numeric(pct, errors="coerce").fillna(0.0)
    elif "PercentComplete" in df.columns:
        df["PercentComplete"] = pd.to_numeric(df["PercentComplete"], errors="coerce").fillna(0.0)
    else:
        df["PercentComplete"] = 0.0

    # Clamp to sane range
    df["PercentComplete"] = df["PercentComplete"].clip(lower=0.0, upper=100.0)

    # ---- Optional text columns ----
    for col in ("Predecessors", "Resources", "Parent"):
        if col not in df.columns:
            df[col] = ""
        df[col] = df[col].fillna("").astype(str).str.strip()

    if "Status" not in df.columns:
        df["Status"] = TaskStatus.NOT_STARTED.value
    df["Status"] = df["Status"].fillna(TaskStatus.NOT_STARTED.value)

    for col in ("Milestone", "Critical"):
        if col not in df.columns:
            df[col] = False
        df[col] = df[col].fillna(False).astype(bool)

    if "Level" not in df.columns:
        df["Level"] = 1
    df["Level"] = pd.to_numeric(df["Level"], errors="coerce").fillna(1).astype(int)

    # ---- Costs (optional, kept as NaN when absent) ----
    for col in COST_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan
        df[col] = pd.to_numeric(df[col], errors="coerce")

    return df


def _opt_float(value):
    return None if pd.isna(value) else float(value)


def tasks_from_dataframe(df_input: pd.DataFrame) -> List[Task]:
    """Normalize a task table and build Task objects from its rows."""
    df = process_task_dataframe(df_input)

    tasks = []
    for _, row in df.iterrows():
        links = parse_dependency_cell(row["Predecessors"])
        tasks.append(Task(
            id=row["TaskID"],
            name=str(row["Name"]),
            start_date=row["Start"],
            end_date=row["Finish"],
            duration=float(row["Duration"]),
            progress=float(row["PercentComplete"]),
            parent_id=row["Parent"] or None,
            dependencies=[l.predecessor_id for l in links],
            links=links,
            resources=_split_list(row["Resources"]),
            status=row["Status"],
            milestone=bool(row["Milestone"]),
            critical=bool(row["Critical"]),
            level=int(row["Level"]),
            **{attr: _opt_float(row[col]) for col, attr in COST_COLUMNS.items()},
        ))

    logger.debug("Loaded %d tasks from frame", len(tasks))
    return tasks


def _format_link(link: Dependency) -> str:
    text = f"{link.predecessor_id}{link.dep_type.value}"
    if link.lag:
        lag = int(link.lag) if float(link.lag).is_integer() else link.lag
        text += f"{'+' if link.lag > 0 else ''}{lag}d"
    return text


def tasks_to_dataframe(tasks: Sequence[Task]) -> pd.DataFrame:
    """Inverse of tasks_from_dataframe, using the same column names."""
    rows = []
    for t in tasks:
        if t.links:
            preds = ", ".join(_format_link(l) for l in t.links)
        else:
            preds = ", ".join(t.dependencies)
        rows.append({
            "TaskID": t.id,
            "Name": t.name,
            "Start": t.start_date,
            "Finish": t.end_date,
            "Duration": t.duration,
            "PercentComplete": t.progress,
            "Parent": t.parent_id or "",
            "Predecessors": preds,
            "Resources": ", ".join(t.resources),
            "Status": t.status.value,
            "Milestone": t.milestone,
            "Critical": t.critical,
            "Level": t.level,
            **{col: getattr(t, attr) for col, attr in COST_COLUMNS.items()},
        })
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)

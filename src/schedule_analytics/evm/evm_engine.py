# schedule_analytics/evm/evm_engine.py

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import EVMMetrics, Task, VarianceReport, to_timestamp

logger = get_logger("evm")

# Recommendation triggers
SPI_WARNING = 0.9
CPI_WARNING = 0.9
TCPI_WARNING = 1.1

# Index bands for display
EXCELLENT_INDEX = 1.1
SATISFACTORY_INDEX = 0.9
UNDERPERFORMING_INDEX = 0.8

# Assumed earn-rate window: EV is treated as one month of work
DAYS_PER_MONTH = 30


# -----------------------------
# Small helpers
# -----------------------------

def _ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is not positive."""
    return float(numerator / denominator) if denominator > 0 else 0.0


def _forecast(bac: float, ev: float, ac: float, pv: float) -> Dict[str, float]:
    spi = _ratio(ev, pv)
    cpi = _ratio(ev, ac)
    eac = ac + (bac - ev) / cpi if cpi > 0 else bac
    return {
        "schedule_variance": ev - pv,
        "cost_variance": ev - ac,
        "schedule_performance_index": spi,
        "cost_performance_index": cpi,
        "estimate_at_completion": eac,
        "estimate_to_complete": eac - ac,
        "variance_at_completion": bac - eac,
    }


def task_value_frame(tasks: Sequence[Task]) -> pd.DataFrame:
    """Task cost fields as numbers; missing values read as 0."""
    df = pd.DataFrame(
        [
            {
                "TaskID": t.id,
                "Name": t.name,
                "Start": t.start_date,
                "Finish": t.end_date,
                "PV": t.planned_value,
                "EV": t.earned_value,
                "AC": t.actual_cost,
                "BAC": t.cost,
            }
            for t in tasks
        ],
        columns=["TaskID", "Name", "Start", "Finish", "PV", "EV", "AC", "BAC"],
    )
    for col in ["PV", "EV", "AC", "BAC"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    return df


def time_phased_planned_value(df: pd.DataFrame, as_of: pd.Timestamp) -> pd.Series:
    """
    Planned value earned by ``as_of`` for each task:
      as_of >= finish          -> full PV
      start <= as_of < finish  -> PV * elapsed / span
      as_of < start            -> 0
    """
    span = (df["Finish"] - df["Start"]).dt.total_seconds().to_numpy()
    elapsed = (as_of - df["Start"]).dt.total_seconds().to_numpy()
    pv = df["PV"].to_numpy()

    with np.errstate(divide="ignore", invalid="ignore"):
        fraction = np.where(span > 0, elapsed / span, 0.0)

    done = (as_of >= df["Finish"]).to_numpy()
    running = ((as_of >= df["Start"]) & (as_of < df["Finish"])).to_numpy()

    earned = np.where(done, pv, np.where(running, pv * fraction, 0.0))
    return pd.Series(earned, index=df.index)


# -----------------------------
# Project metrics
# -----------------------------

def calculate_evm_metrics(tasks: Sequence[Task], baseline_date=None) -> EVMMetrics:
    """
    Project-level earned value metrics as of ``baseline_date`` (default: now).

    PV is time-phased per task; EV, AC and BAC are the stored task
    fields summed. Ratios with a zero denominator come back as 0.
    """
    as_of = pd.Timestamp.now() if baseline_date is None else to_timestamp(baseline_date)

    df = task_value_frame(tasks)
    if df.empty:
        return EVMMetrics()

    pv = float(time_phased_planned_value(df, as_of).sum())
    ev = float(df["EV"].sum())
    ac = float(df["AC"].sum())
    bac = float(df["BAC"].sum())

    remaining_work = bac - ev
    remaining_budget = bac - ac

    metrics = EVMMetrics(
        planned_value=pv,
        earned_value=ev,
        actual_cost=ac,
        budget_at_completion=bac,
        to_complete_performance_index=_ratio(remaining_work, remaining_budget),
        **_forecast(bac, ev, ac, pv),
    )

    logger.debug(
        "EVM as of %s: PV=%.2f EV=%.2f AC=%.2f SPI=%.3f CPI=%.3f",
        as_of.date(), pv, ev, ac,
        metrics.schedule_performance_index, metrics.cost_performance_index,
    )
    return metrics


# -----------------------------
# Per-task variance
# -----------------------------

def generate_variance_report(tasks: Sequence[Task]) -> List[VarianceReport]:
    """
    Per-task variance using the stored PV/EV/AC/cost fields directly
    (no time apportionment).
    """
    df = task_value_frame(tasks)

    report = []
    for row in df.itertuples(index=False):
        f = _forecast(row.BAC, row.EV, row.AC, row.PV)
        report.append(VarianceReport(
            task_id=row.TaskID,
            task_name=row.Name,
            schedule_variance=f["schedule_variance"],
            cost_variance=f["cost_variance"],
            schedule_performance_index=f["schedule_performance_index"],
            cost_performance_index=f["cost_performance_index"],
            estimate_at_completion=f["estimate_at_completion"],
            variance_at_completion=f["variance_at_completion"],
        ))
    return report


def variance_report_frame(report: Sequence[VarianceReport]) -> pd.DataFrame:
    columns = [
        "task_id", "task_name", "schedule_variance", "cost_variance",
        "schedule_performance_index", "cost_performance_index",
        "estimate_at_completion", "variance_at_completion",
    ]
    return pd.DataFrame([asdict(r) for r in report], columns=columns)


def classify_performance_index(
    index: float,
    excellent: float = EXCELLENT_INDEX,
    satisfactory: float = SATISFACTORY_INDEX,
) -> str:
    """'excellent' (>= 1.1), 'satisfactory' (>= 0.9) or 'critical'."""
    if index >= excellent:
        return "excellent"
    if index >= satisfactory:
        return "satisfactory"
    return "critical"


def find_underperforming_tasks(
    report: Sequence[VarianceReport],
    threshold: float = UNDERPERFORMING_INDEX,
) -> List[VarianceReport]:
    """Rows whose SPI or CPI is under ``threshold``."""
    return [
        r for r in report
        if r.schedule_performance_index < threshold or r.cost_performance_index < threshold
    ]


# -----------------------------
# Completion forecast
# -----------------------------

def predict_project_completion(
    metrics: EVMMetrics,
    today=None,
    spi_warning: float = SPI_WARNING,
    cpi_warning: float = CPI_WARNING,
    tcpi_warning: float = TCPI_WARNING,
) -> Dict[str, Any]:
    """
    Naive completion forecast from EVM indices.

    Remaining days = ETC / (EV / 30): the earned value to date is taken
    as one month's earn rate. With no earned value there is no rate and
    the date stays None. Actions are suggested when SPI or CPI fall
    under their warning level or TCPI rises above ``tcpi_warning``.

    Returns:
      {
        "estimated_completion_date": Timestamp | None,
        "remaining_days": float | None,
        "probability_on_time": float,  (0–100)
        "recommended_actions": list[str],
      }
    """
    today = pd.Timestamp.now().normalize() if today is None else to_timestamp(today)

    spi = metrics.schedule_performance_index
    cpi = metrics.cost_performance_index

    remaining_days = None
    completion_date = None
    if metrics.earned_value > 0:
        daily_rate = metrics.earned_value / DAYS_PER_MONTH
        remaining_days = float(metrics.estimate_to_complete / daily_rate)
        completion_date = today + pd.Timedelta(days=int(remaining_days))

    probability = float(np.clip((spi + cpi) / 2 * 100, 0.0, 100.0))

    actions = []
    if spi < spi_warning:
        actions.append("Accelerate critical activities")
        actions.append("Consider additional resources")
    if cpi < cpi_warning:
        actions.append("Review resource efficiency")
        actions.append("Renegotiate scope or budget")
    if metrics.to_complete_performance_index > tcpi_warning:
        actions.append("Future performance must improve significantly to stay on budget")

    return {
        "estimated_completion_date": completion_date,
        "remaining_days": remaining_days,
        "probability_on_time": probability,
        "recommended_actions": actions,
    }

import pandas as pd
import pytest

from schedule_analytics import (
    CyclicDependencyError,
    Dependency,
    DependencyType,
    apply_critical_flags,
    calculate_critical_path,
    compile_cpm_frame,
    parse_dependency_cell,
    tasks_from_dataframe,
)
from schedule_analytics.tests.builders import PROJECT_START, make_task


# ----------------------------------------------------------------
# 1. PARSING TESTS
# ----------------------------------------------------------------
def test_parse_dependency_cell():
    FS = DependencyType.FINISH_TO_START

    # Test Standard FS
    assert parse_dependency_cell("10") == [Dependency("10", FS, 0.0)]
    assert parse_dependency_cell("10FS") == [Dependency("10", FS, 0.0)]

    # Test Lags (Positive/Negative)
    assert parse_dependency_cell("10FS+2d") == [Dependency("10", FS, 2.0)]
    assert parse_dependency_cell("10FS - 3 d") == [Dependency("10", FS, -3.0)]

    # Test Types (SS, FF, SF)
    assert parse_dependency_cell("20SS+5") == [Dependency("20", DependencyType.START_TO_START, 5.0)]
    assert parse_dependency_cell("30FF") == [Dependency("30", DependencyType.FINISH_TO_FINISH, 0.0)]

    # Test Multiple Dependencies
    res = parse_dependency_cell("10FS, 20SS+2")
    assert Dependency("10", FS, 0.0) in res
    assert Dependency("20", DependencyType.START_TO_START, 2.0) in res

    assert parse_dependency_cell("") == []
    assert parse_dependency_cell(None) == []
    assert parse_dependency_cell(float("nan")) == []


# ----------------------------------------------------------------
# 2. CORE CPM LOGIC TESTS
# ----------------------------------------------------------------

def run_cpm_on_data(data):
    """Helper to run the full pipeline on a dict/list structure"""
    df = pd.DataFrame(data)
    # Ensure standard columns exist
    if "Start" not in df.columns:
        df["Start"] = "2025-01-06"
    if "Predecessors" not in df.columns:
        df["Predecessors"] = ""

    tasks = tasks_from_dataframe(df)
    return calculate_critical_path(tasks)


def day(offset):
    return PROJECT_START + pd.Timedelta(days=offset)


def test_simple_fs_chain():
    """
    Task 1 (Dur 5) -> Task 2 (Dur 3)
    Expected:
      T1: ES=0, EF=5
      T2: ES=5, EF=8
    """
    data = [
        {"TaskID": 1, "Name": "A", "Duration": 5, "Predecessors": ""},
        {"TaskID": 2, "Name": "B", "Duration": 3, "Predecessors": "1"}
    ]
    res = run_cpm_on_data(data)

    assert res.early_start["1"] == day(0) and res.early_finish["1"] == day(5)
    assert res.early_start["2"] == day(5) and res.early_finish["2"] == day(8)
    assert res.float["1"] == 0 and res.float["2"] == 0  # Both critical
    assert res.total_project_duration == 8


def test_branching_example(abc_tasks):
    """
    A (5) -> B (3), A (5) -> C (4)
    Project = max(5+3, 5+4) = 9, B has one day of float.
    """
    res = calculate_critical_path(abc_tasks)

    assert res.total_project_duration == 9
    assert set(res.critical_path) == {"A", "C"}
    assert res.float == {"A": 0, "B": 1, "C": 0}
    assert res.late_start["B"] == day(6)
    assert res.late_finish["A"] == day(5)


def test_multiple_paths_convergence():
    """
    A (5) -> C (2)
    B (10) -> C (2)
    C should start at max(5, 10) = 10
    """
    data = [
        {"TaskID": 1, "Name": "A", "Duration": 5},
        {"TaskID": 2, "Name": "B", "Duration": 10},
        {"TaskID": 3, "Name": "C", "Duration": 2, "Predecessors": "1, 2"}
    ]
    res = run_cpm_on_data(data)

    assert res.early_start["3"] == day(10)
    assert res.float["1"] == 5  # A has 5 days float (can finish at 10)
    assert res.float["2"] == 0  # B is critical
    assert res.critical_path == ["2", "3"]


def test_early_finish_is_start_plus_duration(abc_tasks):
    res = calculate_critical_path(abc_tasks)
    for t in abc_tasks:
        assert res.early_finish[t.id] == res.early_start[t.id] + pd.Timedelta(days=t.duration)
        assert res.float[t.id] >= 0


def test_single_task_is_critical():
    res = calculate_critical_path([make_task("solo", 7)])

    assert res.float == {"solo": 0}
    assert res.critical_path == ["solo"]
    assert res.total_project_duration == 7


def test_declared_start_later_than_predecessor():
    """B may not start before its own date even when A is done earlier."""
    tasks = [
        make_task("A", 2),
        make_task("B", 3, deps=["A"], start_offset=6),
    ]
    res = calculate_critical_path(tasks)

    assert res.early_start["B"] == day(6)
    assert res.total_project_duration == 9
    assert res.float["A"] == 4


def test_dangling_dependency_is_ignored():
    tasks = [
        make_task("A", 4),
        make_task("B", 2, deps=["ghost"], start_offset=1),
    ]
    res = calculate_critical_path(tasks)

    assert res.early_start["B"] == day(1)
    assert res.total_project_duration == 4
    assert res.float["B"] == 1


def test_empty_task_list():
    res = calculate_critical_path([])

    assert res.critical_path == []
    assert res.total_project_duration == 0
    assert res.float == {}


def test_circular_dependency_error():
    """
    A -> B -> A loop should raise
    """
    data = [
        {"TaskID": 1, "Name": "A", "Duration": 5, "Predecessors": "2"},
        {"TaskID": 2, "Name": "B", "Duration": 5, "Predecessors": "1"}
    ]
    with pytest.raises(CyclicDependencyError, match="Graph is not acyclic") as exc:
        run_cpm_on_data(data)

    assert isinstance(exc.value, ValueError)
    assert exc.value.cycle[0] == exc.value.cycle[-1]
    assert set(exc.value.cycle) == {"1", "2"}


def test_self_dependency_is_a_cycle():
    with pytest.raises(CyclicDependencyError):
        calculate_critical_path([make_task("A", 1, deps=["A"])])


def test_long_chain_does_not_recurse():
    tasks = [make_task("0", 1)]
    tasks += [make_task(str(i), 1, deps=[str(i - 1)]) for i in range(1, 3000)]

    res = calculate_critical_path(tasks)

    assert res.total_project_duration == 3000
    assert len(res.critical_path) == 3000


# ----------------------------------------------------------------
# 3. RESULT HELPERS
# ----------------------------------------------------------------

def test_apply_critical_flags_returns_copies(abc_tasks):
    res = calculate_critical_path(abc_tasks)
    flagged = apply_critical_flags(abc_tasks, res)

    assert [t.critical for t in flagged] == [True, False, True]
    assert all(not t.critical for t in abc_tasks)
    assert flagged[0] is not abc_tasks[0]


def test_compile_cpm_frame(abc_tasks):
    res = calculate_critical_path(abc_tasks)
    df = compile_cpm_frame(abc_tasks, res)

    assert list(df["TaskID"]) == ["A", "B", "C"]
    assert list(df["IsCritical"]) == [True, False, True]
    assert list(df["FloatBucket"]) == ["Critical (0)", "≤ 1 day", "Critical (0)"]


def test_fractional_durations_schedule_whole_days():
    """
    A (4.5) -> B (4.5)
    Each task occupies 4 whole days: B starts day 4, project is 8 days.
    """
    tasks = [make_task("A", 4.5), make_task("B", 4.5, deps=["A"])]
    res = calculate_critical_path(tasks)

    assert res.early_start["B"] == day(4)
    assert res.early_finish["B"] == day(8)
    assert res.total_project_duration == 8
    assert res.critical_path == ["A", "B"]


def test_compile_cpm_frame_custom_buckets(abc_tasks):
    res = calculate_critical_path(abc_tasks)
    df = compile_cpm_frame(
        abc_tasks, res, bucket_bins=[-1, 0.5, 100], bucket_labels=["tight", "loose"]
    )

    assert list(df["FloatBucket"]) == ["tight", "loose", "tight"]

import pytest

from schedule_analytics import (
    WBSItem,
    build_hierarchy,
    calculate_level,
    calculate_statistics,
    can_delete,
    compare_wbs_codes,
    generate_next_code,
    generate_phase_code,
    has_circular_reference,
    hierarchy_frame,
    validate_wbs_code,
)
from schedule_analytics.tests.builders import make_item
from schedule_analytics.wbs.wbs_codes import wbs_sort_key


# ----------------------------------------------------------------
# 1. CODES
# ----------------------------------------------------------------

def test_calculate_level():
    assert calculate_level("1") == 1
    assert calculate_level("1.0") == 2
    assert calculate_level("1.2.3") == 3


@pytest.mark.parametrize(
    "a, b",
    [("1.2", "1.10"), ("1.10", "2.1"), ("1", "1.1"), ("1.9.9", "1.10")],
)
def test_codes_compare_numerically(a, b):
    assert compare_wbs_codes(a, b) < 0
    assert compare_wbs_codes(b, a) > 0


def test_missing_and_bad_segments_read_as_zero():
    assert compare_wbs_codes("1", "1.0") == 0
    assert compare_wbs_codes("1.x", "1.0") == 0


def test_sort_key_orders_codes():
    codes = ["2.1", "1.10", "1.2", "1", "1.1.1"]
    assert sorted(codes, key=wbs_sort_key) == ["1", "1.1.1", "1.2", "1.10", "2.1"]


def test_generate_next_code(wbs_items):
    assert generate_next_code(None, wbs_items) == "3.0"
    assert generate_next_code("design", wbs_items) == "1.1.2"
    # children of 1.0 end in 1, 2 and 10
    assert generate_next_code("p1", wbs_items) == "1.0.11"
    assert generate_next_code("sketch", wbs_items) == "1.1.1.1"
    assert generate_next_code("ghost", wbs_items) == "1.0"


def test_generate_next_code_skips_malformed_segments():
    items = [
        make_item("r", "1.0"),
        make_item("a", "1.0.abc", parent="r"),
        make_item("b", "1.0.4", parent="r"),
    ]
    assert generate_next_code("r", items) == "1.0.5"
    assert generate_next_code(None, []) == "1.0"


def test_validate_wbs_code():
    assert validate_wbs_code("1.2")
    assert validate_wbs_code("10.04")
    assert not validate_wbs_code("1")
    assert not validate_wbs_code("1.2.3")
    assert not validate_wbs_code("a.1")


def test_generate_phase_code():
    phases = ["design", "build"]
    assert generate_phase_code("build", phases, ["1.1", "2.1", "2.3", "2.x"]) == "2.4"
    assert generate_phase_code("design", phases, []) == "1.1"
    assert generate_phase_code("unknown", phases, ["1.1"]) == "1.1"


# ----------------------------------------------------------------
# 2. HIERARCHY
# ----------------------------------------------------------------

def test_build_hierarchy_minimal():
    items = [WBSItem(id=1, code="1.0"), WBSItem(id=2, code="1.1", parent_id=1)]
    roots = build_hierarchy(items)

    assert len(roots) == 1
    assert roots[0].id == "1"
    assert [c.id for c in roots[0].children] == ["2"]
    assert roots[0].children[0].level == 2


def test_siblings_sorted_by_code(wbs_items):
    roots = build_hierarchy(wbs_items)

    assert [r.code for r in roots] == ["1.0", "2.0"]
    assert [c.code for c in roots[0].children] == ["1.1", "1.2", "1.10"]
    assert [c.code for c in roots[0].children[0].children] == ["1.1.1"]
    assert roots[0].children[0].children[0].level == 3


def test_orphans_are_left_out():
    items = [make_item("r", "1.0"), make_item("lost", "9.1", parent="nowhere")]
    roots = build_hierarchy(items)

    assert [r.id for r in roots] == ["r"]
    assert roots[0].children == []


def test_can_delete(wbs_items):
    assert can_delete("sketch", wbs_items)
    assert can_delete("p2", wbs_items)
    assert not can_delete("design", wbs_items)
    assert not can_delete("p1", wbs_items)


def test_has_circular_reference(wbs_items):
    # p1 under sketch would make p1 its own ancestor
    assert has_circular_reference("sketch", "p1", wbs_items)
    assert has_circular_reference("design", "design", wbs_items)
    assert not has_circular_reference("p2", "design", wbs_items)
    assert not has_circular_reference("ghost", "design", wbs_items)


def test_circular_check_terminates_on_existing_loop():
    items = [make_item("a", "1.0", parent="b"), make_item("b", "2.0", parent="a")]
    assert not has_circular_reference("a", "c", items)


# ----------------------------------------------------------------
# 3. STATISTICS
# ----------------------------------------------------------------

def test_calculate_statistics(wbs_items):
    stats = calculate_statistics(wbs_items)

    assert stats.total_items == 6
    assert stats.items_by_level == {2: 5, 3: 1}
    assert stats.total_cost == pytest.approx(1960.0)
    assert stats.unique_responsibles == ["Ops", "PM", "Marketing", "Eng"]
    assert stats.cost_by_branch == {
        "p1": 1560.0,
        "design": 250.0,
        "sketch": 50.0,
        "build": 300.0,
        "launch": 10.0,
        "p2": 400.0,
    }


def test_hierarchy_frame(wbs_items):
    df = hierarchy_frame(wbs_items)

    assert list(df["ItemID"]) == ["p1", "design", "sketch", "build", "launch", "p2"]
    assert list(df["IsSummary"]) == [True, True, False, False, False, False]
    assert list(df["IsLeaf"]) == [False, False, True, True, True, True]
    assert df.loc[df["ItemID"] == "p1", "BranchCost"].item() == pytest.approx(1560.0)

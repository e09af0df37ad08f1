# schedule_analytics/wbs/wbs_hierarchy.py

from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd

from schedule_analytics.logging_config import get_logger
from schedule_analytics.models import WBSItem, WBSNode, WBSStatistics
from schedule_analytics.wbs.wbs_codes import calculate_level, wbs_sort_key

logger = get_logger("wbs")


# ---------------------------------------------------------
# WBS HIERARCHY
# ---------------------------------------------------------

def build_hierarchy(flat_items: Sequence[WBSItem]) -> List[WBSNode]:
    """
    Turn flat WBS records into a forest, siblings ordered by code.

    Items without a parent are roots. Items whose parent id is not in
    the list are left out of the tree.
    """
    nodes: Dict[str, WBSNode] = {
        item.id: WBSNode(item=item, level=calculate_level(item.code))
        for item in flat_items
    }

    roots: List[WBSNode] = []
    for item in flat_items:
        node = nodes[item.id]
        if not item.parent_id:
            roots.append(node)
            continue
        parent = nodes.get(item.parent_id)
        if parent is None:
            logger.warning("WBS item %s has unknown parent %s; left out of hierarchy", item.id, item.parent_id)
            continue
        parent.children.append(node)

    def sort_by_code(level_nodes: List[WBSNode]):
        level_nodes.sort(key=lambda n: wbs_sort_key(n.code))
        for n in level_nodes:
            sort_by_code(n.children)

    sort_by_code(roots)
    return roots


def iter_nodes(roots: Sequence[WBSNode]):
    """Depth-first, pre-order walk."""
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def can_delete(item_id: str, all_items: Sequence[WBSItem]) -> bool:
    """Only leaves can be deleted: nothing may list the item as parent."""
    item_id = str(item_id)
    return not any(item.parent_id == item_id for item in all_items)


def has_circular_reference(parent_id: str, child_id: str, all_items: Sequence[WBSItem]) -> bool:
    """
    Would making ``parent_id`` the parent of ``child_id`` close a loop?

    Walks up from ``parent_id`` along parent links looking for ``child_id``.
    """
    by_id = {item.id: item for item in all_items}
    child_id = str(child_id)
    current = str(parent_id) if parent_id is not None else None
    visited = set()

    while current is not None:
        if current == child_id:
            return True
        if current in visited:
            return False
        visited.add(current)
        item = by_id.get(current)
        current = item.parent_id if item is not None and item.parent_id else None

    return False


# ---------------------------------------------------------
# STATISTICS
# ---------------------------------------------------------

def _branch_costs(roots: Sequence[WBSNode]) -> Dict[str, float]:
    """Own estimated cost plus all descendants', post-order."""
    costs: Dict[str, float] = {}

    def visit(node: WBSNode) -> float:
        cost = node.item.estimated_cost or 0.0
        cost += sum(visit(child) for child in node.children)
        costs[node.id] = cost
        return cost

    for root in roots:
        visit(root)
    return costs


def calculate_statistics(items: Sequence[WBSItem]) -> WBSStatistics:
    hierarchy = build_hierarchy(items)

    by_level: Dict[int, int] = {}
    for item in items:
        level = calculate_level(item.code)
        by_level[level] = by_level.get(level, 0) + 1

    # Distinct, first-seen order
    responsibles = list(dict.fromkeys(item.responsible for item in items))

    return WBSStatistics(
        total_items=len(items),
        items_by_level=by_level,
        total_cost=float(sum(item.estimated_cost or 0.0 for item in items)),
        unique_responsibles=responsibles,
        cost_by_branch=_branch_costs(hierarchy),
    )


def hierarchy_frame(items: Sequence[WBSItem]) -> pd.DataFrame:
    """
    Tabular view of the WBS, in tree order:
      ItemID, Code, Name, ItemType, ParentID, Level, IsSummary, IsLeaf,
      EstimatedCost, ActualCost, BranchCost
    """
    roots = build_hierarchy(items)
    branch = _branch_costs(roots)

    rows = []
    for node in iter_nodes(roots):
        item = node.item
        rows.append({
            "ItemID": item.id,
            "Code": item.code,
            "Name": item.name,
            "ItemType": item.item_type.value,
            "ParentID": item.parent_id,
            "Level": node.level,
            "IsSummary": bool(node.children),
            "EstimatedCost": item.estimated_cost,
            "ActualCost": item.actual_cost,
            "BranchCost": branch[item.id],
        })

    df = pd.DataFrame(
        rows,
        columns=[
            "ItemID", "Code", "Name", "ItemType", "ParentID", "Level",
            "IsSummary", "EstimatedCost", "ActualCost", "BranchCost",
        ],
    )
    df["IsLeaf"] = ~df["IsSummary"].astype(bool)
    return df

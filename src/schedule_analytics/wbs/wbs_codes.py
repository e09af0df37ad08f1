# schedule_analytics/wbs/wbs_codes.py

from __future__ import annotations

import functools
import re
from typing import List, Optional, Sequence

from schedule_analytics.models import WBSItem

_PHASE_CODE = re.compile(r"^\d+\.\d+$")
_NUMERIC = re.compile(r"^\s*\d+\s*$")


def calculate_level(code: str) -> int:
    """Number of dot-separated segments: "1" -> 1, "1.2.3" -> 3."""
    return len(str(code).split("."))


def _segment_value(segment: str) -> int:
    # Non-numeric segments compare as 0, like missing ones
    return int(segment) if _NUMERIC.match(segment) else 0


def compare_wbs_codes(a: str, b: str) -> int:
    """
    Negative / zero / positive like a classic cmp().

    Segments are compared numerically left to right; a missing
    segment counts as 0, so "1.2" < "1.10" < "2.1" and "1" == "1.0".
    """
    a_parts = [_segment_value(s) for s in str(a).split(".")]
    b_parts = [_segment_value(s) for s in str(b).split(".")]

    for i in range(max(len(a_parts), len(b_parts))):
        a_val = a_parts[i] if i < len(a_parts) else 0
        b_val = b_parts[i] if i < len(b_parts) else 0
        if a_val != b_val:
            return a_val - b_val
    return 0


wbs_sort_key = functools.cmp_to_key(compare_wbs_codes)


def _numeric_segments(values: Sequence[str]) -> List[int]:
    return [int(v) for v in values if _NUMERIC.match(v)]


def generate_next_code(parent_id: Optional[str], existing_items: Sequence[WBSItem]) -> str:
    """
    Next free code.

    Root level:  max first segment of the root items + 1, as "<n>.0".
    Under a parent: "<parent code>.<max last segment of its children + 1>".
    Malformed segments are ignored rather than read as 0.
    An unknown parent yields "1.0".
    """
    if parent_id is None:
        firsts = [item.code.split(".")[0] for item in existing_items if not item.parent_id]
        numbers = _numeric_segments(firsts)
        return f"{max(numbers, default=0) + 1}.0"

    parent_id = str(parent_id)
    parent = next((item for item in existing_items if item.id == parent_id), None)
    if parent is None:
        return "1.0"

    lasts = [item.code.split(".")[-1] for item in existing_items if item.parent_id == parent_id]
    numbers = _numeric_segments(lasts)
    return f"{parent.code}.{max(numbers, default=0) + 1}"


def validate_wbs_code(code: str) -> bool:
    """Phase-level codes look like "<digits>.<digits>"."""
    return bool(_PHASE_CODE.match(str(code)))


def generate_phase_code(phase_id: str, phase_ids: Sequence[str], existing_codes: Sequence[str]) -> str:
    """
    Next code inside a phase: "<phase index + 1>.<max second segment + 1>".
    An unknown phase yields "1.1".
    """
    try:
        phase_index = list(phase_ids).index(phase_id)
    except ValueError:
        return "1.1"

    prefix = f"{phase_index + 1}"
    seconds = []
    for code in existing_codes:
        if not code.startswith(prefix + "."):
            continue
        parts = code.split(".")
        seconds.append(parts[1] if len(parts) > 1 else "0")

    numbers = _numeric_segments(seconds)
    return f"{prefix}.{max(numbers, default=0) + 1}"

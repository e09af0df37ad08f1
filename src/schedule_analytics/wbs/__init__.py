from schedule_analytics.wbs.wbs_codes import (
    calculate_level,
    compare_wbs_codes,
    generate_next_code,
    generate_phase_code,
    validate_wbs_code,
    wbs_sort_key,
)
from schedule_analytics.wbs.wbs_hierarchy import (
    build_hierarchy,
    calculate_statistics,
    can_delete,
    has_circular_reference,
    hierarchy_frame,
)

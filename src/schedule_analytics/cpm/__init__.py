from schedule_analytics.cpm.critical_path_engine import (
    apply_critical_flags,
    build_graph,
    calculate_critical_path,
    compile_cpm_frame,
    compute_cpm,
    topological_order,
)
from schedule_analytics.cpm.monte_carlo import (
    probability_on_or_before,
    run_monte_carlo_simulation,
    sample_triangular_durations,
)
from schedule_analytics.cpm.resource_leveling import (
    compute_resource_utilization,
    optimize_resource_leveling,
)
from schedule_analytics.cpm.task_frame import (
    parse_dependency_cell,
    process_task_dataframe,
    tasks_from_dataframe,
    tasks_to_dataframe,
)

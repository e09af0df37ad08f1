"""
Schedule analytics core: CPM scheduling, Monte-Carlo schedule risk,
resource conflict detection, earned value metrics, baseline variance
and WBS hierarchy utilities.

Pure computation over task / WBS lists; callers supply the data and a
baseline store.
"""

from schedule_analytics.baseline import (
    BaselineManager,
    BaselineStore,
    InMemoryBaselineStore,
    JsonFileBaselineStore,
    calculate_total_duration,
    classify_health,
    compare_with_baseline,
    comparison_frames,
)
from schedule_analytics.cpm import (
    apply_critical_flags,
    build_graph,
    calculate_critical_path,
    compile_cpm_frame,
    compute_cpm,
    compute_resource_utilization,
    optimize_resource_leveling,
    parse_dependency_cell,
    probability_on_or_before,
    process_task_dataframe,
    run_monte_carlo_simulation,
    tasks_from_dataframe,
    tasks_to_dataframe,
    topological_order,
)
from schedule_analytics.evm import (
    calculate_evm_metrics,
    classify_performance_index,
    find_underperforming_tasks,
    generate_variance_report,
    predict_project_completion,
    variance_report_frame,
)
from schedule_analytics.exceptions import (
    BaselineStoreError,
    CyclicDependencyError,
    ScheduleAnalyticsError,
    TaskFrameError,
)
from schedule_analytics.models import (
    BaselineSnapshot,
    BaselineStatus,
    CPMResult,
    Dependency,
    DependencyType,
    EVMMetrics,
    HealthStatus,
    ScopeChangeType,
    Task,
    TaskStatus,
    VarianceReport,
    WBSItem,
    WBSItemType,
    WBSNode,
    WBSStatistics,
)
from schedule_analytics.validation import issues_to_frame, validate_tasks, validate_wbs_items
from schedule_analytics.wbs import (
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

__version__ = "0.1.0"

from schedule_analytics.evm.evm_engine import (
    calculate_evm_metrics,
    classify_performance_index,
    find_underperforming_tasks,
    generate_variance_report,
    predict_project_completion,
    variance_report_frame,
)

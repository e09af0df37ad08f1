from schedule_analytics.baseline.baseline_manager import (
    BaselineManager,
    calculate_total_duration,
    classify_health,
    compare_with_baseline,
    comparison_frames,
)
from schedule_analytics.baseline.baseline_store import (
    BaselineStore,
    InMemoryBaselineStore,
    JsonFileBaselineStore,
)

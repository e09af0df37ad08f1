from schedule_analytics.validation.schedule_validator import (
    issues_to_frame,
    make_issue,
    validate_tasks,
    validate_wbs_items,
)

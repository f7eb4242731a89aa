"""
Task checklist service module
"""

from hospice_dashboard.services.tasks.template import TaskId, initialize_patient_tasks
from hospice_dashboard.services.tasks.aggregation import (
    AGGREGATION_RULES,
    calculate_progress_for_tasks,
    compute_task_status,
    compute_task_statuses,
    has_incomplete_tasks,
    is_subtask_complete,
)
from hospice_dashboard.services.tasks.store import TaskStore

__all__ = [
    "TaskId",
    "initialize_patient_tasks",
    "AGGREGATION_RULES",
    "calculate_progress_for_tasks",
    "compute_task_status",
    "compute_task_statuses",
    "has_incomplete_tasks",
    "is_subtask_complete",
    "TaskStore",
]

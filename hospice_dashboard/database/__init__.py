"""
Database module

Contains both data models (schemas) and storage operations.
"""

# Export schemas
from hospice_dashboard.database.schemas import (
    Patient,
    PatientInput,
    PatientUpdate,
    Task,
    Subtask,
    SubSubtask,
    TaskStatus,
    Notice,
    OperationResult,
    PatientTasks,
    ProgressSummary,
    SyncResult,
    PatientResult,
    DashboardSummary,
)

# Export storage classes for convenience
from hospice_dashboard.database.storage import (
    read_json,
    write_json,
    KeyValueStore,
    JsonFileStore,
    MemoryStore,
    DashboardStorage,
)

__all__ = [
    # Schemas
    "Patient",
    "PatientInput",
    "PatientUpdate",
    "Task",
    "Subtask",
    "SubSubtask",
    "TaskStatus",
    "Notice",
    "OperationResult",
    "PatientTasks",
    "ProgressSummary",
    "SyncResult",
    "PatientResult",
    "DashboardSummary",
    # Storage
    "read_json",
    "write_json",
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "DashboardStorage",
]

"""
Data models

- Patient records are flat key-value mappings; intake fields are typed, extras are kept
- Task tree nodes carry a stable key for lookups (display names are for humans)
- Pydantic provides validation at the API boundary and the storage boundary
"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, ConfigDict


TaskStatusValue = Literal["not-started", "partial", "complete"]
NoticeType = Literal["success", "error", "warning", "info"]


class PatientInput(BaseModel):
    """
    Patient intake form submission
    """
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
    patient_name: str                    = Field(...,  min_length=1, description="Patient full name")
    dob: Optional[str]                   = Field(None, description="Date of birth (format: YYYY-MM-DD)")
    age: Optional[str]                   = Field(None, description="Age in years as entered on the form")
    city: Optional[str]                  = Field(None, description="City of residence")
    phone: Optional[str]                 = Field(None, description="Phone number")
    email: Optional[str]                 = Field(None, description="Email address")
    cp_doctor: Optional[str]             = Field(None, description="Consulting physician")
    hospice: Optional[str]               = Field(None, description="Hospice provider")
    intake_date: Optional[str]           = Field(None, description="Intake date (format: YYYY-MM-DD), defaults to today")
    invoice_amount: Optional[str]        = Field(None, description="Invoice amount")
    payment_status: Optional[str]        = Field(None, description="Payment status ('Paid' or 'Pending')")
    dose_level: Optional[str]            = Field(None, description="Prescription dose level")
    referring_physician: Optional[str]   = Field(None, description="Physician or organization the patient was referred from")


class PatientUpdate(BaseModel):
    """
    Patient edit (all fields optional, unknown fields are merged as-is)
    """
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
    patient_name: Optional[str]          = Field(None, min_length=1, description="Patient full name")
    dob: Optional[str]                   = Field(None, description="Date of birth (format: YYYY-MM-DD)")
    age: Optional[str]                   = Field(None, description="Age in years")
    city: Optional[str]                  = Field(None, description="City of residence")
    phone: Optional[str]                 = Field(None, description="Phone number")
    email: Optional[str]                 = Field(None, description="Email address")
    cp_doctor: Optional[str]             = Field(None, description="Consulting physician")
    hospice: Optional[str]               = Field(None, description="Hospice provider")
    intake_date: Optional[str]           = Field(None, description="Intake date (format: YYYY-MM-DD)")
    invoice_amount: Optional[str]        = Field(None, description="Invoice amount")
    payment_status: Optional[str]        = Field(None, description="Payment status ('Paid' or 'Pending')")
    dose_level: Optional[str]            = Field(None, description="Prescription dose level")
    referring_physician: Optional[str]   = Field(None, description="Referral source")


class Patient(PatientInput):
    """
    Stored patient record (active or archived)
    """
    id: str                              = Field(...,  description="Patient identifier, generated once at intake")
    date_submitted: Optional[str]        = Field(None, description="Timestamp of intake submission (ISO 8601)")
    last_modified: Optional[str]         = Field(None, description="Timestamp of last edit (ISO 8601)")
    archived_date: Optional[str]         = Field(None, description="Date the patient was archived")
    archived_by: Optional[str]           = Field(None, description="Who or what archived the patient")
    archived_reason: Optional[str]       = Field(None, description="Why the patient was archived")
    progress: Optional[int]              = Field(None, description="Checklist progress percentage (derived, not stored)")


class SubSubtask(BaseModel):
    """
    Leaf checklist item: a checkbox, or a free-text field complete iff non-empty
    """
    key: str                             = Field(...,  description="Stable lookup key")
    name: str                            = Field(...,  description="Display name")
    type: Literal["checkbox", "input"]   = Field("checkbox", description="Checkbox or free-text input")
    value: Optional[str]                 = Field(None, description="Free-text value (input leaves only)")
    complete: bool                       = Field(False, description="Whether the leaf is complete")


class Subtask(BaseModel):
    """
    Component of a task, completable directly or through its sub-subtasks
    """
    key: str                             = Field(...,  description="Stable lookup key")
    name: str                            = Field(...,  description="Display name")
    complete: bool                       = Field(False, description="Stored completion flag")
    sub_subtasks: Optional[List[SubSubtask]] = Field(None, description="Leaf items; when present they decide completion")
    note: Optional[str]                  = Field(None, description="Display note template")


class Task(BaseModel):
    """
    Top-level checklist step, instantiated per patient from the fixed template
    """
    id: str                              = Field(...,  description="Template task id (e.g. 'wr', 'invoice')")
    name: str                            = Field(...,  description="Display name")
    subtasks: List[Subtask]              = Field(...,  description="Subtasks in display order")


class TaskStatus(BaseModel):
    """
    Derived status of a single task
    """
    task_id: str                         = Field(...,  description="Template task id")
    name: str                            = Field(...,  description="Display name")
    status: TaskStatusValue              = Field(...,  description="not-started, partial or complete")
    completed: int                       = Field(...,  description="Completed items")
    total: int                           = Field(...,  description="Total items")


class Notice(BaseModel):
    """
    User-visible notification
    """
    message: str
    type: NoticeType                     = "info"


class PatientTasks(BaseModel):
    """
    Task tree for a patient together with derived progress
    """
    patient_id: str
    tasks: List[Task]
    progress: int                        = Field(...,  description="Overall progress percentage (0-100)")
    task_statuses: List[TaskStatus]      = Field(default_factory=list)
    has_incomplete_tasks: bool           = Field(...,  description="Whether any task is not started or partial")


class OperationResult(BaseModel):
    """
    Outcome of a checklist mutation
    """
    patient_id: Optional[str]            = Field(None, description="Patient the operation applied to")
    applied: bool                        = Field(...,  description="False when the operation was a no-op")
    progress: int                        = Field(0,    description="Progress percentage after the operation")
    task_statuses: List[TaskStatus]      = Field(default_factory=list)
    archive_scheduled: bool              = Field(False, description="Whether the patient is queued for auto-archive")
    notices: List[Notice]                = Field(default_factory=list)


class ProgressSummary(BaseModel):
    patient_id: str
    progress: int
    task_statuses: List[TaskStatus]      = Field(default_factory=list)


class MarkAllCompleteRequest(BaseModel):
    patient_name: str                    = Field(..., min_length=1, description="Full or partial patient name")


class SubSubtaskInput(BaseModel):
    value: str                           = Field(..., description="Free-text value; blank clears completion")


class SyncResult(BaseModel):
    """
    Result of syncing active patients from the spreadsheet backend
    """
    patients: List[Patient]              = Field(default_factory=list)
    added: int                           = Field(0, description="Patients added from the backend snapshot")
    from_backend: bool                   = Field(False, description="False when stored data was used as fallback")
    notices: List[Notice]                = Field(default_factory=list)


class PatientResult(BaseModel):
    """
    Patient record returned from a mutation, with notices
    """
    patient: Patient
    notices: List[Notice]                = Field(default_factory=list)


class DashboardSummary(BaseModel):
    """
    Overview cards for the dashboard landing page
    """
    active_patients: int                 = Field(...,  description="Number of active patients")
    average_age: int                     = Field(0,    description="Mean age of active patients with a numeric age (0 when none)")
    paid_invoices: int                   = Field(0,    description="Active patients whose invoice is paid")
    archived_patients: int               = Field(0,    description="Archived (completed) cases")
    recent_patients: List[Patient]       = Field(default_factory=list, description="Most recently submitted active patients, newest first")

"""
Task checklist endpoints

Every mutation persists the whole task tree. When a patient reaches 100%
the archive is scheduled as a background task after the display delay.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from hospice_dashboard.database.schemas import (
    MarkAllCompleteRequest,
    OperationResult,
    PatientTasks,
    ProgressSummary,
    SubSubtaskInput,
)
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.services.archive import ArchiveService
from hospice_dashboard.services.patient_records import find_patient_index
from hospice_dashboard.services.tasks.store import TaskStore
from hospice_dashboard.api.utils import (
    get_archive_service,
    get_storage,
    get_task_store,
    raise_not_found,
)

router = APIRouter()


def _require_active(patient_id: str, storage: DashboardStorage):
    if find_patient_index(storage.get_active_patients(), patient_id) == -1:
        raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found in active patients")


def _respond(
    result: OperationResult,
    background_tasks: BackgroundTasks,
    archive_service: ArchiveService,
) -> OperationResult:
    if not result.applied:
        raise_not_found(result.notices)
    if result.archive_scheduled:
        background_tasks.add_task(archive_service.auto_archive_after_delay, result.patient_id)
    return result


@router.get("/patients/{patient_id}/tasks", response_model=PatientTasks)
async def get_patient_tasks(
    patient_id: str,
    storage: DashboardStorage = Depends(get_storage),
    task_store: TaskStore = Depends(get_task_store),
):
    """
    Get the task checklist for an active patient

    Creates a fresh checklist if the patient has none (new or restored patients).
    """
    _require_active(patient_id, storage)
    tasks = task_store.get_tasks(patient_id)
    return PatientTasks(
        patient_id=patient_id,
        tasks=tasks,
        progress=task_store.calculate_progress(patient_id),
        task_statuses=task_store.refresh_task_statuses(patient_id),
        has_incomplete_tasks=task_store.has_incomplete_tasks(patient_id),
    )


@router.get("/patients/{patient_id}/progress", response_model=ProgressSummary)
async def get_patient_progress(
    patient_id: str,
    storage: DashboardStorage = Depends(get_storage),
    task_store: TaskStore = Depends(get_task_store),
):
    """
    Get overall progress and per-task status (0% when no checklist exists yet)
    """
    _require_active(patient_id, storage)
    return ProgressSummary(
        patient_id=patient_id,
        progress=task_store.calculate_progress(patient_id),
        task_statuses=task_store.refresh_task_statuses(patient_id),
    )


@router.post(
    "/patients/{patient_id}/tasks/{task_index}/subtasks/{subtask_index}/toggle",
    response_model=OperationResult,
)
async def toggle_subtask(
    patient_id: str,
    task_index: int,
    subtask_index: int,
    background_tasks: BackgroundTasks,
    task_store: TaskStore = Depends(get_task_store),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """
    Flip a subtask's completion flag
    """
    result = task_store.toggle_subtask(patient_id, task_index, subtask_index)
    return _respond(result, background_tasks, archive_service)


@router.post(
    "/patients/{patient_id}/tasks/{task_index}/subtasks/{subtask_index}/sub-subtasks/{sub_subtask_index}/toggle",
    response_model=OperationResult,
)
async def toggle_sub_subtask(
    patient_id: str,
    task_index: int,
    subtask_index: int,
    sub_subtask_index: int,
    background_tasks: BackgroundTasks,
    task_store: TaskStore = Depends(get_task_store),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """
    Flip a sub-subtask; the parent subtask becomes complete when all its sub-subtasks are
    """
    result = task_store.toggle_sub_subtask(patient_id, task_index, subtask_index, sub_subtask_index)
    return _respond(result, background_tasks, archive_service)


@router.put(
    "/patients/{patient_id}/tasks/{task_index}/subtasks/{subtask_index}/sub-subtasks/{sub_subtask_index}/value",
    response_model=OperationResult,
)
async def update_sub_subtask_input(
    patient_id: str,
    task_index: int,
    subtask_index: int,
    sub_subtask_index: int,
    body: SubSubtaskInput,
    background_tasks: BackgroundTasks,
    task_store: TaskStore = Depends(get_task_store),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """
    Set a free-text sub-subtask; it is complete iff the trimmed value is non-empty
    """
    result = task_store.update_sub_subtask_input(
        patient_id, task_index, subtask_index, sub_subtask_index, body.value
    )
    return _respond(result, background_tasks, archive_service)


@router.post("/tasks/mark-all-complete", response_model=OperationResult)
async def mark_all_tasks_complete(
    body: MarkAllCompleteRequest,
    background_tasks: BackgroundTasks,
    task_store: TaskStore = Depends(get_task_store),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """
    Complete every task for the first active patient whose name contains patient_name
    """
    result = task_store.mark_all_tasks_complete(body.patient_name)
    return _respond(result, background_tasks, archive_service)

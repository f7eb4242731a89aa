"""
Patient management endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from hospice_dashboard.database.schemas import Patient, PatientInput, PatientUpdate, PatientResult, SyncResult
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.exceptions import DuplicatePatientError
from hospice_dashboard.services.export import export_filename, export_patients_csv
from hospice_dashboard.services.patients import PatientService
from hospice_dashboard.services.spreadsheet import SpreadsheetClient, sync_active_patients
from hospice_dashboard.api.utils import (
    get_patient_service,
    get_spreadsheet_client,
    get_storage,
    raise_for_failure,
)

router = APIRouter()


@router.post("/patients", response_model=PatientResult)
async def create_patient(
    patient: PatientInput,
    service: PatientService = Depends(get_patient_service),
):
    """
    Save patient (intake form)

    Generates the patient ID and creates a fresh task checklist.
    Returns 409 if an active patient already has the same name.
    """
    try:
        created, notices = service.create_patient(patient)
    except DuplicatePatientError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if created is None:
        raise_for_failure(notices)
    return PatientResult(patient=Patient(**service.with_progress(created)), notices=notices)


@router.get("/patients", response_model=List[Patient])
async def list_patients(
    search: Optional[str] = None,
    incomplete: bool = False,
    service: PatientService = Depends(get_patient_service),
):
    """
    List active patients with progress

    Optionally filtered by name, or to patients with any not-started or partial task.
    """
    return [Patient(**p) for p in service.list_active_patients(search, incomplete_only=incomplete)]


@router.get("/patients/export")
async def export_patients(service: PatientService = Depends(get_patient_service)):
    """
    Download active patients with progress and status as CSV
    """
    content = export_patients_csv(service.storage.get_active_patients(), service.task_store)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/patients/sync", response_model=SyncResult)
async def sync_patients(
    storage: DashboardStorage = Depends(get_storage),
    client: Optional[SpreadsheetClient] = Depends(get_spreadsheet_client),
):
    """
    Pull active patients from the spreadsheet backend

    Falls back to the stored active list when the backend is unavailable.
    """
    return await sync_active_patients(storage, client)


@router.get("/patients/{patient_id}", response_model=Patient)
async def get_patient(
    patient_id: str,
    service: PatientService = Depends(get_patient_service),
):
    """
    Get an active or archived patient
    """
    patient = service.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return Patient(**service.with_progress(patient))


@router.patch("/patients/{patient_id}", response_model=PatientResult)
async def update_patient(
    patient_id: str,
    updates: PatientUpdate,
    service: PatientService = Depends(get_patient_service),
):
    """
    Update patient details

    Uses latest values for any fields provided in the request.
    """
    patient, notices = service.update_patient(patient_id, updates.model_dump(exclude_unset=True))
    if patient is None:
        raise_for_failure(notices, "Patient not found")
    return PatientResult(patient=Patient(**service.with_progress(patient)), notices=notices)

"""
Archive endpoints
"""
from typing import List

from fastapi import APIRouter, Depends

from hospice_dashboard.database.schemas import Patient, PatientResult
from hospice_dashboard.services.archive import ArchiveService
from hospice_dashboard.api.utils import get_archive_service, raise_for_failure

router = APIRouter()


@router.post("/patients/{patient_id}/archive", response_model=PatientResult)
async def archive_patient(
    patient_id: str,
    service: ArchiveService = Depends(get_archive_service),
):
    """
    Manually archive an active patient

    The patient's task checklist is discarded.
    """
    patient, notices = service.archive_patient(patient_id)
    if patient is None:
        raise_for_failure(notices, "Patient not found")
    return PatientResult(patient=Patient(**patient), notices=notices)


@router.get("/archived", response_model=List[Patient])
async def list_archived_patients(service: ArchiveService = Depends(get_archive_service)):
    """
    List archived patients
    """
    return [Patient(**p) for p in service.list_archived_patients()]


@router.post("/archived/{patient_id}/restore", response_model=PatientResult)
async def restore_patient(
    patient_id: str,
    service: ArchiveService = Depends(get_archive_service),
):
    """
    Restore an archived patient to active

    Task progress is not restored; the checklist starts over at 0%.
    """
    patient, notices = service.restore_patient(patient_id)
    if patient is None:
        raise_for_failure(notices, "Archived patient not found")
    return PatientResult(patient=Patient(**patient), notices=notices)


@router.delete("/archived/{patient_id}")
async def delete_archived_patient(
    patient_id: str,
    service: ArchiveService = Depends(get_archive_service),
):
    """
    Permanently delete an archived patient
    Returns 404 if no archived patient matches to ensure DELETE never silently fails
    """
    patient, notices = service.delete_archived_patient(patient_id)
    if patient is None:
        raise_for_failure(notices, "Archived patient not found")
    return {"message": notices[0].message, "notices": [n.model_dump() for n in notices]}

"""
Patient service

Intake, edits and lookups over the active patient collection
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from hospice_dashboard.database.schemas import Notice, PatientInput
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.exceptions import DuplicatePatientError, PersistenceError
from hospice_dashboard.services.patient_records import (
    find_patient_index,
    first_name_sort_key,
    generate_patient_id,
    get_patient_name,
    name_matches,
)
from hospice_dashboard.services.tasks.store import TaskStore, PERSISTENCE_WARNING

logger = logging.getLogger(__name__)


class PatientService:
    def __init__(self, storage: DashboardStorage, task_store: TaskStore):
        self.storage = storage
        self.task_store = task_store

    def _save_active(self, patients: List[Dict[str, Any]], name: str, action: str) -> List[Notice]:
        """
        Write the active list; on failure nothing was saved and the caller stops
        """
        try:
            self.storage.save_active_patients(patients)
        except PersistenceError as e:
            logger.warning(f"Active patients not saved: {e}")
            return [
                Notice(message=f"Patient {name} could not be {action}: storage unavailable", type="error"),
                Notice(message=PERSISTENCE_WARNING, type="warning"),
            ]
        return []

    def create_patient(self, patient_input: PatientInput) -> Tuple[Optional[Dict[str, Any]], List[Notice]]:
        """
        Add a patient from the intake form

        - Generates the patient id and submission timestamps
        - Defaults intake_date to today
        - Keeps the active list sorted by first name
        - Creates the patient's task tree

        Raises:
            DuplicatePatientError: an active patient already has this exact name
        """
        active = self.storage.get_active_patients()
        name = patient_input.patient_name.strip()
        if any(get_patient_name(p) == name for p in active):
            raise DuplicatePatientError(name)

        now = datetime.now().isoformat()
        patient = patient_input.model_dump(exclude_none=True)
        patient["patient_name"] = name
        patient["id"] = generate_patient_id()
        patient["date_submitted"] = now
        patient["last_modified"] = now
        if not patient.get("intake_date"):
            patient["intake_date"] = date.today().isoformat()

        active.append(patient)
        active.sort(key=first_name_sort_key)

        failed = self._save_active(active, name, "added")
        if failed:
            return None, failed

        notices = self.task_store.initialize(patient["id"])
        notices.insert(0, Notice(message=f"Patient {name} added successfully to Active Patients!", type="success"))
        logger.info(f"Created patient {name} ({patient['id']})")
        return patient, notices

    def update_patient(self, patient_id: str, updates: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], List[Notice]]:
        """
        Merge edited fields into an active patient record
        """
        active = self.storage.get_active_patients()
        index = find_patient_index(active, patient_id)
        if index == -1:
            return None, [Notice(message=f"Patient {patient_id} not found in active patients", type="error")]

        updates = {k: v for k, v in updates.items() if k not in ("id", "progress")}
        if not updates.get("patient_name"):
            updates.pop("patient_name", None)
        patient = {**active[index], **updates, "last_modified": datetime.now().isoformat()}
        active[index] = patient
        if "patient_name" in updates:
            active.sort(key=first_name_sort_key)

        failed = self._save_active(active, get_patient_name(patient), "updated")
        if failed:
            return None, failed

        notices = [Notice(message=f"Patient {get_patient_name(patient)} updated", type="success")]
        return patient, notices

    def get_patient(self, patient_id: str) -> Optional[Dict[str, Any]]:
        """
        Look up a patient in the active collection, then the archive
        """
        for patients in (self.storage.get_active_patients(), self.storage.get_archived_patients()):
            index = find_patient_index(patients, patient_id)
            if index != -1:
                return patients[index]
        return None

    def with_progress(self, patient: Dict[str, Any]) -> Dict[str, Any]:
        return {**patient, "progress": self.task_store.calculate_progress(patient.get("id", ""))}

    def list_active_patients(self, search: Optional[str] = None, incomplete_only: bool = False) -> List[Dict[str, Any]]:
        """
        Active patients with progress

        Args:
            search: case-insensitive substring filter on the patient name
            incomplete_only: keep only patients with a not-started or partial task
        """
        patients = self.storage.get_active_patients()
        if search and search.strip():
            patients = [p for p in patients if name_matches(p, search)]
        if incomplete_only:
            patients = [p for p in patients if self.task_store.has_incomplete_tasks(p["id"])]
        return [self.with_progress(p) for p in patients]

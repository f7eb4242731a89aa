"""
Archive service

Moves patients between the active and archived collections.

- Auto-archive: a patient at 100% progress is archived after a short display delay
- Archiving deletes the patient's task tree; restore does not bring it back
- Restored patients get a fresh task tree on next view
- A move is saved destination first; if the second write fails the first is
  rolled back and nothing else changes
"""
import asyncio
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from hospice_dashboard.database.schemas import Notice
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.exceptions import PersistenceError
from hospice_dashboard.services.patient_records import find_patient_index, get_patient_name
from hospice_dashboard.services.tasks.store import TaskStore, PERSISTENCE_WARNING

logger = logging.getLogger(__name__)

AUTO_ARCHIVED_BY = "Auto-Archive (100% Complete)"
AUTO_ARCHIVED_REASON = "All tasks completed"
MANUAL_ARCHIVED_BY = "System"
ARCHIVE_METADATA_FIELDS = ("archived_date", "archived_by", "archived_reason")

PatientList = List[Dict[str, Any]]
SaveStep = Tuple[Callable[[PatientList], None], PatientList, PatientList]


class ArchiveService:
    """
    Active/archived transitions for patient records
    """

    def __init__(self, storage: DashboardStorage, task_store: TaskStore, delay_seconds: float = 1.0):
        self.storage = storage
        self.task_store = task_store
        self.delay_seconds = delay_seconds

    def _save_in_order(self, steps: List[SaveStep]) -> bool:
        """
        Run (save, new, previous) steps in order

        On a failed step the steps already written are put back to their
        previous value. Returns False when the move did not land.
        """
        written: List[SaveStep] = []
        for step in steps:
            save, new, _ = step
            try:
                save(new)
            except PersistenceError as e:
                logger.warning(f"Patient collections not saved: {e}")
                for undo, _, previous in reversed(written):
                    try:
                        undo(previous)
                    except PersistenceError as undo_error:
                        logger.error(f"Rollback failed, a record may be in both collections: {undo_error}")
                return False
            written.append(step)
        return True

    @staticmethod
    def _not_saved(name: str, action: str) -> List[Notice]:
        return [
            Notice(message=f"Patient {name} could not be {action}: storage unavailable", type="error"),
            Notice(message=PERSISTENCE_WARNING, type="warning"),
        ]

    def _move_to_archive(
        self, patient_id: str, archived_by: str, reason: Optional[str]
    ) -> Tuple[Optional[Dict[str, Any]], List[Notice]]:
        active = self.storage.get_active_patients()
        archived = self.storage.get_archived_patients()

        index = find_patient_index(active, patient_id)
        if index == -1:
            return None, [Notice(message=f"Patient {patient_id} not found in active patients", type="error")]

        previous_active, previous_archived = list(active), list(archived)
        patient = dict(active.pop(index))
        patient["archived_date"] = date.today().isoformat()
        patient["archived_by"] = archived_by
        if reason:
            patient["archived_reason"] = reason
        archived.append(patient)

        saved = self._save_in_order([
            (self.storage.save_archived_patients, archived, previous_archived),
            (self.storage.save_active_patients, active, previous_active),
        ])
        if not saved:
            return None, self._not_saved(get_patient_name(patient) or patient_id, "archived")

        return patient, self.task_store.remove(patient_id)

    def check_auto_archive(self, patient_id: str) -> Tuple[bool, List[Notice]]:
        """
        Archive the patient if their checklist is at 100%

        Returns:
            (archived, notices)
        """
        if self.task_store.calculate_progress(patient_id) != 100:
            return False, []

        patient, notices = self._move_to_archive(patient_id, AUTO_ARCHIVED_BY, AUTO_ARCHIVED_REASON)
        if patient is None:
            return False, notices

        name = get_patient_name(patient)
        logger.info(f"Auto-archived patient {name} ({patient_id})")
        notices.insert(0, Notice(
            message=f"Patient {name} has been automatically archived (100% complete)",
            type="success",
        ))
        return True, notices

    async def auto_archive_after_delay(self, patient_id: str) -> bool:
        """
        Wait for the display delay, then re-check and archive

        Progress is re-read after the delay, so a patient un-toggled in the
        meantime stays active.
        """
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        archived, _ = self.check_auto_archive(patient_id)
        return archived

    def archive_patient(self, patient_id: str) -> Tuple[Optional[Dict[str, Any]], List[Notice]]:
        """
        Manually archive an active patient regardless of progress
        """
        patient, notices = self._move_to_archive(patient_id, MANUAL_ARCHIVED_BY, None)
        if patient is not None:
            name = get_patient_name(patient) or "Unknown"
            logger.info(f"Archived patient {name} ({patient_id})")
            notices.insert(0, Notice(message=f"Patient {name} archived successfully!", type="success"))
        return patient, notices

    def restore_patient(self, patient_id: str) -> Tuple[Optional[Dict[str, Any]], List[Notice]]:
        """
        Move an archived patient back to the active collection

        Archive metadata is removed. Task data is not restored: any leftover
        tree is discarded so the next view starts from 0%.
        """
        active = self.storage.get_active_patients()
        archived = self.storage.get_archived_patients()

        index = find_patient_index(archived, patient_id)
        if index == -1:
            return None, [Notice(message=f"Patient {patient_id} not found in archived patients", type="error")]

        previous_active, previous_archived = list(active), list(archived)
        patient = dict(archived.pop(index))
        for field in ARCHIVE_METADATA_FIELDS:
            patient.pop(field, None)
        active.append(patient)

        name = get_patient_name(patient) or "Unknown"
        saved = self._save_in_order([
            (self.storage.save_active_patients, active, previous_active),
            (self.storage.save_archived_patients, archived, previous_archived),
        ])
        if not saved:
            return None, self._not_saved(name, "restored")

        notices = self.task_store.remove(patient_id)
        logger.info(f"Restored patient {name} ({patient_id})")
        notices.insert(0, Notice(message=f"Patient {name} restored to active patients!", type="success"))
        return patient, notices

    def delete_archived_patient(self, patient_id: str) -> Tuple[Optional[Dict[str, Any]], List[Notice]]:
        """
        Permanently delete an archived patient
        """
        archived = self.storage.get_archived_patients()
        index = find_patient_index(archived, patient_id)
        if index == -1:
            return None, [Notice(message=f"Patient {patient_id} not found in archived patients", type="error")]

        patient = archived.pop(index)
        name = get_patient_name(patient) or "Unknown"
        try:
            self.storage.save_archived_patients(archived)
        except PersistenceError as e:
            logger.warning(f"Archived patients not saved: {e}")
            return None, self._not_saved(name, "deleted")

        logger.info(f"Deleted archived patient {name} ({patient_id})")
        return patient, [Notice(message=f"Patient {name} permanently deleted!", type="success")]

    def list_archived_patients(self) -> List[Dict[str, Any]]:
        return self.storage.get_archived_patients()

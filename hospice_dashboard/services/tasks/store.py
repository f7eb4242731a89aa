"""
Task completion store

Holds the in-memory task-completion map (patient id -> task tree) and writes
the whole map through the injected storage adapter after every change.

- Lookup misses are no-ops that return an error notice
- Storage write failures keep the in-memory change and return a warning notice
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from hospice_dashboard.database.schemas import Task, Subtask, Notice, OperationResult, TaskStatus
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.exceptions import PersistenceError
from hospice_dashboard.services.patient_records import find_patient_by_name, get_patient_name
from hospice_dashboard.services.tasks.aggregation import (
    calculate_progress_for_tasks,
    compute_task_statuses,
    has_incomplete_tasks,
)
from hospice_dashboard.services.tasks.template import initialize_patient_tasks

logger = logging.getLogger(__name__)

PERSISTENCE_WARNING = "Changes could not be saved and may not survive a reload"

# Trees saved before patients had ids were keyed by list position
LEGACY_KEY_PREFIX = "patient-"


def migrate_legacy_keys(raw: Dict[str, Any], active_patients: List[Dict[str, Any]]) -> bool:
    """
    Move trees stored under "patient-{index}" to the id of the active patient at that index

    A tree already stored under the id wins and the legacy entry is left alone.
    Returns True when anything moved.
    """
    migrated = False
    for index, patient in enumerate(active_patients):
        legacy_key = f"{LEGACY_KEY_PREFIX}{index}"
        patient_id = patient.get("id")
        if patient_id and legacy_key in raw and patient_id not in raw:
            raw[patient_id] = raw.pop(legacy_key)
            migrated = True
            logger.info(f"Migrated task data for {get_patient_name(patient) or 'Unknown'} from {legacy_key} to {patient_id}")
    return migrated


class TaskStore:
    """
    Per-patient task trees with persistence injected
    """

    def __init__(self, storage: DashboardStorage):
        self.storage = storage
        self._data: Optional[Dict[str, List[Task]]] = None

    @property
    def data(self) -> Dict[str, List[Task]]:
        if self._data is None:
            self._data, migrated = self._load()
            if migrated:
                self.persist()
        return self._data

    def _load(self) -> Tuple[Dict[str, List[Task]], bool]:
        raw = dict(self.storage.get_task_completion_data())
        migrated = migrate_legacy_keys(raw, self.storage.get_active_patients())
        data: Dict[str, List[Task]] = {}
        for patient_id, tasks in raw.items():
            try:
                data[patient_id] = [Task.model_validate(task) for task in tasks]
            except (ValidationError, TypeError) as e:
                # Dropped trees are re-initialized on next view
                logger.warning(f"Discarding malformed task data for {patient_id}: {e}")
        logger.info(f"Loaded task completion data for {len(data)} patients")
        return data, migrated

    def reload(self):
        self._data = None

    def persist(self) -> List[Notice]:
        """
        Write the whole map; a failure is reported, not raised
        """
        payload = {
            patient_id: [task.model_dump() for task in tasks]
            for patient_id, tasks in self.data.items()
        }
        try:
            self.storage.save_task_completion_data(payload)
        except PersistenceError as e:
            logger.warning(f"Task completion data not saved: {e}")
            return [Notice(message=PERSISTENCE_WARNING, type="warning")]
        return []

    # Reads

    def get(self, patient_id: str) -> Optional[List[Task]]:
        return self.data.get(patient_id)

    def get_tasks(self, patient_id: str) -> List[Task]:
        """
        Return the patient's task tree, creating a fresh one if none exists
        """
        tasks = self.data.get(patient_id)
        if tasks is None:
            tasks = initialize_patient_tasks()
            self.data[patient_id] = tasks
            self.persist()
        return tasks

    def calculate_progress(self, patient_id: str) -> int:
        return calculate_progress_for_tasks(self.data.get(patient_id))

    def refresh_task_statuses(self, patient_id: str) -> List[TaskStatus]:
        tasks = self.data.get(patient_id)
        if not tasks:
            return []
        return compute_task_statuses(tasks)

    def has_incomplete_tasks(self, patient_id: str) -> bool:
        return has_incomplete_tasks(self.data.get(patient_id))

    # Writes

    def initialize(self, patient_id: str) -> List[Notice]:
        self.data[patient_id] = initialize_patient_tasks()
        return self.persist()

    def remove(self, patient_id: str) -> List[Notice]:
        if patient_id not in self.data:
            return []
        del self.data[patient_id]
        return self.persist()

    def toggle_subtask(self, patient_id: str, task_index: int, subtask_index: int) -> OperationResult:
        subtask, error = self._find_subtask(patient_id, task_index, subtask_index)
        if error:
            return error
        subtask.complete = not subtask.complete
        return self._finish(patient_id)

    def toggle_sub_subtask(
        self,
        patient_id: str,
        task_index: int,
        subtask_index: int,
        sub_subtask_index: int,
    ) -> OperationResult:
        subtask, error = self._find_subtask(patient_id, task_index, subtask_index)
        if error:
            return error
        if not subtask.sub_subtasks or not 0 <= sub_subtask_index < len(subtask.sub_subtasks):
            return self._miss(patient_id, f"Sub-subtask {sub_subtask_index} not found under '{subtask.name}'")

        leaf = subtask.sub_subtasks[sub_subtask_index]
        leaf.complete = not leaf.complete
        self._rollup(subtask)
        return self._finish(patient_id)

    def update_sub_subtask_input(
        self,
        patient_id: str,
        task_index: int,
        subtask_index: int,
        sub_subtask_index: int,
        value: str,
    ) -> OperationResult:
        subtask, error = self._find_subtask(patient_id, task_index, subtask_index)
        if error:
            return error
        if not subtask.sub_subtasks or not 0 <= sub_subtask_index < len(subtask.sub_subtasks):
            return self._miss(patient_id, f"Sub-subtask {sub_subtask_index} not found under '{subtask.name}'")

        leaf = subtask.sub_subtasks[sub_subtask_index]
        if leaf.type != "input":
            return self._miss(patient_id, f"'{leaf.name}' is not a text field")

        leaf.value = value
        leaf.complete = len(value.strip()) > 0
        self._rollup(subtask)
        return self._finish(patient_id)

    def mark_all_tasks_complete(self, patient_name: str) -> OperationResult:
        """
        Complete every subtask and sub-subtask of the first active patient whose name contains patient_name
        """
        patient = find_patient_by_name(self.storage.get_active_patients(), patient_name)
        if patient is None or not patient.get("id"):
            return self._miss(None, f'Patient "{patient_name}" not found in active patients')

        patient_id = patient["id"]
        tasks = self.data.get(patient_id)
        if tasks is None:
            tasks = initialize_patient_tasks()
            self.data[patient_id] = tasks

        for task in tasks:
            for subtask in task.subtasks:
                subtask.complete = True
                for leaf in subtask.sub_subtasks or []:
                    leaf.complete = True

        result = self._finish(patient_id)
        result.notices.insert(0, Notice(
            message=f"All tasks marked as complete for {get_patient_name(patient)}!",
            type="success",
        ))
        return result

    # Internals

    def _find_subtask(
        self, patient_id: str, task_index: int, subtask_index: int
    ) -> Tuple[Optional[Subtask], Optional[OperationResult]]:
        tasks = self.data.get(patient_id)
        if tasks is None:
            return None, self._miss(patient_id, f"No task data found for patient {patient_id}")
        if not 0 <= task_index < len(tasks):
            return None, self._miss(patient_id, f"Task {task_index} not found")
        task = tasks[task_index]
        if not 0 <= subtask_index < len(task.subtasks):
            return None, self._miss(patient_id, f"Subtask {subtask_index} not found in '{task.name}'")
        return task.subtasks[subtask_index], None

    @staticmethod
    def _rollup(subtask: Subtask):
        subtask.complete = all(leaf.complete for leaf in subtask.sub_subtasks or [])

    def _miss(self, patient_id: Optional[str], message: str) -> OperationResult:
        logger.info(f"No-op: {message}")
        progress = self.calculate_progress(patient_id) if patient_id else 0
        return OperationResult(
            patient_id=patient_id,
            applied=False,
            progress=progress,
            notices=[Notice(message=message, type="error")],
        )

    def _finish(self, patient_id: str) -> OperationResult:
        notices = self.persist()
        tasks = self.data[patient_id]
        progress = calculate_progress_for_tasks(tasks)
        return OperationResult(
            patient_id=patient_id,
            applied=True,
            progress=progress,
            task_statuses=compute_task_statuses(tasks),
            archive_scheduled=progress == 100,
            notices=notices,
        )

"""
Archive service tests - auto-archive, manual archive, restore and delete
"""
import asyncio

import pytest

from hospice_dashboard.database.storage import (
    ACTIVE_PATIENTS_KEY,
    ARCHIVED_PATIENTS_KEY,
    DashboardStorage,
    MemoryStore,
)
from hospice_dashboard.exceptions import PersistenceError
from hospice_dashboard.services.archive import ArchiveService, AUTO_ARCHIVED_BY, AUTO_ARCHIVED_REASON
from hospice_dashboard.services.tasks.store import TaskStore

PATIENT_ID = "PAT-1"
FOLLOWUP = 10


class FlakyStore(MemoryStore):
    """Memory store whose writes to the keys in failing_keys fail"""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing_keys = set()

    def set(self, key, value):
        if key in self.failing_keys:
            raise PersistenceError(f"disk full writing {key}")
        super().set(key, value)


@pytest.fixture
def storage():
    storage = DashboardStorage(FlakyStore())
    storage.save_active_patients([
        {"id": PATIENT_ID, "patient_name": "Adam Jones", "city": "Riverside"},
        {"id": "PAT-2", "patient_name": "Beth Smith"},
    ])
    return storage


@pytest.fixture
def task_store(storage):
    store = TaskStore(storage)
    store.initialize(PATIENT_ID)
    store.initialize("PAT-2")
    return store


@pytest.fixture
def service(storage, task_store):
    return ArchiveService(storage, task_store, delay_seconds=0)


def active_ids(storage):
    return [p["id"] for p in storage.get_active_patients()]


def archived_ids(storage):
    return [p["id"] for p in storage.get_archived_patients()]


def test_auto_archive_at_hundred_percent(storage, task_store, service):
    """A completed checklist moves the patient to the archive and drops the tree"""
    result = task_store.mark_all_tasks_complete("Adam Jones")
    assert result.archive_scheduled is True

    archived, notices = service.check_auto_archive(PATIENT_ID)
    assert archived is True
    assert notices[0].type == "success"
    assert active_ids(storage) == ["PAT-2"]
    assert archived_ids(storage) == [PATIENT_ID]

    record = storage.get_archived_patients()[0]
    assert record["archived_by"] == AUTO_ARCHIVED_BY
    assert record["archived_reason"] == AUTO_ARCHIVED_REASON
    assert record["archived_date"]
    assert record["city"] == "Riverside"

    assert task_store.get(PATIENT_ID) is None
    assert PATIENT_ID not in storage.get_task_completion_data()


def test_no_auto_archive_below_hundred(storage, task_store, service):
    task_store.toggle_subtask(PATIENT_ID, FOLLOWUP, 0)
    archived, notices = service.check_auto_archive(PATIENT_ID)
    assert archived is False
    assert notices == []
    assert active_ids(storage) == [PATIENT_ID, "PAT-2"]


def test_delayed_auto_archive_rechecks_progress(storage, task_store, service):
    """Un-completing a task during the display delay keeps the patient active"""
    task_store.mark_all_tasks_complete("Adam")
    task_store.toggle_subtask(PATIENT_ID, FOLLOWUP, 0)

    assert asyncio.run(service.auto_archive_after_delay(PATIENT_ID)) is False
    assert PATIENT_ID in active_ids(storage)


def test_delayed_auto_archive(storage, task_store, service):
    task_store.mark_all_tasks_complete("Adam")
    assert asyncio.run(service.auto_archive_after_delay(PATIENT_ID)) is True
    assert archived_ids(storage) == [PATIENT_ID]


def test_restore_starts_fresh(storage, task_store, service):
    """Restored patients come back active with a blank checklist"""
    task_store.mark_all_tasks_complete("Adam")
    service.check_auto_archive(PATIENT_ID)

    patient, notices = service.restore_patient(PATIENT_ID)
    assert patient["id"] == PATIENT_ID
    assert notices[0].type == "success"
    for field in ("archived_date", "archived_by", "archived_reason"):
        assert field not in patient

    assert PATIENT_ID in active_ids(storage)
    assert archived_ids(storage) == []

    assert task_store.get(PATIENT_ID) is None
    tasks = task_store.get_tasks(PATIENT_ID)
    assert task_store.calculate_progress(PATIENT_ID) == 0
    assert all(not subtask.complete for task in tasks for subtask in task.subtasks)


def test_manual_archive(storage, task_store, service):
    """Manual archive works at any progress and discards the checklist"""
    task_store.toggle_subtask("PAT-2", FOLLOWUP, 0)
    patient, notices = service.archive_patient("PAT-2")
    assert patient["archived_by"] == "System"
    assert "archived_reason" not in patient
    assert archived_ids(storage) == ["PAT-2"]
    assert task_store.get("PAT-2") is None


def test_archive_unknown_patient(storage, service):
    patient, notices = service.archive_patient("PAT-missing")
    assert patient is None
    assert notices[0].type == "error"
    assert active_ids(storage) == [PATIENT_ID, "PAT-2"]


def test_restore_unknown_patient(service):
    patient, notices = service.restore_patient(PATIENT_ID)
    assert patient is None
    assert notices[0].type == "error"


def test_delete_archived_patient(storage, service):
    service.archive_patient(PATIENT_ID)
    patient, notices = service.delete_archived_patient(PATIENT_ID)
    assert patient["id"] == PATIENT_ID
    assert archived_ids(storage) == []
    assert PATIENT_ID not in active_ids(storage)


def test_delete_only_touches_archive(storage, service):
    """Active patients cannot be hard-deleted"""
    patient, notices = service.delete_archived_patient("PAT-2")
    assert patient is None
    assert "PAT-2" in active_ids(storage)


@pytest.mark.parametrize("failing_key", [ACTIVE_PATIENTS_KEY, ARCHIVED_PATIENTS_KEY])
def test_archive_write_failure_changes_nothing(storage, task_store, service, failing_key):
    """A failed save leaves the patient active with its checklist and no success notice"""
    task_store.toggle_subtask(PATIENT_ID, FOLLOWUP, 1)
    storage.store.failing_keys.add(failing_key)

    patient, notices = service.archive_patient(PATIENT_ID)
    assert patient is None
    assert [n.type for n in notices] == ["error", "warning"]

    assert active_ids(storage) == [PATIENT_ID, "PAT-2"]
    assert archived_ids(storage) == []
    assert task_store.get(PATIENT_ID) is not None
    assert task_store.calculate_progress(PATIENT_ID) == 4


def test_auto_archive_write_failure_keeps_checklist(storage, task_store, service):
    task_store.mark_all_tasks_complete("Adam")
    storage.store.failing_keys.add(ACTIVE_PATIENTS_KEY)

    archived, notices = service.check_auto_archive(PATIENT_ID)
    assert archived is False
    assert notices[0].type == "error"
    assert active_ids(storage) == [PATIENT_ID, "PAT-2"]
    assert archived_ids(storage) == []
    assert task_store.calculate_progress(PATIENT_ID) == 100


def test_restore_write_failure_keeps_patient_archived(storage, task_store, service):
    service.archive_patient(PATIENT_ID)
    task_store.initialize(PATIENT_ID)
    storage.store.failing_keys.add(ARCHIVED_PATIENTS_KEY)

    patient, notices = service.restore_patient(PATIENT_ID)
    assert patient is None
    assert [n.type for n in notices] == ["error", "warning"]
    assert active_ids(storage) == ["PAT-2"]
    assert archived_ids(storage) == [PATIENT_ID]
    assert storage.get_archived_patients()[0]["archived_by"] == "System"
    assert task_store.get(PATIENT_ID) is not None


def test_delete_write_failure_keeps_archived_record(storage, service):
    service.archive_patient(PATIENT_ID)
    storage.store.failing_keys.add(ARCHIVED_PATIENTS_KEY)

    patient, notices = service.delete_archived_patient(PATIENT_ID)
    assert patient is None
    assert [n.type for n in notices] == ["error", "warning"]
    assert archived_ids(storage) == [PATIENT_ID]

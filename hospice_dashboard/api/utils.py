"""
Shared dependencies and helpers for API endpoints
"""
from functools import lru_cache
from typing import List, NoReturn, Optional

from fastapi import Depends, HTTPException

from hospice_dashboard.core.config import (
    AUTO_ARCHIVE_DELAY_SECONDS,
    DATA_DIR,
    SPREADSHEET_BACKEND_URL,
    SPREADSHEET_ID,
    SPREADSHEET_TIMEOUT_SECONDS,
)
from hospice_dashboard.database.schemas import Notice
from hospice_dashboard.database.storage import DashboardStorage, JsonFileStore
from hospice_dashboard.services.archive import ArchiveService
from hospice_dashboard.services.patients import PatientService
from hospice_dashboard.services.spreadsheet import SpreadsheetClient
from hospice_dashboard.services.tasks.store import TaskStore


@lru_cache
def get_storage() -> DashboardStorage:
    return DashboardStorage(JsonFileStore(DATA_DIR))


@lru_cache
def get_task_store() -> TaskStore:
    # One in-memory map per process, shared by every request
    return TaskStore(get_storage())


def get_patient_service(
    storage: DashboardStorage = Depends(get_storage),
    task_store: TaskStore = Depends(get_task_store),
) -> PatientService:
    return PatientService(storage, task_store)


def get_archive_service(
    storage: DashboardStorage = Depends(get_storage),
    task_store: TaskStore = Depends(get_task_store),
) -> ArchiveService:
    return ArchiveService(storage, task_store, delay_seconds=AUTO_ARCHIVE_DELAY_SECONDS)


def get_spreadsheet_client() -> Optional[SpreadsheetClient]:
    if not SPREADSHEET_BACKEND_URL:
        return None
    return SpreadsheetClient(
        SPREADSHEET_BACKEND_URL,
        spreadsheet_id=SPREADSHEET_ID,
        timeout=SPREADSHEET_TIMEOUT_SECONDS,
    )


def raise_not_found(notices: List[Notice], default: str = "Not found") -> NoReturn:
    """
    Raise 404 carrying the first error notice as detail
    """
    detail = next((n.message for n in notices if n.type == "error"), default)
    raise HTTPException(status_code=404, detail=detail)


def raise_for_failure(notices: List[Notice], default: str = "Not found") -> NoReturn:
    """
    Raise 503 when the operation failed on a storage write, 404 otherwise
    """
    if any(n.type == "warning" for n in notices):
        detail = next((n.message for n in notices if n.type == "error"), "Storage unavailable")
        raise HTTPException(status_code=503, detail=detail)
    raise_not_found(notices, default)

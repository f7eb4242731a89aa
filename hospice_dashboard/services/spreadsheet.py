"""
Spreadsheet backend client and active-patient sync

The backend serves read-only "Active" tab snapshots over HTTP. A failed
fetch is never retried: sync falls back to the stored active list.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from hospice_dashboard.database.schemas import Notice, SyncResult
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.exceptions import PersistenceError, SpreadsheetBackendError
from hospice_dashboard.services.patient_records import (
    first_name_sort_key,
    generate_patient_id,
    get_patient_name,
    normalize_patient_record,
)
from hospice_dashboard.services.tasks.store import PERSISTENCE_WARNING

logger = logging.getLogger(__name__)


class SpreadsheetClient:
    """
    HTTP client for the spreadsheet backend

    Args:
        base_url: Backend root, e.g. http://localhost:3000
        spreadsheet_id: Spreadsheet identifier passed through to the backend
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        spreadsheet_id: str = "local",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.spreadsheet_id = spreadsheet_id
        self.timeout = timeout
        self.transport = transport

    async def fetch_active_patients(self) -> List[Dict[str, Any]]:
        """
        Fetch the current "Active" tab rows

        Raises:
            SpreadsheetBackendError: transport failure, non-2xx status, or non-list payload
        """
        url = f"{self.base_url}/api/read-active"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params={"spreadsheetId": self.spreadsheet_id})
        except httpx.TimeoutException as e:
            raise SpreadsheetBackendError(f"Timeout calling spreadsheet backend at {url}") from e
        except httpx.HTTPError as e:
            raise SpreadsheetBackendError(f"Error calling spreadsheet backend at {url}: {e}") from e

        if response.status_code != 200:
            raise SpreadsheetBackendError(f"Spreadsheet backend returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise SpreadsheetBackendError("Spreadsheet backend returned invalid JSON") from e

        if not isinstance(data, list):
            raise SpreadsheetBackendError("Spreadsheet backend returned an unexpected payload")
        return [row for row in data if isinstance(row, dict)]


async def sync_active_patients(
    storage: DashboardStorage,
    client: Optional[SpreadsheetClient],
) -> SyncResult:
    """
    Merge backend "Active" rows into the stored active patients

    Rows are matched by exact patient name; names already active or archived
    are skipped. New rows get a generated id.
    """
    active = storage.get_active_patients()

    if client is None:
        return SyncResult(
            patients=active,
            from_backend=False,
            notices=[Notice(message="No spreadsheet backend configured, showing saved patients", type="info")],
        )

    try:
        rows = await client.fetch_active_patients()
    except SpreadsheetBackendError as e:
        logger.warning(f"Active patient sync failed, using stored data: {e}")
        return SyncResult(
            patients=active,
            from_backend=False,
            notices=[Notice(message="Could not reach spreadsheet backend, showing saved patients", type="warning")],
        )

    known_names = {get_patient_name(p) for p in active}
    known_names.update(get_patient_name(p) for p in storage.get_archived_patients())

    added = 0
    for row in rows:
        record = normalize_patient_record(row)
        name = record.get("patient_name")
        if not name or name in known_names:
            continue
        record["id"] = generate_patient_id()
        active.append(record)
        known_names.add(name)
        added += 1

    notices: List[Notice] = []
    if added:
        active.sort(key=first_name_sort_key)
        try:
            storage.save_active_patients(active)
        except PersistenceError as e:
            logger.warning(f"Synced patients not saved: {e}")
            notices.append(Notice(message=PERSISTENCE_WARNING, type="warning"))

    logger.info(f"Synced {len(rows)} rows from spreadsheet backend, {added} new patients")
    notices.insert(0, Notice(message=f"Loaded {len(rows)} patients from spreadsheet, {added} new", type="success"))
    return SyncResult(patients=active, added=added, from_backend=True, notices=notices)

"""
Spreadsheet sync tests - backend client and fallback to stored data
"""
import asyncio

import httpx
import pytest

from hospice_dashboard.database.storage import ACTIVE_PATIENTS_KEY, DashboardStorage, MemoryStore
from hospice_dashboard.exceptions import PersistenceError, SpreadsheetBackendError
from hospice_dashboard.services.patient_records import normalize_patient_record
from hospice_dashboard.services.spreadsheet import SpreadsheetClient, sync_active_patients

BACKEND_ROWS = [
    {
        "Patient Name": "Carol White",
        "DOB": "1950-02-03",
        "Age": 74,
        "City": "Oakland",
        "Phone Number": "555-0101",
        "CP Doctor": "Dr. Lee",
        "PAID": "yes",
        "Referred From": "Kaiser",
        "Check list": "",
    },
    {"Patient Name": "Adam Jones", "City": "Riverside"},
    {"Patient Name": None, "City": "Nowhere"},
]


def make_client(handler):
    return SpreadsheetClient("http://backend.test", transport=httpx.MockTransport(handler))


@pytest.fixture
def storage():
    storage = DashboardStorage(MemoryStore())
    storage.save_active_patients([{"id": "PAT-1", "patient_name": "Adam Jones"}])
    return storage


def test_normalize_patient_record():
    record = normalize_patient_record(BACKEND_ROWS[0])
    assert record == {
        "patient_name": "Carol White",
        "dob": "1950-02-03",
        "age": "74",
        "city": "Oakland",
        "phone": "555-0101",
        "cp_doctor": "Dr. Lee",
        "referring_physician": "Kaiser",
        "payment_status": "Paid",
    }


def test_normalize_prefers_canonical_keys():
    record = normalize_patient_record({"Patient Name": "Old", "patient_name": "New", "PAID": "no"})
    assert record["patient_name"] == "New"
    assert record["payment_status"] == "Pending"


def test_fetch_active_patients():
    def handler(request):
        assert request.url.path == "/api/read-active"
        assert request.url.params["spreadsheetId"] == "local"
        return httpx.Response(200, json=BACKEND_ROWS)

    rows = asyncio.run(make_client(handler).fetch_active_patients())
    assert len(rows) == 3


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json={"not": "a list"}),
        httpx.Response(200, content=b"not json"),
    ],
)
def test_fetch_rejects_bad_responses(response):
    with pytest.raises(SpreadsheetBackendError):
        asyncio.run(make_client(lambda request: response).fetch_active_patients())


def test_fetch_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SpreadsheetBackendError):
        asyncio.run(make_client(handler).fetch_active_patients())


def test_sync_adds_new_patients(storage):
    """Unknown names are added with generated ids; known and nameless rows skipped"""
    client = make_client(lambda request: httpx.Response(200, json=BACKEND_ROWS))
    result = asyncio.run(sync_active_patients(storage, client))

    assert result.from_backend is True
    assert result.added == 1
    names = [p["patient_name"] for p in storage.get_active_patients()]
    assert names == ["Adam Jones", "Carol White"]
    carol = storage.get_active_patients()[1]
    assert carol["id"].startswith("PAT-")


def test_sync_skips_archived_names(storage):
    storage.save_archived_patients([{"id": "PAT-9", "patient_name": "Carol White"}])
    client = make_client(lambda request: httpx.Response(200, json=BACKEND_ROWS))
    result = asyncio.run(sync_active_patients(storage, client))
    assert result.added == 0
    assert len(storage.get_active_patients()) == 1


def test_sync_falls_back_on_failure(storage):
    """A failed fetch returns stored patients with a warning, nothing changes"""
    client = make_client(lambda request: httpx.Response(503))
    result = asyncio.run(sync_active_patients(storage, client))
    assert result.from_backend is False
    assert result.added == 0
    assert [p.id for p in result.patients] == ["PAT-1"]
    assert result.notices[0].type == "warning"


def test_sync_without_backend(storage):
    result = asyncio.run(sync_active_patients(storage, None))
    assert result.from_backend is False
    assert result.notices[0].type == "info"
    assert [p.id for p in result.patients] == ["PAT-1"]


def test_sync_ignores_backend_ids(storage):
    """Ids are always generated; a backend id can never collide with a stored one"""
    rows = [{"id": "PAT-1", "Patient Name": "Dana Cole"}]
    client = make_client(lambda request: httpx.Response(200, json=rows))
    result = asyncio.run(sync_active_patients(storage, client))

    assert result.added == 1
    ids = [p["id"] for p in storage.get_active_patients()]
    assert len(set(ids)) == 2
    assert "PAT-1" in ids


class ReadOnlyStore(MemoryStore):
    def set(self, key, value):
        raise PersistenceError(f"read-only {key}")


def test_sync_write_failure_warns():
    """Merged rows are returned with a warning; storage keeps the old list"""
    storage = DashboardStorage(ReadOnlyStore({
        ACTIVE_PATIENTS_KEY: [{"id": "PAT-1", "patient_name": "Adam Jones"}],
    }))
    client = make_client(lambda request: httpx.Response(200, json=BACKEND_ROWS))
    result = asyncio.run(sync_active_patients(storage, client))

    assert result.added == 1
    assert [p.patient_name for p in result.patients] == ["Adam Jones", "Carol White"]
    assert [n.type for n in result.notices] == ["success", "warning"]
    assert [p["id"] for p in storage.get_active_patients()] == ["PAT-1"]

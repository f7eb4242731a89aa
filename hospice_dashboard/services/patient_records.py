"""
Patient record normalization and lookup helpers
"""
import time
import uuid
from typing import Any, Dict, List, Optional


# Spreadsheet "Active" tab headers -> canonical record keys
SPREADSHEET_HEADER_MAP = {
    "Patient Name": "patient_name",
    "DOB": "dob",
    "Age": "age",
    "City": "city",
    "Phone Number": "phone",
    "Email": "email",
    "CP Doctor": "cp_doctor",
    "Hospice": "hospice",
    "Ingestion Date": "intake_date",
    "Invoice amount": "invoice_amount",
    "invoice amount": "invoice_amount",
    "Referred From": "referring_physician",
    "Dose Level": "dose_level",
    "Date": "date_submitted",
}


def generate_patient_id() -> str:
    """
    Patient ids are generated once at intake and never change
    """
    return f"PAT-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _fill_from_headers(row: Dict[str, Any], record: Dict[str, Any]):
    for header, key in SPREADSHEET_HEADER_MAP.items():
        value = _clean(row.get(header))
        if value is not None and record.get(key) is None:
            record[key] = value

    if record.get("payment_status") is None:
        paid = _clean(row.get("PAID"))
        if paid is not None:
            record["payment_status"] = "Paid" if paid.lower() == "yes" else "Pending"


def normalize_patient_record(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a spreadsheet row (display headers) to canonical record keys.

    Canonical keys win when both forms are present. PAID yes/no becomes
    payment_status Paid/Pending. Unmapped headers and any row id are
    dropped; ids are assigned by this service only.
    """
    data = dict(row or {})
    record: Dict[str, Any] = {}

    for key in set(SPREADSHEET_HEADER_MAP.values()) | {"payment_status"}:
        value = _clean(data.get(key))
        if value is not None:
            record[key] = value

    _fill_from_headers(data, record)
    return record


def upgrade_stored_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rename display-header keys of a stored record to canonical keys

    Older saves used the spreadsheet headers ("Patient Name", "PAID", ...).
    All other keys are kept as they are.
    """
    if "PAID" not in record and not any(header in record for header in SPREADSHEET_HEADER_MAP):
        return record
    upgraded = {
        key: value for key, value in record.items()
        if key not in SPREADSHEET_HEADER_MAP and key != "PAID"
    }
    _fill_from_headers(record, upgraded)
    return upgraded


def get_patient_name(patient: Dict[str, Any]) -> str:
    return patient.get("patient_name") or patient.get("Patient Name") or ""


def name_matches(patient: Dict[str, Any], query: str) -> bool:
    """
    Case-insensitive substring match on the patient's name
    """
    name = get_patient_name(patient)
    return bool(name) and query.strip().lower() in name.lower()


def find_patient_by_name(patients: List[Dict[str, Any]], query: str) -> Optional[Dict[str, Any]]:
    if not query or not query.strip():
        return None
    for patient in patients:
        if name_matches(patient, query):
            return patient
    return None


def find_patient_index(patients: List[Dict[str, Any]], patient_id: str) -> int:
    for index, patient in enumerate(patients):
        if patient.get("id") == patient_id:
            return index
    return -1


def first_name_sort_key(patient: Dict[str, Any]) -> str:
    name = get_patient_name(patient)
    parts = name.split()
    return parts[0].lower() if parts else ""

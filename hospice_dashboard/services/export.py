"""
CSV export of active patients with checklist progress
"""
import csv
import io
from datetime import date
from typing import Any, Dict, List, Optional

from hospice_dashboard.services.patient_records import get_patient_name
from hospice_dashboard.services.tasks.store import TaskStore

EXPORT_COLUMNS = [
    "Patient Name",
    "Age",
    "City",
    "Hospice",
    "Phone Number",
    "Email",
    "Progress",
    "Status",
    "Dose Level",
    "Last Updated",
]

MISSING = "N/A"
DEFAULT_DOSE_LEVEL = "Regular"


def progress_label(progress: int) -> str:
    if progress == 100:
        return "Complete"
    if progress > 0:
        return "Partial"
    return "Not Started"


def export_filename(today: Optional[date] = None) -> str:
    return f"patient-data-{(today or date.today()).isoformat()}.csv"


def _export_row(patient: Dict[str, Any], progress: int) -> Dict[str, str]:
    last_modified = str(patient.get("last_modified") or "")
    return {
        "Patient Name": get_patient_name(patient) or "Unknown",
        "Age": patient.get("age") or MISSING,
        "City": patient.get("city") or MISSING,
        "Hospice": patient.get("hospice") or MISSING,
        "Phone Number": patient.get("phone") or MISSING,
        "Email": patient.get("email") or MISSING,
        "Progress": f"{progress}%",
        "Status": progress_label(progress),
        "Dose Level": patient.get("dose_level") or DEFAULT_DOSE_LEVEL,
        "Last Updated": last_modified[:10] or date.today().isoformat(),
    }


def export_patients_csv(patients: List[Dict[str, Any]], task_store: TaskStore) -> str:
    """
    Render patients as CSV, one row each, every value quoted

    An empty patient list gives a header-only file.
    """
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator="\n")
    w.writeheader()
    for patient in patients:
        w.writerow(_export_row(patient, task_store.calculate_progress(patient["id"])))
    return buf.getvalue()

"""
Dashboard summary

Counts shown on the landing page: active and archived patients, average age,
paid invoices and the most recently submitted patients.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from hospice_dashboard.database.schemas import DashboardSummary, Patient
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.services.tasks.aggregation import round_half_up
from hospice_dashboard.services.tasks.store import TaskStore

RECENT_PATIENT_LIMIT = 5

# Intake stamps ISO timestamps; spreadsheet rows carry US dates
SUBMITTED_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d")


def calculate_average_age(patients: List[Dict[str, Any]]) -> int:
    ages = []
    for patient in patients:
        try:
            ages.append(int(float(str(patient.get("age", "")).strip())))
        except (ValueError, OverflowError):
            continue
    if not ages:
        return 0
    return round_half_up(sum(ages) / len(ages))


def count_paid_invoices(patients: List[Dict[str, Any]]) -> int:
    return sum(1 for p in patients if str(p.get("payment_status") or "").lower() == "paid")


def _submitted_at(patient: Dict[str, Any]) -> Optional[datetime]:
    value = patient.get("date_submitted")
    if not value:
        return None
    value = str(value)
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in SUBMITTED_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def get_recent_patients(patients: List[Dict[str, Any]], limit: int = RECENT_PATIENT_LIMIT) -> List[Dict[str, Any]]:
    """
    Patients with a readable submission date, newest first
    """
    dated = []
    for patient in patients:
        submitted = _submitted_at(patient)
        if submitted is not None:
            dated.append((submitted, patient))
    dated.sort(key=lambda item: item[0].replace(tzinfo=None), reverse=True)
    return [p for _, p in dated[:limit]]


def build_dashboard_summary(
    storage: DashboardStorage,
    task_store: TaskStore,
    recent_limit: int = RECENT_PATIENT_LIMIT,
) -> DashboardSummary:
    active = storage.get_active_patients()
    recent = [
        Patient(**{**p, "progress": task_store.calculate_progress(p["id"])})
        for p in get_recent_patients(active, recent_limit)
    ]
    return DashboardSummary(
        active_patients=len(active),
        average_age=calculate_average_age(active),
        paid_invoices=count_paid_invoices(active),
        archived_patients=len(storage.get_archived_patients()),
        recent_patients=recent,
    )

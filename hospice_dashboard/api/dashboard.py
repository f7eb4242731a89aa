"""
Dashboard overview endpoint
"""
from fastapi import APIRouter, Depends, Query

from hospice_dashboard.database.schemas import DashboardSummary
from hospice_dashboard.database.storage import DashboardStorage
from hospice_dashboard.services.dashboard import RECENT_PATIENT_LIMIT, build_dashboard_summary
from hospice_dashboard.services.tasks.store import TaskStore
from hospice_dashboard.api.utils import get_storage, get_task_store

router = APIRouter()


@router.get("/dashboard/summary", response_model=DashboardSummary)
async def get_dashboard_summary(
    recent: int = Query(RECENT_PATIENT_LIMIT, ge=0, le=50, description="Number of recent patients to include"),
    storage: DashboardStorage = Depends(get_storage),
    task_store: TaskStore = Depends(get_task_store),
):
    """
    Active and archived counts, average age, paid invoices and recently added patients
    """
    return build_dashboard_summary(storage, task_store, recent_limit=recent)

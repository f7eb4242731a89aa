# API routes
from fastapi import APIRouter
from hospice_dashboard.api.patients import router as patients_router
from hospice_dashboard.api.tasks import router as tasks_router
from hospice_dashboard.api.archive import router as archive_router
from hospice_dashboard.api.dashboard import router as dashboard_router

# Combine all routers
router = APIRouter()
router.include_router(patients_router)
router.include_router(tasks_router)
router.include_router(archive_router)
router.include_router(dashboard_router)

__all__ = ["router"]

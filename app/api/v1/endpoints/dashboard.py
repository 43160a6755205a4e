from fastapi import APIRouter, Depends

from app.api.deps import get_dashboard_service
from app.middleware.auth import CurrentUser, get_current_user
from app.schemas.dashboard import DashboardStats
from services.dashboard import DashboardService

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    user: CurrentUser = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Event and review counters"""
    return dashboard.get_stats()

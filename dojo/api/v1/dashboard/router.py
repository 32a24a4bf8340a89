from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.dependencies import get_current_user
from dojo.auth.schemas import CurrentUser
from dojo.db.session import get_db

from .schemas import DashboardStats
from . import service

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardStats)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> DashboardStats:
    return await service.get_dashboard_stats(db)

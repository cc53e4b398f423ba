"""
Analytics API routes: dashboard, per-board and productivity reports.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.resources import get_accessible_board
from vortexboard.models import Board, User
from vortexboard.schemas import AnalyticsResponse
from vortexboard.services.analytics import AnalyticsService
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.analytics")

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=AnalyticsResponse)
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
):
    """Summary over every board the caller can access."""
    analytics = await AnalyticsService(db).dashboard(current_user.id)
    return AnalyticsResponse(analytics=analytics)


@router.get("/boards/{board_id}", response_model=AnalyticsResponse)
async def get_board_analytics(
    board: Board = Depends(get_accessible_board),
    db: AsyncSession = Depends(get_app_db),
):
    analytics = await AnalyticsService(db).board(board)
    return AnalyticsResponse(analytics=analytics)


@router.get("/productivity", response_model=AnalyticsResponse)
async def get_productivity(
    period: int = Query(30, ge=1, le=365, description="Window length in days"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
):
    """The caller's own output over the trailing ``period`` days."""
    logger.debug(f"Productivity report for {current_user.id} over {period} days")
    analytics = await AnalyticsService(db).productivity(current_user.id, period)
    return AnalyticsResponse(analytics=analytics)

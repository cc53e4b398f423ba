"""
Activity feed routes.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.activity_log import ActivityLogDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.models import User
from vortexboard.schemas import ActivityListResponse, ActivityOut

router = APIRouter(prefix="/api/activity", tags=["Activity"])


@router.get("/me", response_model=ActivityListResponse)
async def get_my_activity(
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    activity_db_handler: ActivityLogDBHandler = Depends(),
):
    """The caller's own activity entries, newest first."""
    entries = await activity_db_handler.get_user_activity(
        current_user.id, limit=limit, db=db
    )
    return ActivityListResponse(
        count=len(entries),
        activities=[ActivityOut.model_validate(entry) for entry in entries],
    )

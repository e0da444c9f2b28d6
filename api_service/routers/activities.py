"""Activities router for OTA promotional activities."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import structlog

from api_service.deps import get_database
from api_service.services.activity_service import ActivityService
from domain.activities import ActivityStatus
from schemas.activity import ActivityCreate, ActivityResponse, ActivityStatusEnum

logger = structlog.get_logger()

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("", response_model=List[ActivityResponse])
async def list_activities(
    status_filter: Optional[List[ActivityStatusEnum]] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_database)
):
    """
    List promotional activities, optionally filtered by status.

    Args:
        status_filter: Repeatable ?status= filter
        db: Database session

    Returns:
        List of activities ordered by id
    """
    try:
        service = ActivityService(db)
        statuses = [ActivityStatus(s.value) for s in status_filter] if status_filter else None
        return await service.list_activities(statuses)
    except Exception as e:
        logger.error("Error listing activities", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list activities: {str(e)}"
        )


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    activity: ActivityCreate,
    db: AsyncSession = Depends(get_database)
):
    """Register a promotional activity."""
    if activity.start_date and activity.end_date and activity.end_date < activity.start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date"
        )

    try:
        service = ActivityService(db)
        return await service.create(activity)
    except Exception as e:
        await db.rollback()
        logger.error("Error creating activity", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create activity: {str(e)}"
        )

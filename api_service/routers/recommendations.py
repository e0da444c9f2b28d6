from fastapi import APIRouter, Depends, HTTPException, Query, status
from datetime import datetime, timedelta
from typing import List, Optional
import structlog

from api_service.config import api_config
from api_service.deps import (
    get_recommendation_service,
    get_recommendation_store,
    get_requester,
)
from api_service.services.recommendation_service import RecommendationService
from domain.activities import ActivityStatus
from domain.errors import (
    AlreadyAppliedError,
    AuthenticationError,
    EmptyInputError,
    GenerationInProgressError,
    ModelTimeoutError,
    NotFoundError,
    UnparsableResponseError,
    UpstreamError,
)
from domain.strategies import RecommendationStore, StrategyPreference
from schemas.recommendation import (
    DateRangeEnum,
    GenerateRequest,
    StrategyHistorySchema,
    StrategySchema,
    StrategySummarySchema,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])

DATE_RANGES = {
    DateRangeEnum.WEEK: timedelta(days=7),
    DateRangeEnum.MONTH: timedelta(days=30),
    DateRangeEnum.ALL: None,
}


@router.get("", response_model=List[StrategySummarySchema])
async def list_recommendations(
    limit: int = Query(api_config.recent_strategies_limit, ge=1, le=100),
    store: RecommendationStore = Depends(get_recommendation_store)
):
    """List generated strategies, newest first."""
    try:
        return await store.list_recent(limit)
    except Exception as e:
        logger.error("Error listing strategies", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list strategies: {str(e)}"
        )


@router.get("/history", response_model=List[StrategyHistorySchema])
async def get_strategy_history(
    date_range: DateRangeEnum = DateRangeEnum.MONTH,
    store: RecommendationStore = Depends(get_recommendation_store)
):
    """Applied strategies within the requested window, most recent first."""
    try:
        window = DATE_RANGES[date_range]
        since = datetime.utcnow() - window if window else None
        strategies = await store.list_applied(since)

        return [
            StrategyHistorySchema(
                strategy_id=s.id,
                strategy_name=s.name,
                description=s.description,
                is_recommended=s.is_recommended,
                applied_at=s.applied_at,
                applied_by=s.applied_by or "",
                activity_count=len(s.activity_ids),
            ) for s in strategies
        ]
    except Exception as e:
        logger.error("Error fetching strategy history", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch strategy history: {str(e)}"
        )


@router.get("/{strategy_id}", response_model=StrategySchema)
async def get_recommendation(
    strategy_id: int,
    store: RecommendationStore = Depends(get_recommendation_store)
):
    """Get a single strategy with all of its details."""
    try:
        return await store.get(strategy_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error fetching strategy {strategy_id}", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch strategy: {str(e)}"
        )


@router.post("/generate", response_model=List[StrategySchema], status_code=status.HTTP_201_CREATED)
async def generate_recommendations(
    body: Optional[GenerateRequest] = None,
    requester: str = Depends(get_requester),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """
    Generate a new batch of strategies from the current weights and activities.

    Failures leave previously stored strategies untouched.
    """
    body = body or GenerateRequest()
    preference = StrategyPreference(body.preference.value) if body.preference else None
    statuses = [ActivityStatus(s.value) for s in body.statuses] if body.statuses else None

    try:
        return await service.generate(requester, preference=preference, statuses=statuses)

    except AuthenticationError as e:
        logger.error("Model credential unavailable", requester=requester, error=str(e))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except (ModelTimeoutError, UpstreamError) as e:
        logger.error("Model service failure", requester=requester, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except UnparsableResponseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except EmptyInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GenerationInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error("Error generating strategies", requester=requester, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate strategies: {str(e)}"
        )


@router.post("/{strategy_id}/apply", response_model=StrategySchema)
async def apply_recommendation(
    strategy_id: int,
    requester: str = Depends(get_requester),
    store: RecommendationStore = Depends(get_recommendation_store)
):
    """Mark a strategy as applied. A strategy can only be applied once."""
    try:
        return await store.apply(strategy_id, requester)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AlreadyAppliedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Error applying strategy {strategy_id}", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to apply strategy: {str(e)}"
        )

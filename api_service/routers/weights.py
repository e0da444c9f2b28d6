"""Weights router for strategy weight parameters."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import structlog

from api_service.deps import get_weight_store
from domain.errors import UnknownWeightError, ValidationError
from domain.weights import WeightStore
from schemas.weight import WeightBulkItem, WeightResponse, WeightUpdate

logger = structlog.get_logger()

router = APIRouter(prefix="/weights", tags=["Weights"])


@router.get("", response_model=List[WeightResponse])
async def get_weights(
    store: WeightStore = Depends(get_weight_store)
):
    """
    Get all weight parameters ordered by key.

    Returns:
        List of weight parameters
    """
    try:
        return await store.get_all()
    except Exception as e:
        logger.error("Error fetching weights", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch weights: {str(e)}"
        )


@router.put("/{key}", response_model=WeightResponse)
async def update_weight(
    key: str,
    update: WeightUpdate,
    store: WeightStore = Depends(get_weight_store)
):
    """
    Update a single weight parameter.

    Args:
        key: Parameter key, e.g. future_booking_weight
        update: New value (integer 0-10)

    Returns:
        Updated weight parameter
    """
    try:
        return await store.update(key, update.value)
    except UnknownWeightError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating weight {key}", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update weight: {str(e)}"
        )


@router.put("", response_model=List[WeightResponse])
async def update_weights(
    items: List[WeightBulkItem],
    store: WeightStore = Depends(get_weight_store)
):
    """Update several weights at once. Nothing is written if any item is rejected."""
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No weights supplied")

    try:
        return await store.update_many({item.key: item.value for item in items})
    except UnknownWeightError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Error updating weights", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update weights: {str(e)}"
        )

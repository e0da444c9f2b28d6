"""Templates router for saved weight sets."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import structlog

from api_service.deps import get_recommendation_store, get_requester, get_template_store, get_weight_store
from domain.errors import NotFoundError, ValidationError
from domain.strategies import RecommendationStore
from domain.templates import TemplateStore, apply_template, create_template
from domain.weights import WeightStore
from schemas.template import TemplateCreate, TemplateFromStrategy, TemplateResponse
from schemas.weight import WeightResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/weight-templates", tags=["Weight Templates"])


@router.get("", response_model=List[TemplateResponse])
async def list_templates(
    templates: TemplateStore = Depends(get_template_store)
):
    """List saved weight templates, newest first."""
    try:
        return await templates.list_all()
    except Exception as e:
        logger.error("Error listing templates", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list templates: {str(e)}"
        )


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_weight_template(
    body: TemplateCreate,
    requester: str = Depends(get_requester),
    templates: TemplateStore = Depends(get_template_store),
    weight_store: WeightStore = Depends(get_weight_store)
):
    """
    Save a weight set as a template.

    Args:
        body: Name, description, optional explicit values and apply_now flag

    Returns:
        Created template
    """
    try:
        return await create_template(
            templates,
            weight_store,
            name=body.name,
            added_by=requester,
            description=body.description,
            weights=body.weights,
            apply_now=body.apply_now,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Error creating template", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create template: {str(e)}"
        )


@router.post("/from-strategy", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template_from_strategy(
    body: TemplateFromStrategy,
    requester: str = Depends(get_requester),
    templates: TemplateStore = Depends(get_template_store),
    weight_store: WeightStore = Depends(get_weight_store),
    strategies: RecommendationStore = Depends(get_recommendation_store)
):
    """Save the current weights under a generated strategy's name."""
    try:
        strategy = await strategies.get(body.strategy_id)
        return await create_template(
            templates,
            weight_store,
            name=body.name or strategy.name,
            added_by=requester,
            description=strategy.description,
            strategy_id=strategy.id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Error creating template from strategy", strategy_id=body.strategy_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create template: {str(e)}"
        )


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: int,
    templates: TemplateStore = Depends(get_template_store)
):
    """Delete a template."""
    try:
        await templates.delete(template_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting template {template_id}", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete template: {str(e)}"
        )


@router.post("/{template_id}/apply", response_model=List[WeightResponse])
async def apply_weight_template(
    template_id: int,
    templates: TemplateStore = Depends(get_template_store),
    weight_store: WeightStore = Depends(get_weight_store)
):
    """Write a template's values into the current weights, all or nothing."""
    try:
        return await apply_template(templates, weight_store, template_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error applying template {template_id}", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to apply template: {str(e)}"
        )

"""Settings router for the strategy model connection."""
from dataclasses import replace
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Optional
import structlog

from ai_client.client import RecommendationClient
from ai_client.config import AIClientConfig, AIModel
from ai_client.settings_store import AISettingsStore, StoredAISettings
from api_service.config import api_config
from api_service.deps import get_ai_settings_store, get_recommendation_client, get_requester
from domain.errors import RecommendationClientError
from schemas.settings import (
    AISettingsResponse,
    AISettingsUpdate,
    ConnectionTestRequest,
    ConnectionTestResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/settings", tags=["Settings"])


def _settings_response(config: AIClientConfig, stored: Optional[StoredAISettings]) -> AISettingsResponse:
    return AISettingsResponse(
        configured=config.is_configured,
        model=config.model.value,
        api_url=config.api_url,
        timeout_seconds=config.timeout_seconds,
        max_attempts=config.max_attempts,
        source="saved" if stored else "environment",
        updated_at=stored.updated_at if stored else None,
        updated_by=stored.updated_by if stored else None,
    )


@router.get("/ai", response_model=AISettingsResponse)
async def get_ai_settings(
    settings_store: AISettingsStore = Depends(get_ai_settings_store)
):
    """Effective model settings. The API key itself is never returned."""
    stored = await settings_store.get()
    return _settings_response(AIClientConfig.from_settings(api_config, stored), stored)


@router.put("/ai", response_model=AISettingsResponse)
async def update_ai_settings(
    update: AISettingsUpdate,
    requester: str = Depends(get_requester),
    settings_store: AISettingsStore = Depends(get_ai_settings_store)
):
    """
    Save the model API key and model choice. Later generations use them
    instead of the environment settings.
    """
    try:
        existing = await settings_store.get()
        api_key = update.api_key.strip() if update.api_key else None
        if not api_key:
            api_key = existing.api_key if existing else None
        if not api_key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="API key is required")

        stored = await settings_store.save(api_key, AIModel(update.model.value), requester)
        return _settings_response(AIClientConfig.from_settings(api_config, stored), stored)

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error saving model settings", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save model settings: {str(e)}"
        )


@router.post("/ai/test", response_model=ConnectionTestResponse)
async def test_ai_connection(
    candidate: Optional[ConnectionTestRequest] = None,
    client: RecommendationClient = Depends(get_recommendation_client)
):
    """Check the model service, with the saved settings or a candidate key and model."""
    if candidate and (candidate.api_key or candidate.model):
        config = client.config
        if candidate.api_key:
            config = replace(config, api_key=candidate.api_key)
        if candidate.model:
            config = replace(config, model=AIModel(candidate.model.value))
        client = client.with_config(config)

    model = client.config.model.value
    try:
        answered = await client.test_connection()
    except RecommendationClientError as e:
        logger.warning("Model connection test failed", model=model, error=str(e))
        return ConnectionTestResponse(success=False, message=str(e), model=model)

    if not answered:
        return ConnectionTestResponse(
            success=False, message="Model service returned an empty reply", model=model
        )
    return ConnectionTestResponse(success=True, message="Connection succeeded", model=model)

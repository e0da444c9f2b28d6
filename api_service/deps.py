"""Dependency injection for API service."""
from typing import AsyncGenerator, Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ai_client.client import RecommendationClient
from ai_client.config import AIClientConfig
from ai_client.settings_store import AISettingsStore
from api_service.config import api_config
from api_service.services.activity_service import ActivityService
from api_service.services.ai_settings_service import AISettingsService
from api_service.services.recommendation_service import RecommendationService
from api_service.services.strategy_service import StrategyService
from api_service.services.template_service import TemplateService
from api_service.services.weight_service import WeightService
from config.loader import strategy_defaults
from db.session import get_db
from domain.activities import ActivitySnapshotProvider
from domain.generation_guard import GenerationGuard
from domain.prompt_builder import PromptBuilder
from domain.strategies import RecommendationStore, StrategyPreference
from domain.templates import TemplateStore
from domain.weights import WeightStore

# Process-wide single-flight guard for strategy generation
_generation_guard = GenerationGuard()


# Database session dependency
async def get_database() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async for session in get_db():
        yield session


def get_requester(x_user: Optional[str] = Header(None, alias="X-User")) -> str:
    """Requester identity; sessions are managed upstream of this service."""
    return (x_user or "").strip() or "anonymous"


def get_weight_store(db: AsyncSession = Depends(get_database)) -> WeightStore:
    return WeightService(db)


def get_activity_provider(db: AsyncSession = Depends(get_database)) -> ActivitySnapshotProvider:
    return ActivityService(db)


def get_recommendation_store(db: AsyncSession = Depends(get_database)) -> RecommendationStore:
    return StrategyService(db)


def get_generation_guard() -> GenerationGuard:
    return _generation_guard


def get_ai_settings_store(db: AsyncSession = Depends(get_database)) -> AISettingsStore:
    return AISettingsService(db)


def get_template_store(db: AsyncSession = Depends(get_database)) -> TemplateStore:
    return TemplateService(db)


async def get_ai_config(
    settings_store: AISettingsStore = Depends(get_ai_settings_store)
) -> AIClientConfig:
    """Saved settings win over the environment."""
    return AIClientConfig.from_settings(api_config, await settings_store.get())


def get_recommendation_client(
    config: AIClientConfig = Depends(get_ai_config)
) -> RecommendationClient:
    return RecommendationClient(config)


def get_recommendation_service(
    weight_store: WeightStore = Depends(get_weight_store),
    activity_provider: ActivitySnapshotProvider = Depends(get_activity_provider),
    store: RecommendationStore = Depends(get_recommendation_store),
    client: RecommendationClient = Depends(get_recommendation_client),
    guard: GenerationGuard = Depends(get_generation_guard),
) -> RecommendationService:
    return RecommendationService(
        weight_store=weight_store,
        activity_provider=activity_provider,
        store=store,
        client=client,
        guard=guard,
        prompt_builder=PromptBuilder(strategy_defaults.preferences),
        default_preference=StrategyPreference(api_config.strategy_preference),
    )

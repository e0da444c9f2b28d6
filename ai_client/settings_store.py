"""Operator-saved model settings that override the environment."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import structlog

from ai_client.config import AIModel

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoredAISettings:
    api_key: str
    model: AIModel
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class AISettingsStore:
    """Abstract base class for saved model settings."""

    async def get(self) -> Optional[StoredAISettings]:
        """Saved settings, or None when the operator never saved any."""
        raise NotImplementedError

    async def save(self, api_key: str, model: AIModel, updated_by: str) -> StoredAISettings:
        """Replace the saved key and model."""
        raise NotImplementedError


class InMemoryAISettingsStore(AISettingsStore):
    """Process-local settings store."""

    def __init__(self, settings: Optional[StoredAISettings] = None):
        self._settings = settings

    async def get(self) -> Optional[StoredAISettings]:
        return self._settings

    async def save(self, api_key: str, model: AIModel, updated_by: str) -> StoredAISettings:
        self._settings = StoredAISettings(
            api_key=api_key,
            model=AIModel(model),
            updated_at=datetime.utcnow(),
            updated_by=updated_by,
        )
        logger.info("Model settings saved", model=self._settings.model.value, updated_by=updated_by)
        return self._settings

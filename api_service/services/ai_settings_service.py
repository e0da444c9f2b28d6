from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Optional
import structlog

from ai_client.config import AIModel
from ai_client.settings_store import AISettingsStore, StoredAISettings
from db.models import AISettingsRecord

logger = structlog.get_logger()

SERVICE_NAME = "deepseek"


class AISettingsService(AISettingsStore):
    """
    Saved model settings backed by the ai_settings table.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_domain(record: AISettingsRecord) -> StoredAISettings:
        return StoredAISettings(
            api_key=record.api_key,
            model=AIModel(record.model),
            updated_at=record.updated_at,
            updated_by=record.updated_by,
        )

    async def _fetch(self) -> Optional[AISettingsRecord]:
        result = await self.db.execute(
            select(AISettingsRecord).where(AISettingsRecord.service == SERVICE_NAME)
        )
        return result.scalar_one_or_none()

    async def get(self) -> Optional[StoredAISettings]:
        record = await self._fetch()
        return self.to_domain(record) if record else None

    async def save(self, api_key: str, model: AIModel, updated_by: str) -> StoredAISettings:
        record = await self._fetch()
        if record is None:
            record = AISettingsRecord(service=SERVICE_NAME)
            self.db.add(record)

        record.api_key = api_key
        record.model = AIModel(model).value
        record.updated_by = updated_by
        record.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(record)

        logger.info("Model settings saved", model=record.model, updated_by=updated_by)
        return self.to_domain(record)

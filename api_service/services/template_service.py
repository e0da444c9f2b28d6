from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Mapping, Optional
import structlog

from db.models import WeightTemplateRecord
from domain.errors import NotFoundError
from domain.templates import TemplateStore, WeightTemplate, check_template_weights

logger = structlog.get_logger()


class TemplateService(TemplateStore):
    """
    Template store backed by the weight_templates table.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_domain(record: WeightTemplateRecord) -> WeightTemplate:
        return WeightTemplate(
            id=record.id,
            name=record.name,
            description=record.description or "",
            weights={key: int(value) for key, value in (record.weights or {}).items()},
            added_by=record.added_by,
            strategy_id=record.strategy_id,
            created_at=record.created_at,
        )

    async def _fetch(self, template_id: int) -> WeightTemplateRecord:
        result = await self.db.execute(
            select(WeightTemplateRecord).where(WeightTemplateRecord.id == template_id)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError(f"Template {template_id} not found")
        return record

    async def list_all(self) -> List[WeightTemplate]:
        result = await self.db.execute(
            select(WeightTemplateRecord)
            .order_by(WeightTemplateRecord.created_at.desc(), WeightTemplateRecord.id.desc())
        )
        return [self.to_domain(record) for record in result.scalars().all()]

    async def get(self, template_id: int) -> WeightTemplate:
        return self.to_domain(await self._fetch(template_id))

    async def create(
        self,
        name: str,
        description: str,
        weights: Mapping[str, int],
        added_by: str,
        strategy_id: Optional[int] = None
    ) -> WeightTemplate:
        record = WeightTemplateRecord(
            name=name,
            description=description,
            weights=check_template_weights(weights),
            added_by=added_by,
            strategy_id=strategy_id,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info("Weight template created", template_id=record.id, name=name)
        return self.to_domain(record)

    async def delete(self, template_id: int) -> None:
        record = await self._fetch(template_id)
        await self.db.delete(record)
        await self.db.commit()
        logger.info("Weight template deleted", template_id=template_id)

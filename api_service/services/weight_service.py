from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Any, Dict, Iterable, List
import structlog

from db.models import StrategyParameter
from domain.errors import UnknownWeightError
from domain.weights import WeightParameter, WeightStore, validate_weight_value

logger = structlog.get_logger()


class WeightService(WeightStore):
    """
    Weight store backed by the strategy_parameters table.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_domain(row: StrategyParameter) -> WeightParameter:
        return WeightParameter(
            key=row.param_key,
            label=row.name,
            description=row.description or "",
            value=row.value,
            updated_at=row.updated_at,
        )

    async def _rows_by_key(self, keys: Iterable[str] = None) -> Dict[str, StrategyParameter]:
        stmt = select(StrategyParameter).order_by(StrategyParameter.param_key)
        if keys is not None:
            stmt = stmt.where(StrategyParameter.param_key.in_(list(keys)))
        result = await self.db.execute(stmt)
        return {row.param_key: row for row in result.scalars().all()}

    async def get_all(self) -> List[WeightParameter]:
        rows = await self._rows_by_key()
        return [self.to_domain(row) for row in rows.values()]

    async def update(self, key: str, value: Any) -> WeightParameter:
        result = await self.db.execute(
            select(StrategyParameter).where(StrategyParameter.param_key == key)
        )
        row = result.scalar_one_or_none()
        if not row:
            raise UnknownWeightError(f"Unknown weight parameter: {key}")

        row.value = validate_weight_value(key, value)
        row.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(row)

        logger.info("Weight updated", key=key, value=row.value)
        return self.to_domain(row)

    async def update_many(self, values: Dict[str, Any]) -> List[WeightParameter]:
        rows = await self._rows_by_key(values.keys())
        unknown = sorted(set(values) - set(rows))
        if unknown:
            raise UnknownWeightError(f"Unknown weight parameters: {', '.join(unknown)}")

        # Validate everything before touching any row
        checked = {key: validate_weight_value(key, value) for key, value in values.items()}

        now = datetime.utcnow()
        for key, value in checked.items():
            rows[key].value = value
            rows[key].updated_at = now
        await self.db.commit()

        logger.info("Weights updated", keys=sorted(checked))
        return [self.to_domain(rows[key]) for key in sorted(checked)]

    async def ensure_defaults(self, defaults: Iterable[Dict[str, Any]]) -> int:
        existing = await self._rows_by_key()
        created = 0
        for item in defaults:
            if item["key"] in existing:
                continue
            self.db.add(StrategyParameter(
                param_key=item["key"],
                name=item["label"],
                description=item.get("description", ""),
                value=validate_weight_value(item["key"], item["value"]),
            ))
            created += 1

        if created:
            await self.db.commit()
            logger.info("Seeded default weight parameters", created=created)
        return created

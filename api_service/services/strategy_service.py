from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from datetime import datetime
from typing import List, Optional
import structlog

from db.models import GenerationRequest, StrategyRecord
from domain.errors import AlreadyAppliedError, NotFoundError
from domain.prompt_builder import PromptBuilder
from domain.strategies import (
    RecommendationRequest,
    RecommendationStore,
    Strategy,
    StrategyDraft,
)

logger = structlog.get_logger()


class StrategyService(RecommendationStore):
    """
    Recommendation store backed by the strategies and
    recommendation_requests tables.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_domain(record: StrategyRecord) -> Strategy:
        return Strategy(
            id=record.id,
            request_id=record.request_id,
            name=record.name,
            description=record.description,
            advantages=tuple(record.advantages or ()),
            disadvantages=tuple(record.disadvantages or ()),
            steps=tuple(record.steps or ()),
            notes=tuple(record.notes or ()),
            activity_ids=tuple(record.activity_ids or ()),
            metrics=dict(record.metrics or {}),
            is_recommended=bool(record.is_recommended),
            score=float(record.score or 0.0),
            created_at=record.created_at,
            applied_at=record.applied_at,
            applied_by=record.applied_by,
        )

    async def save(
        self,
        request: RecommendationRequest,
        drafts: List[StrategyDraft]
    ) -> List[Strategy]:
        request_row = GenerationRequest(
            requested_by=request.requested_by,
            weights=[PromptBuilder.weight_to_dict(w) for w in request.weights],
            activities=[PromptBuilder.activity_to_dict(a) for a in request.activities],
            preference=request.preference.value,
            model=request.model,
            created_at=request.created_at,
        )
        self.db.add(request_row)
        await self.db.flush()

        now = datetime.utcnow()
        records = [
            StrategyRecord(
                request_id=request_row.id,
                name=draft.name,
                description=draft.description,
                advantages=list(draft.advantages),
                disadvantages=list(draft.disadvantages),
                steps=list(draft.steps),
                notes=list(draft.notes),
                activity_ids=list(draft.activity_ids),
                metrics=dict(draft.metrics),
                is_recommended=draft.is_recommended,
                score=draft.score,
                created_at=now,
            )
            for draft in drafts
        ]
        self.db.add_all(records)
        await self.db.commit()

        logger.info("Strategies saved", request_id=request_row.id, count=len(records))
        return [self.to_domain(record) for record in records]

    async def _fetch(self, strategy_id: int) -> Optional[StrategyRecord]:
        result = await self.db.execute(
            select(StrategyRecord).where(StrategyRecord.id == strategy_id)
        )
        return result.scalar_one_or_none()

    async def get(self, strategy_id: int) -> Strategy:
        record = await self._fetch(strategy_id)
        if not record:
            raise NotFoundError(f"Strategy {strategy_id} not found")
        return self.to_domain(record)

    async def list_recent(self, limit: int = 20) -> List[Strategy]:
        result = await self.db.execute(
            select(StrategyRecord)
            .order_by(StrategyRecord.created_at.desc(), StrategyRecord.id.desc())
            .limit(limit)
        )
        return [self.to_domain(record) for record in result.scalars().all()]

    async def list_applied(self, since: Optional[datetime] = None) -> List[Strategy]:
        stmt = select(StrategyRecord).where(StrategyRecord.applied_at.is_not(None))
        if since is not None:
            stmt = stmt.where(StrategyRecord.applied_at >= since)
        stmt = stmt.order_by(StrategyRecord.applied_at.desc(), StrategyRecord.id.desc())
        result = await self.db.execute(stmt)
        return [self.to_domain(record) for record in result.scalars().all()]

    async def apply(self, strategy_id: int, applied_by: str) -> Strategy:
        # Conditional update: only one caller can move a row out of Generated.
        result = await self.db.execute(
            update(StrategyRecord)
            .where(
                StrategyRecord.id == strategy_id,
                StrategyRecord.applied_at.is_(None),
            )
            .values(applied_at=datetime.utcnow(), applied_by=applied_by)
            .returning(StrategyRecord)
        )
        record = result.scalar_one_or_none()

        if record is None:
            existing = await self._fetch(strategy_id)
            if existing is None:
                raise NotFoundError(f"Strategy {strategy_id} not found")
            logger.warning(
                "Strategy already applied",
                strategy_id=strategy_id,
                applied_by=existing.applied_by,
            )
            raise AlreadyAppliedError(strategy_id, existing.applied_by)

        await self.db.commit()
        logger.info("Strategy applied", strategy_id=strategy_id, applied_by=applied_by)
        return self.to_domain(record)

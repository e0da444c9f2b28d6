from enum import Enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import structlog

from domain.activities import ActivitySnapshot
from domain.errors import AlreadyAppliedError, NotFoundError
from domain.weights import WeightParameter

logger = structlog.get_logger()


class StrategyPreference(str, Enum):
    BALANCED = "balanced"
    REVENUE = "revenue"
    TRAFFIC = "traffic"


@dataclass(frozen=True)
class RecommendationRequest:
    """Inputs of one generation run, copied so the run is reproducible."""
    requested_by: str
    weights: Tuple[WeightParameter, ...]
    activities: Tuple[ActivitySnapshot, ...]
    preference: StrategyPreference = StrategyPreference.BALANCED
    model: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[int] = None


@dataclass(frozen=True)
class StrategyDraft:
    """A strategy as parsed from model output, before it is stored."""
    name: str
    description: str
    advantages: Tuple[str, ...] = ()
    disadvantages: Tuple[str, ...] = ()
    steps: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()
    activity_ids: Tuple[int, ...] = ()
    metrics: Dict[str, Any] = field(default_factory=dict)
    is_recommended: bool = False
    score: float = 0.0


@dataclass(frozen=True)
class Strategy:
    """Stored recommendation. Only applied_at/applied_by ever change."""
    id: int
    request_id: int
    name: str
    description: str
    advantages: Tuple[str, ...]
    disadvantages: Tuple[str, ...]
    steps: Tuple[str, ...]
    notes: Tuple[str, ...]
    activity_ids: Tuple[int, ...]
    metrics: Dict[str, Any]
    is_recommended: bool
    score: float
    created_at: datetime
    applied_at: Optional[datetime] = None
    applied_by: Optional[str] = None

    @property
    def is_applied(self) -> bool:
        return self.applied_at is not None


class RecommendationStore:
    """Abstract base class for generated strategy storage."""

    async def save(
        self,
        request: RecommendationRequest,
        drafts: List[StrategyDraft]
    ) -> List[Strategy]:
        """Persist a request and its strategies in one unit of work."""
        raise NotImplementedError

    async def get(self, strategy_id: int) -> Strategy:
        """Fetch one strategy or raise NotFoundError."""
        raise NotImplementedError

    async def list_recent(self, limit: int = 20) -> List[Strategy]:
        """Newest strategies first."""
        raise NotImplementedError

    async def list_applied(self, since: Optional[datetime] = None) -> List[Strategy]:
        """Applied strategies, most recently applied first."""
        raise NotImplementedError

    async def apply(self, strategy_id: int, applied_by: str) -> Strategy:
        """
        Mark a strategy as applied.

        Raises:
            NotFoundError: unknown id
            AlreadyAppliedError: strategy was applied before
        """
        raise NotImplementedError


class InMemoryRecommendationStore(RecommendationStore):
    """Process-local strategy store."""

    def __init__(self):
        self._requests: Dict[int, RecommendationRequest] = {}
        self._strategies: Dict[int, Strategy] = {}
        self._next_request_id = 1
        self._next_strategy_id = 1

    async def save(
        self,
        request: RecommendationRequest,
        drafts: List[StrategyDraft]
    ) -> List[Strategy]:
        stored_request = replace(request, id=self._next_request_id)
        self._next_request_id += 1
        self._requests[stored_request.id] = stored_request

        now = datetime.utcnow()
        saved = []
        for draft in drafts:
            strategy = Strategy(
                id=self._next_strategy_id,
                request_id=stored_request.id,
                name=draft.name,
                description=draft.description,
                advantages=tuple(draft.advantages),
                disadvantages=tuple(draft.disadvantages),
                steps=tuple(draft.steps),
                notes=tuple(draft.notes),
                activity_ids=tuple(draft.activity_ids),
                metrics=dict(draft.metrics),
                is_recommended=draft.is_recommended,
                score=draft.score,
                created_at=now,
            )
            self._next_strategy_id += 1
            self._strategies[strategy.id] = strategy
            saved.append(strategy)

        logger.info("Strategies saved", request_id=stored_request.id, count=len(saved))
        return saved

    def get_request(self, request_id: int) -> Optional[RecommendationRequest]:
        return self._requests.get(request_id)

    async def get(self, strategy_id: int) -> Strategy:
        strategy = self._strategies.get(strategy_id)
        if strategy is None:
            raise NotFoundError(f"Strategy {strategy_id} not found")
        return strategy

    async def list_recent(self, limit: int = 20) -> List[Strategy]:
        ordered = sorted(
            self._strategies.values(),
            key=lambda s: (s.created_at, s.id),
            reverse=True
        )
        return ordered[:limit]

    async def list_applied(self, since: Optional[datetime] = None) -> List[Strategy]:
        applied = [
            s for s in self._strategies.values()
            if s.applied_at is not None and (since is None or s.applied_at >= since)
        ]
        return sorted(applied, key=lambda s: (s.applied_at, s.id), reverse=True)

    async def apply(self, strategy_id: int, applied_by: str) -> Strategy:
        strategy = await self.get(strategy_id)
        if strategy.is_applied:
            raise AlreadyAppliedError(strategy_id, strategy.applied_by)

        updated = replace(strategy, applied_at=datetime.utcnow(), applied_by=applied_by)
        self._strategies[strategy_id] = updated
        logger.info("Strategy applied", strategy_id=strategy_id, applied_by=applied_by)
        return updated

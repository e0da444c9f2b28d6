from typing import Iterable, List, Optional
import structlog

from ai_client.client import RecommendationClient
from domain.activities import ActivitySnapshotProvider, ActivityStatus
from domain.errors import UnparsableResponseError
from domain.generation_guard import GenerationGuard
from domain.prompt_builder import PromptBuilder
from domain.response_parser import ParseFailure, ResponseParser
from domain.strategies import (
    RecommendationRequest,
    RecommendationStore,
    Strategy,
    StrategyPreference,
)
from domain.weights import WeightStore

logger = structlog.get_logger()

DEFAULT_STATUSES = (
    ActivityStatus.UPCOMING,
    ActivityStatus.ACTIVE,
    ActivityStatus.UNDECIDED,
)


class RecommendationService:
    """
    Runs the weights -> prompt -> model -> parse -> store pipeline.
    """

    def __init__(
        self,
        weight_store: WeightStore,
        activity_provider: ActivitySnapshotProvider,
        store: RecommendationStore,
        client: RecommendationClient,
        guard: GenerationGuard,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Optional[ResponseParser] = None,
        default_preference: StrategyPreference = StrategyPreference.BALANCED,
    ):
        self.weight_store = weight_store
        self.activity_provider = activity_provider
        self.store = store
        self.client = client
        self.guard = guard
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()
        self.default_preference = default_preference

    async def generate(
        self,
        requested_by: str,
        preference: Optional[StrategyPreference] = None,
        statuses: Optional[Iterable[ActivityStatus]] = None
    ) -> List[Strategy]:
        """
        Generate and store a new batch of strategies.

        Args:
            requested_by: Requester identity, also the single-flight key
            preference: Strategy preference; service default when None
            statuses: Activity statuses to include; all but ended when None

        Returns:
            Stored strategies, exactly one of them recommended
        """
        async with self.guard.hold(requested_by):
            request = RecommendationRequest(
                requested_by=requested_by,
                weights=tuple(await self.weight_store.get_all()),
                activities=await self.activity_provider.current(statuses or DEFAULT_STATUSES),
                preference=StrategyPreference(preference or self.default_preference),
                model=self.client.config.model.value,
            )

            prompt = self.prompt_builder.build(
                request.weights, request.activities, request.preference
            )
            logger.info(
                "Generating strategies",
                requester=requested_by,
                activities=len(request.activities),
                preference=request.preference.value,
                model=request.model,
                prompt_length=len(prompt),
            )

            raw_text = await self.client.generate(prompt)

            result = self.parser.parse(
                raw_text, known_activity_ids=[a.id for a in request.activities]
            )
            if isinstance(result, ParseFailure):
                logger.error(
                    "Unparsable model response",
                    reason=result.reason,
                    raw_response=result.raw_text[:2000],
                )
                raise UnparsableResponseError(result.reason, result.raw_text)

            strategies = await self.store.save(request, result.strategies)
            logger.info(
                "Strategies generated",
                requester=requested_by,
                count=len(strategies),
                strategy_ids=[s.id for s in strategies],
            )
            return strategies

from contextlib import asynccontextmanager
from typing import AsyncIterator, Set
import structlog

from domain.errors import GenerationInProgressError

logger = structlog.get_logger()


class GenerationGuard:
    """
    Single-flight guard: one generation per requester at a time.

    Check-and-add runs without an await in between, so it is atomic
    on a single event loop.
    """

    def __init__(self):
        self._in_flight: Set[str] = set()

    def is_running(self, key: str) -> bool:
        return key in self._in_flight

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        if key in self._in_flight:
            logger.warning("Generation already in progress", requester=key)
            raise GenerationInProgressError(
                f"A strategy generation for {key} is already running"
            )
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

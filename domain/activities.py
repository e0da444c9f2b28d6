from enum import Enum
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple


class ActivityStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"
    UNDECIDED = "undecided"


@dataclass(frozen=True)
class ActivitySnapshot:
    """Point-in-time copy of an OTA promotional activity."""
    id: int
    platform: str
    name: str
    discount: str
    commission_rate: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ActivityStatus = ActivityStatus.UNDECIDED
    room_types: Tuple[str, ...] = ()
    minimum_stay: Optional[int] = None
    tag: Optional[str] = None


class ActivitySnapshotProvider:
    """Abstract base class for activity snapshot sources."""

    async def current(
        self,
        statuses: Optional[Iterable[ActivityStatus]] = None
    ) -> Tuple[ActivitySnapshot, ...]:
        """
        Return the known activities as immutable snapshots.

        Args:
            statuses: Optional status filter; None returns every activity

        Returns:
            Tuple of ActivitySnapshot ordered by id
        """
        raise NotImplementedError


class InMemoryActivitySnapshotProvider(ActivitySnapshotProvider):
    """Serves snapshots from a list held in memory."""

    def __init__(self, activities: Iterable[ActivitySnapshot] = ()):
        self._activities = list(activities)

    async def current(
        self,
        statuses: Optional[Iterable[ActivityStatus]] = None
    ) -> Tuple[ActivitySnapshot, ...]:
        wanted = set(ActivityStatus(s) for s in statuses) if statuses else None
        selected = [
            a for a in self._activities
            if wanted is None or a.status in wanted
        ]
        return tuple(sorted(selected, key=lambda a: a.id))

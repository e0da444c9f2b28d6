from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Iterable, List, Optional, Tuple
import structlog

from db.models import Activity
from domain.activities import ActivitySnapshot, ActivitySnapshotProvider, ActivityStatus
from schemas.activity import ActivityCreate

logger = structlog.get_logger()


class ActivityService(ActivitySnapshotProvider):
    """
    Reads promotional activities from the database and hands out snapshots.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_snapshot(row: Activity) -> ActivitySnapshot:
        return ActivitySnapshot(
            id=row.id,
            platform=row.platform,
            name=row.name,
            discount=row.discount,
            commission_rate=row.commission_rate,
            start_date=row.start_date,
            end_date=row.end_date,
            status=ActivityStatus(row.status),
            room_types=tuple(row.room_types or ()),
            minimum_stay=row.minimum_stay,
            tag=row.tag,
        )

    async def list_activities(self, statuses: Optional[Iterable[ActivityStatus]] = None) -> List[Activity]:
        stmt = select(Activity).order_by(Activity.id)
        if statuses:
            stmt = stmt.where(Activity.status.in_([ActivityStatus(s) for s in statuses]))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def current(
        self,
        statuses: Optional[Iterable[ActivityStatus]] = None
    ) -> Tuple[ActivitySnapshot, ...]:
        # Rows are converted to frozen values right away; later edits to the
        # table do not reach a snapshot that was already handed out.
        rows = await self.list_activities(statuses)
        return tuple(self.to_snapshot(row) for row in rows)

    async def create(self, data: ActivityCreate) -> Activity:
        activity = Activity(
            platform=data.platform,
            name=data.name,
            description=data.description,
            discount=data.discount,
            commission_rate=data.commission_rate,
            start_date=data.start_date,
            end_date=data.end_date,
            status=ActivityStatus(data.status.value),
            room_types=list(data.room_types),
            minimum_stay=data.minimum_stay,
            tag=data.tag,
        )
        self.db.add(activity)
        await self.db.commit()
        await self.db.refresh(activity)

        logger.info("Activity created", activity_id=activity.id, platform=activity.platform)
        return activity

from datetime import datetime, timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock

from api_service.services.activity_service import ActivityService
from api_service.services.strategy_service import StrategyService
from db.models import Activity, StrategyRecord
from domain.activities import ActivityStatus
from domain.errors import AlreadyAppliedError, NotFoundError
from domain.strategies import (
    InMemoryRecommendationStore,
    RecommendationRequest,
    StrategyDraft,
)


def _drafts():
    return [
        StrategyDraft(name="A", description="a", is_recommended=True, activity_ids=(1,)),
        StrategyDraft(name="B", description="b"),
    ]


def _request(sample_weights, sample_activities):
    return RecommendationRequest(
        requested_by="alice",
        weights=tuple(sample_weights),
        activities=tuple(sample_activities),
        model="DeepSeek-R1-Plus",
    )


@pytest.mark.asyncio
async def test_in_memory_save_and_get(sample_weights, sample_activities):
    store = InMemoryRecommendationStore()

    saved = await store.save(_request(sample_weights, sample_activities), _drafts())

    assert [s.id for s in saved] == [1, 2]
    assert all(s.request_id == 1 for s in saved)
    assert not any(s.is_applied for s in saved)
    assert (await store.get(1)).name == "A"
    assert store.get_request(1).requested_by == "alice"


@pytest.mark.asyncio
async def test_in_memory_get_missing():
    store = InMemoryRecommendationStore()
    with pytest.raises(NotFoundError):
        await store.get(42)


@pytest.mark.asyncio
async def test_in_memory_apply_only_once(sample_weights, sample_activities):
    store = InMemoryRecommendationStore()
    await store.save(_request(sample_weights, sample_activities), _drafts())

    applied = await store.apply(1, "alice")
    assert applied.applied_by == "alice"
    assert applied.applied_at is not None

    with pytest.raises(AlreadyAppliedError) as exc_info:
        await store.apply(1, "bob")
    assert exc_info.value.applied_by == "alice"
    assert (await store.get(1)).applied_by == "alice"


@pytest.mark.asyncio
async def test_in_memory_apply_missing():
    store = InMemoryRecommendationStore()
    with pytest.raises(NotFoundError):
        await store.apply(7, "alice")


@pytest.mark.asyncio
async def test_in_memory_list_recent_and_applied(sample_weights, sample_activities):
    store = InMemoryRecommendationStore()
    await store.save(_request(sample_weights, sample_activities), _drafts())
    await store.save(_request(sample_weights, sample_activities), _drafts())
    await store.apply(2, "alice")

    recent = await store.list_recent(limit=3)
    assert [s.id for s in recent] == [4, 3, 2]

    applied = await store.list_applied()
    assert [s.id for s in applied] == [2]
    assert await store.list_applied(since=datetime.utcnow() + timedelta(days=1)) == []


def _record(**overrides):
    values = dict(
        id=5,
        request_id=1,
        name="精选参与策略",
        description="只参与携程活动",
        advantages=["成本可控"],
        disadvantages=[],
        steps=["报名"],
        notes=[],
        activity_ids=[1],
        metrics={},
        is_recommended=True,
        score=85.0,
        created_at=datetime(2026, 10, 1, 9, 0),
        applied_at=None,
        applied_by=None,
    )
    values.update(overrides)
    return StrategyRecord(**values)


@pytest.mark.asyncio
async def test_strategy_service_apply():
    mock_db = AsyncMock()
    service = StrategyService(mock_db)

    record = _record(applied_at=datetime.utcnow(), applied_by="alice")
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = record
    mock_db.execute.return_value = mock_result

    strategy = await service.apply(5, "alice")

    assert strategy.applied_by == "alice"
    assert strategy.advantages == ("成本可控",)
    mock_db.commit.assert_called_once()


@pytest.mark.asyncio
async def test_strategy_service_apply_twice_conflicts():
    mock_db = AsyncMock()
    service = StrategyService(mock_db)

    no_row = MagicMock()
    no_row.scalar_one_or_none.return_value = None
    existing = MagicMock()
    existing.scalar_one_or_none.return_value = _record(
        applied_at=datetime.utcnow(), applied_by="alice"
    )
    mock_db.execute.side_effect = [no_row, existing]

    with pytest.raises(AlreadyAppliedError):
        await service.apply(5, "bob")
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_strategy_service_apply_missing():
    mock_db = AsyncMock()
    service = StrategyService(mock_db)

    no_row = MagicMock()
    no_row.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = no_row

    with pytest.raises(NotFoundError):
        await service.apply(5, "bob")


@pytest.mark.asyncio
async def test_strategy_service_save_writes_request_and_strategies(sample_weights, sample_activities):
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.add_all = MagicMock()
    service = StrategyService(mock_db)

    saved = await service.save(_request(sample_weights, sample_activities), _drafts())

    request_row = mock_db.add.call_args[0][0]
    assert request_row.requested_by == "alice"
    assert request_row.activities[0]["platform"] == "美团"
    assert len(mock_db.add_all.call_args[0][0]) == 2
    assert [s.name for s in saved] == ["A", "B"]
    mock_db.flush.assert_called_once()
    mock_db.commit.assert_called_once()


@pytest.mark.asyncio
async def test_activity_service_snapshots():
    mock_db = AsyncMock()
    service = ActivityService(mock_db)

    row = Activity(
        id=1,
        platform="携程",
        name="暑期特惠",
        discount="8.5折",
        commission_rate="8%",
        status=ActivityStatus.ACTIVE,
        room_types=["豪华大床房"],
    )
    mock_result = MagicMock()
    mock_result.scalars.return_value.all.return_value = [row]
    mock_db.execute.return_value = mock_result

    snapshots = await service.current([ActivityStatus.ACTIVE])

    assert len(snapshots) == 1
    assert snapshots[0].room_types == ("豪华大床房",)
    assert snapshots[0].status is ActivityStatus.ACTIVE

    row.discount = "7折"
    assert snapshots[0].discount == "8.5折"

import pytest
from unittest.mock import AsyncMock, MagicMock

from api_service.services.weight_service import WeightService
from config.loader import strategy_defaults
from db.models import StrategyParameter
from domain.errors import UnknownWeightError, ValidationError
from domain.weights import InMemoryWeightStore, validate_weight_value


def test_validate_weight_value_accepts_integral_numbers():
    assert validate_weight_value("k", 0) == 0
    assert validate_weight_value("k", 10) == 10
    assert validate_weight_value("k", 7.0) == 7


@pytest.mark.parametrize("value", [-1, 11, 3.5, True, "5", None])
def test_validate_weight_value_rejects(value):
    with pytest.raises(ValidationError):
        validate_weight_value("k", value)


def test_default_weights_are_loaded():
    keys = [w["key"] for w in strategy_defaults.weights]
    assert keys == [
        "future_booking_weight",
        "cost_optimization_weight",
        "visibility_optimization_weight",
        "daily_occupancy_weight",
        "long_short_balance_weight",
    ]
    assert set(strategy_defaults.preferences) == {"balanced", "revenue", "traffic"}


@pytest.mark.asyncio
async def test_in_memory_get_all_sorted_by_key(sample_weights):
    store = InMemoryWeightStore(sample_weights)
    keys = [w.key for w in await store.get_all()]
    assert keys == sorted(keys)
    assert len(keys) == 5


@pytest.mark.asyncio
async def test_in_memory_update(sample_weights):
    store = InMemoryWeightStore(sample_weights)

    updated = await store.update("daily_occupancy_weight", 9)

    assert updated.value == 9
    assert updated.updated_at is not None
    values = {w.key: w.value for w in await store.get_all()}
    assert values["daily_occupancy_weight"] == 9


@pytest.mark.asyncio
async def test_in_memory_update_out_of_range_keeps_value(sample_weights):
    store = InMemoryWeightStore(sample_weights)

    with pytest.raises(ValidationError):
        await store.update("daily_occupancy_weight", 11)

    values = {w.key: w.value for w in await store.get_all()}
    assert values["daily_occupancy_weight"] == 5


@pytest.mark.asyncio
async def test_in_memory_update_unknown_key(sample_weights):
    store = InMemoryWeightStore(sample_weights)
    with pytest.raises(UnknownWeightError):
        await store.update("nope", 3)


@pytest.mark.asyncio
async def test_in_memory_update_many_is_all_or_nothing(sample_weights):
    store = InMemoryWeightStore(sample_weights)

    with pytest.raises(ValidationError):
        await store.update_many({"future_booking_weight": 1, "cost_optimization_weight": 42})

    values = {w.key: w.value for w in await store.get_all()}
    assert values["future_booking_weight"] == 7
    assert values["cost_optimization_weight"] == 6


@pytest.mark.asyncio
async def test_in_memory_ensure_defaults_does_not_overwrite(sample_weights):
    store = InMemoryWeightStore([sample_weights[0]])
    await store.update(sample_weights[0].key, 1)

    created = await store.ensure_defaults(strategy_defaults.weights)

    assert created == 4
    values = {w.key: w.value for w in await store.get_all()}
    assert values[sample_weights[0].key] == 1
    assert len(values) == 5


def _param(key, value):
    return StrategyParameter(id=1, param_key=key, name=key, description="", value=value)


@pytest.mark.asyncio
async def test_weight_service_update():
    mock_db = AsyncMock()
    service = WeightService(mock_db)

    row = _param("daily_occupancy_weight", 5)
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = row
    mock_db.execute.return_value = mock_result

    updated = await service.update("daily_occupancy_weight", 8)

    assert updated.value == 8
    assert row.value == 8
    mock_db.commit.assert_called_once()


@pytest.mark.asyncio
async def test_weight_service_update_unknown_key():
    mock_db = AsyncMock()
    service = WeightService(mock_db)

    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = mock_result

    with pytest.raises(UnknownWeightError):
        await service.update("nope", 3)
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_weight_service_update_out_of_range_does_not_commit():
    mock_db = AsyncMock()
    service = WeightService(mock_db)

    row = _param("daily_occupancy_weight", 5)
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = row
    mock_db.execute.return_value = mock_result

    with pytest.raises(ValidationError):
        await service.update("daily_occupancy_weight", 11)

    assert row.value == 5
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_weight_service_update_many_validates_first():
    mock_db = AsyncMock()
    service = WeightService(mock_db)

    rows = [_param("cost_optimization_weight", 6), _param("future_booking_weight", 7)]
    mock_result = MagicMock()
    mock_result.scalars.return_value.all.return_value = rows
    mock_db.execute.return_value = mock_result

    with pytest.raises(ValidationError):
        await service.update_many({"future_booking_weight": 2, "cost_optimization_weight": -1})

    assert [r.value for r in rows] == [6, 7]
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_weight_service_ensure_defaults_adds_missing_rows():
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    service = WeightService(mock_db)

    mock_result = MagicMock()
    mock_result.scalars.return_value.all.return_value = [_param("future_booking_weight", 3)]
    mock_db.execute.return_value = mock_result

    created = await service.ensure_defaults(strategy_defaults.weights)

    assert created == 4
    assert mock_db.add.call_count == 4
    mock_db.commit.assert_called_once()

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from ai_client.client import RecommendationClient
from ai_client.config import AIClientConfig, AIModel
from ai_client.settings_store import InMemoryAISettingsStore, StoredAISettings
from api_service.config import api_config
from api_service import deps
from api_service.main import app
from domain.activities import InMemoryActivitySnapshotProvider
from domain.errors import ModelTimeoutError
from domain.generation_guard import GenerationGuard
from domain.strategies import InMemoryRecommendationStore
from domain.templates import InMemoryTemplateStore
from domain.weights import InMemoryWeightStore


class FakeClient:
    def __init__(self, reply=None, error=None):
        self.config = AIClientConfig(api_key="sk-test")
        self.reply = reply
        self.error = error

    async def generate(self, prompt):
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def stores(sample_weights, sample_activities):
    weight_store = InMemoryWeightStore(sample_weights)
    provider = InMemoryActivitySnapshotProvider(sample_activities)
    store = InMemoryRecommendationStore()
    guard = GenerationGuard()
    templates = InMemoryTemplateStore()
    ai_settings = InMemoryAISettingsStore()

    app.dependency_overrides[deps.get_weight_store] = lambda: weight_store
    app.dependency_overrides[deps.get_activity_provider] = lambda: provider
    app.dependency_overrides[deps.get_recommendation_store] = lambda: store
    app.dependency_overrides[deps.get_generation_guard] = lambda: guard
    app.dependency_overrides[deps.get_template_store] = lambda: templates
    app.dependency_overrides[deps.get_ai_settings_store] = lambda: ai_settings
    yield store
    app.dependency_overrides.clear()


def use_client(client):
    app.dependency_overrides[deps.get_recommendation_client] = lambda: client


def _http():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health():
    async with _http() as ac:
        response = await ac.get("/health")
    assert response.status_code == 200
    assert response.json()["service"] == "ota-strategy-api"


@pytest.mark.asyncio
async def test_get_weights(stores):
    async with _http() as ac:
        response = await ac.get("/weights")

    assert response.status_code == 200
    body = response.json()
    assert [w["key"] for w in body] == sorted(w["key"] for w in body)
    assert {w["key"]: w["value"] for w in body}["visibility_optimization_weight"] == 8


@pytest.mark.asyncio
async def test_update_weight(stores):
    async with _http() as ac:
        ok = await ac.put("/weights/daily_occupancy_weight", json={"value": 9})
        out_of_range = await ac.put("/weights/daily_occupancy_weight", json={"value": 11})
        unknown = await ac.put("/weights/nope", json={"value": 3})
        current = await ac.get("/weights")

    assert ok.status_code == 200
    assert ok.json()["value"] == 9
    assert out_of_range.status_code == 400
    assert unknown.status_code == 404
    values = {w["key"]: w["value"] for w in current.json()}
    assert values["daily_occupancy_weight"] == 9


@pytest.mark.asyncio
async def test_bulk_update_rejects_everything_on_one_bad_value(stores):
    async with _http() as ac:
        response = await ac.put("/weights", json=[
            {"key": "future_booking_weight", "value": 1},
            {"key": "cost_optimization_weight", "value": -2},
        ])
        current = await ac.get("/weights")

    assert response.status_code == 400
    values = {w["key"]: w["value"] for w in current.json()}
    assert values["future_booking_weight"] == 7


@pytest.mark.asyncio
async def test_generate_and_apply(stores, model_reply):
    use_client(FakeClient(reply=model_reply))

    async with _http() as ac:
        generated = await ac.post("/recommendations/generate", headers={"X-User": "alice"})
        strategies = generated.json()
        strategy_id = strategies[1]["id"]

        applied = await ac.post(f"/recommendations/{strategy_id}/apply", headers={"X-User": "alice"})
        again = await ac.post(f"/recommendations/{strategy_id}/apply", headers={"X-User": "bob"})
        detail = await ac.get(f"/recommendations/{strategy_id}")
        listed = await ac.get("/recommendations")
        history = await ac.get("/recommendations/history", params={"date_range": "week"})

    assert generated.status_code == 201
    assert len(strategies) == 3
    assert sum(s["is_recommended"] for s in strategies) == 1
    assert strategies[1]["activity_ids"] == [1]

    assert applied.status_code == 200
    assert applied.json()["applied_by"] == "alice"
    assert again.status_code == 409
    assert detail.json()["applied_by"] == "alice"
    assert len(listed.json()) == 3

    assert history.status_code == 200
    assert history.json()[0]["strategy_id"] == strategy_id
    assert history.json()[0]["activity_count"] == 1


@pytest.mark.asyncio
async def test_generate_with_preference_body(stores, model_reply):
    use_client(FakeClient(reply=model_reply))

    async with _http() as ac:
        response = await ac.post(
            "/recommendations/generate",
            json={"preference": "revenue", "statuses": ["active"]},
        )

    assert response.status_code == 201
    request = stores.get_request(response.json()[0]["request_id"])
    assert request.preference.value == "revenue"
    assert [a.id for a in request.activities] == [1]
    assert request.requested_by == "anonymous"


@pytest.mark.asyncio
async def test_generate_without_api_key(stores):
    use_client(RecommendationClient(AIClientConfig(api_key=None)))

    async with _http() as ac:
        response = await ac.post("/recommendations/generate")

    assert response.status_code == 503
    assert await stores.list_recent() == []


@pytest.mark.asyncio
async def test_generate_timeout(stores):
    use_client(FakeClient(error=ModelTimeoutError("timed out")))

    async with _http() as ac:
        response = await ac.post("/recommendations/generate")

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_generate_unparsable(stores):
    use_client(FakeClient(reply="对不起，服务繁忙"))

    async with _http() as ac:
        response = await ac.post("/recommendations/generate")

    assert response.status_code == 422
    assert await stores.list_recent() == []


@pytest.mark.asyncio
async def test_unknown_strategy(stores):
    async with _http() as ac:
        detail = await ac.get("/recommendations/999")
        applied = await ac.post("/recommendations/999/apply")

    assert detail.status_code == 404
    assert applied.status_code == 404


@pytest.mark.asyncio
async def test_ai_settings_hide_key():
    saved = StoredAISettings(api_key="sk-secret", model=AIModel.R1)
    app.dependency_overrides[deps.get_ai_settings_store] = lambda: InMemoryAISettingsStore(saved)
    try:
        async with _http() as ac:
            response = await ac.get("/settings/ai")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    body = response.json()
    assert body["configured"] is True
    assert body["model"] == "DeepSeek-R1"
    assert body["source"] == "saved"
    assert "sk-secret" not in response.text


@pytest.mark.asyncio
async def test_ai_connection_test_without_key():
    use_client(RecommendationClient(AIClientConfig(api_key=None)))
    try:
        async with _http() as ac:
            response = await ac.post("/settings/ai/test")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["success"] is False


def test_recent_strategies_default_limit_comes_from_config():
    parameters = app.openapi()["paths"]["/recommendations"]["get"]["parameters"]
    limit = next(p for p in parameters if p["name"] == "limit")
    assert limit["schema"]["default"] == api_config.recent_strategies_limit


@pytest.mark.asyncio
async def test_save_ai_settings(stores):
    async with _http() as ac:
        missing_key = await ac.put("/settings/ai", json={"model": "DeepSeek-R1"})
        saved = await ac.put(
            "/settings/ai",
            json={"api_key": "sk-new", "model": "DeepSeek-Coder"},
            headers={"X-User": "admin"},
        )
        model_only = await ac.put("/settings/ai", json={"model": "DeepSeek-R1"})
        current = await ac.get("/settings/ai")

    assert missing_key.status_code == 400
    assert saved.status_code == 200
    assert saved.json()["model"] == "DeepSeek-Coder"
    assert saved.json()["updated_by"] == "admin"
    assert "sk-new" not in saved.text

    assert model_only.status_code == 200
    assert current.json()["configured"] is True
    assert current.json()["model"] == "DeepSeek-R1"
    assert current.json()["source"] == "saved"

    stored = await app.dependency_overrides[deps.get_ai_settings_store]().get()
    assert stored.api_key == "sk-new"


@pytest.mark.asyncio
async def test_saved_settings_override_environment():
    saved = StoredAISettings(api_key="sk-saved", model=AIModel.CODER)

    config = await deps.get_ai_config(InMemoryAISettingsStore(saved))
    fallback = await deps.get_ai_config(InMemoryAISettingsStore())

    assert config.api_key == "sk-saved"
    assert config.model is AIModel.CODER
    assert fallback.api_key == api_config.ai_api_key
    assert fallback.model.value == api_config.ai_model


@pytest.mark.asyncio
async def test_ai_connection_test_with_candidate_key():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "连接成功"}}]})

    use_client(RecommendationClient(AIClientConfig(api_key=None), transport=httpx.MockTransport(handler)))
    try:
        async with _http() as ac:
            response = await ac.post(
                "/settings/ai/test", json={"api_key": "sk-candidate", "model": "DeepSeek-R1"}
            )
    finally:
        app.dependency_overrides.clear()

    assert response.json() == {"success": True, "message": "Connection succeeded", "model": "DeepSeek-R1"}
    assert seen[0].headers["Authorization"] == "Bearer sk-candidate"


@pytest.mark.asyncio
async def test_weight_template_lifecycle(stores):
    async with _http() as ac:
        created = await ac.post(
            "/weight-templates",
            json={
                "name": "旺季收益优先",
                "weights": {"future_booking_weight": 9, "daily_occupancy_weight": 2},
            },
            headers={"X-User": "admin"},
        )
        template_id = created.json()["id"]
        unchanged = await ac.get("/weights")

        applied = await ac.post(f"/weight-templates/{template_id}/apply")
        listed = await ac.get("/weight-templates")
        deleted = await ac.delete(f"/weight-templates/{template_id}")
        applied_again = await ac.post(f"/weight-templates/{template_id}/apply")

    assert created.status_code == 201
    assert created.json()["added_by"] == "admin"
    assert {w["key"]: w["value"] for w in unchanged.json()}["future_booking_weight"] == 7

    assert applied.status_code == 200
    assert {w["key"]: w["value"] for w in applied.json()} == {
        "daily_occupancy_weight": 2,
        "future_booking_weight": 9,
    }
    assert [t["id"] for t in listed.json()] == [template_id]
    assert deleted.status_code == 204
    assert applied_again.status_code == 404


@pytest.mark.asyncio
async def test_weight_template_validation(stores):
    async with _http() as ac:
        unknown_key = await ac.post(
            "/weight-templates", json={"name": "x", "weights": {"nope": 3}}
        )
        out_of_range = await ac.post(
            "/weight-templates", json={"name": "x", "weights": {"future_booking_weight": 11}}
        )
        snapshot = await ac.post(
            "/weight-templates", json={"name": "当前配置", "apply_now": True}
        )
        applied_now = await ac.post(
            "/weight-templates",
            json={"name": "流量优先", "weights": {"visibility_optimization_weight": 10}, "apply_now": True},
        )
        current = await ac.get("/weights")

    assert unknown_key.status_code == 400
    assert out_of_range.status_code == 400
    assert snapshot.status_code == 201
    assert snapshot.json()["weights"]["visibility_optimization_weight"] == 8
    assert len(snapshot.json()["weights"]) == 5
    assert applied_now.status_code == 201
    assert {w["key"]: w["value"] for w in current.json()}["visibility_optimization_weight"] == 10


@pytest.mark.asyncio
async def test_weight_template_apply_is_all_or_nothing(stores):
    templates = app.dependency_overrides[deps.get_template_store]()
    stale = await templates.create(
        name="旧模板",
        description="",
        weights={"future_booking_weight": 1, "removed_weight": 3},
        added_by="admin",
    )

    async with _http() as ac:
        response = await ac.post(f"/weight-templates/{stale.id}/apply")
        current = await ac.get("/weights")

    assert response.status_code == 400
    assert {w["key"]: w["value"] for w in current.json()}["future_booking_weight"] == 7


@pytest.mark.asyncio
async def test_weight_template_from_strategy(stores, model_reply):
    use_client(FakeClient(reply=model_reply))

    async with _http() as ac:
        generated = await ac.post("/recommendations/generate")
        strategy = generated.json()[1]
        created = await ac.post(
            "/weight-templates/from-strategy", json={"strategy_id": strategy["id"]}
        )
        missing = await ac.post("/weight-templates/from-strategy", json={"strategy_id": 999})

    assert created.status_code == 201
    assert created.json()["name"] == strategy["name"]
    assert created.json()["strategy_id"] == strategy["id"]
    assert created.json()["weights"]["future_booking_weight"] == 7
    assert missing.status_code == 404

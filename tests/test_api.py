"""
Tests for the daily balance HTTP routes.
"""

import pytest
from fastapi.testclient import TestClient

from daily_balance.core.config import Settings
from daily_balance.main import create_app
from daily_balance.providers.memory import InMemoryBalanceStore

DAY = "2025-03-12"
ACTOR = {"X-Actor-Id": "7"}


@pytest.fixture
def api_settings() -> Settings:
    return Settings(
        _env_file=None,
        balance_store="memory",
        autosave_delay_ms=60_000,
        timezone="UTC",
        default_actor_id=None,
    )


@pytest.fixture
def memory_store() -> InMemoryBalanceStore:
    return InMemoryBalanceStore()


@pytest.fixture
def client(api_settings, memory_store):
    with TestClient(create_app(api_settings, store=memory_store)) as test_client:
        yield test_client


def select_day(client, headers=ACTOR):
    response = client.post("/daily-balance/select-date", json={"date": DAY}, headers=headers)
    assert response.status_code == 200
    return response.json()


class TestBalanceRoutes:
    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_state_has_full_week(self, client):
        state = select_day(client)

        assert state["selected_date"] == DAY
        assert state["week_start"] == "2025-03-10"
        assert len(state["week"]) == 7
        assert state["status"] == "empty"
        assert state["is_dirty"] is False

    def test_edit_save_and_notify(self, client, memory_store):
        select_day(client)

        patched = client.patch(
            "/daily-balance/fields", json={"field": "card", "value": 1500}, headers=ACTOR
        )
        assert patched.status_code == 200
        assert patched.json()["is_dirty"] is True
        assert patched.json()["summary"]["total_by_method"] == 1500

        saved = client.post("/daily-balance/save", headers=ACTOR)
        body = saved.json()
        assert saved.status_code == 200
        assert body["saved"] is True
        assert body["entry"]["balance"]["card"] == 1500
        assert body["state"]["is_dirty"] is False
        assert memory_store.calls["create"] == 1

        notifications = client.get("/daily-balance/notifications", headers=ACTOR).json()
        assert [n["message"] for n in notifications] == ["Balance saved"]
        assert client.get("/daily-balance/notifications", headers=ACTOR).json() == []

    def test_save_with_nothing_to_save(self, client, memory_store):
        select_day(client)

        body = client.post("/daily-balance/save", headers=ACTOR).json()

        assert body["saved"] is False
        assert body["entry"] is None
        assert memory_store.calls["create"] == 0

    def test_invalid_value_is_rejected(self, client):
        select_day(client)

        response = client.patch(
            "/daily-balance/fields", json={"field": "cash", "value": -5}, headers=ACTOR
        )

        assert response.status_code == 422
        assert response.json()["status"] == "error"

    def test_unknown_field_is_rejected(self, client):
        response = client.patch(
            "/daily-balance/fields", json={"field": "tips", "value": 5}, headers=ACTOR
        )

        assert response.status_code == 422

    def test_finalize_unbalanced_day(self, client):
        select_day(client)
        client.patch("/daily-balance/fields", json={"field": "card", "value": 100}, headers=ACTOR)

        response = client.post("/daily-balance/finalize", headers=ACTOR)

        assert response.status_code == 422
        assert response.json()["message"] == "The balance does not add up"

    def test_finalize_balanced_day(self, client):
        select_day(client)
        client.patch("/daily-balance/fields", json={"field": "card", "value": 100}, headers=ACTOR)
        client.patch(
            "/daily-balance/fields", json={"field": "consultations", "value": 100}, headers=ACTOR
        )

        response = client.post("/daily-balance/finalize", headers=ACTOR)

        assert response.status_code == 200
        assert response.json()["state"]["status"] == "balanced"
        messages = [n["message"] for n in client.get("/daily-balance/notifications", headers=ACTOR).json()]
        assert messages == ["Day finalized"]

    def test_save_without_actor_is_unauthorized(self, client, memory_store):
        select_day(client, headers={})
        client.patch("/daily-balance/fields", json={"field": "card", "value": 100})

        response = client.post("/daily-balance/save")

        assert response.status_code == 401
        assert memory_store.calls["create"] == 0

    def test_forms_are_isolated_per_actor(self, client):
        select_day(client)
        client.patch("/daily-balance/fields", json={"field": "card", "value": 100}, headers=ACTOR)

        other = client.post(
            "/daily-balance/select-date", json={"date": DAY}, headers={"X-Actor-Id": "8"}
        ).json()

        assert other["is_dirty"] is False
        assert other["values"]["card"] == 0

    def test_week_navigation(self, client):
        select_day(client)

        forward = client.post("/daily-balance/next-week", headers=ACTOR).json()
        back = client.post("/daily-balance/prev-week", headers=ACTOR).json()

        assert forward["selected_date"] == "2025-03-19"
        assert back["selected_date"] == DAY

    def test_history_after_two_saves(self, client):
        select_day(client)
        client.patch("/daily-balance/fields", json={"field": "card", "value": 100}, headers=ACTOR)
        client.post("/daily-balance/save", headers=ACTOR)
        client.patch("/daily-balance/fields", json={"field": "card", "value": 120}, headers=ACTOR)
        client.post("/daily-balance/save", headers=ACTOR)

        history = client.get("/daily-balance/history", headers=ACTOR).json()

        assert len(history) == 1
        assert history[0]["snapshot"]["balance"]["card"] == 100

"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from nutrient_resolver.api.app import create_app
from nutrient_resolver.containers import AppContainer
from nutrient_resolver.domain.goals import Goal
from tests.conftest import (
    USER_ID,
    FakeBrandedStore,
    FakePrivateStore,
    InMemoryGoalRepository,
)

HEADERS = {"X-User-Id": USER_ID}


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_normalize_nutrient_name(container: AppContainer) -> None:
    response = _client(container).get(
        "/nutrients/normalize", params={"name": "Vitamin C, total ascorbic acid"}
    )

    assert response.json()["key"] == "vitamin_c"


def test_nutrient_hierarchy(container: AppContainer) -> None:
    body = _client(container).get("/nutrients/hierarchy").json()

    assert body["roots"][0] == "energy"
    assert "carbohydrate" in body["roots"]
    assert "fiber" not in body["roots"]
    assert body["children"]["fiber"] == ["fiber_soluble", "fiber_insoluble"]
    assert "fiber" in body["children"]["carbohydrate"]
    assert "vitamin_c" in body["categories"]["vitamin"]
    assert "carbohydrate" in body["categories"]["macro"]


def test_search_puts_private_foods_first(container: AppContainer) -> None:
    response = _client(container).get(
        "/foods/search", params={"q": "apple"}, headers=HEADERS
    )

    payload = response.json()
    assert response.status_code == 200
    assert payload["failed_sources"] == []
    assert payload["results"][0]["code"] == "custom-1"
    assert payload["results"][0]["source"] == "UserPrivate"
    assert {result["code"] for result in payload["results"]} == {
        "custom-1",
        "3017620422003",
        "0001",
    }


def test_search_reports_failed_sources(
    container: AppContainer, branded_store: FakeBrandedStore
) -> None:
    branded_store.error = RuntimeError("boom")

    response = _client(container).get("/foods/search", params={"q": "apple"})

    assert response.json() == {"results": [], "failed_sources": ["branded"]}


def test_foundation_search_reads_curated_store(container: AppContainer) -> None:
    response = _client(container).get(
        "/foods/search", params={"q": "apple", "data_source": "foundation"}
    )

    results = response.json()["results"]
    assert [result["code"] for result in results] == ["2346404"]
    assert results[0]["source"] == "Curated"


def test_get_food_scaled(container: AppContainer) -> None:
    response = _client(container).get(
        "/foods/3017620422003", params={"quantity": 50}
    )

    payload = response.json()
    assert response.status_code == 200
    assert payload["quantity_g"] == 50
    assert payload["values"]["energy"] == 269.5
    assert payload["values"]["protein"] == 3.15
    assert payload["unconverted_units"] == {}


def test_get_missing_food_returns_404(container: AppContainer) -> None:
    response = _client(container).get("/foods/does-not-exist")

    assert response.status_code == 404


def test_goals_require_user(container: AppContainer) -> None:
    response = _client(container).get("/goals")

    assert response.status_code == 401


def test_update_goal_propagates_to_parent(
    container: AppContainer, goal_repository: InMemoryGoalRepository
) -> None:
    response = _client(container).put(
        "/goals/fiber", json={"target": 320}, headers=HEADERS
    )

    payload = response.json()
    assert response.status_code == 200
    assert payload["goals"]["fiber"] == {"target": 320}
    assert payload["goals"]["carbohydrate"] == {"target": 320}
    assert payload["notices"] == [
        {
            "parent": "carbohydrate",
            "child": "fiber",
            "new_target": 320,
            "message": "Updated carbohydrate target to match fiber",
        }
    ]
    assert goal_repository.saves == 1


def test_update_goal_rejects_invalid_range(
    container: AppContainer, goal_repository: InMemoryGoalRepository
) -> None:
    goal_repository.goals[USER_ID] = {"carbohydrate": Goal(target=200)}

    response = _client(container).put(
        "/goals/fiber", json={"target": 250}, headers=HEADERS
    )

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "key": "fiber",
        "message": "Cannot exceed carbohydrate target (200g).",
    }
    assert goal_repository.saves == 0


def test_update_unknown_goal_returns_404(container: AppContainer) -> None:
    response = _client(container).put(
        "/goals/unobtainium", json={"target": 1}, headers=HEADERS
    )

    assert response.status_code == 404


def test_targets_use_clinical_values(container: AppContainer) -> None:
    client = _client(container)
    client.put("/goals/protein", json={"target": 120}, headers=HEADERS)

    targets = client.get("/goals/targets", headers=HEADERS).json()["targets"]

    assert targets["protein"] == 120
    assert targets["fat"] == 70
    assert targets["energy"] == 2000


def _editor_state() -> dict[str, object]:
    return {
        "energy": 2000,
        "carbs": {"grams": 250, "pct": 50},
        "protein": {"grams": 100, "pct": 20},
        "fat": {"grams": 67, "pct": 30},
    }


def test_apply_macro_targets(container: AppContainer) -> None:
    response = _client(container).put(
        "/goals/macros", json=_editor_state(), headers=HEADERS
    )

    goals = response.json()["goals"]
    assert goals["protein"] == {"target": 100}
    assert goals["fat"] == {"target": 67}


def test_rebalance_macros(container: AppContainer) -> None:
    response = _client(container).post(
        "/macros/rebalance",
        json={
            "energy": 2000,
            "carbs": {"grams": 250, "pct": 60},
            "protein": {"grams": 100, "pct": 20},
            "fat": {"grams": 67, "pct": 30},
            "changed_field": "carbs",
        },
    )

    payload = response.json()
    assert payload["carbs"]["pct"] == 60
    assert payload["fat"]["pct"] == 24
    assert payload["protein"]["pct"] == 16


def test_rebalance_unknown_field_is_rejected(container: AppContainer) -> None:
    response = _client(container).post(
        "/macros/rebalance",
        json={
            "energy": 2000,
            "carbs": {"grams": 250, "pct": 50},
            "protein": {"grams": 100, "pct": 20},
            "fat": {"grams": 67, "pct": 30},
            "changed_field": "alcohol",
        },
    )

    assert response.status_code == 422


def test_targets_by_source_name(container: AppContainer) -> None:
    client = _client(container)
    client.put("/goals/fat", json={"target": 80, "max": 95}, headers=HEADERS)

    response = client.get(
        "/goals/targets",
        params=[("name", "Total lipid (fat)"), ("name", "Proteins"), ("name", "zinc")],
        headers=HEADERS,
    )

    payload = response.json()
    assert payload["targets"] == {
        "Total lipid (fat)": 80,
        "Proteins": 100,
        "zinc": None,
    }
    assert payload["goals"]["Total lipid (fat)"] == {"target": 80, "max": 95}
    assert payload["goals"]["zinc"] == {}


def test_macro_state_is_seeded_from_baselines(container: AppContainer) -> None:
    response = _client(container).get("/macros/state", headers=HEADERS)

    payload = response.json()
    assert payload["energy"] == 2000
    assert payload["carbs"] == {"grams": 300, "pct": 60}
    assert payload["protein"] == {"grams": 100, "pct": 20}
    assert payload["fat"] == {"grams": 70, "pct": 32}


def test_macro_edit_energy_keeps_percentages(container: AppContainer) -> None:
    response = _client(container).post(
        "/macros/edit", json={**_editor_state(), "field": "energy", "value": 2500}
    )

    payload = response.json()
    assert payload["energy"] == 2500
    assert payload["protein"] == {"grams": 125, "pct": 20}


def test_macro_edit_grams_updates_percentages(container: AppContainer) -> None:
    response = _client(container).post(
        "/macros/edit",
        json={**_editor_state(), "field": "protein", "value": 150, "unit": "g"},
    )

    payload = response.json()
    assert payload["protein"] == {"grams": 150, "pct": 30}
    assert payload["carbs"]["pct"] == 50


def test_macro_edit_percentage_rebalances(container: AppContainer) -> None:
    response = _client(container).post(
        "/macros/edit", json={**_editor_state(), "field": "carbs", "value": 60}
    )

    payload = response.json()
    assert payload["carbs"]["pct"] == 60
    assert payload["fat"]["pct"] == 24
    assert payload["protein"]["pct"] == 16


def test_macro_edit_unknown_field_is_rejected(container: AppContainer) -> None:
    response = _client(container).post(
        "/macros/edit",
        json={**_editor_state(), "field": "alcohol", "value": 10, "unit": "g"},
    )

    assert response.status_code == 422


def test_food_lookup_survives_private_store_outage(
    container: AppContainer, private_store: FakePrivateStore
) -> None:
    private_store.error = RuntimeError("supabase down")

    response = _client(container).get("/foods/3017620422003", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["name"] == "Hazelnut spread"

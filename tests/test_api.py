"""Tests for the HTTP API."""

import asyncio
import base64

import httpx
from fastapi.testclient import TestClient

from allergen_scanner.api.app import create_app
from tests.conftest import PNG_BYTES, FakeInferenceClient, classification_payload

PHOTO = {"photoDataUri": "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()}


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_food_scan_uses_session_profile(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/scans/food", json=PHOTO)

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "VERDICT"
    assert data["classification"]["isFood"] is True
    assert data["verdict"] == {
        "allergenDetected": True,
        "alert": "MODERATE",
        "detectedAllergens": ["Milk (Dairy)"],
    }


def test_not_food_scan_is_distinct_from_failure(
    container, inference_client: FakeInferenceClient
) -> None:
    inference_client.payloads["classify_food"] = classification_payload(
        is_food=False, classification="Cat", confidence=0.99
    )
    client = TestClient(create_app(container))

    data = client.post("/scans/food", json=PHOTO).json()

    assert data["outcome"] == "NOT_FOOD"
    assert data["verdict"] is None
    assert data["error"] is None
    assert data["classification"]["classification"] == "Not a food item"


def test_failed_scan_reports_error(
    container, inference_client: FakeInferenceClient
) -> None:
    inference_client.failures["classify_food"] = RuntimeError("provider down")
    client = TestClient(create_app(container))

    data = client.post("/scans/food", json=PHOTO).json()

    assert data["outcome"] == "FAILED"
    assert data["classification"] is None
    assert data["error"].startswith("Analysis failed")


def test_label_scan(container) -> None:
    client = TestClient(create_app(container))

    data = client.post("/scans/label", json=PHOTO).json()

    assert data["outcome"] == "VERDICT"
    assert data["extractedText"] == "Sugar, peanuts, salt"
    assert data["verdict"]["alert"] == "HIGH"


def test_invalid_photo_is_rejected(container, inference_client) -> None:
    client = TestClient(create_app(container))

    bad_uri = client.post("/scans/food", json={"photoDataUri": "not-a-data-uri"})
    empty = client.post("/scans/food", json={"photoDataUri": "data:image/png;base64,"})

    assert bad_uri.status_code == 422
    assert empty.status_code == 422
    assert inference_client.calls == []


def test_allergen_check_with_explicit_allergens(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/allergens/check",
        json={
            "ingredients": "Wheat flour, cheese",
            "allergens": ["Wheat (Gluten)", "Milk (Dairy)"],
        },
    )

    assert response.status_code == 200
    assert response.json()["alert"] == "HIGH"
    assert set(response.json()["detectedAllergens"]) == {
        "Wheat (Gluten)",
        "Milk (Dairy)",
    }


def test_allergen_check_without_allergens_is_rejected(container) -> None:
    client = TestClient(create_app(container))
    headers = {"X-Session-Id": "empty"}
    client.put("/profile", json={"allergens": []}, headers=headers)

    response = client.post(
        "/allergens/check", json={"ingredients": "Peanuts"}, headers=headers
    )

    assert response.status_code == 422


def test_profile_update_and_custom_allergen(container) -> None:
    client = TestClient(create_app(container))
    headers = {"X-Session-Id": "user-7"}

    put = client.put(
        "/profile",
        json={"allergens": ["Soy", "Soy"], "cuisinePreference": "Ghanaian"},
        headers=headers,
    )
    added = client.post("/profile/allergens", json={"allergen": "Kiwi"}, headers=headers)
    other = client.get("/profile", headers={"X-Session-Id": "someone-else"})

    assert put.json()["allergens"] == ["Soy"]
    assert added.json() == {
        "allergens": ["Soy", "Kiwi"],
        "dietaryPreferences": None,
        "cuisinePreference": "Ghanaian",
        "nutritionGoals": None,
    }
    assert other.json()["allergens"] == ["Peanuts", "Tree Nuts", "Milk (Dairy)"]


def test_food_lookup_endpoint(container) -> None:
    client = TestClient(create_app(container))

    found = client.get("/foods/pad thai")
    missing = client.get("/foods/kenkey")

    assert found.status_code == 200
    assert found.json()["region"] == "Thai"
    assert missing.status_code == 404


def test_common_allergens(container) -> None:
    client = TestClient(create_app(container))

    data = client.get("/allergens/common").json()

    assert len(data["allergens"]) == 12


def test_recommendations(container) -> None:
    client = TestClient(create_app(container))

    data = client.post("/recommendations").json()

    assert data["recommendations"][0]["name"] == "Jollof Rice"
    assert data["overallReasoning"]


def test_recommendation_failure_returns_bad_gateway(
    container, inference_client: FakeInferenceClient
) -> None:
    inference_client.failures["recommend_safe_foods"] = RuntimeError("down")
    client = TestClient(create_app(container))

    response = client.post("/recommendations")

    assert response.status_code == 502


def test_cancel_without_active_scan(container) -> None:
    client = TestClient(create_app(container))

    response = client.delete("/scans/current")

    assert response.json() == {"cancelled": False}


def test_profile_changes_require_session_header(container) -> None:
    client = TestClient(create_app(container))

    put = client.put("/profile", json={"allergens": ["Soy"]})
    added = client.post("/profile/allergens", json={"allergen": "Kiwi"})

    assert put.status_code == 422
    assert added.status_code == 422


def test_anonymous_scans_do_not_supersede_each_other(
    container, inference_client: FakeInferenceClient
) -> None:
    inference_client.delay_seconds = 0.02
    app = create_app(container)

    async def scan_concurrently():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(
            transport=transport, base_url="http://testserver"
        ) as client:
            return await asyncio.gather(
                client.post("/scans/label", json=PHOTO),
                client.post("/scans/label", json=PHOTO),
            )

    responses = asyncio.run(scan_concurrently())

    assert [response.json()["outcome"] for response in responses] == [
        "VERDICT",
        "VERDICT",
    ]

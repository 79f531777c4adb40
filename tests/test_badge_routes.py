from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.main import create_app


TODAY = date(2024, 6, 15)


@pytest.fixture
def fetch_calls(monkeypatch) -> list[dict[str, str]]:
    calls: list[dict[str, str]] = []

    def fake_fetch_contributions(username: str, api_url: str, cache_token: str):
        calls.append({"username": username, "cache_token": cache_token})
        return [
            {"date": "2024-06-10", "count": 3, "intensity": "1"},
            {"date": "2024-03-15", "count": 5, "intensity": "2"},
        ]

    monkeypatch.setattr(
        "backend.services.badge_service.fetch_contributions", fake_fetch_contributions
    )
    monkeypatch.setattr(
        "backend.api.routes.badge.current_date", lambda utc_offset_minutes: TODAY
    )
    return calls


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_read_root_returns_greeting(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Contribution badge service"}


def test_health_live_returns_ok(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_badge_returns_svg_with_total(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/octocat")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert "8 contributions in the last year by @octocat on GitHub" in response.text
    assert fetch_calls == [{"username": "octocat", "cache_token": "20240615"}]


def test_badge_passes_explicit_cache_token(client: TestClient, fetch_calls) -> None:
    client.get("/badge/octocat?v=abc123")

    assert fetch_calls[0]["cache_token"] == "abc123"


def test_badge_link_encodes_query_options(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/octocat?weeks=false&radius=0&scheme=dark")

    assert response.status_code == 200
    assert 'data-color-mode="dark"' in response.text
    assert "/badge/octocat?radius=0&amp;weeks=false&amp;scheme=dark" in response.text
    assert ">Mon<" not in response.text


def test_badge_hides_footer(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/octocat?footer=false")

    assert response.status_code == 200
    assert "contributions in the last year" not in response.text


def test_badge_rejects_invalid_options(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/octocat?margin=wide")

    assert response.status_code == 422
    assert response.json() == {"detail": "invalid rendering options"}
    assert fetch_calls == []


def test_badge_rejects_invalid_username(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/not_a_user")

    assert response.status_code == 422


def test_badge_returns_404_for_unknown_user(client: TestClient, monkeypatch) -> None:
    def fake_fetch_contributions(username: str, api_url: str, cache_token: str):
        request = httpx.Request("GET", f"{api_url}/api/v1/{username}")
        response = httpx.Response(404, request=request)
        raise httpx.HTTPStatusError("not found", request=request, response=response)

    monkeypatch.setattr(
        "backend.services.badge_service.fetch_contributions", fake_fetch_contributions
    )

    response = client.get("/badge/ghost")

    assert response.status_code == 404
    assert response.json() == {"detail": "user not found"}


def test_badge_returns_502_when_upstream_fails(client: TestClient, monkeypatch) -> None:
    def fake_fetch_contributions(username: str, api_url: str, cache_token: str):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(
        "backend.services.badge_service.fetch_contributions", fake_fetch_contributions
    )

    response = client.get("/badge/octocat")

    assert response.status_code == 502
    assert response.json() == {"detail": "Contributions API request failed"}


def test_grid_endpoint_returns_weeks(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/octocat/grid?tz=120")

    body = response.json()
    assert response.status_code == 200
    assert body["username"] == "octocat"
    assert body["from"] == "2023-06-11"
    assert body["to"] == "2024-06-15"
    assert body["total"] == 8
    assert len(body["weeks"]) == 53
    assert all(len(week["days"]) == 7 for week in body["weeks"])
    assert body["weeks"][0]["week_start"] == "2023-06-11"
    assert body["month_labels"][0] == {"column_index": 0, "text": "Jun"}


def test_grid_endpoint_rejects_out_of_range_offset(client: TestClient, fetch_calls) -> None:
    response = client.get("/badge/octocat/grid?tz=5000")

    assert response.status_code == 422

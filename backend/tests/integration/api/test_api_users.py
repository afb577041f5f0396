"""HTTP tests for ``GET /api/v1/users/me`` and the health probe."""

from __future__ import annotations

from datetime import timedelta

import pytest


def _guest_token(client) -> str:
    return client.post("/api/v1/auth/guest").get_json()["data"]["access_token"]


def test_me_returns_current_state(client, session):
    token = _guest_token(client)

    resp = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert set(data) == {"id", "email", "display_name", "is_guest", "created_at", "last_active_at"}
    assert data["is_guest"] is True


def test_me_reflects_upgrade_with_old_token(client, session):
    """The ``is_guest`` claim is a hint; the account is read fresh."""
    token = _guest_token(client)
    client.post(
        "/api/v1/auth/register",
        json={"email": "later@example.com", "password": "longenough"},
        headers={"Authorization": f"Bearer {token}"},
    )

    resp = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.get_json()["data"]["is_guest"] is False


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Bearer garbage"}, {"Authorization": "Basic abc"}],
)
def test_me_unauthorized(client, session, headers):
    resp = client.get("/api/v1/users/me", headers=headers)

    assert resp.status_code == 401
    problem = resp.get_json()
    assert problem["code"] == "unauthorized"
    assert problem["instance"] == "/api/v1/users/me"


def test_me_with_expired_token(client, session, freeze_time):
    with freeze_time("2024-01-01 12:00:00") as frozen:
        token = _guest_token(client)
        frozen.tick(timedelta(minutes=16))
        resp = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.get_json()["detail"] == "Access token expired"


def test_health(client, session):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    assert resp.get_json()["db"] == "ok"
    assert resp.get_json()["refresh_store"] == "sql"


def test_unknown_route_is_problem(client, session):
    resp = client.get("/api/v1/nope")

    assert resp.status_code == 404
    assert resp.mimetype == "application/problem+json"

"""HTTP tests for the session endpoints under ``/api/v1/auth``."""

from __future__ import annotations

from datetime import timedelta

import pytest
from settleup.models.account import Account
from tests.factories.account import DEFAULT_PASSWORD, RegisteredAccountFactory

AUTH = "/api/v1/auth"
COOKIE = "refresh_token"


def _access(resp) -> str:
    return resp.get_json()["data"]["access_token"]


def _refresh_cookie(client) -> str | None:
    cookie = client.get_cookie(COOKIE, path=AUTH)
    return cookie.value if cookie is not None else None


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _me(client, token: str):
    return client.get("/api/v1/users/me", headers=_bearer(token))


class TestGuest:
    def test_guest_session(self, client, session):
        resp = client.post(f"{AUTH}/guest")

        assert resp.status_code == 201
        body = resp.get_json()["data"]
        assert body["token_type"] == "bearer"
        assert "refresh_token" not in body
        assert _refresh_cookie(client)
        assert session.query(Account).count() == 1

        me = _me(client, body["access_token"]).get_json()["data"]
        assert me["is_guest"] is True
        assert me["email"] is None

    def test_refresh_cookie_attributes(self, client, session):
        resp = client.post(f"{AUTH}/guest")

        header = next(h for h in resp.headers.getlist("Set-Cookie") if h.startswith(f"{COOKIE}="))
        assert "HttpOnly" in header
        assert "SameSite=Lax" in header
        assert f"Path={AUTH}" in header
        assert "Max-Age=604800" in header
        assert "Secure" not in header


class TestRegister:
    def test_register_new_account(self, client, session):
        resp = client.post(
            f"{AUTH}/register",
            json={"email": "Alice@Example.com", "password": "longenough", "display_name": "Alice"},
        )

        assert resp.status_code == 201
        assert _refresh_cookie(client)
        me = _me(client, _access(resp)).get_json()["data"]
        assert me["email"] == "alice@example.com"
        assert me["display_name"] == "Alice"
        assert me["is_guest"] is False

    def test_guest_upgrade_keeps_id(self, client, session):
        guest_token = _access(client.post(f"{AUTH}/guest"))
        guest_id = _me(client, guest_token).get_json()["data"]["id"]
        guest_refresh = _refresh_cookie(client)

        resp = client.post(
            f"{AUTH}/register",
            json={"email": "up@example.com", "password": "longenough"},
            headers=_bearer(guest_token),
        )

        assert resp.status_code == 201
        me = _me(client, _access(resp)).get_json()["data"]
        assert me["id"] == guest_id
        assert me["is_guest"] is False
        assert session.query(Account).count() == 1

        # Sessions minted while still a guest are gone
        client.set_cookie(COOKIE, guest_refresh, path=AUTH)
        assert client.post(f"{AUTH}/refresh").status_code == 401

    def test_stale_guest_token_cannot_upgrade_twice(self, client, session):
        guest_token = _access(client.post(f"{AUTH}/guest"))
        client.post(
            f"{AUTH}/register",
            json={"email": "first@example.com", "password": "longenough"},
            headers=_bearer(guest_token),
        )

        resp = client.post(
            f"{AUTH}/register",
            json={"email": "second@example.com", "password": "longenough"},
            headers=_bearer(guest_token),
        )

        assert resp.status_code == 400
        problem = resp.get_json()
        assert problem["code"] == "bad_request"
        assert problem["detail"] == "User is not a guest"

    def test_invalid_bearer_is_ignored(self, client, session):
        resp = client.post(
            f"{AUTH}/register",
            json={"email": "plain@example.com", "password": "longenough"},
            headers=_bearer("garbage"),
        )
        assert resp.status_code == 201

    def test_duplicate_email_conflict(self, client, session):
        RegisteredAccountFactory(email="taken@example.com")

        resp = client.post(
            f"{AUTH}/register", json={"email": "TAKEN@example.com", "password": "longenough"}
        )

        assert resp.status_code == 409
        assert resp.mimetype == "application/problem+json"
        assert resp.get_json()["code"] == "conflict"
        assert session.query(Account).count() == 1

    @pytest.mark.parametrize(
        ("payload", "field"),
        [
            ({"email": "ok@example.com", "password": "short"}, "password"),
            ({"email": "not-an-email", "password": "longenough"}, "email"),
            ({"password": "longenough"}, "email"),
            (
                {"email": "ok@example.com", "password": "longenough", "display_name": "x" * 51},
                "display_name",
            ),
        ],
    )
    def test_validation_errors(self, client, session, payload, field):
        resp = client.post(f"{AUTH}/register", json=payload)

        assert resp.status_code == 422
        problem = resp.get_json()
        assert problem["code"] == "validation_error"
        assert field in problem["details"]["errors"]
        assert problem["request_id"]

    @pytest.mark.parametrize(("min_length", "status"), [(4, 201), (8, 422)])
    def test_password_floor_follows_config(
        self, app, client, session, monkeypatch, min_length, status
    ):
        monkeypatch.setitem(app.config, "PASSWORD_MIN_LENGTH", min_length)

        resp = client.post(
            f"{AUTH}/register", json={"email": "floor@example.com", "password": "six666"}
        )

        assert resp.status_code == status


class TestLogin:
    def test_login(self, client, session):
        RegisteredAccountFactory(email="bob@example.com")

        resp = client.post(
            f"{AUTH}/login", json={"email": "bob@example.com", "password": DEFAULT_PASSWORD}
        )

        assert resp.status_code == 200
        assert _refresh_cookie(client)
        assert _me(client, _access(resp)).get_json()["data"]["email"] == "bob@example.com"

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "bob@example.com", "password": "wrong-password"},
            {"email": "nobody@example.com", "password": DEFAULT_PASSWORD},
        ],
    )
    def test_bad_credentials(self, client, session, payload):
        RegisteredAccountFactory(email="bob@example.com")

        resp = client.post(f"{AUTH}/login", json=payload)

        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "Invalid email or password"
        assert _refresh_cookie(client) is None


class TestRefresh:
    def test_rotation_is_single_use(self, client, session):
        client.post(f"{AUTH}/guest")
        r1 = _refresh_cookie(client)

        resp = client.post(f"{AUTH}/refresh")
        assert resp.status_code == 200
        r2 = _refresh_cookie(client)
        assert r2 and r2 != r1

        client.set_cookie(COOKIE, r1, path=AUTH)
        reused = client.post(f"{AUTH}/refresh")
        assert reused.status_code == 401
        assert reused.get_json()["code"] == "unauthorized"

        client.set_cookie(COOKIE, r2, path=AUTH)
        assert client.post(f"{AUTH}/refresh").status_code == 200

    def test_missing_cookie(self, client, session):
        resp = client.post(f"{AUTH}/refresh")
        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "Refresh token missing"

    def test_expired_cookie(self, client, session, freeze_time):
        with freeze_time("2024-01-01 12:00:00") as frozen:
            client.post(f"{AUTH}/guest")
            raw = _refresh_cookie(client)
            frozen.tick(timedelta(days=8))
            # Present the stale value even if the browser would have dropped it
            client.set_cookie(COOKIE, raw, path=AUTH)
            resp = client.post(f"{AUTH}/refresh")

        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "Refresh token expired"


class TestLogout:
    def test_logout_clears_cookie_and_session(self, client, session):
        token = _access(client.post(f"{AUTH}/guest"))
        r1 = _refresh_cookie(client)

        resp = client.post(f"{AUTH}/logout", headers=_bearer(token))

        assert resp.status_code == 200
        assert resp.get_json() == {"data": {"message": "Logged out"}}
        assert _refresh_cookie(client) is None

        client.set_cookie(COOKIE, r1, path=AUTH)
        assert client.post(f"{AUTH}/refresh").status_code == 401

    def test_logout_twice_is_fine(self, client, session):
        token = _access(client.post(f"{AUTH}/guest"))
        assert client.post(f"{AUTH}/logout", headers=_bearer(token)).status_code == 200
        assert client.post(f"{AUTH}/logout", headers=_bearer(token)).status_code == 200

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer garbage"}])
    def test_logout_requires_access_token(self, client, session, headers):
        resp = client.post(f"{AUTH}/logout", headers=headers)

        assert resp.status_code == 401
        assert resp.mimetype == "application/problem+json"

"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import verify_jwt_in_request

from settleup.core.logger import ensure_request_id
from settleup.services._shared.base import ServiceContext
from settleup.services.auth.service import SessionManager
from settleup.services.identity.dto import AccountOut

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def get_session_manager() -> SessionManager:
    """Return a session manager bound to the current app and request."""
    return SessionManager.from_app(current_app, ctx=ServiceContext(request_id=ensure_request_id()))


def bearer_token() -> str | None:
    """Return the token from an ``Authorization: Bearer`` header, if present."""
    header = request.headers.get("Authorization", "")
    if header[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def current_account() -> AccountOut:
    """Resolve the caller from the bearer token against the Identity Store.

    :raises UnauthorizedError: Rendered as ``401`` by the error handlers.
    """
    return get_session_manager().current_identity(bearer_token())


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token for an existing account."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# ------------------------------ Refresh cookie ------------------------------


def _refresh_cookie_path() -> str:
    base = current_app.config.get("API_BASE_PREFIX", "/api").rstrip("/")
    return f"{base}/v1/auth"


def read_refresh_cookie() -> str | None:
    """Return the raw refresh token sent by the browser, if any."""
    return request.cookies.get(current_app.config.get("REFRESH_COOKIE_NAME", "refresh_token"))


def set_refresh_cookie(response: Response, raw_token: str) -> Response:
    """Attach the refresh token as an HttpOnly cookie scoped to the auth routes."""
    response.set_cookie(
        current_app.config.get("REFRESH_COOKIE_NAME", "refresh_token"),
        raw_token,
        max_age=int(current_app.config.get("JWT_REFRESH_EXPIRES_IN", 604800)),
        path=_refresh_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", False)),
        httponly=True,
        samesite="Lax",
    )
    return response


def clear_refresh_cookie(response: Response) -> Response:
    """Expire the refresh cookie on the client."""
    response.delete_cookie(
        current_app.config.get("REFRESH_COOKIE_NAME", "refresh_token"),
        path=_refresh_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", False)),
        httponly=True,
        samesite="Lax",
    )
    return response


# ------------------------------ Responses -----------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""
    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]

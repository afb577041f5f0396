"""Session endpoints: guest, register, login, refresh, logout."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from settleup.api.deps import (
    bearer_token,
    clear_refresh_cookie,
    get_session_manager,
    json_response,
    read_refresh_cookie,
    require_auth,
    set_refresh_cookie,
    timing,
)
from settleup.core.errors import Unauthorized
from settleup.core.extensions import limiter
from settleup.schemas import LoginSchema, MessageSchema, RegisterSchema, TokenResponseSchema
from settleup.services.auth.dto import CredentialsIn, LogoutIn, RefreshIn, RegisterIn, TokenPairOut

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
token_schema = TokenResponseSchema()
message_schema = MessageSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _token_response(pair: TokenPairOut, *, status: int = 200):
    body = {"data": token_schema.dump({"access_token": pair.access_token})}
    return set_refresh_cookie(json_response(body, status=status), pair.refresh_token)


@bp.post("/guest")
@timing
def create_guest():
    """Start an anonymous session backed by a new guest account."""
    pair = get_session_manager().create_guest_session()
    return _token_response(pair, status=201)


@bp.post("/register")
@timing
def register():
    """Register an account; a guest bearer token upgrades that guest in place."""
    payload = register_schema.load(request.get_json(silent=True) or {})
    service = get_session_manager()
    pair = service.register(
        RegisterIn(
            email=payload["email"],
            password=payload["password"],
            display_name=payload.get("display_name"),
            guest_account_id=service.guest_account_id_from(bearer_token()),
        )
    )
    return _token_response(pair, status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue a token pair."""
    data = login_schema.load(request.get_json(silent=True) or {})
    service = get_session_manager()
    account = service.validate_credentials(
        CredentialsIn(email=data["email"], password=data["password"])
    )
    if account is None:
        raise Unauthorized("Invalid email or password")
    pair = service.login(account.id)
    return _token_response(pair)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and issue a new access token."""
    pair = get_session_manager().refresh(RefreshIn(refresh_token=read_refresh_cookie() or ""))
    return _token_response(pair)


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Forget the refresh cookie's session and clear the cookie."""
    get_session_manager().logout(LogoutIn(refresh_token=read_refresh_cookie()))
    body = {"data": message_schema.dump({"message": "Logged out"})}
    return clear_refresh_cookie(json_response(body))

"""flask-jwt-extended callbacks rendering authentication failures as problems.

By default the extension answers malformed tokens with ``422`` and a plain
JSON body. Every failure here becomes a ``401`` RFC 7807 problem instead, and
the verified identity is resolved against the Identity Store so that
``current_user`` reflects the account's present state.
"""

from __future__ import annotations

from typing import Any

from flask import Flask

from settleup.core.errors import problem_response
from settleup.core.extensions import jwt


def init_app(app: Flask) -> None:
    """Register JWT loaders on the shared :data:`jwt` manager."""

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return problem_response(401, reason or "Missing access token")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return problem_response(401, "Invalid access token")

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return problem_response(401, "Access token expired")

    @jwt.user_lookup_loader
    def _lookup_account(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        from settleup.services.identity.service import IdentityService

        return IdentityService().find_by_id(str(jwt_payload.get("sub", "")))

    @jwt.user_lookup_error_loader
    def _account_missing(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return problem_response(401, "Account not found")

# settleup/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import ExpiredSignatureError, PyJWTError

from settleup.services._shared.errors import UnauthorizedError
from settleup.services._shared.ports import AccessClaims, TokenProvider

ACCESS_TOKEN_TYPE = "access"
GUEST_CLAIM = "is_guest"


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended (HS256, ``JWT_SECRET_KEY``).

    Tokens carry ``sub`` (account id), ``is_guest``, ``type``, ``iat``,
    ``exp`` and ``jti``. Verification is purely cryptographic; no storage is
    consulted.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def create_access_token(
        self,
        *,
        account_id: str,
        is_guest: bool,
        expires_delta: timedelta,
    ) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=account_id,
                additional_claims={GUEST_CLAIM: bool(is_guest)},
                expires_delta=expires_delta,
            ),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """Return the verified payload.

        :raises UnauthorizedError: On a bad signature, expiry or malformed token.
        """
        from flask_jwt_extended import decode_token

        try:
            return cast(dict[str, Any], decode_token(token))
        except ExpiredSignatureError as exc:
            raise UnauthorizedError("Access token expired") from exc
        except (PyJWTError, JWTExtendedException) as exc:
            raise UnauthorizedError("Invalid access token") from exc

    def decode_access_token(self, token: str) -> AccessClaims:
        payload = self.decode(token)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise UnauthorizedError("Wrong token type: access token required.")
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise UnauthorizedError("Invalid token subject.")
        return AccessClaims(
            account_id=subject,
            is_guest=bool(payload.get(GUEST_CLAIM, False)),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
        )

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from settleup.services._shared.errors import UnauthorizedError


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified content of an access token.

    :ivar account_id: Account the token was minted for (``sub``).
    :ivar is_guest: Guest status at minting time. A hint only; the Identity
        Store is authoritative.
    :ivar expires_at: Absolute expiration (UTC).
    """

    account_id: str
    is_guest: bool
    expires_at: datetime


class TokenProvider(Protocol):
    """Port for minting and verifying signed access tokens."""

    def create_access_token(
        self,
        *,
        account_id: str,
        is_guest: bool,
        expires_delta: timedelta,
    ) -> str: ...

    def decode_access_token(self, token: str) -> AccessClaims:
        """
        Verify signature, expiry and token type.

        :raises UnauthorizedError: On any verification failure.
        """
        ...


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests."""

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def create_access_token(
        self,
        *,
        account_id: str,
        is_guest: bool,
        expires_delta: timedelta,
    ) -> str:
        self._seq += 1
        token = f"access.{account_id}.{self._seq}"
        self._issued[token] = {
            "sub": account_id,
            "is_guest": is_guest,
            "type": "access",
            "exp": datetime.now(UTC) + expires_delta,
        }
        return token

    def decode_access_token(self, token: str) -> AccessClaims:
        payload = self._issued.get(token)
        if payload is None or payload["type"] != "access":
            raise UnauthorizedError("Invalid access token")
        if payload["exp"] <= datetime.now(UTC):
            raise UnauthorizedError("Access token expired")
        return AccessClaims(
            account_id=payload["sub"],
            is_guest=payload["is_guest"],
            expires_at=payload["exp"],
        )

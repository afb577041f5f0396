# settleup/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration or guest upgrade.

    :param email: Login email.
    :type email: str
    :param password: Raw password (hashed before storage).
    :type password: str
    :param display_name: Optional public name.
    :type display_name: str | None
    :param guest_account_id: Guest to upgrade in place, when the caller holds one.
    :type guest_account_id: str | None
    """

    email: str
    password: str
    display_name: str | None = None
    guest_account_id: str | None = None


@dataclass(frozen=True, slots=True)
class CredentialsIn:
    """
    Input DTO for credential validation.

    :param email: Login email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Raw opaque refresh token.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Raw refresh token; empty or ``None`` is a no-op.
    :type refresh_token: str | None
    """

    refresh_token: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Signed access JWT.
    :type access_token: str
    :param refresh_token: Raw opaque refresh token (only ever returned once).
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :param max_token_attempts: Retries when a generated refresh token collides.
    :type max_token_attempts: int
    :param password_min_length: Minimum accepted password length.
    :type password_min_length: int
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    max_token_attempts: int = 5
    password_min_length: int = 8

    @classmethod
    def from_mapping(cls, config) -> AuthTokenConfig:
        """Build from a Flask-style config mapping (lifetimes in seconds)."""
        return cls(
            access_expires=timedelta(seconds=int(config.get("JWT_ACCESS_EXPIRES_IN", 900))),
            refresh_expires=timedelta(seconds=int(config.get("JWT_REFRESH_EXPIRES_IN", 604800))),
            max_token_attempts=int(config.get("REFRESH_TOKEN_MAX_ATTEMPTS", 5)),
            password_min_length=int(config.get("PASSWORD_MIN_LENGTH", 8)),
        )

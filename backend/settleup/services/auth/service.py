# settleup/services/auth/service.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from settleup.services._shared.base import BaseService, ServiceContext
from settleup.services._shared.errors import BadRequestError, UnauthorizedError
from settleup.services._shared.ports.refresh_token_store import (
    RefreshTokenStore,
    RefreshTokenView,
)
from settleup.services._shared.ports.token_provider import TokenProvider
from settleup.services._shared.unique import generate_unique
from settleup.services.auth.dto import (
    AuthTokenConfig,
    CredentialsIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from settleup.services.auth.tokens import fingerprint_token, generate_refresh_token
from settleup.services.identity.credentials import (
    hash_password,
    is_valid_email,
    is_valid_password,
)
from settleup.services.identity.dto import AccountOut
from settleup.services.identity.service import IdentityService

if TYPE_CHECKING:
    from flask import Flask

log = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "Invalid or already-used refresh token"


class SessionManager(BaseService):
    """
    Session lifecycle service (guest / register / login / refresh / logout).

    Access tokens are minted and verified through a pluggable
    :class:`TokenProvider` and are never stored. Refresh tokens are opaque
    random strings; only their SHA-256 fingerprint is kept in the
    :class:`RefreshTokenStore`, and each one is consumed exactly once.

    Account state always comes from :class:`IdentityService`; the
    ``is_guest`` claim inside an access token is only a hint.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        refresh_store: RefreshTokenStore,
        identity: IdentityService | None = None,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for minting/verifying access tokens.
        :param refresh_store: Fingerprint-keyed refresh-token store.
        :param identity: Identity store service; a default one is built when omitted.
        :param token_cfg: Lifetimes and retry budget.
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.refresh_store = refresh_store
        self.identity = identity or IdentityService(ctx=ctx)
        self.cfg = token_cfg or AuthTokenConfig()

    @classmethod
    def from_app(cls, app: Flask, *, ctx: ServiceContext | None = None) -> SessionManager:
        """Wire a manager from the application's config and start-up store."""
        from settleup.core.extensions import get_refresh_token_store
        from settleup.infra.jwt.flask_jwt_token_provider import JWTTokenProvider

        return cls(
            token_provider=JWTTokenProvider(),
            refresh_store=get_refresh_token_store(app),
            token_cfg=AuthTokenConfig.from_mapping(app.config),
            ctx=ctx,
        )

    # ------------------------------------------------------------------ #
    # Guest
    # ------------------------------------------------------------------ #

    def create_guest_session(self) -> TokenPairOut:
        """
        Create a guest account and return its first token pair.

        :returns: Access/refresh token pair for the new guest.
        """
        account = self.identity.create_guest()
        pair = self._issue_pair(account)
        log.info(
            "Guest session created",
            extra={"event": "auth.guest_created", "account_id": account.id},
        )
        return pair

    # ------------------------------------------------------------------ #
    # Registration / upgrade
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> TokenPairOut:
        """
        Register a new account, or upgrade the caller's guest in place.

        Every refresh token previously issued for the resulting account is
        deleted before the new pair is minted.

        :param dto: Registration input.
        :returns: Access/refresh token pair for the registered account.
        :raises BadRequestError: On malformed input, or when
            ``guest_account_id`` names a non-guest account.
        :raises ConflictError: When the email is bound to another account.
        """
        email = (dto.email or "").strip().lower()
        if not is_valid_email(email):
            raise BadRequestError("Invalid email address")
        if not is_valid_password(dto.password, min_length=self.cfg.password_min_length):
            raise BadRequestError(
                f"Password must be at least {self.cfg.password_min_length} characters"
            )

        password_hash = hash_password(dto.password)
        guest = self.identity.find_by_id(dto.guest_account_id) if dto.guest_account_id else None

        if guest is not None:
            if not guest.is_guest:
                raise BadRequestError("User is not a guest")
            account = self.identity.upgrade_guest(
                guest.id,
                email=email,
                password_hash=password_hash,
                display_name=dto.display_name,
            )
            event = "auth.upgraded"
        else:
            account = self.identity.create_registered(
                email=email,
                password_hash=password_hash,
                display_name=dto.display_name,
            )
            event = "auth.registered"

        revoked = self.refresh_store.delete_all_for_account(account.id)
        pair = self._issue_pair(account)
        log.info(
            "Account registered (%d prior sessions revoked)",
            revoked,
            extra={"event": event, "account_id": account.id},
        )
        return pair

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def validate_credentials(self, dto: CredentialsIn) -> AccountOut | None:
        """
        Check an email/password pair.

        :param dto: Credentials input.
        :returns: The matching account, or ``None``. Guests never match.
        """
        return self.identity.verify_credentials(dto.email, dto.password)

    def login(self, account_id: str) -> TokenPairOut:
        """
        Mint a token pair for an account whose credentials were validated.

        Other sessions of the account stay valid.

        :param account_id: Account returned by :meth:`validate_credentials`.
        :returns: Access/refresh token pair.
        :raises UnauthorizedError: If the account no longer exists.
        """
        account = self.identity.find_by_id(account_id)
        if account is None:
            raise UnauthorizedError("Invalid email or password")
        pair = self._issue_pair(account)
        log.info("Login succeeded", extra={"event": "auth.login", "account_id": account.id})
        return pair

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Consume a refresh token and return a new pair.

        Security
        --------
        - A token is usable once: the stored record is deleted before the new
          pair is minted, and only the caller whose delete removed the record
          proceeds.
        - An unknown token (never issued, rotated or logged out) is rejected
          without further action.
        - An expired token is deleted, then rejected.

        :param dto: Refresh input carrying the raw token.
        :returns: New access/refresh token pair.
        :raises UnauthorizedError: When the token is missing, unknown, used
            or expired.
        """
        raw = (dto.refresh_token or "").strip()
        if not raw:
            raise UnauthorizedError("Refresh token missing")

        token_hash = fingerprint_token(raw)
        record = self.refresh_store.get(token_hash)
        if record is None:
            log.warning(
                "Refresh rejected: unknown or already used",
                extra={"event": "auth.refresh_rejected"},
            )
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        if record.is_expired(self.now_utc()):
            self.refresh_store.delete(token_hash)
            log.warning(
                "Refresh rejected: expired",
                extra={"event": "auth.refresh_rejected", "account_id": record.account_id},
            )
            raise UnauthorizedError("Refresh token expired")

        if not self.refresh_store.delete(token_hash):
            # A concurrent refresh consumed it between the read and the delete
            log.warning(
                "Refresh rejected: consumed concurrently",
                extra={"event": "auth.refresh_rejected", "account_id": record.account_id},
            )
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        account = self.identity.find_by_id(record.account_id)
        if account is None:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        pair = self._issue_pair(account)
        log.info("Session refreshed", extra={"event": "auth.refreshed", "account_id": account.id})
        return pair

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Forget a refresh token. Idempotent.

        Missing, empty, unknown and expired tokens are all accepted silently.
        Outstanding access tokens are not affected.

        :param dto: Logout input.
        """
        raw = (dto.refresh_token or "").strip()
        if not raw:
            return
        removed = self.refresh_store.delete(fingerprint_token(raw))
        log.info("Logout (record removed=%s)", removed, extra={"event": "auth.logout"})

    # ------------------------------------------------------------------ #
    # Current caller
    # ------------------------------------------------------------------ #

    def current_identity(self, access_token: str | None) -> AccountOut:
        """
        Resolve the caller behind an access token.

        :param access_token: Encoded access token.
        :returns: Current account state, read from the Identity Store.
        :raises UnauthorizedError: On a missing/invalid/expired token, or when
            the account no longer exists.
        """
        if not access_token:
            raise UnauthorizedError("Missing access token")
        claims = self.tokens.decode_access_token(access_token)
        account = self.identity.find_by_id(claims.account_id)
        if account is None:
            raise UnauthorizedError("Account not found")
        return account

    def guest_account_id_from(self, access_token: str | None) -> str | None:
        """
        Extract an upgradeable guest id from an optional access token.

        :param access_token: Encoded access token, possibly absent.
        :returns: The guest account id, or ``None`` when the token is absent,
            invalid, expired or not a guest token. Never raises.
        """
        if not access_token:
            return None
        try:
            claims = self.tokens.decode_access_token(access_token)
        except UnauthorizedError:
            return None
        return claims.account_id if claims.is_guest else None

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def active_sessions(self, account_id: str) -> list[RefreshTokenView]:
        """List the unexpired refresh-token records of an account."""
        now = self.now_utc()
        return [
            v for v in self.refresh_store.list_account_tokens(account_id) if not v.is_expired(now)
        ]

    def purge_expired(self) -> int:
        """Delete every expired refresh-token record. :returns: Count removed."""
        return self.refresh_store.purge_expired(self.now_utc())

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _issue_pair(self, account: AccountOut) -> TokenPairOut:
        """Persist a fresh refresh token, then mint the access token.

        :raises UniqueValueExhaustedError: If every generated token collided.
        :raises TokenCollisionError: If the store rejected the fingerprint.
        """
        raw = generate_unique(
            generate_refresh_token,
            lambda candidate: self.refresh_store.exists(fingerprint_token(candidate)),
            max_retries=self.cfg.max_token_attempts,
            label="refresh token",
        )
        now = self.now_utc()
        self.refresh_store.create(
            token_hash=fingerprint_token(raw),
            account_id=account.id,
            expires_at=now + self.cfg.refresh_expires,
            created_at=now,
        )
        access = self.tokens.create_access_token(
            account_id=account.id,
            is_guest=account.is_guest,
            expires_delta=self.cfg.access_expires,
        )
        self.identity.touch_last_active(account.id)
        return TokenPairOut(access_token=access, refresh_token=raw)

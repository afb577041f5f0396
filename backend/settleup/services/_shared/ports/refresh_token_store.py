from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from settleup.services._shared.errors import TokenCollisionError


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for a stored refresh token.

    The raw token is never stored; records are addressed by fingerprint.

    :ivar token_hash: SHA-256 hex fingerprint of the raw token.
    :ivar account_id: Owning account id.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Issuance instant (UTC).
    """

    token_hash: str
    account_id: str
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` when ``expires_at`` lies strictly before ``now``."""
        return self.expires_at < now


class RefreshTokenStore(Protocol):
    """
    Persistent mapping ``fingerprint -> (account, expiry)``.

    Every call is its own atomic unit. ``delete`` is the single-use gate: of
    several concurrent callers deleting the same fingerprint, exactly one
    observes ``True``.
    """

    def create(
        self,
        *,
        token_hash: str,
        account_id: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> RefreshTokenView:
        """
        Persist a new record.

        :raises TokenCollisionError: When ``token_hash`` is already stored.
        """
        ...

    def exists(self, token_hash: str) -> bool:
        """Return ``True`` when a record with this fingerprint is stored."""
        ...

    def get(self, token_hash: str) -> RefreshTokenView | None:
        """Fetch a single record (if present)."""
        ...

    def delete(self, token_hash: str) -> bool:
        """Delete a single record. :returns: True only if this call removed it."""
        ...

    def delete_all_for_account(self, account_id: str) -> int:
        """Delete every record owned by ``account_id``. :returns: Count removed."""
        ...

    def list_account_tokens(self, account_id: str) -> Iterable[RefreshTokenView]:
        """List stored records for an account, oldest first."""
        ...

    def purge_expired(self, now: datetime) -> int:
        """Delete every record whose expiry lies before ``now``. :returns: Count removed."""
        ...


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Process-local refresh-token store.

    .. note::
       Uses a threading lock to make each operation atomic. Only suitable for
       single-process deployments and tests.
    """

    def __init__(self) -> None:
        self._by_hash: dict[str, RefreshTokenView] = {}
        self._by_account: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _utc(dt: datetime) -> datetime:
        return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)

    def _discard(self, token_hash: str) -> RefreshTokenView | None:
        view = self._by_hash.pop(token_hash, None)
        if view is not None:
            hashes = self._by_account.get(view.account_id)
            if hashes is not None:
                hashes.discard(token_hash)
                if not hashes:
                    del self._by_account[view.account_id]
        return view

    # -------------------------- API ----------------------------

    def create(
        self,
        *,
        token_hash: str,
        account_id: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> RefreshTokenView:
        with self._lock:
            if token_hash in self._by_hash:
                raise TokenCollisionError("Refresh token fingerprint already stored.")
            view = RefreshTokenView(
                token_hash=token_hash,
                account_id=account_id,
                expires_at=self._utc(expires_at),
                created_at=self._utc(created_at),
            )
            self._by_hash[token_hash] = view
            self._by_account.setdefault(account_id, set()).add(token_hash)
            return view

    def exists(self, token_hash: str) -> bool:
        with self._lock:
            return token_hash in self._by_hash

    def get(self, token_hash: str) -> RefreshTokenView | None:
        with self._lock:
            return self._by_hash.get(token_hash)

    def delete(self, token_hash: str) -> bool:
        with self._lock:
            return self._discard(token_hash) is not None

    def delete_all_for_account(self, account_id: str) -> int:
        with self._lock:
            hashes = list(self._by_account.get(account_id, set()))
            for token_hash in hashes:
                self._discard(token_hash)
            return len(hashes)

    def list_account_tokens(self, account_id: str) -> list[RefreshTokenView]:
        with self._lock:
            views = [self._by_hash[h] for h in self._by_account.get(account_id, set())]
        return sorted(views, key=lambda v: v.created_at)

    def purge_expired(self, now: datetime) -> int:
        now = self._utc(now)
        with self._lock:
            expired = [h for h, v in self._by_hash.items() if v.is_expired(now)]
            for token_hash in expired:
                self._discard(token_hash)
            return len(expired)

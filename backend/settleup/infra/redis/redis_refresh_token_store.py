# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import redis  # type: ignore[import-untyped]

from settleup.services._shared.errors import TokenCollisionError
from settleup.services._shared.ports import RefreshTokenStore, RefreshTokenView


def _b(value: Any, default: str = "") -> str:
    """Decode a Redis reply (bytes or str) to ``str``."""
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh-token store.

    Layout
    ------
    - ``rt:{token_hash}``: hash with ``account_id``, ``expires_at``,
      ``created_at`` (ISO-8601 UTC); expires at the token's own expiry.
    - ``rt:a:{account_id}``: set of the account's fingerprints. Members whose
      record already expired are pruned lazily.

    Redis drops a record as soon as its TTL runs out, so an expired token is
    usually reported as unknown rather than expired.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_hash: str) -> str:
        return f"rt:{token_hash}"

    @staticmethod
    def _ka(account_id: str) -> str:
        return f"rt:a:{account_id}"

    @staticmethod
    def _utc(dt: datetime) -> datetime:
        return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)

    def _view(self, token_hash: str, raw: dict[Any, Any]) -> RefreshTokenView:
        h = {_b(k): v for k, v in raw.items()}
        return RefreshTokenView(
            token_hash=token_hash,
            account_id=_b(h.get("account_id")),
            expires_at=datetime.fromisoformat(_b(h.get("expires_at"))),
            created_at=datetime.fromisoformat(_b(h.get("created_at"))),
        )

    # -------------------- API ------------------------

    def create(
        self,
        *,
        token_hash: str,
        account_id: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> RefreshTokenView:
        """
        Insert the record *before* the raw token is handed to the client.

        Uses WATCH/MULTI/EXEC so a concurrent insert of the same fingerprint
        surfaces as :class:`TokenCollisionError` instead of an overwrite.
        """
        key = self._k(token_hash)
        expires_at = self._utc(expires_at)
        created_at = self._utc(created_at)

        with self.r.pipeline() as p:
            try:
                p.watch(key)
                if p.exists(key):
                    p.unwatch()
                    raise TokenCollisionError("Refresh token fingerprint already stored.")
                p.multi()
                p.hset(
                    key,
                    mapping={
                        "account_id": account_id,
                        "expires_at": expires_at.isoformat(),
                        "created_at": created_at.isoformat(),
                    },
                )
                p.expireat(key, expires_at)
                p.sadd(self._ka(account_id), token_hash)
                p.execute()
            except redis.WatchError as exc:
                raise TokenCollisionError("Refresh token fingerprint stored concurrently.") from exc

        return RefreshTokenView(
            token_hash=token_hash,
            account_id=account_id,
            expires_at=expires_at,
            created_at=created_at,
        )

    def exists(self, token_hash: str) -> bool:
        return bool(self.r.exists(self._k(token_hash)))

    def get(self, token_hash: str) -> RefreshTokenView | None:
        h = self.r.hgetall(self._k(token_hash))
        if not h:
            return None
        return self._view(token_hash, h)

    def delete(self, token_hash: str) -> bool:
        """
        Delete one record. ``DEL`` is atomic, so only one caller sees ``True``.
        """
        key = self._k(token_hash)
        with self.r.pipeline(transaction=True) as p:
            p.hget(key, "account_id")
            p.delete(key)
            account_b, deleted = p.execute()
        if account_b:
            self.r.srem(self._ka(_b(account_b)), token_hash)
        return bool(deleted)

    def delete_all_for_account(self, account_id: str) -> int:
        key_a = self._ka(account_id)
        hashes = [_b(m) for m in self.r.smembers(key_a)]
        if not hashes:
            return 0
        with self.r.pipeline(transaction=True) as p:
            for token_hash in hashes:
                p.delete(self._k(token_hash))
            p.delete(key_a)
            results = p.execute()
        # Last reply belongs to the index key
        return sum(int(n) for n in results[:-1])

    def list_account_tokens(self, account_id: str) -> list[RefreshTokenView]:
        key_a = self._ka(account_id)
        views: list[RefreshTokenView] = []
        stale: list[str] = []
        for token_hash in sorted(_b(m) for m in self.r.smembers(key_a)):
            v = self.get(token_hash)
            if v is None:
                # Record expired through its TTL
                stale.append(token_hash)
            else:
                views.append(v)
        if stale:
            self.r.srem(key_a, *stale)
        return sorted(views, key=lambda v: v.created_at)

    def purge_expired(self, now: datetime) -> int:
        """
        Remove records past their expiry and prune stale index members.

        Records Redis already evicted are not counted.
        """
        now = self._utc(now)
        removed = 0
        for key_a in self.r.scan_iter(match=self._ka("*")):
            account_id = _b(key_a).removeprefix("rt:a:")
            for v in self.list_account_tokens(account_id):
                if v.is_expired(now) and self.delete(v.token_hash):
                    removed += 1
        return removed

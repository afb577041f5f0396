"""
Contract tests shared by every RefreshTokenStore backend.

The same scenarios run against the in-memory store, the SQL store (SQLite)
and the Redis store (fakeredis).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from settleup.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from settleup.infra.sql.sql_refresh_token_store import SQLAlchemyRefreshTokenStore
from settleup.services._shared.errors import TokenCollisionError
from settleup.services._shared.ports import InMemoryRefreshTokenStore, RefreshTokenView
from tests.factories.account import GuestAccountFactory


def _now() -> datetime:
    """Return a timezone-aware UTC "now" truncated to whole seconds."""
    return datetime.now(UTC).replace(microsecond=0)


@pytest.fixture(params=["memory", "sql", "redis"])
def store(request, session):
    if request.param == "memory":
        return InMemoryRefreshTokenStore()
    if request.param == "sql":
        return SQLAlchemyRefreshTokenStore()
    return RedisRefreshTokenStore(r=fakeredis.FakeRedis())


@pytest.fixture()
def accounts(session) -> tuple[str, str]:
    """Two persisted account ids (the SQL store enforces the foreign key)."""
    return GuestAccountFactory().id, GuestAccountFactory().id


def _create(store, token_hash: str, account_id: str, *, created_at=None, ttl=timedelta(hours=1)):
    created_at = created_at or _now()
    return store.create(
        token_hash=token_hash,
        account_id=account_id,
        expires_at=created_at + ttl,
        created_at=created_at,
    )


def test_create_get_exists(store, accounts):
    now = _now()
    created = _create(store, "h-1", accounts[0], created_at=now)

    assert isinstance(created, RefreshTokenView)
    assert store.exists("h-1")
    assert not store.exists("h-unknown")

    view = store.get("h-1")
    assert view is not None
    assert view.account_id == accounts[0]
    assert view.created_at == now
    assert view.expires_at == now + timedelta(hours=1)
    assert view.expires_at.tzinfo is not None
    assert store.get("h-unknown") is None


def test_duplicate_fingerprint_collides(store, accounts):
    _create(store, "h-dup", accounts[0])
    with pytest.raises(TokenCollisionError):
        _create(store, "h-dup", accounts[1])
    assert store.get("h-dup").account_id == accounts[0]


def test_delete_wins_once(store, accounts):
    _create(store, "h-del", accounts[0])

    assert store.delete("h-del") is True
    assert store.delete("h-del") is False
    assert store.get("h-del") is None
    assert store.delete("h-never") is False


def test_delete_all_for_account(store, accounts):
    a, b = accounts
    _create(store, "a-1", a)
    _create(store, "a-2", a)
    _create(store, "b-1", b)

    assert store.delete_all_for_account(a) == 2
    assert store.delete_all_for_account(a) == 0
    assert list(store.list_account_tokens(a)) == []
    assert [v.token_hash for v in store.list_account_tokens(b)] == ["b-1"]


def test_list_orders_by_creation(store, accounts):
    base = _now()
    _create(store, "late", accounts[0], created_at=base + timedelta(seconds=2))
    _create(store, "early", accounts[0], created_at=base)

    assert [v.token_hash for v in store.list_account_tokens(accounts[0])] == ["early", "late"]


def test_purge_expired(store, accounts):
    now = _now()
    _create(store, "short", accounts[0], created_at=now, ttl=timedelta(hours=1))
    _create(store, "long", accounts[0], created_at=now, ttl=timedelta(days=3))

    assert store.purge_expired(now + timedelta(days=1)) == 1
    assert store.get("short") is None
    assert store.get("long") is not None
    assert store.purge_expired(now + timedelta(days=1)) == 0


def test_view_expiry_is_strict():
    now = _now()
    view = RefreshTokenView(token_hash="h", account_id="a", expires_at=now, created_at=now)
    assert view.is_expired(now) is False
    assert view.is_expired(now + timedelta(seconds=1)) is True

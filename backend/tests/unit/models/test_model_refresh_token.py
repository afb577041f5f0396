"""Unit tests for the RefreshToken model."""

from __future__ import annotations

from datetime import timedelta

import pytest
from settleup.models.base import as_utc, utcnow
from settleup.models.refresh_token import RefreshToken
from sqlalchemy.exc import IntegrityError
from tests.factories.account import GuestAccountFactory


def _row(account_id: str, token_hash: str = "a" * 64) -> RefreshToken:
    now = utcnow()
    return RefreshToken(
        token_hash=token_hash,
        account_id=account_id,
        expires_at=now + timedelta(days=7),
        created_at=now,
    )


def test_persists_with_aware_round_trip(session):
    guest = GuestAccountFactory()
    row = _row(guest.id)
    session.add(row)
    session.commit()

    fetched = session.get(RefreshToken, row.id)
    assert fetched is not None
    assert fetched.account_id == guest.id
    # SQLite returns naive values; as_utc restores the UTC offset
    assert as_utc(fetched.expires_at).utcoffset() == timedelta(0)


def test_token_hash_unique(session):
    guest = GuestAccountFactory()
    session.add(_row(guest.id, "b" * 64))
    session.commit()

    session.add(_row(guest.id, "b" * 64))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_as_utc_converts_offsets():
    from datetime import datetime, timezone

    cet = timezone(timedelta(hours=1))
    value = datetime(2024, 1, 1, 13, 0, tzinfo=cet)
    assert as_utc(value).hour == 12
    assert as_utc(datetime(2024, 1, 1, 12, 0)).tzinfo is not None

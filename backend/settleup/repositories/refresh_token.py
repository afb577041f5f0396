"""Refresh-token repository backing the SQL refresh-token store."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select

from settleup.models.refresh_token import RefreshToken
from settleup.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken` rows.

    Deletes are issued as bulk ``DELETE`` statements so the affected row count
    tells concurrent callers apart: only one of them sees ``1``.
    """

    model = RefreshToken

    def _sortable_fields(self):
        return {
            "created_at": RefreshToken.created_at,
            "expires_at": RefreshToken.expires_at,
        }

    def _filterable_fields(self):
        return {
            "account_id": RefreshToken.account_id,
            "token_hash": RefreshToken.token_hash,
        }

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def delete_by_hash(self, token_hash: str) -> int:
        stmt = delete(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_for_account(self, account_id: str) -> int:
        stmt = delete(RefreshToken).where(RefreshToken.account_id == account_id)
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        stmt = delete(RefreshToken).where(RefreshToken.expires_at < now)
        return int(self.session.execute(stmt).rowcount or 0)

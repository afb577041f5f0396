"""SQLAlchemy-backed refresh-token store (default backend)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from settleup.models.base import as_utc
from settleup.models.refresh_token import RefreshToken
from settleup.services._shared.errors import TokenCollisionError, violates
from settleup.services._shared.ports import RefreshTokenStore, RefreshTokenView
from settleup.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

TOKEN_HASH_CONSTRAINT = "uq_refresh_tokens_token_hash"
TOKEN_HASH_COLUMNS = ("refresh_tokens.token_hash",)


def _view(row: RefreshToken) -> RefreshTokenView:
    return RefreshTokenView(
        token_hash=row.token_hash,
        account_id=row.account_id,
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
    )


@dataclass(slots=True)
class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Refresh-token store over the ``refresh_tokens`` table.

    Every operation runs in its own unit of work and commits before
    returning. ``delete`` relies on the affected row count of a single
    ``DELETE`` statement: concurrent deleters of one fingerprint serialize on
    the row and only the first one sees ``1``.

    .. note::
       Requires an active Flask app context (Flask-SQLAlchemy session).
    """

    def create(
        self,
        *,
        token_hash: str,
        account_id: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> RefreshTokenView:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                row = uow.refresh_tokens.add(
                    RefreshToken(
                        token_hash=token_hash,
                        account_id=account_id,
                        expires_at=expires_at,
                        created_at=created_at,
                    )
                )
                view = _view(row)
        except IntegrityError as exc:
            if violates(exc, TOKEN_HASH_CONSTRAINT, columns=TOKEN_HASH_COLUMNS):
                raise TokenCollisionError("Refresh token fingerprint already stored.") from exc
            raise
        return view

    def exists(self, token_hash: str) -> bool:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            return uow.refresh_tokens.exists(token_hash=token_hash)

    def get(self, token_hash: str) -> RefreshTokenView | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.refresh_tokens.get_by_hash(token_hash)
            return _view(row) if row is not None else None

    def delete(self, token_hash: str) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_by_hash(token_hash) > 0

    def delete_all_for_account(self, account_id: str) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_for_account(account_id)

    def list_account_tokens(self, account_id: str) -> list[RefreshTokenView]:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            rows = uow.refresh_tokens.list(filters={"account_id": account_id}, sort=["created_at"])
            return [_view(r) for r in rows]

    def purge_expired(self, now: datetime) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_expired(now)

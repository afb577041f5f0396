"""Persisted refresh-token fingerprints."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from settleup.core.extensions import db

from .base import PKMixin, ReprMixin, utcnow


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One issued refresh token, addressed by the SHA-256 of its raw value.

    Fields
    ------
    token_hash : str
        Hex fingerprint of the raw token. The raw value is never stored.
    account_id : str
        Owning account; rows disappear with the account.
    expires_at : datetime
        Absolute expiry instant.
    created_at : datetime
        Issuance instant.
    """

    __tablename__ = "refresh_tokens"

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
        Index("ix_refresh_tokens_account_id", "account_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

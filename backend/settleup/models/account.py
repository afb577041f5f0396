"""Account model: guest and registered identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column, validates

from settleup.core.extensions import db

from .base import ReprMixin, TimestampMixin, UUIDPKMixin, utcnow


class Account(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Identity of a person using the app, guest or registered.

    Fields
    ------
    email : str | None
        Login email, stored normalized (lowercase, trimmed). ``None`` for guests.
    password_hash : str | None
        Salted one-way credential hash. ``None`` for guests.
    display_name : str | None
        Public profile name.
    is_guest : bool
        ``True`` until the account is registered or upgraded.
    last_active_at : datetime
        Last time a session was minted for the account.

    Notes
    -----
    A guest never carries credentials and a registered account always carries
    both. The database enforces this through ``ck_accounts_guest_credentials``.
    """

    __tablename__ = "accounts"

    # Columns
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_guest: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint("email", name="uq_accounts_email"),
        CheckConstraint(
            "(is_guest AND email IS NULL AND password_hash IS NULL) OR "
            "(NOT is_guest AND email IS NOT NULL AND password_hash IS NOT NULL)",
            name="guest_credentials",
        ),
    )

    @property
    def has_credentials(self) -> bool:
        """Return ``True`` when the account can authenticate by password."""
        return not self.is_guest and bool(self.password_hash)

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        """
        Normalize email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize, or ``None`` for guests.
        :type value: str | None
        :returns: Normalized email (lowercased/trimmed) or ``None``.
        :rtype: str | None
        :raises ValueError: If the email is malformed.
        """
        if value is None:
            return None
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at the API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("display_name")
    def _normalize_display_name(self, key: str, value: str | None) -> str | None:
        if value is None:
            return None
        v = value.strip()
        return v or None

"""Account repository: the only writer of ``accounts`` rows."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from settleup.models.account import Account
from settleup.repositories.base import BaseRepository


def normalize_email(email: str) -> str:
    """Return the canonical (trimmed, lowercase) form of an email."""
    return email.strip().lower()


class AccountRepository(BaseRepository[Account]):
    """Persistence-only repository for :class:`Account`.

    Guest/registered invariants are upheld here: guests are created without
    credentials, registered accounts with both email and hash, and upgrades
    assign all credential fields together.
    """

    model = Account

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> Account | None:
        """Fetch an account by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: Account instance or ``None`` when not found.
        :rtype: Account | None
        """
        stmt = select(Account).where(Account.email == normalize_email(email))
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str, *, exclude_id: str | None = None) -> bool:
        """Return ``True`` when an account other than ``exclude_id`` owns the email.

        :param email: Email address to normalise and search.
        :param exclude_id: Account id to ignore (the account being upgraded).
        :returns: ``True`` if a row is found; otherwise ``False``.
        """
        stmt = select(Account.id).where(Account.email == normalize_email(email))
        if exclude_id is not None:
            stmt = stmt.where(Account.id != exclude_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    # ---------------------------- Writers ----------------------------

    def create_guest(self, *, now: datetime) -> Account:
        """Insert a credential-less guest account."""
        return self.add(Account(is_guest=True, last_active_at=now))

    def create_registered(
        self,
        *,
        email: str,
        password_hash: str,
        display_name: str | None = None,
        now: datetime,
    ) -> Account:
        """Insert a registered account carrying email and credential hash.

        :raises sqlalchemy.exc.IntegrityError: On flush, if the email is taken.
        """
        account = Account(
            email=email,
            password_hash=password_hash,
            display_name=display_name,
            is_guest=False,
            last_active_at=now,
        )
        return self.add(account)

    def upgrade_guest(
        self,
        account: Account,
        *,
        email: str,
        password_hash: str,
        display_name: str | None = None,
    ) -> Account:
        """Turn a guest into a registered account in place (id preserved).

        The caller is expected to hold the row via :meth:`get_for_update` and
        to have checked guest status and email availability.

        :raises ValueError: If ``account`` is not a guest.
        :raises sqlalchemy.exc.IntegrityError: On flush, if the email is taken.
        """
        if not account.is_guest:
            raise ValueError("Only guest accounts can be upgraded.")
        account.email = email
        account.password_hash = password_hash
        account.is_guest = False
        if display_name is not None:
            account.display_name = display_name
        self.flush()
        return account

    def touch_last_active(self, account_id: str, *, now: datetime) -> bool:
        """Set ``last_active_at`` without loading the row.

        :returns: ``True`` when the account exists.
        """
        stmt = update(Account).where(Account.id == account_id).values(last_active_at=now)
        result = self.session.execute(stmt)
        return bool(result.rowcount)

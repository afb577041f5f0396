"""
IdentityService
===============

Aggregate service responsible for the ``Account`` aggregate:
- Guest and registered account creation
- Guest-to-registered upgrade (identifier preserved)
- Credential verification (no token issuance)
- Activity tracking
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from settleup.models.account import Account
from settleup.models.base import as_utc
from settleup.repositories.account import AccountRepository
from settleup.services._shared.base import BaseService
from settleup.services._shared.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    violates,
)
from settleup.services.identity.credentials import verify_password
from settleup.services.identity.dto import AccountOut

EMAIL_CONSTRAINT = "uq_accounts_email"
EMAIL_COLUMNS = ("accounts.email",)


class IdentityService(BaseService):
    """
    Application service for the ``Account`` aggregate.

    This is the only component that creates or mutates accounts. Accounts are
    never deleted here.
    """

    # --------------------------------------------------------------------- #
    # Retrieval
    # --------------------------------------------------------------------- #

    def find_by_id(self, account_id: str) -> AccountOut | None:
        """
        Fetch an account by id.

        :param account_id: Account identifier.
        :type account_id: str
        :returns: Account DTO or ``None``.
        :rtype: AccountOut | None
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get(account_id)
            return self._to_out(account) if account is not None else None

    def find_by_email(self, email: str) -> AccountOut | None:
        """Fetch an account by (normalized) email."""
        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(email)
            return self._to_out(account) if account is not None else None

    # --------------------------------------------------------------------- #
    # Authentication
    # --------------------------------------------------------------------- #

    def verify_credentials(self, email: str, password: str) -> AccountOut | None:
        """
        Return the account matching ``email``/``password``, if any.

        Guests carry no credential hash and therefore never match.

        :param email: Login email (normalized before lookup).
        :param password: Raw password.
        :returns: Account DTO, or ``None`` when the credentials do not match.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(email)
            if account is None or not account.has_credentials:
                return None
            if not verify_password(account.password_hash, password):
                return None
            return self._to_out(account)

    # --------------------------------------------------------------------- #
    # Creation
    # --------------------------------------------------------------------- #

    def create_guest(self) -> AccountOut:
        """Create a guest account with no email and no credential."""
        with self.rw_uow() as uow:
            account = uow.accounts.create_guest(now=self.now_utc())
            return self._to_out(account)

    def create_registered(
        self,
        *,
        email: str,
        password_hash: str,
        display_name: str | None = None,
    ) -> AccountOut:
        """
        Create a registered account.

        :param email: Login email.
        :param password_hash: Hash produced by :func:`hash_password`.
        :param display_name: Optional public name.
        :returns: Created account.
        :raises ConflictError: If the email is already bound to an account.
        """
        with self.rw_uow() as uow:
            repo: AccountRepository = uow.accounts
            if repo.exists_by_email(email):
                raise ConflictError("Account", "Email already in use")
            try:
                account = repo.create_registered(
                    email=email,
                    password_hash=password_hash,
                    display_name=display_name,
                    now=self.now_utc(),
                )
            except IntegrityError as exc:
                # Lost a race against a concurrent registration
                if violates(exc, EMAIL_CONSTRAINT, columns=EMAIL_COLUMNS):
                    raise ConflictError("Account", "Email already in use") from exc
                raise
            return self._to_out(account)

    # --------------------------------------------------------------------- #
    # Upgrade
    # --------------------------------------------------------------------- #

    def upgrade_guest(
        self,
        account_id: str,
        *,
        email: str,
        password_hash: str,
        display_name: str | None = None,
    ) -> AccountOut:
        """
        Attach credentials to a guest account, keeping its identifier.

        Guest status and email availability are re-checked on the locked row
        immediately before the write.

        :param account_id: Guest account identifier.
        :param email: Login email.
        :param password_hash: Hash produced by :func:`hash_password`.
        :param display_name: Optional public name.
        :returns: Upgraded account (``is_guest`` false).
        :raises NotFoundError: If the account does not exist.
        :raises BadRequestError: If the account is not a guest.
        :raises ConflictError: If the email belongs to another account.
        """
        with self.rw_uow() as uow:
            repo: AccountRepository = uow.accounts
            account = repo.get_for_update(account_id)
            if account is None:
                raise NotFoundError("Account", account_id)
            if not account.is_guest:
                raise BadRequestError("User is not a guest")
            if repo.exists_by_email(email, exclude_id=account_id):
                raise ConflictError("Account", "Email already in use")
            try:
                repo.upgrade_guest(
                    account,
                    email=email,
                    password_hash=password_hash,
                    display_name=display_name,
                )
            except IntegrityError as exc:
                if violates(exc, EMAIL_CONSTRAINT, columns=EMAIL_COLUMNS):
                    raise ConflictError("Account", "Email already in use") from exc
                raise
            return self._to_out(account)

    # --------------------------------------------------------------------- #
    # Activity
    # --------------------------------------------------------------------- #

    def touch_last_active(self, account_id: str) -> bool:
        """
        Stamp ``last_active_at`` with the current time.

        :returns: ``True`` when the account exists.
        """
        with self.rw_uow() as uow:
            return uow.accounts.touch_last_active(account_id, now=self.now_utc())

    # --------------------------------------------------------------------- #
    # Mapping
    # --------------------------------------------------------------------- #

    @staticmethod
    def _to_out(account: Account) -> AccountOut:
        return AccountOut(
            id=account.id,
            email=account.email,
            display_name=account.display_name,
            is_guest=bool(account.is_guest),
            created_at=as_utc(account.created_at) if account.created_at else None,
            last_active_at=as_utc(account.last_active_at) if account.last_active_at else None,
        )

"""Unit tests for IdentityService (Account aggregate)."""

from __future__ import annotations

import pytest
from settleup.models.account import Account
from settleup.repositories.account import AccountRepository
from settleup.services._shared.errors import BadRequestError, ConflictError, NotFoundError
from settleup.services.identity.credentials import hash_password
from settleup.services.identity.dto import AccountOut
from settleup.services.identity.service import IdentityService
from tests.factories.account import (
    DEFAULT_PASSWORD,
    GuestAccountFactory,
    RegisteredAccountFactory,
)


@pytest.fixture()
def service() -> IdentityService:
    return IdentityService()


class TestLookup:
    def test_find_by_id_and_email(self, service, session):
        acct = RegisteredAccountFactory(email="finder@example.com")

        by_id = service.find_by_id(acct.id)
        assert isinstance(by_id, AccountOut)
        assert by_id.email == "finder@example.com"
        assert service.find_by_email("FINDER@example.com").id == acct.id

    def test_missing_account(self, service, session):
        assert service.find_by_id("missing") is None
        assert service.find_by_email("missing@example.com") is None

    def test_dto_times_are_aware(self, service, session):
        guest = GuestAccountFactory()
        out = service.find_by_id(guest.id)
        assert out.created_at is not None and out.created_at.tzinfo is not None
        assert out.last_active_at is not None and out.last_active_at.tzinfo is not None


class TestCredentials:
    def test_verify_credentials(self, service, session):
        acct = RegisteredAccountFactory(email="login@example.com")

        assert service.verify_credentials("login@example.com", DEFAULT_PASSWORD).id == acct.id
        assert service.verify_credentials("login@example.com", "wrong-password") is None
        assert service.verify_credentials("nobody@example.com", DEFAULT_PASSWORD) is None

    def test_guest_never_verifies(self, service, session):
        GuestAccountFactory()
        assert service.verify_credentials("", "") is None


class TestCreation:
    def test_create_guest(self, service, session):
        out = service.create_guest()
        assert out.is_guest is True
        assert out.email is None
        assert session.query(Account).count() == 1

    def test_create_registered(self, service, session):
        out = service.create_registered(
            email="new@example.com",
            password_hash=hash_password("longenough"),
            display_name="New",
        )
        assert out.is_guest is False
        assert out.display_name == "New"

    def test_duplicate_email_conflicts(self, service, session):
        RegisteredAccountFactory(email="taken@example.com")
        with pytest.raises(ConflictError) as exc_info:
            service.create_registered(email="taken@example.com", password_hash="hash")
        assert exc_info.value.detail == "Email already in use"
        assert session.query(Account).count() == 1

    def test_unique_index_conflict_after_precheck(self, service, session, monkeypatch):
        """A concurrent insert can slip past the existence check."""
        RegisteredAccountFactory(email="racer@example.com")
        monkeypatch.setattr(AccountRepository, "exists_by_email", lambda self, email, **kw: False)

        with pytest.raises(ConflictError, match="Email already in use"):
            service.create_registered(email="racer@example.com", password_hash="hash")
        assert session.query(Account).count() == 1


class TestUpgrade:
    def test_upgrade_keeps_identifier(self, service, session):
        guest = GuestAccountFactory()

        out = service.upgrade_guest(
            guest.id, email="up@example.com", password_hash="hash", display_name="Up"
        )

        assert out.id == guest.id
        assert out.is_guest is False
        assert out.email == "up@example.com"
        assert service.find_by_id(guest.id).is_guest is False

    def test_upgrade_missing_account(self, service, session):
        with pytest.raises(NotFoundError):
            service.upgrade_guest("missing", email="x@example.com", password_hash="hash")

    def test_upgrade_registered_rejected(self, service, session):
        acct = RegisteredAccountFactory()
        with pytest.raises(BadRequestError, match="User is not a guest"):
            service.upgrade_guest(acct.id, email="x@example.com", password_hash="hash")

    def test_upgrade_email_taken_rolls_back(self, service, session):
        RegisteredAccountFactory(email="owner@example.com")
        guest = GuestAccountFactory()

        with pytest.raises(ConflictError):
            service.upgrade_guest(guest.id, email="owner@example.com", password_hash="hash")
        assert service.find_by_id(guest.id).is_guest is True

    def test_upgrade_unique_index_conflict_after_precheck(self, service, session, monkeypatch):
        RegisteredAccountFactory(email="racer@example.com")
        guest = GuestAccountFactory()
        monkeypatch.setattr(AccountRepository, "exists_by_email", lambda self, email, **kw: False)

        with pytest.raises(ConflictError, match="Email already in use"):
            service.upgrade_guest(guest.id, email="racer@example.com", password_hash="hash")
        assert session.query(Account).count() == 2
        assert session.query(Account).filter_by(email="racer@example.com").count() == 1
        assert service.find_by_id(guest.id).is_guest is True


def test_touch_last_active(service, session, freeze_time):
    guest = GuestAccountFactory()

    with freeze_time("2030-05-05 10:00:00"):
        assert service.touch_last_active(guest.id) is True
    assert service.find_by_id(guest.id).last_active_at.year == 2030
    assert service.touch_last_active("missing") is False

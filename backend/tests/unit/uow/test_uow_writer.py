"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest
from settleup.models import Account
from settleup.uow import SQLAlchemyUnitOfWork
from tests.factories.account import GuestAccountFactory


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, app, db, session):
        """
        GIVEN a writer UoW
        WHEN we create an account via the repo and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = db.session.query(Account).count()

        with SQLAlchemyUnitOfWork() as uow:
            uow.accounts.add(GuestAccountFactory.build())

        db.session.rollback()
        assert db.session.query(Account).count() == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, app, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the context
        THEN the transaction is rolled back and no rows are persisted.
        """
        initial = db.session.query(Account).count()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.accounts.add(GuestAccountFactory.build())
            raise RuntimeError("boom")

        assert db.session.query(Account).count() == initial

    def test_exposes_both_repositories(self, app, db):
        with SQLAlchemyUnitOfWork() as uow:
            assert uow.accounts.session is uow.refresh_tokens.session

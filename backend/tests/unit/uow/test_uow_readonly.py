import pytest
from settleup.models.account import Account
from settleup.models.base import utcnow
from settleup.uow import (
    SQLAlchemyReadOnlyUnitOfWork as ROuow,
)
from settleup.uow import (
    SQLAlchemyUnitOfWork as RWuow,
)
from sqlalchemy import text
from tests.factories.account import GuestAccountFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    """Write guards apply on every dialect; SET TRANSACTION is skipped on SQLite."""

    def test_blocks_orm_flush_writes(self, app, db):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(GuestAccountFactory.build())
            uow.session.flush()

    def test_blocks_core_dml(self, app, db):
        """
        Ensure that raw SQL DML/DDL is blocked inside the RO UoW.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(
                text("INSERT INTO accounts (id, is_guest) VALUES (:id, 1)"), {"id": "raw"}
            )

    def test_allows_reads(self, app, db):
        """
        Read operations should work normally within RO UoW.
        """
        with RWuow() as uow:
            uow.accounts.create_guest(now=utcnow())

        with ROuow() as uow:
            assert uow.session.query(Account).count() == 1

    def test_disallows_commit(self, app, db):
        """
        RO UoW must reject commit() by design.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_always_rolls_back_changes(self, app, db):
        """
        Any attempted modifications must not persist after RO UoW exits.
        """
        with RWuow() as uow:
            account = uow.accounts.create_guest(now=utcnow())
            account_id = account.id

        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            acct = uow.session.get(Account, account_id)
            acct.display_name = "mutated-in-ro"
            uow.session.flush()

        with RWuow() as uow:
            assert uow.accounts.get(account_id).display_name is None

    def test_guards_removed_on_exit(self, app, db):
        with ROuow():
            pass
        with RWuow() as uow:
            uow.accounts.create_guest(now=utcnow())
        with ROuow() as uow:
            assert uow.session.query(Account).count() == 1

"""
Scoped transactions and row locking.

:func:`transaction` issues ``BEGIN;`` and yields a :class:`Transaction`
handle. The transaction is committed when the block exits normally and
rolled back when it raises; the handle cannot be used afterwards::

    with transaction(db) as tx:
        (account,) = tx.select_for_update(Account, "accounts", eq("id", 7))
        account.balance -= 10
        tx.update(account, "accounts")

There is no nesting, timeout or deadlock detection; a dropped connection
leaves the server to decide the fate of the open transaction.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, List, Type, TypeVar, Union

from pydantic import BaseModel

from recordsql import operations
from recordsql.db_util import DbUtil, ResultSet
from recordsql.query import Filter

logger = logging.getLogger("recordsql.transaction")

T = TypeVar("T", bound=BaseModel)


class LockMode(Enum):
    """PostgreSQL table lock modes, weakest first."""

    ACCESS_SHARE = "ACCESS SHARE"
    ROW_SHARE = "ROW SHARE"
    ROW_EXCLUSIVE = "ROW EXCLUSIVE"
    SHARE_UPDATE_EXCLUSIVE = "SHARE UPDATE EXCLUSIVE"
    SHARE = "SHARE"
    SHARE_ROW_EXCLUSIVE = "SHARE ROW EXCLUSIVE"
    EXCLUSIVE = "EXCLUSIVE"
    ACCESS_EXCLUSIVE = "ACCESS EXCLUSIVE"


class Transaction:
    """Handle on an open transaction; only valid inside :func:`transaction`."""

    def __init__(self, db_conn: DbUtil):
        self.db_conn = db_conn
        self.active = True

    def _connection(self) -> DbUtil:
        if not self.active:
            raise RuntimeError("Transaction is no longer active")
        return self.db_conn

    def execute(self, statement: str, *values: Any) -> int:
        return self._connection().execute(statement, *values)

    def query(self, statement: str, *values: Any) -> ResultSet:
        return self._connection().query(statement, *values)

    def select_for_update(
        self, record: Union[Type[T], T], table: str, condition: Filter = None, *args: Any
    ) -> List[T]:
        """Select and lock the matching rows until the transaction ends."""
        return operations.select_for_update(self._connection(), record, table, condition, *args)

    def lock_table(self, table: str, mode: LockMode = LockMode.ACCESS_EXCLUSIVE) -> None:
        """Take a table lock until the transaction ends."""
        self._connection().execute(f"LOCK TABLE {table} IN {mode.value} MODE;")

    def insert(self, record: BaseModel, table: str) -> Any:
        return operations.insert_object(self._connection(), table, record)

    def update(self, record: BaseModel, table: str) -> int:
        return operations.update_object(self._connection(), table, record)

    def delete(self, record: BaseModel, table: str) -> int:
        return operations.delete_object(self._connection(), table, record)


@contextmanager
def transaction(db_conn: DbUtil) -> Iterator[Transaction]:
    """Run the block in a transaction; commit on success, roll back on error."""
    db_conn.execute("BEGIN;")
    tx = Transaction(db_conn)
    try:
        yield tx
    except BaseException:
        tx.active = False
        logger.warning("Rolling back transaction", exc_info=True)
        db_conn.execute("ROLLBACK;")
        raise
    tx.active = False
    db_conn.execute("COMMIT;")

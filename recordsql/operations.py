"""
Record persistence operations on a :class:`DbUtil` connection.

These functions glue the statement builders of :mod:`recordsql.query` to a
connection and, for reads, to :func:`recordsql.materialize.materialize`.
They never open or close the connection themselves.

Example::

    db = DbUtil()
    db.connect()
    create_table(db, "people", Person)
    new_id = insert_object(db, "people", Person(name="Ada"))
    people = select_from_where(db, Person, "people", eq("id", new_id))
"""

import logging
from typing import Any, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from recordsql import query
from recordsql.columns import Column, Int64
from recordsql.db_util import DbUtil
from recordsql.entries import Entry
from recordsql.materialize import materialize
from recordsql.query import Filter
from recordsql.schema import create_table, drop_table

logger = logging.getLogger("recordsql.operations")

T = TypeVar("T", bound=BaseModel)

__all__ = [
    "create_table",
    "drop_table",
    "select_from",
    "select_from_where",
    "select_for_update",
    "insert_object",
    "update_object",
    "delete_object",
    "count_rows",
    "count_rows_where",
    "oldest_entry",
    "insert_entries",
    "lock",
    "unlock",
]


class Count(BaseModel):
    """Shape of a ``SELECT COUNT(*)`` result."""

    count: Int64 = Column(sql="count", default=0)


def _select(db_conn: DbUtil, record: Union[Type[T], T], stmt: query.Statement) -> List[T]:
    result_set = db_conn.query(stmt.query, *stmt.values)
    return materialize(result_set, record)


def select_from(db_conn: DbUtil, record: Union[Type[T], T], table: str) -> List[T]:
    """Return every row of ``table`` as records."""
    return _select(db_conn, record, query.select_all(record, table))


def select_from_where(
    db_conn: DbUtil, record: Union[Type[T], T], table: str, condition: Filter, *args: Any
) -> List[T]:
    """
    Return the rows of ``table`` matching ``condition``.

    ``condition`` is either a :class:`recordsql.where.Condition` or a textual
    fragment; ``args`` are %-substituted into a textual fragment without any
    escaping.
    """
    return _select(db_conn, record, query.select_where(record, table, condition, *args))


def select_for_update(
    db_conn: DbUtil, record: Union[Type[T], T], table: str, condition: Filter, *args: Any
) -> List[T]:
    """
    SELECT ... FOR UPDATE. Only meaningful inside a transaction; prefer
    :meth:`recordsql.transaction.Transaction.select_for_update`.
    """
    return _select(db_conn, record, query.select_for_update(record, table, condition, *args))


def insert_object(db_conn: DbUtil, table: str, record: BaseModel) -> Any:
    """
    Insert ``record`` and return the id of the new row.

    When the row conflicts with an existing one nothing is inserted and ``0``
    is returned instead of raising.
    """
    stmt = query.insert(record, table)
    row = db_conn.query_row(stmt.query, *stmt.values)
    if row is None:
        logger.info("No row inserted into %s (conflict)", table)
        return 0
    return row[0]


def update_object(db_conn: DbUtil, table: str, record: BaseModel) -> int:
    """Update the row with the record's id; return the number of rows changed."""
    stmt = query.update(record, table)
    return db_conn.execute(stmt.query, *stmt.values)


def delete_object(db_conn: DbUtil, table: str, record: BaseModel) -> int:
    """Delete the row with the record's id; deleting a missing id is not an error."""
    stmt = query.delete(record, table)
    return db_conn.execute(stmt.query, *stmt.values)


def count_rows(db_conn: DbUtil, table: str) -> int:
    """Return the number of rows in ``table``."""
    return count_rows_where(db_conn, table, None)


def count_rows_where(db_conn: DbUtil, table: str, condition: Filter, *args: Any) -> int:
    """Return the number of rows in ``table`` matching ``condition``."""
    stmt = query.count(table, condition, *args)
    counts = _select(db_conn, Count, stmt)
    return counts[0].count if counts else 0


def oldest_entry(
    db_conn: DbUtil, record: Union[Type[T], T], table: str, timestamp_column: str
) -> Optional[T]:
    """Return the row with the smallest ``timestamp_column``, or None for an empty table."""
    records = _select(db_conn, record, query.oldest(record, table, timestamp_column))
    if not records:
        return None
    return records[0]


def insert_entries(db_conn: DbUtil, table: str, entries: List[Entry]) -> int:
    """
    Insert loose column/value entries.

    .. deprecated:: use :func:`insert_object` instead.
    """
    stmt = query.insert_entries(table, entries)
    return db_conn.execute(stmt.query, *stmt.values)


def lock(db_conn: DbUtil) -> None:
    """
    Issue ``BEGIN;`` on the connection. :func:`unlock` must be called once the
    work is done; prefer :func:`recordsql.transaction.transaction`.
    """
    db_conn.execute("BEGIN;")


def unlock(db_conn: DbUtil) -> None:
    """Issue ``END;`` on the connection."""
    db_conn.execute("END;")

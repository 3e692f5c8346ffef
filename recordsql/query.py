"""
SQL statement builders driven by record descriptors.

Every builder returns a :class:`Statement`: the SQL text with ``$n``
placeholders and the values to bind, in placeholder order. SELECT builders
only need the record type; INSERT, UPDATE and DELETE read field values from a
record instance.

Two kinds of filters are accepted by :func:`select_where`:

- a :class:`recordsql.where.Condition`, compiled into bound placeholders;
- a textual fragment such as ``"id = %d"``. The whole statement is then
  ``%``-formatted with the extra arguments. Nothing is escaped, so the
  caller is responsible for the safety of both the fragment and the
  arguments.
"""

import datetime
import json
import warnings
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple, Union

from recordsql.descriptor import ID_COLUMN, RecordDescriptor, describe
from recordsql.entries import Entry
from recordsql.errors import DescriptorError
from recordsql.where import Condition

Filter = Optional[Union[str, Condition]]


class Statement(NamedTuple):
    """SQL text and the values bound to its ``$n`` placeholders."""

    query: str
    values: Tuple[Any, ...] = ()


def format_value(value: Any) -> Any:
    """Format a Python value for binding (e.g. timedelta -> interval string, dict -> JSON)."""
    if isinstance(value, list):
        if len(value) > 0 and isinstance(value[0], dict):
            return json.dumps(value)
        return value
    elif isinstance(value, datetime.timedelta):
        days = value.days
        seconds = value.seconds
        hours, remainder = divmod(seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{days} days {hours:02}:{minutes:02}:{seconds:02}"
    elif isinstance(value, dict):
        return json.dumps(value)
    return value


def _require_instance(record: Any, operation: str) -> None:
    if isinstance(record, type):
        raise DescriptorError(f"{operation} needs a record instance, not the type {record.__name__}")


def _check_columns(descriptor: RecordDescriptor, columns: Iterable[str]) -> None:
    known = set(descriptor.columns)
    for column in columns:
        if column not in known:
            raise DescriptorError(f"{column!r} is not a column of model {descriptor.name}")


def _where_clause(condition: Filter, args: tuple, descriptor: Optional[RecordDescriptor] = None) -> Tuple[str, List[Any]]:
    """Return the WHERE clause (with leading space, or empty) and its bound values."""
    if condition is None or condition == "":
        if args:
            raise TypeError("filter arguments given without a condition")
        return "", []

    if isinstance(condition, Condition):
        if args:
            raise TypeError("structured conditions carry their own values")
        if descriptor is not None:
            _check_columns(descriptor, condition.columns())
        values: List[Any] = []
        return f" WHERE {condition.compile(values)}", values

    if isinstance(condition, str):
        return f" WHERE {condition}", []

    raise TypeError(f"unsupported condition type {type(condition).__name__}")


def _build_select(record: Any, table: str, condition: Filter, args: tuple, suffix: str = "") -> Statement:
    descriptor = describe(record)
    where, values = _where_clause(condition, args, descriptor)

    stmt = f"SELECT {', '.join(descriptor.columns)} FROM {table}{where}{suffix};"
    if isinstance(condition, str) and args:
        # Second pass over the assembled statement.
        stmt = stmt % args
    return Statement(stmt, tuple(values))


def select_all(record: Any, table: str) -> Statement:
    """SELECT every mapped column of every row."""
    return _build_select(record, table, None, ())


def select_where(record: Any, table: str, condition: Filter, *args: Any) -> Statement:
    """SELECT the rows matching ``condition``; an empty condition selects all rows."""
    return _build_select(record, table, condition, args)


def select_for_update(record: Any, table: str, condition: Filter, *args: Any) -> Statement:
    """
    Same as :func:`select_where` with ``FOR UPDATE``; the row locks last until
    the enclosing transaction ends.
    """
    return _build_select(record, table, condition, args, suffix=" FOR UPDATE")


def insert(record: Any, table: str) -> Statement:
    """
    INSERT a record, skipping auto-increment columns. Conflicting rows are
    discarded and the statement then returns no row.
    """
    _require_instance(record, "insert")
    descriptor = describe(record)
    descriptor.require_id()

    cols = []
    refs = []
    vals = []
    for field in descriptor.fields:
        if field.is_auto_increment:
            continue
        vals.append(format_value(getattr(record, field.name)))
        cols.append(field.column)
        refs.append(f"${len(vals)}")

    if not cols:
        return Statement(f"INSERT INTO {table} DEFAULT VALUES ON CONFLICT DO NOTHING RETURNING id;")

    query = (
        f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join(refs)}) "
        "ON CONFLICT DO NOTHING RETURNING id;"
    )
    return Statement(query, tuple(vals))


def update(record: Any, table: str) -> Statement:
    """
    UPDATE the row whose id matches the record's id. The id column is part of
    the SET list and its placeholder is reused by the WHERE clause.
    """
    _require_instance(record, "update")
    descriptor = describe(record)
    descriptor.require_id()

    sets = []
    vals = []
    id_ref = None
    for field in descriptor.fields:
        if field.is_auto_increment and field.column != ID_COLUMN:
            continue
        vals.append(format_value(getattr(record, field.name)))
        sets.append(f"{field.column} = ${len(vals)}")
        if field.column == ID_COLUMN:
            id_ref = len(vals)

    query = f"UPDATE {table} SET {', '.join(sets)} WHERE id = ${id_ref};"
    return Statement(query, tuple(vals))


def delete(record: Any, table: str) -> Statement:
    """DELETE the row whose id matches the record's id."""
    _require_instance(record, "delete")
    id_field = describe(record).require_id()
    value = format_value(getattr(record, id_field.name))
    return Statement(f"DELETE FROM {table} WHERE id = $1;", (value,))


def count(table: str, condition: Filter = None, *args: Any) -> Statement:
    """
    SELECT COUNT(*) of a table, optionally filtered. Column names of a
    structured condition are not checked since no record type is involved.
    """
    where, values = _where_clause(condition, args)
    stmt = f"SELECT COUNT(*) FROM {table}{where};"
    if isinstance(condition, str) and args:
        stmt = stmt % args
    return Statement(stmt, tuple(values))


def oldest(record: Any, table: str, timestamp_column: str) -> Statement:
    """SELECT the first row ordered by ``timestamp_column``."""
    descriptor = describe(record)
    _check_columns(descriptor, [timestamp_column])
    query = f"SELECT {', '.join(descriptor.columns)} FROM {table} ORDER BY {timestamp_column} LIMIT 1;"
    return Statement(query)


def insert_entries(table: str, entries: List[Entry]) -> Statement:
    """
    INSERT loose column/value entries.

    .. deprecated:: use :func:`insert` with a record model instead.
    """
    warnings.warn(
        "insert_entries is deprecated; insert record models instead",
        DeprecationWarning,
        stacklevel=2,
    )
    if not entries:
        raise ValueError("At least one entry is required")

    cols = [entry.column_name for entry in entries]
    refs = [f"${index}" for index in range(1, len(entries) + 1)]
    vals = tuple(entry.value for entry in entries)
    query = f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join(refs)}) ON CONFLICT DO NOTHING;"
    return Statement(query, vals)

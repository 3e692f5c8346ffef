"""
PostgreSQL connection and statement execution utilities.

This module provides :class:`DbUtil` for managing a connection and running
statements built by :mod:`recordsql.query`. Connection parameters can be
passed explicitly or read from environment variables (e.g. ``DATABASE_HOST``,
``DATABASE_NAME``).

Statements use PostgreSQL style ``$1, $2, ...`` placeholders; they are
rewritten into psycopg2 named parameters just before execution.
"""

import logging
import os
import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, Type

import pandas as pd
import psycopg2 as psycopg

from recordsql.errors import ExecutionError

logger = logging.getLogger("recordsql.db_util")

ConnectionType: Type[psycopg.extensions.connection] = psycopg.extensions.connection

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")

# Names of the built-in PostgreSQL types by OID, as reported in cursor.description.
PG_TYPE_NAMES = {
    16: "BOOL",
    17: "BYTEA",
    20: "INT8",
    21: "INT2",
    23: "INT4",
    25: "TEXT",
    114: "JSON",
    700: "FLOAT4",
    701: "FLOAT8",
    1043: "VARCHAR",
    1082: "DATE",
    1114: "TIMESTAMP",
    1184: "TIMESTAMPTZ",
    1700: "NUMERIC",
    3802: "JSONB",
}


class ColumnInfo(NamedTuple):
    """Name and driver type code of one result column."""

    name: str
    type_code: Optional[int] = None

    @property
    def type_name(self) -> str:
        return PG_TYPE_NAMES.get(self.type_code, "")


class ResultSet(NamedTuple):
    """Column metadata and fetched rows of a query."""

    columns: List[ColumnInfo]
    rows: List[tuple]

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def to_frame(self) -> pd.DataFrame:
        """Return the rows as a :class:`pandas.DataFrame`."""
        return pd.DataFrame(self.rows, columns=self.column_names)


def bind_parameters(statement: str, values: tuple) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Rewrite ``$n`` placeholders into psycopg2 ``%(pn)s`` parameters.

    Without values the statement is returned untouched, since psycopg2 only
    interprets ``%`` when parameters are given. With values, literal ``%``
    signs are doubled first.
    """
    if not values:
        return statement, None

    query = PLACEHOLDER_PATTERN.sub(r"%(p\1)s", statement.replace("%", "%%"))
    params = {f"p{index}": value for index, value in enumerate(values, start=1)}
    return query, params


def _fetch_result_set(cursor) -> ResultSet:
    columns = [
        ColumnInfo(desc[0], desc[1] if len(desc) > 1 else None)
        for desc in cursor.description or []
    ]
    return ResultSet(columns=columns, rows=list(cursor.fetchall()))


class DbUtil:
    """
    PostgreSQL connection manager and statement executor.

    Uses psycopg2 under the hood. Parameters not provided in ``params``
    fall back to environment variables: ``DATABASE_HOST``, ``DATABASE_NAME``,
    ``DATABASE_USER``, ``DATABASE_PASS``, ``DATABASE_PORT``.

    The connection runs in autocommit mode: every statement takes effect on
    its own unless it is issued between ``BEGIN;`` and ``END;`` (see
    :mod:`recordsql.transaction`). A single DbUtil must not be shared between
    threads without external locking.
    """

    connection: Type[psycopg.extensions.connection] = None

    def __init__(self, params: Dict = None, log_statements: bool = False):
        """
        Build connection params from ``params`` and env (e.g. DATABASE_*).
        If ``log_statements`` is True every executed statement is logged.
        """
        params = params or {}
        self.connection_params = {
            "host": params.get("host") or os.getenv("DATABASE_HOST"),
            "database": params.get("database") or os.getenv("DATABASE_NAME"),
            "user": params.get("user") or os.getenv("DATABASE_USER"),
            "password": params.get("password") or os.getenv("DATABASE_PASS"),
            "port": params.get("port") or os.getenv("DATABASE_PORT"),
        }
        self.log_statements = log_statements
        self.connection = None

    def connect(self, default_schema: str = None) -> None:
        """
        Open a connection. If ``default_schema`` is set, create the schema
        if needed and set the connection's search_path. Raises on failure.
        """
        try:
            if default_schema:
                self.create_schema(default_schema)
                self.disconnect()
                self.connection_params["options"] = f"-c search_path={default_schema}"

            self.connection = psycopg.connect(**self.connection_params)
            self.connection.autocommit = True
        except Exception as error:
            logger.error("DB: Error creating connection", exc_info=True)
            raise RuntimeError("Failed to create DB Connection") from error

        logger.info("DB: Connected to database %r", self.connection_params["database"])

    def disconnect(self, do_commit: bool = False) -> None:
        """
        Close the connection. If ``do_commit`` is True, commit before closing.
        """
        if not self.connection:
            return
        try:
            if do_commit:
                self.commit()
            self.connection.close()
        except Exception:
            logger.warning("DB: Error closing connection", exc_info=True)
        finally:
            self.connection = None

    def commit(self) -> None:
        """
        Commit the current transaction. Raises if there is no connection or commit fails.
        """
        if not self.connection:
            raise RuntimeError("No connection found to commit")
        try:
            self.connection.commit()
        except Exception:
            logger.error("DB: Error committing", exc_info=True)
            raise

    def create_schema(self, schema: str) -> None:
        """
        Create schema ``schema`` (IF NOT EXISTS). Connects first if needed. Raises on failure.
        """
        try:
            if not self.connection:
                self.connect()

            with self.connection.cursor() as cursor:
                cursor.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")

            self.connection.commit()
        except Exception as error:
            if self.connection:
                self.connection.rollback()
            logger.error("DB: Failed to create schema %s", schema, exc_info=True)
            raise RuntimeError(f"Failed to create Schema: {schema}") from error

    def ping(self) -> None:
        """Check that the server answers. Raises ExecutionError otherwise."""
        self.query_row("SELECT 1;")

    def _run(self, cursor, statement: str, values: tuple, fetch: Callable = None) -> Any:
        """Execute on ``cursor`` and return ``fetch(cursor)``; driver errors become ExecutionError."""
        query, params = bind_parameters(statement, values)
        result = None
        try:
            if params is not None:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            if fetch is not None:
                result = fetch(cursor)
        except Exception as error:
            logger.error("DB: Error executing statement %r", statement, exc_info=True)
            raise ExecutionError(statement, error) from error

        if self.log_statements:
            logger.info("Query executed: %s", statement)
        return result

    def execute(self, statement: str, *values: Any) -> int:
        """
        Execute a statement that returns no rows; return the affected row count.

        Args:
            statement: SQL text; use ``$1``, ``$2``, ... for bound values.
            values: Values for the placeholders, in placeholder order.
        Raises:
            ExecutionError: On execution failure.
        """
        if not self.connection:
            self.connect()

        with self.connection.cursor() as cursor:
            self._run(cursor, statement, values)
            return cursor.rowcount

    def query(self, statement: str, *values: Any) -> ResultSet:
        """
        Execute a query and fetch every row together with the column metadata.
        """
        if not self.connection:
            self.connect()

        with self.connection.cursor() as cursor:
            return self._run(cursor, statement, values, _fetch_result_set)

    def query_row(self, statement: str, *values: Any) -> Optional[tuple]:
        """
        Execute a query and return its first row, or None if it returned no rows.
        """
        if not self.connection:
            self.connect()

        with self.connection.cursor() as cursor:
            return self._run(cursor, statement, values, lambda cur: cur.fetchone())

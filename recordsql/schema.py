"""
Table DDL derived from record descriptors.

The record type must have exactly one field bound to the ``id`` column.
Both statements are idempotent through ``IF NOT EXISTS`` / ``IF EXISTS``.
"""

import logging
import warnings
from typing import Any, List

from recordsql.db_util import DbUtil
from recordsql.descriptor import describe
from recordsql.entries import ColumnHeader

logger = logging.getLogger("recordsql.schema")


def generate_ddl_query(table: str, record: Any) -> str:
    """
    Generate the CREATE TABLE IF NOT EXISTS statement for a record type.

    Each column is rendered as ``<name> <type> <constraint>``; the type comes
    from the field's explicit ``typ`` or from its Python type.

    Raises:
        DescriptorError: ``record`` is not a model or has no ``id`` field.
        UnsupportedFieldTypeError: a field type has no column type.
    """
    descriptor = describe(record)
    descriptor.require_id()

    headers = [field.definition() for field in descriptor.fields]
    return f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(headers)});"


def create_table(db_conn: DbUtil, table: str, record: Any) -> None:
    """Create ``table`` from a record type unless it already exists."""
    stmt = generate_ddl_query(table, record)
    logger.debug(stmt)
    db_conn.execute(stmt)
    logger.info("Table %s created successfully", table)


def drop_table(db_conn: DbUtil, table: str) -> None:
    """Drop ``table`` if it exists."""
    db_conn.execute(f"DROP TABLE IF EXISTS {table};")


def create_table_from_headers(db_conn: DbUtil, table: str, headers: List[ColumnHeader]) -> None:
    """
    Create ``table`` from loose column headers.

    .. deprecated:: use :func:`create_table` with a record model instead.
    """
    warnings.warn(
        "create_table_from_headers is deprecated; create tables from record models instead",
        DeprecationWarning,
        stacklevel=2,
    )
    if not headers:
        raise ValueError("At least one column header is required")

    schema = ", ".join(header.definition() for header in headers)
    db_conn.execute(f"CREATE TABLE IF NOT EXISTS {table} ({schema});")

"""
Loose column/value types of the deprecated entry-list API.

Entries are not checked against a record descriptor; prefer record models
with :func:`recordsql.operations.insert_object`.
"""

from enum import Enum

from pydantic import BaseModel


class SQLType(Enum):
    """PostgreSQL column types available to :class:`ColumnHeader`."""

    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    REAL = "REAL"
    DOUBLE = "DOUBLE PRECISION"
    TEXT = "TEXT"
    TIMESTAMP = "TIMESTAMP"
    JSON = "JSON"
    BOOLEAN = "BOOLEAN"
    SERIAL = "SERIAL"


class ColumnHeader(BaseModel):
    """A column header in a SQL table."""

    name: str
    sql_type: SQLType

    def definition(self) -> str:
        return f"{self.name} {self.sql_type.value}"


class Entry(BaseModel):
    """A column name and the text of the value to store in it."""

    column_name: str
    value: str

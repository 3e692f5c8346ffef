"""
recordsql: PostgreSQL persistence for Pydantic records driven by column annotations.

Example::

    from recordsql import Column, DbUtil, Int32, Record, eq
    class Person(Record):
        id: Int32 = Column(sql="id", typ="SERIAL", opt="PRIMARY KEY")
        name: str = Column(sql="name", default="")
    db = DbUtil()
    db.connect()
    Person.create_table(db, "people")
    new_id = Person(name="Jane").insert(db, "people")
    people = Person.select_where(db, eq("id", new_id), table="people")
"""

__version__ = "0.1.0"

from recordsql.base_model import Record
from recordsql.columns import (
    Column,
    ColumnMetadata,
    Float32,
    Float64,
    Int16,
    Int32,
    Int64,
    NativeType,
    get_column_type,
)
from recordsql.db_util import ColumnInfo, DbUtil, ResultSet
from recordsql.descriptor import FieldDescriptor, RecordDescriptor, describe
from recordsql.entries import ColumnHeader, Entry, SQLType
from recordsql.errors import (
    DescriptorError,
    ExecutionError,
    MaterializationError,
    RecordSQLError,
    UnsupportedFieldTypeError,
)
from recordsql.materialize import materialize
from recordsql.operations import (
    count_rows,
    count_rows_where,
    create_table,
    delete_object,
    drop_table,
    insert_entries,
    insert_object,
    lock,
    oldest_entry,
    select_for_update,
    select_from,
    select_from_where,
    unlock,
    update_object,
)
from recordsql.query import Statement
from recordsql.transaction import LockMode, Transaction, transaction
from recordsql.where import Condition, eq, ge, gt, in_, is_null, le, like, lt, ne

__all__ = [
    "Record",
    "Column",
    "ColumnMetadata",
    "NativeType",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
    "get_column_type",
    "DbUtil",
    "ColumnInfo",
    "ResultSet",
    "describe",
    "FieldDescriptor",
    "RecordDescriptor",
    "ColumnHeader",
    "Entry",
    "SQLType",
    "RecordSQLError",
    "DescriptorError",
    "UnsupportedFieldTypeError",
    "ExecutionError",
    "MaterializationError",
    "materialize",
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
    "Statement",
    "transaction",
    "Transaction",
    "LockMode",
    "Condition",
    "eq",
    "ne",
    "lt",
    "le",
    "gt",
    "ge",
    "like",
    "in_",
    "is_null",
    "__version__",
]

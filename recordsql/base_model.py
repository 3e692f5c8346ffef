"""
Pydantic base class for records with table helpers.

Subclass :class:`Record` and bind fields to columns with
:func:`recordsql.columns.Column`. Every helper takes an explicit
:class:`DbUtil` and an optional table name; without one the table name is
derived from the class name (PascalCase -> snake_case).
"""

from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict

from recordsql import operations
from recordsql.db_util import DbUtil
from recordsql.descriptor import RecordDescriptor, describe
from recordsql.query import Filter
from recordsql.schema import generate_ddl_query

T = TypeVar("T", bound="Record")


class Record(BaseModel):
    """
    Base class for record models.

    Example::

        class Person(Record):
            id: Int32 = Column(sql="id", typ="SERIAL", opt="PRIMARY KEY")
            name: str = Column(sql="name", default="")

        Person.create_table(db)
        new_id = Person(name="Ada").insert(db)
    """

    model_config = ConfigDict(validate_assignment=True)

    @staticmethod
    def classname_to_table_name(classname: str) -> str:
        """Convert PascalCase class name to snake_case table name."""
        table_name = classname[0].lower()
        for char in classname[1:]:
            if char.isupper():
                table_name += "_"
            table_name += char.lower()
        return table_name

    @classmethod
    def get_table_name(cls) -> str:
        """Return the default table name for this model (snake_case from class name)."""
        return cls.classname_to_table_name(cls.__name__)

    @classmethod
    def _table(cls, table: Optional[str]) -> str:
        return table or cls.get_table_name()

    @classmethod
    def describe(cls) -> RecordDescriptor:
        return describe(cls)

    @classmethod
    def get_columns(cls) -> List[str]:
        """Return the mapped column names in declaration order."""
        return describe(cls).columns

    @classmethod
    def generate_ddl_query(cls, table: Optional[str] = None) -> str:
        return generate_ddl_query(cls._table(table), cls)

    @classmethod
    def create_table(cls, db_conn: DbUtil, table: Optional[str] = None) -> None:
        operations.create_table(db_conn, cls._table(table), cls)

    @classmethod
    def drop_table(cls, db_conn: DbUtil, table: Optional[str] = None) -> None:
        operations.drop_table(db_conn, cls._table(table))

    @classmethod
    def select_all(cls: Type[T], db_conn: DbUtil, table: Optional[str] = None) -> List[T]:
        return operations.select_from(db_conn, cls, cls._table(table))

    @classmethod
    def select_where(
        cls: Type[T], db_conn: DbUtil, condition: Filter, *args: Any, table: Optional[str] = None
    ) -> List[T]:
        return operations.select_from_where(db_conn, cls, cls._table(table), condition, *args)

    @classmethod
    def count(cls, db_conn: DbUtil, condition: Filter = None, *args: Any, table: Optional[str] = None) -> int:
        return operations.count_rows_where(db_conn, cls._table(table), condition, *args)

    def insert(self, db_conn: DbUtil, table: Optional[str] = None) -> Any:
        """Insert this instance; return the new id, or 0 if the row conflicted."""
        return operations.insert_object(db_conn, self._table(table), self)

    def update(self, db_conn: DbUtil, table: Optional[str] = None) -> int:
        return operations.update_object(db_conn, self._table(table), self)

    def delete(self, db_conn: DbUtil, table: Optional[str] = None) -> int:
        return operations.delete_object(db_conn, self._table(table), self)

    def to_dict(self) -> dict:
        """Return model as dict."""
        return self.model_dump()

    def to_json(self) -> str:
        """Return model as JSON string."""
        return self.model_dump_json()

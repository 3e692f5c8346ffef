"""
Column annotations and the Python type -> PostgreSQL type mapping.

Fields are bound to columns with :func:`Column`, which stores a
:class:`ColumnMetadata` in the pydantic ``Field`` metadata::

    class Person(Record):
        id: Int32 = Column(sql="id", typ="SERIAL", opt="PRIMARY KEY")
        name: str = Column(sql="name")
        mass: Float32 = Column(sql="mass")

Width-specific numbers use the ``Annotated`` aliases below; plain ``int`` maps
to INT4 and plain ``float`` to FLOAT8.
"""

import datetime
import types
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Optional, Union, get_args, get_origin

from pydantic import BaseModel, Field
from pydantic_core import PydanticUndefined

from recordsql.errors import UnsupportedFieldTypeError

if TYPE_CHECKING:
    from recordsql.descriptor import FieldDescriptor

# PEP 604 unions (``int | None``) have their own origin.
UNION_TYPE = getattr(types, "UnionType", None)

# Marker looked for in explicit types of server-generated columns.
AUTO_INCREMENT_MARKER = "SERIAL"


class NativeType(Enum):
    """Semantic type of a field, independent of its Python annotation."""

    BOOL = "bool"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BYTES = "bytes"
    TIMESTAMP = "timestamp"


Int16 = Annotated[int, NativeType.INT16]
Int32 = Annotated[int, NativeType.INT32]
Int64 = Annotated[int, NativeType.INT64]
Float32 = Annotated[float, NativeType.FLOAT32]
Float64 = Annotated[float, NativeType.FLOAT64]

PYTHON_NATIVE_TYPES = {
    bool: NativeType.BOOL,
    int: NativeType.INT32,
    float: NativeType.FLOAT64,
    str: NativeType.STRING,
    bytes: NativeType.BYTES,
    datetime.datetime: NativeType.TIMESTAMP,
}

COLUMN_TYPES = {
    NativeType.BOOL: "BOOL",
    NativeType.INT16: "INT2",
    NativeType.INT32: "INT4",
    NativeType.INT64: "INT8",
    NativeType.FLOAT32: "FLOAT4",
    NativeType.FLOAT64: "FLOAT8",
    NativeType.STRING: "TEXT",
    NativeType.BYTES: "BYTEA",
    NativeType.TIMESTAMP: "TIMESTAMP",
}


class ColumnMetadata(BaseModel):
    """
    Metadata for a table column (stored in Pydantic Field metadata).
    Used by :func:`Column` and read back by :func:`recordsql.descriptor.describe`.
    """

    sql: Optional[str] = None
    typ: Optional[str] = None
    opt: Optional[str] = None


def Column(
    sql: Optional[str] = None,
    typ: Optional[str] = None,
    opt: Optional[str] = None,
    default: Any = PydanticUndefined,
) -> Any:
    """
    Bind a model field to a table column.

    ``sql`` is the column name, ``typ`` overrides the derived column type
    (passed through verbatim, e.g. ``"SERIAL"`` or ``"JSONB"``) and ``opt`` is
    appended to the column definition (e.g. ``"PRIMARY KEY"``). A field
    without ``sql`` is not persisted.

    Without ``default`` the field is required, as with ``Field``. Columns the
    server fills in (``SERIAL`` types) default to 0 instead, so new records
    can be built without an id.
    """
    if default is PydanticUndefined and AUTO_INCREMENT_MARKER in (typ or "").upper():
        default = 0
    metadata_dict = ColumnMetadata(sql=sql, typ=typ, opt=opt).model_dump(exclude_none=True)
    return Field(default=default, json_schema_extra={"column_metadata": metadata_dict})


def resolve_native_type(python_type: Any, metadata: Optional[list] = None) -> Optional[NativeType]:
    """Return the native type tag for an annotation, or None if it has none."""
    for item in metadata or []:
        if isinstance(item, NativeType):
            return item

    origin = get_origin(python_type)
    if origin is Annotated:
        base, *extras = get_args(python_type)
        return resolve_native_type(base, extras)

    if origin is Union or (UNION_TYPE is not None and origin is UNION_TYPE):
        args = [arg for arg in get_args(python_type) if arg is not type(None)]
        if len(args) == 1:
            return resolve_native_type(args[0])
        return None

    if origin is not None:
        return None

    return PYTHON_NATIVE_TYPES.get(python_type)


def get_column_type(field: "FieldDescriptor") -> str:
    """
    Derive the PostgreSQL column type of a field.

    An explicit ``typ`` is returned unchanged; it is not validated so dialect
    features the mapper does not know about pass straight through.
    """
    if field.explicit_type is not None:
        return field.explicit_type

    if field.native_type is None:
        raise UnsupportedFieldTypeError(
            f"unsupported field type {field.annotation!r} for field {field.name!r}"
        )
    return COLUMN_TYPES[field.native_type]

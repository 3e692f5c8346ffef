"""
Record descriptors: the column layout of a record type.

A descriptor lists, in declaration order, every model field bound to a column
with :func:`recordsql.columns.Column`. Field order fixes the placeholder order
of generated INSERT and UPDATE statements. Descriptors are built once per
record type and cached.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict
from pydantic.fields import FieldInfo

from recordsql.columns import (
    AUTO_INCREMENT_MARKER,
    ColumnMetadata,
    NativeType,
    get_column_type,
    resolve_native_type,
)
from recordsql.errors import DescriptorError

logger = logging.getLogger("recordsql.descriptor")

ID_COLUMN = "id"


class FieldDescriptor(BaseModel):
    """One persisted field: attribute name, column name, types and constraint."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    column: str
    annotation: Any = None
    native_type: Optional[NativeType] = None
    explicit_type: Optional[str] = None
    constraint: str = ""

    @property
    def is_auto_increment(self) -> bool:
        """Whether the column value is generated by the server on insert."""
        return AUTO_INCREMENT_MARKER in (self.explicit_type or "").upper()

    def column_type(self) -> str:
        return get_column_type(self)

    def definition(self) -> str:
        """Column definition as used in CREATE TABLE."""
        return f"{self.column} {self.column_type()} {self.constraint}"


class RecordDescriptor(BaseModel):
    """Ordered field descriptors of a record type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    record_type: Type[BaseModel]
    fields: Tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str:
        return self.record_type.__name__

    @property
    def columns(self) -> List[str]:
        return [field.column for field in self.fields]

    @property
    def column_to_field(self) -> Dict[str, str]:
        return {field.column: field.name for field in self.fields}

    @property
    def id_field(self) -> Optional[FieldDescriptor]:
        return next((field for field in self.fields if field.column == ID_COLUMN), None)

    def require_id(self) -> FieldDescriptor:
        """Return the single field bound to the ``id`` column or raise DescriptorError."""
        id_fields = [field for field in self.fields if field.column == ID_COLUMN]
        if not id_fields:
            raise DescriptorError(f"model {self.name} does not have a field for the ID column")
        if len(id_fields) > 1:
            raise DescriptorError(
                f"model {self.name} has {len(id_fields)} fields for the ID column"
            )
        return id_fields[0]


def get_column_metadata(field_info: FieldInfo) -> Optional[ColumnMetadata]:
    """Return the ColumnMetadata stored by :func:`Column`, if any."""
    if isinstance(field_info.json_schema_extra, dict) and "column_metadata" in field_info.json_schema_extra:
        return ColumnMetadata(**field_info.json_schema_extra["column_metadata"])
    return None


def record_type_of(record: Any) -> Type[BaseModel]:
    """Accept a record type or a record instance and return the record type."""
    record_type = record if isinstance(record, type) else type(record)
    if not issubclass(record_type, BaseModel):
        raise DescriptorError(f"type {record_type.__name__} is not a structure")
    return record_type


def describe(record: Any) -> RecordDescriptor:
    """
    Return the descriptor of a record type (or of a record instance's type).

    Fields without a column name are left out and never read from or written
    to the database; they must have a default so that rows can be turned
    back into records. Every column field must map to a column type.

    Descriptors are cached for the life of the process, so the warning for a
    field without a column name is logged once per type and every described
    type stays referenced by the cache.

    Raises:
        DescriptorError: For a required field without a column name.
        UnsupportedFieldTypeError: For a field whose type has no column type.
    """
    return _describe_type(record_type_of(record))


@lru_cache(maxsize=None)
def _describe_type(record_type: Type[BaseModel]) -> RecordDescriptor:
    fields = []
    for name, field_info in record_type.model_fields.items():
        metadata = get_column_metadata(field_info)
        if metadata is None or not metadata.sql:
            if field_info.is_required():
                raise DescriptorError(
                    f"field {name!r} in model {record_type.__name__} is required "
                    "but has no SQL column name"
                )
            logger.warning(
                "Field %r in model %s does not have an SQL column name.",
                name,
                record_type.__name__,
            )
            continue

        field = FieldDescriptor(
            name=name,
            column=metadata.sql,
            annotation=field_info.annotation,
            native_type=resolve_native_type(field_info.annotation, field_info.metadata),
            explicit_type=metadata.typ,
            constraint=metadata.opt or "",
        )
        field.column_type()
        fields.append(field)
    return RecordDescriptor(record_type=record_type, fields=tuple(fields))

"""Tests for recordsql.columns."""

import datetime
from typing import Dict, List, Optional

import pytest
from pydantic import BaseModel, ValidationError

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
    resolve_native_type,
)
from recordsql.descriptor import FieldDescriptor
from recordsql.errors import DescriptorError, UnsupportedFieldTypeError


def field_of(annotation, typ=None):
    return FieldDescriptor(
        name="value",
        column="value",
        annotation=annotation,
        native_type=resolve_native_type(annotation),
        explicit_type=typ,
    )


class TestColumn:
    """Tests for the Column annotation."""

    def test_column_stores_metadata(self):
        """Test Column stores its metadata in json_schema_extra."""
        field = Column(sql="id", typ="SERIAL", opt="PRIMARY KEY")
        metadata = ColumnMetadata(**field.json_schema_extra["column_metadata"])
        assert metadata.sql == "id"
        assert metadata.typ == "SERIAL"
        assert metadata.opt == "PRIMARY KEY"

    def test_column_defaults(self):
        """Test unset metadata is left out and the default is kept."""
        field = Column(sql="name", default="")
        assert field.default == ""
        assert field.json_schema_extra["column_metadata"] == {"sql": "name"}

    def test_column_without_name(self):
        """Test Column() without arguments carries empty metadata."""
        field = Column()
        assert field.is_required()
        assert field.json_schema_extra["column_metadata"] == {}

    def test_column_without_default_is_required(self):
        """Test a column field without a default must be given."""
        class Person(BaseModel):
            id: int = Column(sql="id", default=0)
            name: str = Column(sql="name")

        with pytest.raises(ValidationError):
            Person()
        assert Person(name="A").name == "A"

    def test_serial_column_defaults_to_zero(self):
        """Test server-assigned columns need no value."""
        assert Column(sql="id", typ="SERIAL").default == 0
        assert Column(sql="id", typ="bigserial").default == 0
        assert Column(sql="id", typ="SERIAL", default=None).default is None
        assert Column(sql="id", typ="INT4").is_required()


class TestResolveNativeType:
    """Tests for native type resolution."""

    def test_plain_python_types(self):
        """Test the builtin annotations."""
        assert resolve_native_type(bool) is NativeType.BOOL
        assert resolve_native_type(int) is NativeType.INT32
        assert resolve_native_type(float) is NativeType.FLOAT64
        assert resolve_native_type(str) is NativeType.STRING
        assert resolve_native_type(bytes) is NativeType.BYTES
        assert resolve_native_type(datetime.datetime) is NativeType.TIMESTAMP

    def test_annotated_aliases(self):
        """Test width-specific aliases override the base type."""
        assert resolve_native_type(Int16) is NativeType.INT16
        assert resolve_native_type(Int32) is NativeType.INT32
        assert resolve_native_type(Int64) is NativeType.INT64
        assert resolve_native_type(Float32) is NativeType.FLOAT32
        assert resolve_native_type(Float64) is NativeType.FLOAT64

    def test_metadata_tag(self):
        """Test a tag found in pydantic field metadata wins."""
        assert resolve_native_type(int, [NativeType.INT64]) is NativeType.INT64

    def test_optional_unwrapped(self):
        """Test Optional[X] resolves to X."""
        assert resolve_native_type(Optional[str]) is NativeType.STRING
        assert resolve_native_type(Optional[Int16]) is NativeType.INT16

    def test_unsupported(self):
        """Test composite types have no native type."""
        class Nested(BaseModel):
            x: int = 0

        assert resolve_native_type(List[int]) is None
        assert resolve_native_type(Dict[int, int]) is None
        assert resolve_native_type(list) is None
        assert resolve_native_type(dict) is None
        assert resolve_native_type(Nested) is None
        assert resolve_native_type(datetime.date) is None


class TestGetColumnType:
    """Tests for the type mapper."""

    @pytest.mark.parametrize(
        "annotation, expected",
        [
            (bool, "BOOL"),
            (int, "INT4"),
            (Int16, "INT2"),
            (Int32, "INT4"),
            (Int64, "INT8"),
            (Float32, "FLOAT4"),
            (Float64, "FLOAT8"),
            (float, "FLOAT8"),
            (str, "TEXT"),
            (bytes, "BYTEA"),
            (datetime.datetime, "TIMESTAMP"),
        ],
    )
    def test_native_types(self, annotation, expected):
        """Test the fixed native type table."""
        assert get_column_type(field_of(annotation)) == expected

    def test_explicit_type_wins(self):
        """Test an explicit type is returned verbatim, even if it is not real SQL."""
        assert get_column_type(field_of(datetime.datetime, typ="FAKENEWS")) == "FAKENEWS"
        assert get_column_type(field_of(dict, typ="JSONB")) == "JSONB"

    @pytest.mark.parametrize("annotation", [List[int], Dict[int, int], list, dict])
    def test_unsupported_types(self, annotation):
        """Test unmappable types raise."""
        with pytest.raises(UnsupportedFieldTypeError, match="unsupported field type"):
            get_column_type(field_of(annotation))

    def test_unsupported_is_descriptor_error(self):
        """Test the unsupported type error is a descriptor error."""
        with pytest.raises(DescriptorError):
            get_column_type(field_of(list))

    def test_deterministic(self):
        """Test repeated calls give the same keyword."""
        field = field_of(Int64)
        assert {get_column_type(field) for _ in range(5)} == {"INT8"}

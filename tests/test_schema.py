"""Tests for recordsql.schema."""

import datetime
from typing import List
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel

from recordsql.columns import Column, Float32, Float64, Int16, Int32, Int64
from recordsql.entries import ColumnHeader, SQLType
from recordsql.errors import DescriptorError, UnsupportedFieldTypeError
from recordsql.schema import create_table, create_table_from_headers, drop_table, generate_ddl_query


class Identifier(BaseModel):
    id: Int16 = Column(sql="id")


class Material(BaseModel):
    id: Int32 = Column(sql="id")
    name: str = Column(sql="name", default="")
    mass16: Int16 = Column(sql="mass16", default=0)
    mass32: Int32 = Column(sql="mass32", default=0)
    mass64: Int64 = Column(sql="mass64", default=0)
    heat32: Float32 = Column(sql="heat32", default=0.0)
    heat64: Float64 = Column(sql="heat64", default=0.0)


class Tree(BaseModel):
    id: Int64 = Column(sql="id", typ="BIGSERIAL", opt="PRIMARY KEY")
    oak: bool = Column(sql="oak", default=False)
    dna: bytes = Column(sql="dna", default=b"")


class License(BaseModel):
    dob: datetime.datetime = Column(sql="dob")


class TestGenerateDdlQuery:
    """Tests for CREATE TABLE generation."""

    def test_single_column(self):
        """Test a table with only an id."""
        assert generate_ddl_query("identifier", Identifier) == (
            "CREATE TABLE IF NOT EXISTS identifier (id INT2 );"
        )

    def test_native_types(self):
        """Test every numeric width maps to its own type."""
        assert generate_ddl_query("material", Material) == (
            "CREATE TABLE IF NOT EXISTS material (id INT4 , name TEXT , mass16 INT2 , "
            "mass32 INT4 , mass64 INT8 , heat32 FLOAT4 , heat64 FLOAT8 );"
        )

    def test_explicit_type_and_constraint(self):
        """Test typ and opt annotations end up in the column definition."""
        assert generate_ddl_query("tree", Tree) == (
            "CREATE TABLE IF NOT EXISTS tree (id BIGSERIAL PRIMARY KEY, oak BOOL , dna BYTEA );"
        )

    def test_missing_id(self):
        """Test a model without id cannot become a table."""
        with pytest.raises(DescriptorError, match="ID column"):
            generate_ddl_query("license", License)

    def test_not_a_structure(self):
        """Test non-model input is rejected."""
        with pytest.raises(DescriptorError, match="is not a structure"):
            generate_ddl_query("empty", False)

    def test_unsupported_field(self):
        """Test an unmappable field fails the whole statement."""
        class Bag(BaseModel):
            id: int = Column(sql="id")
            items: List[int] = Column(sql="items")

        with pytest.raises(UnsupportedFieldTypeError):
            generate_ddl_query("bag", Bag)

    def test_unsupported_field_with_explicit_type(self):
        """Test an explicit type makes any field mappable."""
        class Bag(BaseModel):
            id: int = Column(sql="id")
            items: List[int] = Column(sql="items", typ="INT4[]")

        assert generate_ddl_query("bag", Bag) == "CREATE TABLE IF NOT EXISTS bag (id INT4 , items INT4[] );"


class TestCreateDropTable:
    """Tests for create_table and drop_table."""

    def test_create_table_executes(self):
        """Test the DDL is executed on the connection."""
        db = MagicMock()
        create_table(db, "tree", Tree)
        db.execute.assert_called_once_with(generate_ddl_query("tree", Tree))

    def test_create_table_fails_before_execution(self):
        """Test descriptor errors never reach the connection."""
        db = MagicMock()
        with pytest.raises(DescriptorError):
            create_table(db, "license", License)
        db.execute.assert_not_called()

    def test_drop_table(self):
        """Test DROP TABLE IF EXISTS is issued."""
        db = MagicMock()
        drop_table(db, "tree")
        db.execute.assert_called_once_with("DROP TABLE IF EXISTS tree;")


class TestCreateTableFromHeaders:
    """Tests for the deprecated header-based DDL."""

    def test_headers(self):
        """Test headers render as name and type."""
        db = MagicMock()
        headers = [
            ColumnHeader(name="id", sql_type=SQLType.SERIAL),
            ColumnHeader(name="score", sql_type=SQLType.DOUBLE),
        ]
        with pytest.warns(DeprecationWarning):
            create_table_from_headers(db, "scores", headers)
        db.execute.assert_called_once_with(
            "CREATE TABLE IF NOT EXISTS scores (id SERIAL, score DOUBLE PRECISION);"
        )

    def test_no_headers(self):
        """Test at least one header is required."""
        with pytest.warns(DeprecationWarning), pytest.raises(ValueError):
            create_table_from_headers(MagicMock(), "scores", [])

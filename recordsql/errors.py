"""
Exception types raised by recordsql.

Descriptor problems are detected before any statement is sent; execution
problems wrap the driver error together with the statement that failed.
"""


class RecordSQLError(Exception):
    """Base class for all recordsql errors."""


class DescriptorError(RecordSQLError, ValueError):
    """A record type cannot be mapped (not a model, missing ``id`` column, ...)."""


class UnsupportedFieldTypeError(DescriptorError):
    """A field has no explicit column type and its Python type is not mappable."""


class ExecutionError(RecordSQLError, RuntimeError):
    """The database rejected a statement."""

    def __init__(self, statement: str, error: Exception):
        self.statement = statement
        self.error = error
        super().__init__(f"Failed to execute SQL statement {statement!r}: {error}")


class MaterializationError(RecordSQLError, RuntimeError):
    """A result row could not be converted into a record instance."""

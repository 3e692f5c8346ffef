"""
Conversion of query results into record instances.

Columns are matched to fields by column name using the record descriptor,
so the column order of the result does not matter. Columns without a
matching field are ignored (and logged); fields without a matching column
keep their defaults.

A row that cannot be decoded or validated aborts the whole conversion with
:class:`MaterializationError`; no partial list is returned.
"""

import logging
from typing import Any, Callable, List, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from recordsql.db_util import ColumnInfo, ResultSet
from recordsql.descriptor import describe
from recordsql.errors import MaterializationError

logger = logging.getLogger("recordsql.materialize")

T = TypeVar("T", bound=BaseModel)

# psycopg2 returns memoryview for BYTEA; floating point columns are always
# coerced to float whatever typecaster is registered for them.
VALUE_HOLDERS = {
    "FLOAT4": float,
    "FLOAT8": float,
    "BYTEA": bytes,
}


def _driver_value(value: Any) -> Any:
    return value


def resolve_holder(column: ColumnInfo) -> Callable[[Any], Any]:
    """Return the converter applied to every non-NULL value of ``column``."""
    return VALUE_HOLDERS.get(column.type_name, _driver_value)


def materialize(result_set: ResultSet, record: Union[Type[T], T]) -> List[T]:
    """
    Build one record instance per result row, in result order.

    ``record`` is the record type (or any instance of it, used as a template).
    An empty result gives an empty list.
    """
    descriptor = describe(record)
    record_type = descriptor.record_type
    column_to_field = descriptor.column_to_field

    names = result_set.column_names
    holders = [resolve_holder(column) for column in result_set.columns]

    for name in names:
        if name not in column_to_field:
            logger.warning("No field in model %s is bound to SQL column %r.", descriptor.name, name)

    records = []
    for index, row in enumerate(result_set.rows):
        if len(row) != len(names):
            raise MaterializationError(
                f"Row {index} has {len(row)} values for {len(names)} columns"
            )

        try:
            decoded = [
                None if value is None else holder(value)
                for holder, value in zip(holders, row)
            ]
        except (TypeError, ValueError) as error:
            raise MaterializationError(
                f"Failed to decode row {index} into model {descriptor.name}: {error}"
            ) from error

        values = {
            column_to_field[name]: value
            for name, value in zip(names, decoded)
            if name in column_to_field
        }

        try:
            records.append(record_type.model_validate(values))
        except ValidationError as error:
            raise MaterializationError(
                f"Failed to convert row {index} into model {descriptor.name}: {error}"
            ) from error

    return records

"""
Structured WHERE conditions compiled to bound ``$n`` placeholders.

Conditions are built from column names and plain values and combined with
``&``, ``|`` and ``~``::

    cond = (eq("name", "C") | le("id", 2)) & ~is_null("mass")
    select_where(Person, "people", cond)

Values never end up in the statement text; only column names do, and those
are checked against the record descriptor before the statement is built.
"""

from typing import Any, Iterable, Iterator, List

COMPARISON_OPERATORS = ("=", "<>", "<", "<=", ">", ">=", "LIKE", "ILIKE")


class Condition:
    """Base class of WHERE conditions."""

    def compile(self, values: List[Any]) -> str:
        """Return the SQL text, appending bound values to ``values``."""
        raise NotImplementedError

    def columns(self) -> Iterator[str]:
        """Yield every column name the condition refers to."""
        raise NotImplementedError

    def __and__(self, other: "Condition") -> "Condition":
        return And(self, other)

    def __or__(self, other: "Condition") -> "Condition":
        return Or(self, other)

    def __invert__(self) -> "Condition":
        return Not(self)


def _placeholder(values: List[Any], value: Any) -> str:
    values.append(value)
    return f"${len(values)}"


class Compare(Condition):
    def __init__(self, column: str, operator: str, value: Any):
        operator = operator.upper()
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {operator!r}")
        self.column = column
        self.operator = operator
        self.value = value

    def compile(self, values: List[Any]) -> str:
        return f"{self.column} {self.operator} {_placeholder(values, self.value)}"

    def columns(self) -> Iterator[str]:
        yield self.column

    def __repr__(self) -> str:
        return f"Compare({self.column!r}, {self.operator!r}, {self.value!r})"


class In(Condition):
    def __init__(self, column: str, options: Iterable[Any]):
        self.column = column
        self.options = list(options)
        if not self.options:
            raise ValueError(f"IN condition on {column!r} needs at least one value")

    def compile(self, values: List[Any]) -> str:
        refs = ", ".join(_placeholder(values, option) for option in self.options)
        return f"{self.column} IN ({refs})"

    def columns(self) -> Iterator[str]:
        yield self.column


class IsNull(Condition):
    def __init__(self, column: str):
        self.column = column

    def compile(self, values: List[Any]) -> str:
        return f"{self.column} IS NULL"

    def columns(self) -> Iterator[str]:
        yield self.column


class And(Condition):
    joiner = " AND "

    def __init__(self, *conditions: Condition):
        if not conditions:
            raise ValueError(f"{type(self).__name__} needs at least one condition")
        self.conditions = conditions

    def compile(self, values: List[Any]) -> str:
        return "(" + self.joiner.join(c.compile(values) for c in self.conditions) + ")"

    def columns(self) -> Iterator[str]:
        for condition in self.conditions:
            yield from condition.columns()


class Or(And):
    joiner = " OR "


class Not(Condition):
    def __init__(self, condition: Condition):
        self.condition = condition

    def compile(self, values: List[Any]) -> str:
        return f"NOT ({self.condition.compile(values)})"

    def columns(self) -> Iterator[str]:
        return self.condition.columns()


def eq(column: str, value: Any) -> Compare:
    return Compare(column, "=", value)


def ne(column: str, value: Any) -> Compare:
    return Compare(column, "<>", value)


def lt(column: str, value: Any) -> Compare:
    return Compare(column, "<", value)


def le(column: str, value: Any) -> Compare:
    return Compare(column, "<=", value)


def gt(column: str, value: Any) -> Compare:
    return Compare(column, ">", value)


def ge(column: str, value: Any) -> Compare:
    return Compare(column, ">=", value)


def like(column: str, pattern: str) -> Compare:
    return Compare(column, "LIKE", pattern)


def in_(column: str, options: Iterable[Any]) -> In:
    return In(column, options)


def is_null(column: str) -> IsNull:
    return IsNull(column)

"""Exceptions raised by the mock SQL executor."""

from __future__ import annotations

from typing import Sequence


class MockSQLError(RuntimeError):
    """Base class for failures while interpreting generated SQL."""


class UnsupportedStatement(MockSQLError):
    """The statement is not a SELECT."""

    def __init__(self, message: str = "Only SELECT queries are supported") -> None:
        super().__init__(message)


class UnknownTable(MockSQLError):
    """No supported table name appears in the statement."""

    def __init__(self, supported_tables: Sequence[str]) -> None:
        self.supported_tables = tuple(supported_tables)
        super().__init__(
            "No valid table found in query. Supported tables: " + ", ".join(self.supported_tables)
        )


class LimitParseError(MockSQLError):
    """A LIMIT or TOP clause carries a value that is not a non-negative integer."""

    def __init__(self, clause: str, raw_value: str) -> None:
        self.clause = clause
        self.raw_value = raw_value
        super().__init__(f"Invalid {clause} value '{raw_value}'; expected a non-negative integer")


class ExecutionError(MockSQLError):
    """Wraps a failure raised while filtering, sorting or limiting a table."""

    def __init__(self, table: str, cause: BaseException) -> None:
        self.table = table
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"SQL execution error on {table}: {detail}")


__all__ = [
    "ExecutionError",
    "LimitParseError",
    "MockSQLError",
    "UnknownTable",
    "UnsupportedStatement",
]

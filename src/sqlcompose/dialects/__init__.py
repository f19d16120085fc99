"""Driver-native positional marker styles."""

from .base import SQLDialect
from .builtin import (
    DEFAULT_DIALECT,
    OracleDialect,
    PostgresDialect,
    PsycopgDialect,
    SqliteDialect,
)
from .registry import available, get, register

__all__ = [
    "SQLDialect",
    "DEFAULT_DIALECT",
    "OracleDialect",
    "PostgresDialect",
    "PsycopgDialect",
    "SqliteDialect",
    "available",
    "get",
    "register",
]

from __future__ import annotations

from .registry import register


class PostgresDialect:
    name = "postgres"
    paramstyle = "numeric_dollar"  # $1, $2, ...
    reuses_markers = True

    def marker(self, ordinal: int) -> str:
        return f"${ordinal}"

    def escape_text(self, text: str) -> str:
        return text


class SqliteDialect:
    name = "sqlite"
    paramstyle = "qmark"
    reuses_markers = False

    def marker(self, ordinal: int) -> str:
        return "?"

    def escape_text(self, text: str) -> str:
        return text


class PsycopgDialect:
    name = "psycopg"
    paramstyle = "format"  # %s
    reuses_markers = False

    def marker(self, ordinal: int) -> str:
        return "%s"

    def escape_text(self, text: str) -> str:
        # format-style drivers treat a bare % as the start of a marker
        return text.replace("%", "%%")


class OracleDialect:
    name = "oracle"
    paramstyle = "numeric"  # :1, :2, ...
    reuses_markers = True

    def marker(self, ordinal: int) -> str:
        return f":{ordinal}"

    def escape_text(self, text: str) -> str:
        return text


DEFAULT_DIALECT = "postgres"

register(PostgresDialect())
register(SqliteDialect())
register(PsycopgDialect())
register(OracleDialect())

"""PostgreSQL driver using psycopg (v3+)."""

from __future__ import annotations

from typing import Any, ClassVar

from portable_query.adapters.dbapi import CursorHandle, DBAPIDriver
from portable_query.core.common import DriverFeatures
from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode
from portable_query.core.exceptions import NotFoundError

_SPECIAL_QUERIES = {
    "tables": (
        "SELECT table_name FROM information_schema.tables"
        " WHERE table_schema = current_schema() AND table_type = 'BASE TABLE'"
        " ORDER BY table_name"
    ),
    "views": (
        "SELECT table_name FROM information_schema.views"
        " WHERE table_schema = current_schema() ORDER BY table_name"
    ),
    "users": "SELECT usename FROM pg_user",
    "databases": "SELECT datname FROM pg_database WHERE NOT datistemplate",
}


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    parts.extend(f"{key}={value}" for key, value in config.extra.items())
    return " ".join(parts)


class PostgresqlDriver(DBAPIDriver):
    """PostgreSQL driver. Native error codes are SQLSTATE strings."""

    features: ClassVar[DriverFeatures] = DriverFeatures(
        limit="alter", numrows=True, transactions=True, sequences=True
    )
    native_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        "22007": ErrorCode.INVALID_DATE,
        "22008": ErrorCode.INVALID_DATE,
        "22012": ErrorCode.DIVZERO,
        "22P02": ErrorCode.INVALID_NUMBER,
        "23502": ErrorCode.CONSTRAINT_NOT_NULL,
        "23503": ErrorCode.CONSTRAINT,
        "23505": ErrorCode.ALREADY_EXISTS,
        "3D000": ErrorCode.NOSUCHDB,
        "42501": ErrorCode.ACCESS_VIOLATION,
        "42601": ErrorCode.SYNTAX,
        "42703": ErrorCode.NOSUCHFIELD,
        "42P01": ErrorCode.NOSUCHTABLE,
        "42P07": ErrorCode.ALREADY_EXISTS,
    }
    portable_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        "23505": ErrorCode.CONSTRAINT,
    }

    def _error_class(self) -> type[Exception]:
        import psycopg

        return psycopg.Error

    def _open(self, config: ConnectionConfig) -> Any:
        import psycopg

        return psycopg.connect(_build_conninfo(config), autocommit=True)

    def _native_code(self, error: Exception) -> Any:
        return getattr(error, "sqlstate", None) or str(error)

    def quote_boolean(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def quote_binary(self, value: bytes) -> str:
        return "'\\x" + bytes(value).hex() + "'::bytea"

    def num_rows(self, handle: CursorHandle) -> int:
        return handle.cursor.rowcount

    def get_special_query(self, kind: str) -> str | None:
        return _SPECIAL_QUERIES.get(kind)

    # --- Sequences ---

    def create_sequence(self, seq_name: str) -> None:
        self.query(f"CREATE SEQUENCE {self.get_sequence_name(seq_name)}")

    def drop_sequence(self, seq_name: str) -> None:
        self.query(f"DROP SEQUENCE {self.get_sequence_name(seq_name)}")

    def next_id(self, seq_name: str, ondemand: bool = True) -> int:
        select = f"SELECT NEXTVAL('{self.get_sequence_name(seq_name)}')"
        try:
            return int(self.get_one(select))
        except NotFoundError as e:
            if not ondemand or e.code != ErrorCode.NOSUCHTABLE:
                raise
        self.create_sequence(seq_name)
        return int(self.get_one(select))

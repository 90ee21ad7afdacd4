"""Oracle driver using oracledb."""

from __future__ import annotations

from typing import Any, ClassVar

from portable_query.adapters.dbapi import DBAPIDriver
from portable_query.core.common import DriverFeatures
from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode
from portable_query.core.exceptions import NotFoundError

_SPECIAL_QUERIES = {
    "tables": "SELECT table_name FROM user_tables ORDER BY table_name",
    "views": "SELECT view_name FROM user_views ORDER BY view_name",
    "users": "SELECT username FROM all_users",
    "synonyms": "SELECT synonym_name FROM user_synonyms",
}


def _build_dsn(config: ConnectionConfig) -> str:
    """Build an Oracle DSN string from config fields (host:port/database)."""
    if config.host is None:
        return config.database
    port = f":{config.port}" if config.port is not None else ""
    return f"{config.host}{port}/{config.database}"


class OracleDriver(DBAPIDriver):
    """Oracle driver. Native error codes are ORA- numbers."""

    features: ClassVar[DriverFeatures] = DriverFeatures(
        limit="alter", transactions=True, sequences=True
    )
    native_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        1: ErrorCode.CONSTRAINT,
        900: ErrorCode.SYNTAX,
        904: ErrorCode.NOSUCHFIELD,
        913: ErrorCode.VALUE_COUNT_ON_ROW,
        921: ErrorCode.SYNTAX,
        923: ErrorCode.SYNTAX,
        942: ErrorCode.NOSUCHTABLE,
        955: ErrorCode.ALREADY_EXISTS,
        1400: ErrorCode.CONSTRAINT_NOT_NULL,
        1401: ErrorCode.INVALID,
        1407: ErrorCode.CONSTRAINT_NOT_NULL,
        1418: ErrorCode.NOT_FOUND,
        1476: ErrorCode.DIVZERO,
        1722: ErrorCode.INVALID_NUMBER,
        2289: ErrorCode.NOSUCHTABLE,
        2291: ErrorCode.CONSTRAINT,
        2292: ErrorCode.CONSTRAINT,
        2449: ErrorCode.CONSTRAINT,
        12899: ErrorCode.INVALID,
    }

    def _error_class(self) -> type[Exception]:
        import oracledb

        return oracledb.Error

    def _open(self, config: ConnectionConfig) -> Any:
        import oracledb

        connection = oracledb.connect(
            user=config.user, password=config.password, dsn=_build_dsn(config)
        )
        connection.autocommit = True
        return connection

    def _native_code(self, error: Exception) -> Any:
        detail = error.args[0] if error.args else None
        return getattr(detail, "code", None) or str(error)

    def quote_binary(self, value: bytes) -> str:
        return "HEXTORAW('" + bytes(value).hex().upper() + "')"

    def modify_limit_query(self, query: str, from_: int, count: int, params: Any = None) -> str:
        return f"{query} OFFSET {int(from_)} ROWS FETCH NEXT {int(count)} ROWS ONLY"

    def get_special_query(self, kind: str) -> str | None:
        return _SPECIAL_QUERIES.get(kind)

    # --- Sequences ---

    def create_sequence(self, seq_name: str) -> None:
        self.query(f"CREATE SEQUENCE {self.get_sequence_name(seq_name)}")

    def drop_sequence(self, seq_name: str) -> None:
        self.query(f"DROP SEQUENCE {self.get_sequence_name(seq_name)}")

    def next_id(self, seq_name: str, ondemand: bool = True) -> int:
        select = f"SELECT {self.get_sequence_name(seq_name)}.nextval FROM dual"
        try:
            return int(self.get_one(select))
        except NotFoundError as e:
            if not ondemand or e.code != ErrorCode.NOSUCHTABLE:
                raise
        self.create_sequence(seq_name)
        return int(self.get_one(select))

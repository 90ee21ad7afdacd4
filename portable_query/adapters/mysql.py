"""MySQL driver using mysql-connector-python."""

from __future__ import annotations

from typing import Any, ClassVar

from portable_query.adapters.dbapi import CursorHandle, DBAPIDriver
from portable_query.core.common import DriverFeatures
from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode
from portable_query.core.exceptions import NotFoundError

_SPECIAL_QUERIES = {
    "tables": "SHOW TABLES",
    "views": "SHOW FULL TABLES WHERE Table_type = 'VIEW'",
    "users": "SELECT DISTINCT User FROM mysql.user",
    "databases": "SHOW DATABASES",
}


class MysqlDriver(DBAPIDriver):
    """MySQL driver.

    The ``result_buffering`` option selects a buffered cursor when positive.
    Unbuffered results are drained when freed so the connection can be reused.
    Sequences are emulated with one single-row table per sequence.
    """

    features: ClassVar[DriverFeatures] = DriverFeatures(
        limit="alter", numrows=True, transactions=True, sequences=True
    )
    native_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        1004: ErrorCode.CANNOT_CREATE,
        1005: ErrorCode.CANNOT_CREATE,
        1006: ErrorCode.CANNOT_CREATE,
        1007: ErrorCode.ALREADY_EXISTS,
        1008: ErrorCode.CANNOT_DROP,
        1022: ErrorCode.ALREADY_EXISTS,
        1044: ErrorCode.ACCESS_VIOLATION,
        1046: ErrorCode.NODBSELECTED,
        1048: ErrorCode.CONSTRAINT,
        1049: ErrorCode.NOSUCHDB,
        1050: ErrorCode.ALREADY_EXISTS,
        1051: ErrorCode.NOSUCHTABLE,
        1054: ErrorCode.NOSUCHFIELD,
        1061: ErrorCode.ALREADY_EXISTS,
        1062: ErrorCode.ALREADY_EXISTS,
        1064: ErrorCode.SYNTAX,
        1091: ErrorCode.NOT_FOUND,
        1100: ErrorCode.NOT_LOCKED,
        1136: ErrorCode.VALUE_COUNT_ON_ROW,
        1142: ErrorCode.ACCESS_VIOLATION,
        1146: ErrorCode.NOSUCHTABLE,
        1216: ErrorCode.CONSTRAINT,
        1217: ErrorCode.CONSTRAINT,
        1356: ErrorCode.DIVZERO,
        1451: ErrorCode.CONSTRAINT,
        1452: ErrorCode.CONSTRAINT,
    }
    # MySQL reports key violations as "already exists"; other backends say constraint
    portable_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        1022: ErrorCode.CONSTRAINT,
        1048: ErrorCode.CONSTRAINT_NOT_NULL,
        1062: ErrorCode.CONSTRAINT,
    }

    def _error_class(self) -> type[Exception]:
        import mysql.connector

        return mysql.connector.Error

    def _open(self, config: ConnectionConfig) -> Any:
        import mysql.connector

        params = {
            "host": config.host,
            "port": config.port,
            "user": config.user,
            "password": config.password,
            "database": config.database,
        }
        params = {key: value for key, value in params.items() if value is not None}
        connection = mysql.connector.connect(**params, **config.extra)
        connection.autocommit = True
        return connection

    def _cursor(self) -> Any:
        return self.connection.cursor(buffered=self.get_option("result_buffering") > 0)

    def _native_code(self, error: Exception) -> Any:
        errno = getattr(error, "errno", None)
        return errno if errno is not None else str(error)

    def free_result(self, handle: CursorHandle) -> None:
        if not handle.exhausted:
            handle.cursor.fetchall()
        super().free_result(handle)

    def escape_simple(self, value: str) -> str:
        return value.replace("\\", "\\\\").replace("'", "''")

    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def modify_limit_query(self, query: str, from_: int, count: int, params: Any = None) -> str:
        return f"{query} LIMIT {int(from_)}, {int(count)}"

    def num_rows(self, handle: CursorHandle) -> int:
        # Unbuffered cursors only know the count once every row was read
        if handle.cursor.rowcount < 0:
            raise self.create_error(ErrorCode.NOT_CAPABLE)
        return handle.cursor.rowcount

    def get_special_query(self, kind: str) -> str | None:
        return _SPECIAL_QUERIES.get(kind)

    # --- Sequences ---

    def create_sequence(self, seq_name: str) -> None:
        seqname = self.get_sequence_name(seq_name)
        self.query(f"CREATE TABLE {seqname} (id INTEGER UNSIGNED NOT NULL)")
        self.query(f"INSERT INTO {seqname} (id) VALUES (0)")

    def drop_sequence(self, seq_name: str) -> None:
        self.query(f"DROP TABLE {self.get_sequence_name(seq_name)}")

    def next_id(self, seq_name: str, ondemand: bool = True) -> int:
        update = f"UPDATE {self.get_sequence_name(seq_name)} SET id = LAST_INSERT_ID(id + 1)"
        try:
            self.query(update)
        except NotFoundError as e:
            if not ondemand or e.code != ErrorCode.NOSUCHTABLE:
                raise
            self.create_sequence(seq_name)
            self.query(update)
        return int(self.get_one("SELECT LAST_INSERT_ID()"))

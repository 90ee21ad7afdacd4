"""SQLite driver using stdlib sqlite3."""

from __future__ import annotations

import re
import sqlite3
from typing import Any, ClassVar

from portable_query.adapters.dbapi import DBAPIDriver
from portable_query.core.common import DriverFeatures
from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode
from portable_query.core.exceptions import NotFoundError

# SQLite reports errors by message only, so native errors are matched by text
_ERROR_PATTERNS: tuple[tuple[re.Pattern[str], ErrorCode], ...] = (
    (re.compile(r"^no such table:"), ErrorCode.NOSUCHTABLE),
    (re.compile(r"^no such index:"), ErrorCode.NOT_FOUND),
    (re.compile(r"^(table|index|view|trigger) .* already exists$"), ErrorCode.ALREADY_EXISTS),
    (re.compile(r"NOT NULL constraint failed|may not be NULL"), ErrorCode.CONSTRAINT_NOT_NULL),
    (
        re.compile(
            r"(UNIQUE|CHECK|FOREIGN KEY) constraint failed|PRIMARY KEY must be unique|are not unique|is not unique"
        ),
        ErrorCode.CONSTRAINT,
    ),
    (re.compile(r"^no such column:|no column named|column not present in both tables"), ErrorCode.NOSUCHFIELD),
    (re.compile(r'^near ".*": syntax error$|^incomplete input$'), ErrorCode.SYNTAX),
    (
        re.compile(r"\d+ values for \d+ columns|has \d+ columns but \d+ values were supplied"),
        ErrorCode.VALUE_COUNT_ON_ROW,
    ),
    (re.compile(r"readonly database|^not authorized"), ErrorCode.ACCESS_VIOLATION),
    (re.compile(r"^unable to open database"), ErrorCode.CONNECT_FAILED),
)

_SPECIAL_QUERIES = {
    "tables": (
        "SELECT name FROM sqlite_master"
        " WHERE type = 'table' AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\' ORDER BY name"
    ),
    "views": "SELECT name FROM sqlite_master WHERE type = 'view' ORDER BY name",
}


class SqliteDriver(DBAPIDriver):
    """SQLite driver.

    Sequences are emulated with one single-column table per sequence.
    """

    features: ClassVar[DriverFeatures] = DriverFeatures(
        limit="alter", transactions=True, sequences=True
    )

    def _error_class(self) -> type[Exception]:
        return sqlite3.Error

    def _open(self, config: ConnectionConfig) -> sqlite3.Connection:
        # isolation_level=None puts the connection in autocommit mode
        return sqlite3.connect(config.database, isolation_level=None)

    def _set_autocommit(self, onoff: bool) -> None:
        self.connection.isolation_level = None if onoff else "DEFERRED"

    def _native_code(self, error: Exception) -> str:
        return str(error)

    def error_code(self, native_code: Any) -> ErrorCode:
        message = str(native_code)
        for pattern, code in _ERROR_PATTERNS:
            if pattern.search(message):
                return code
        return super().error_code(native_code)

    def get_special_query(self, kind: str) -> str | None:
        return _SPECIAL_QUERIES.get(kind)

    # --- Sequences ---

    def create_sequence(self, seq_name: str) -> None:
        seqname = self.get_sequence_name(seq_name)
        self.query(f"CREATE TABLE {seqname} (id INTEGER PRIMARY KEY)")
        # Only the newest id is needed, older rows are pruned on every insert
        self.query(
            f"CREATE TRIGGER {seqname}_cleanup AFTER INSERT ON {seqname} "
            f"BEGIN DELETE FROM {seqname} WHERE id < LAST_INSERT_ROWID(); END"
        )

    def drop_sequence(self, seq_name: str) -> None:
        self.query(f"DROP TABLE {self.get_sequence_name(seq_name)}")

    def next_id(self, seq_name: str, ondemand: bool = True) -> int:
        insert = f"INSERT INTO {self.get_sequence_name(seq_name)} (id) VALUES (NULL)"
        try:
            self.query(insert)
        except NotFoundError as e:
            if not ondemand or e.code != ErrorCode.NOSUCHTABLE:
                raise
            self.create_sequence(seq_name)
            self.query(insert)
        return int(self.get_one("SELECT last_insert_rowid()"))

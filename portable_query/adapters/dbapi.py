"""Shared base for drivers built on a DB-API 2.0 (PEP 249) module.

Subclasses provide the connection factory, the driver's exception class and
how to read a native error code from it; everything else (dispatch, row
buffering, transactions, error translation) lives here.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from portable_query.core.common import Common, DriverFeatures
from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode
from portable_query.core.exceptions import ConnectionError, DatabaseError, database_error  # noqa: A004

logger = logging.getLogger(__name__)


@dataclass
class CursorHandle:
    """A DB-API cursor plus the rows fetched ahead of the caller."""

    cursor: Any
    rows: deque[Sequence[Any]] = field(default_factory=deque)
    exhausted: bool = False


class DBAPIDriver(Common):
    """Base class of the DB-API drivers."""

    features: ClassVar[DriverFeatures] = DriverFeatures(limit="alter", transactions=True)

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        super().__init__(options)
        self._affected_rows = 0
        self._last_native_error: Any = None

    # --- Subclass hooks ---

    @abstractmethod
    def _error_class(self) -> type[Exception]:
        """Return the driver module's base exception class."""

    @abstractmethod
    def _open(self, config: ConnectionConfig) -> Any:
        """Open and return a DB-API connection in autocommit mode."""

    @abstractmethod
    def _native_code(self, error: Exception) -> Any:
        """Extract the backend's native error code from a driver exception."""

    def _set_autocommit(self, onoff: bool) -> None:
        self.connection.autocommit = onoff

    def _cursor(self) -> Any:
        return self.connection.cursor()

    # --- Connection ---

    def connect(self, config: ConnectionConfig) -> None:
        try:
            error_class = self._error_class()
        except ImportError as e:
            raise database_error(ErrorCode.EXTENSION_NOT_FOUND, str(e)) from e
        try:
            self.connection = self._open(config)
        except error_class as e:
            raise self._translate(e, ErrorCode.CONNECT_FAILED) from e
        self.autocommit = True

    def disconnect(self) -> bool:
        if self.connection is None:
            return False
        self.connection.close()
        self.connection = None
        logger.debug("Disconnected %s", type(self).__name__)
        return True

    def _require_connection(self) -> None:
        if self.connection is None:
            raise ConnectionError(f"{type(self).__name__} is not connected")

    def _translate(self, error: Exception, code: ErrorCode | None = None) -> DatabaseError:
        native = self._native_code(error)
        self._last_native_error = native
        logger.debug("Native error %r from %s: %s", native, type(self).__name__, error)
        return self.create_error(code or self.error_code(native), native_code=native)

    # --- Driver primitives ---

    def run_raw_query(self, query: str) -> CursorHandle | None:
        self._require_connection()
        cursor = self._cursor()
        try:
            cursor.execute(query)
        except self._error_class() as e:
            cursor.close()
            raise self._translate(e) from e
        if cursor.description is None:
            self._affected_rows = cursor.rowcount
            cursor.close()
            return None
        return CursorHandle(cursor)

    def fetch_raw(self, handle: CursorHandle) -> Sequence[Any] | None:
        if not handle.rows and not handle.exhausted:
            size = self.get_option("result_buffering")
            try:
                if size > 0:
                    batch = handle.cursor.fetchmany(size)
                else:
                    row = handle.cursor.fetchone()
                    batch = [] if row is None else [row]
            except self._error_class() as e:
                raise self._translate(e) from e
            handle.exhausted = len(batch) < max(size, 1)
            handle.rows.extend(batch)
        return handle.rows.popleft() if handle.rows else None

    def column_names(self, handle: CursorHandle) -> list[str]:
        return [description[0] for description in handle.cursor.description]

    def free_result(self, handle: CursorHandle) -> None:
        handle.rows.clear()
        handle.cursor.close()

    # --- Transactions ---

    def auto_commit(self, onoff: bool = False) -> None:
        self._require_connection()
        self._set_autocommit(bool(onoff))
        self.autocommit = bool(onoff)

    def commit(self) -> None:
        self._require_connection()
        try:
            self.connection.commit()
        except self._error_class() as e:
            raise self._translate(e) from e

    def rollback(self) -> None:
        self._require_connection()
        try:
            self.connection.rollback()
        except self._error_class() as e:
            raise self._translate(e) from e

    # --- Row counts and errors ---

    def affected_rows(self) -> int:
        return self._affected_rows if self.last_query_manip else 0

    def error_native(self) -> Any:
        return self._last_native_error

    def modify_limit_query(self, query: str, from_: int, count: int, params: Any = None) -> str:
        return f"{query} LIMIT {int(count)} OFFSET {int(from_)}"

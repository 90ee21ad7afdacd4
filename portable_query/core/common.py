"""Query execution core shared by every driver.

``Common`` implements prepared statement emulation, the auto-query builder,
the retrieval helpers and the option/portability layer on top of a handful of
primitives each driver provides (see ``portable_query.adapters.protocol``).
Operations a backend cannot perform raise ``NotCapableError`` here and are
overridden by drivers that support them.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from types import SimpleNamespace
from typing import Any, ClassVar

from pydantic import ValidationError

from portable_query.core import quoting
from portable_query.core.autoquery import build_manip_sql
from portable_query.core.classifier import is_manip
from portable_query.core.enums import AutoQueryMode, ErrorCode, FetchMode, Portability
from portable_query.core.exceptions import (
    DatabaseError,
    FeatureError,
    UnknownOptionError,
    database_error,
    error_message,
)
from portable_query.core.options import ConnectionOptions, format_sequence_name
from portable_query.core.params import coerce_values, emulate_query
from portable_query.core.registry import StatementRegistry
from portable_query.core.result import Result
from portable_query.core.transaction import TransactionManager

logger = logging.getLogger(__name__)

_BARE_DELETE = re.compile(r"^\s*DELETE\s+FROM\s+(\S+)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class DriverFeatures:
    """Capabilities advertised by a driver.

    ``limit`` is ``"alter"`` when the driver rewrites queries for
    ``limit_query`` and ``False`` when it cannot limit at all.
    """

    limit: str | bool = False
    numrows: bool = False
    prepare: bool = False
    transactions: bool = False
    sequences: bool = False


class Common(ABC):
    """Base class of every database driver.

    Args:
        options: Initial option values; unknown names are rejected.
    """

    features: ClassVar[DriverFeatures] = DriverFeatures()
    native_error_codes: ClassVar[Mapping[Any, ErrorCode]] = {}
    # Replaces entries of native_error_codes when the ERRORS portability flag is set
    portable_error_codes: ClassVar[Mapping[Any, ErrorCode]] = {}

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.connection: Any = None
        self.last_query = ""
        self.last_parameters: list[Any] = []
        self.last_query_manip = False
        self.autocommit = True
        self.fetchmode = FetchMode.ORDERED
        self.fetch_mode_object_class: type = SimpleNamespace
        self._next_query_manip = False
        self._accept_unguarded_updates = False
        self._options = ConnectionOptions()
        self._statements = StatementRegistry()
        for name, value in (options or {}).items():
            self.set_option(name, value)

    def __str__(self) -> str:
        info = type(self).__name__
        if self.connected():
            info += " [connected]"
        return info

    def __enter__(self) -> Common:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self.connected():
            self.disconnect()

    # --- Driver primitives ---

    @abstractmethod
    def connect(self, config: Any) -> None:
        """Open the backend connection described by *config*."""

    @abstractmethod
    def disconnect(self) -> bool:
        """Close the backend connection."""

    @abstractmethod
    def run_raw_query(self, query: str) -> Any:
        """Send *query* to the backend.

        Returns a raw result handle for statements that produce rows, or None.
        """

    @abstractmethod
    def fetch_raw(self, handle: Any) -> Sequence[Any] | None:
        """Return the next row of *handle* as a sequence, or None at the end."""

    @abstractmethod
    def column_names(self, handle: Any) -> list[str]:
        """Return the column names of *handle*."""

    @abstractmethod
    def free_result(self, handle: Any) -> None:
        """Release *handle*."""

    def connected(self) -> bool:
        return bool(self.connection)

    # --- Features ---

    def provides(self, feature: str) -> Any:
        """Return the value of an advertised feature, or False if unknown."""
        return getattr(self.features, feature, False)

    def get_feature(self, feature: str) -> Any:
        """Return the value of an advertised feature.

        Raises:
            FeatureError: If the driver does not advertise *feature*.
        """
        advertised = asdict(self.features)
        if feature not in advertised:
            raise FeatureError(feature)
        return advertised[feature]

    # --- Quoting ---

    def quote_identifier(self, name: str) -> str:
        return quoting.quote_identifier(name)

    def escape_simple(self, value: str) -> str:
        return quoting.escape_simple(value)

    def quote_boolean(self, value: bool) -> str:
        return quoting.quote_boolean(value)

    def quote_binary(self, value: bytes) -> str:
        return quoting.quote_binary(value)

    def quote_float(self, value: float) -> str:
        return quoting.quote_float(value, self.escape_simple)

    def quote_smart(self, value: Any) -> str:
        """Format *value* as an SQL literal using this driver's quoting rules."""
        return quoting.quote_smart(
            value,
            escape=self.escape_simple,
            boolean=self.quote_boolean,
            binary=self.quote_binary,
        )

    # --- Options and fetch mode ---

    def set_option(self, option: str, value: Any) -> None:
        """Set a run-time option.

        Raises:
            UnknownOptionError: If *option* is not a known option name.
            DatabaseError: With ``ErrorCode.INVALID`` if *value* is not valid.
        """
        if option not in ConnectionOptions.model_fields:
            raise UnknownOptionError(option)
        try:
            setattr(self._options, option, value)
        except ValidationError as e:
            raise database_error(ErrorCode.INVALID, f"invalid value for option {option}: {value!r}") from e

    def get_option(self, option: str) -> Any:
        """Return the current value of a run-time option.

        Raises:
            UnknownOptionError: If *option* is not a known option name.
        """
        if option not in ConnectionOptions.model_fields:
            raise UnknownOptionError(option)
        return getattr(self._options, option)

    @property
    def portability(self) -> Portability:
        return Portability(self._options.portability)

    def set_fetch_mode(self, fetchmode: FetchMode, object_class: type = SimpleNamespace) -> None:
        """Set the default fetch mode.

        *object_class* is instantiated with the row's columns as keyword
        arguments when the mode is ``FetchMode.OBJECT``.
        """
        if fetchmode == FetchMode.OBJECT:
            self.fetch_mode_object_class = object_class
        elif fetchmode not in (FetchMode.ORDERED, FetchMode.ASSOC):
            raise database_error(ErrorCode.ERROR, "invalid fetchmode mode")
        self.fetchmode = FetchMode(fetchmode)

    def get_fetch_mode(self) -> FetchMode:
        return self.fetchmode

    def row_fetch_mode(self, fetchmode: FetchMode | int) -> FetchMode:
        """Resolve *fetchmode* to the shape of a single row.

        The FLIPPED bit is dropped and DEFAULT becomes the connection's fetch
        mode.

        Raises:
            DatabaseError: If *fetchmode* is not one of ORDERED, ASSOC or
                OBJECT, optionally combined with FLIPPED.
        """
        # Plain int arithmetic, Flag complements drop undefined bits
        bits = int(fetchmode) & ~int(FetchMode.FLIPPED)
        if bits == FetchMode.DEFAULT:
            return self.fetchmode
        if bits not in (FetchMode.ORDERED, FetchMode.ASSOC, FetchMode.OBJECT):
            raise self.create_error(ErrorCode.ERROR, f"invalid fetchmode {int(fetchmode)}")
        return FetchMode(bits)

    def accept_unguarded_updates(self, flag: bool = True) -> None:
        """Allow auto-built UPDATE statements without a WHERE clause."""
        self._accept_unguarded_updates = bool(flag)

    # --- Prepared statements ---

    def prepare(self, query: str) -> int:
        """Tokenize *query* and return a handle for ``execute``."""
        return self._statements.add(query)

    def free_prepared(self, stmt: int, free_resource: bool = True) -> bool:
        """Forget a prepared statement.

        With *free_resource* every result the statement produced that is still
        live is freed as well.

        Returns:
            False if *stmt* was already freed or never issued.
        """
        statement = self._statements.remove(stmt)
        if statement is None:
            return False
        if free_resource:
            for result in statement.results:
                result.free()
        return True

    def compile(self, stmt: int, values: Any = None) -> str:
        """Return the literal SQL for a prepared statement bound to *values*.

        Raises:
            MismatchError: If the value count differs from the placeholder
                count. ``last_query`` is set to the statement template.
            AccessViolationError: If an opaque placeholder's file is unreadable.
        """
        statement = self._statements.get(stmt)
        data = coerce_values(values)
        self.last_parameters = list(data)
        if len(data) != statement.placeholder_count:
            self.last_query = statement.template
            raise self.create_error(ErrorCode.MISMATCH)
        return emulate_query(statement, data, self.quote_smart)

    def execute(self, stmt: int, values: Any = None) -> Result | None:
        """Run a prepared statement.

        Returns:
            A ``Result`` for row-returning statements, None for manipulation
            statements.
        """
        sql = self.compile(stmt, values)
        handle = self.simple_query(sql)
        if handle is None:
            return None
        result = Result(self, handle)
        statement = self._statements.get(stmt)
        statement.results = [live for live in statement.results if not live.freed]
        statement.results.append(result)
        return result

    def execute_multiple(self, stmt: int, rows: Iterable[Any]) -> None:
        """Run a prepared statement once per entry of *rows*, in order.

        Stops at the first failure; later rows are not executed.
        """
        for values in rows:
            result = self.execute(stmt, values)
            if result is not None:
                result.free()

    # --- Auto-query ---

    def build_manip_sql(
        self,
        table: str,
        fields: Sequence[str],
        mode: AutoQueryMode = AutoQueryMode.INSERT,
        where: str | None = None,
    ) -> str:
        """Build an INSERT or UPDATE statement with ``?`` placeholders."""
        try:
            return build_manip_sql(
                table, fields, mode, where, allow_unguarded=self._accept_unguarded_updates
            )
        except DatabaseError as e:
            raise self.create_error(e.code) from None

    def auto_prepare(
        self,
        table: str,
        fields: Sequence[str],
        mode: AutoQueryMode = AutoQueryMode.INSERT,
        where: str | None = None,
    ) -> int:
        """Build an INSERT or UPDATE statement and prepare it."""
        return self.prepare(self.build_manip_sql(table, fields, mode, where))

    def auto_execute(
        self,
        table: str,
        fields_values: Mapping[str, Any],
        mode: AutoQueryMode = AutoQueryMode.INSERT,
        where: str | None = None,
    ) -> Result | None:
        """Build, prepare and run an INSERT or UPDATE from a column mapping."""
        stmt = self.auto_prepare(table, list(fields_values), mode, where)
        try:
            return self.execute(stmt, list(fields_values.values()))
        finally:
            self.free_prepared(stmt)

    # --- Execution ---

    def modify_query(self, query: str) -> str:
        """Driver hook to rewrite a query right before it is sent."""
        if self.portability & Portability.DELETE_COUNT:
            match = _BARE_DELETE.match(query)
            if match:
                return f"DELETE FROM {match.group(1)} WHERE 1=1"
        return query

    def modify_limit_query(
        self, query: str, from_: int, count: int, params: Any = None
    ) -> str:
        """Driver hook adding a row window to *query*. Identity by default."""
        return query

    def next_query_is_manip(self, manip: bool) -> None:
        """Force the next query to be treated as a manipulation statement."""
        self._next_query_manip = bool(manip)

    def is_manip(self, query: str) -> bool:
        return is_manip(query)

    def check_manip(self, query: str) -> bool:
        """Classify *query* and consume the one-shot override."""
        self.last_query_manip = self._next_query_manip or is_manip(query)
        self._next_query_manip = False
        return self.last_query_manip

    def simple_query(self, query: str) -> Any:
        """Send *query* to the backend.

        Returns:
            The raw result handle for row-returning statements, None for
            manipulation statements.
        """
        query = self.modify_query(query)
        manip = self.check_manip(query)
        self.last_query = query
        if self._options.debug > 0:
            logger.info("Executing %s with parameters %r", query, self.last_parameters)
        else:
            logger.debug("Executing %s", query)

        handle = self.run_raw_query(query)
        if manip and handle is not None:
            self.free_result(handle)
            return None
        return handle

    def query(self, query: str, params: Any = None) -> Result | None:
        """Run *query*, binding *params* through a temporary prepared statement.

        Returns:
            A ``Result`` for row-returning statements, None for manipulation
            statements.
        """
        values = coerce_values(params)
        if values:
            stmt = self.prepare(query)
            try:
                return self.execute(stmt, values)
            finally:
                # The caller still needs the result
                self.free_prepared(stmt, free_resource=False)

        self.last_parameters = []
        handle = self.simple_query(query)
        if handle is None:
            return None
        return Result(self, handle)

    def limit_query(self, query: str, from_: int, count: int, params: Any = None) -> Result | None:
        """Run *query* returning at most *count* rows starting at row *from_*."""
        query = self.modify_limit_query(query, from_, count, params)
        return self.query(query, params)

    # --- Retrieval helpers ---

    def _result(self, query: str, params: Any) -> Result:
        result = self.query(query, params)
        if result is None:
            raise self.create_error(ErrorCode.INVALID, f"{self.last_query} [statement returned no rows]")
        return result

    def get_one(self, query: str, params: Any = None) -> Any:
        """Return the first column of the first row, or None if there are no rows."""
        with self._result(query, params) as result:
            row = result.fetch_row(FetchMode.ORDERED)
        if row is None:
            return None
        return row[0]

    def get_row(
        self, query: str, params: Any = None, fetchmode: FetchMode = FetchMode.DEFAULT
    ) -> Any:
        """Return the first row, or None if there are no rows."""
        with self._result(query, params) as result:
            return result.fetch_row(fetchmode)

    def get_col(self, query: str, col: int | str = 0, params: Any = None) -> list[Any]:
        """Return every value of one column.

        *col* is a column position (ORDERED rows) or a column name (ASSOC rows).

        Raises:
            NoSuchFieldError: If the rows have no such column.
        """
        fetchmode = FetchMode.ORDERED if isinstance(col, int) else FetchMode.ASSOC
        with self._result(query, params) as result:
            row = result.fetch_row(fetchmode)
            if row is None:
                return []
            present = col in row if isinstance(row, dict) else col in range(len(row))
            if not present:
                raise self.create_error(ErrorCode.NOSUCHFIELD)
            values = [row[col]]
            values.extend(row[col] for row in result.iter_rows(fetchmode))
        return values

    def get_assoc(
        self,
        query: str,
        force_array: bool = False,
        params: Any = None,
        fetchmode: FetchMode = FetchMode.DEFAULT,
        group: bool = False,
    ) -> dict[Any, Any]:
        """Return the rows as a mapping keyed by the first column.

        With exactly two columns and no *force_array*, each key maps to the
        second column's value. Otherwise it maps to the rest of the row: a
        list (ORDERED), a dict without the key column (ASSOC) or the whole
        row object (OBJECT). With *group*, rows sharing a key are collected
        in a list; without it the last row wins.

        Raises:
            TruncatedError: If the result has fewer than two columns.
        """
        results: dict[Any, Any] = {}

        def store(key: Any, value: Any) -> None:
            if group:
                results.setdefault(key, []).append(value)
            else:
                results[key] = value

        mode = self.row_fetch_mode(fetchmode)
        with self._result(query, params) as result:
            cols = result.num_cols()
            if cols < 2:
                raise self.create_error(ErrorCode.TRUNCATED)

            if cols == 2 and not force_array:
                for row in result.iter_rows(FetchMode.ORDERED):
                    store(row[0], row[1])
            elif mode == FetchMode.ASSOC:
                for row in result.iter_rows(FetchMode.ASSOC):
                    key = row.pop(next(iter(row)))
                    store(key, row)
            elif mode == FetchMode.OBJECT:
                for row in result.iter_rows(FetchMode.OBJECT):
                    store(next(iter(vars(row).values())), row)
            else:
                for row in result.iter_rows(FetchMode.ORDERED):
                    store(row[0], row[1:])
        return results

    def get_all(
        self, query: str, params: Any = None, fetchmode: FetchMode = FetchMode.DEFAULT
    ) -> list[Any] | dict[Any, list[Any]]:
        """Return every row.

        With the FLIPPED bit in *fetchmode* the result is column-major: a
        mapping from column (name or position) to that column's values.
        OBJECT rows are flipped by attribute name.
        """
        mode = self.row_fetch_mode(fetchmode)
        with self._result(query, params) as result:
            if not int(fetchmode) & FetchMode.FLIPPED:
                return list(result.iter_rows(mode))
            flipped: dict[Any, list[Any]] = {}
            for row in result.iter_rows(mode):
                if mode == FetchMode.OBJECT:
                    items = vars(row).items()
                elif mode == FetchMode.ASSOC:
                    items = row.items()
                else:
                    items = enumerate(row)
                for key, value in items:
                    flipped.setdefault(key, []).append(value)
            return flipped

    def get_list_of(self, kind: str) -> list[Any]:
        """Return a list of backend objects of *kind* (e.g. ``"tables"``)."""
        sql = self.get_special_query(kind)
        if sql is None:
            self.last_query = ""
            raise self.create_error(ErrorCode.UNSUPPORTED)
        return self.get_col(sql)

    def get_special_query(self, kind: str) -> str | None:
        """Driver hook returning the SQL that lists objects of *kind*."""
        raise self.create_error(ErrorCode.UNSUPPORTED)

    # --- Transactions ---

    def transaction(self) -> TransactionManager:
        """Create a transaction context manager on this connection."""
        return TransactionManager(self)

    def auto_commit(self, onoff: bool = False) -> None:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    def commit(self) -> None:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    def rollback(self) -> None:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    # --- Row counts ---

    def num_rows(self, handle: Any) -> int:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    def affected_rows(self) -> int:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    # --- Sequences ---

    def get_sequence_name(self, name: str) -> str:
        """Return the backend name of the public sequence *name*."""
        return format_sequence_name(self.get_option("seqname_format"), name)

    def next_id(self, seq_name: str, ondemand: bool = True) -> int:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    def create_sequence(self, seq_name: str) -> None:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    def drop_sequence(self, seq_name: str) -> None:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    # --- Errors ---

    def create_error(
        self,
        code: ErrorCode | DatabaseError = ErrorCode.ERROR,
        user_info: str | None = None,
        native_code: Any = None,
    ) -> DatabaseError:
        """Build the error for a failed operation.

        An existing ``DatabaseError`` is returned unchanged. Otherwise the
        diagnostic text defaults to the last query and is suffixed with the
        native code when there is one, or the portable message.
        """
        if isinstance(code, DatabaseError):
            return code
        if user_info is None:
            user_info = self.last_query
        if native_code:
            user_info += f" [nativecode={str(native_code).strip()}]"
        else:
            user_info += f" [DB Error: {error_message(code)}]"
        return database_error(code, user_info, native_code)

    def error_code(self, native_code: Any) -> ErrorCode:
        """Map a native backend error code to a portable code.

        Codes missing from the driver's table map to ``ErrorCode.ERROR``.
        """
        codes = dict(self.native_error_codes)
        if self.portability & Portability.ERRORS:
            codes.update(self.portable_error_codes)
        try:
            return codes.get(native_code, ErrorCode.ERROR)
        except TypeError:
            # unhashable native code
            return ErrorCode.ERROR

    def error_message(self, native_code: Any) -> str:
        """Return the portable message for a native backend error code."""
        return error_message(self.error_code(native_code))

    def error_native(self) -> Any:
        """Return the native code of the last backend error."""
        raise self.create_error(ErrorCode.NOT_CAPABLE)

    def table_info(self, result: Any, mode: Any = None) -> Any:
        raise self.create_error(ErrorCode.NOT_CAPABLE)

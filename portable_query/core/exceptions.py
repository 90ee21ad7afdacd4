"""portable_query exception hierarchy.

All exceptions are portable_query-specific. Raw driver exceptions are never
exposed to callers: drivers translate them into a ``DatabaseError`` carrying
a portable ``ErrorCode`` and the native code.
"""

from __future__ import annotations

from typing import Any

from portable_query.core.enums import ErrorCode

_ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.ERROR: "unknown error",
    ErrorCode.ACCESS_VIOLATION: "insufficient permissions",
    ErrorCode.ALREADY_EXISTS: "already exists",
    ErrorCode.CANNOT_CREATE: "can not create",
    ErrorCode.CANNOT_DROP: "can not drop",
    ErrorCode.CONNECT_FAILED: "connect failed",
    ErrorCode.CONSTRAINT: "constraint violation",
    ErrorCode.CONSTRAINT_NOT_NULL: "null value violates not-null constraint",
    ErrorCode.DIVZERO: "division by zero",
    ErrorCode.EXTENSION_NOT_FOUND: "extension not found",
    ErrorCode.INVALID: "invalid",
    ErrorCode.INVALID_DATE: "invalid date or time",
    ErrorCode.INVALID_DSN: "invalid DSN",
    ErrorCode.INVALID_NUMBER: "invalid number",
    ErrorCode.MISMATCH: "mismatch",
    ErrorCode.NEED_MORE_DATA: "insufficient data supplied",
    ErrorCode.NODBSELECTED: "no database selected",
    ErrorCode.NOSUCHDB: "no such database",
    ErrorCode.NOSUCHFIELD: "no such field",
    ErrorCode.NOSUCHTABLE: "no such table",
    ErrorCode.NOT_CAPABLE: "DB backend not capable",
    ErrorCode.NOT_FOUND: "not found",
    ErrorCode.NOT_LOCKED: "not locked",
    ErrorCode.POSSIBLE_UNINTENDED_CONSEQUENCES: "possible unintended consequences",
    ErrorCode.SYNTAX: "syntax error",
    ErrorCode.TRUNCATED: "truncated",
    ErrorCode.UNSUPPORTED: "not supported",
    ErrorCode.VALUE_COUNT_ON_ROW: "value count on row",
}


def error_message(code: ErrorCode | int | DatabaseError) -> str:
    """Return the human readable message for a portable error code.

    Accepts a ``DatabaseError`` as well, in which case its code is used.
    Unknown codes fall back to the generic "unknown error" text.
    """
    if isinstance(code, DatabaseError):
        code = code.code
    try:
        return _ERROR_MESSAGES[ErrorCode(code)]
    except (ValueError, KeyError):
        return _ERROR_MESSAGES[ErrorCode.ERROR]


class PortableQueryError(Exception):
    """Base exception for all portable_query errors."""


# --- Database errors ---


class DatabaseError(PortableQueryError):
    """A failed database operation, identified by a portable error code.

    Attributes:
        code: Portable ``ErrorCode``.
        user_info: Diagnostic text, usually the last query plus either the
            native code or the portable message.
        native_code: Backend-specific error code, when the failure came from
            the driver.
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.ERROR,
        user_info: str | None = None,
        native_code: Any = None,
    ) -> None:
        self.code = ErrorCode(code)
        self.user_info = user_info
        self.native_code = native_code
        super().__init__(f"DB Error: {error_message(self.code)}")


class NotCapableError(DatabaseError):
    """Raised when the backend does not support the requested operation."""


class MismatchError(DatabaseError):
    """Raised when the number of bound values does not match the placeholders."""


class TruncatedError(DatabaseError):
    """Raised when a result has fewer columns than the operation needs."""


class NoSuchFieldError(DatabaseError):
    """Raised when a referenced column is not part of the result."""


class SQLSyntaxError(DatabaseError):
    """Raised on SQL syntax errors or malformed auto-query input."""


class NeedMoreDataError(DatabaseError):
    """Raised when an operation was given too little input to build SQL."""


class UnintendedConsequencesError(DatabaseError):
    """Raised when an UPDATE would run without a WHERE clause."""


class AccessViolationError(DatabaseError):
    """Raised on insufficient permissions or unreadable opaque files."""


class UnsupportedError(DatabaseError):
    """Raised when a requested feature is not supported."""


class ConstraintError(DatabaseError):
    """Raised on constraint violations, including duplicate keys."""


class NotFoundError(DatabaseError):
    """Raised when a referenced object does not exist."""


class UnknownOptionError(DatabaseError):
    """Raised when getting or setting an option that does not exist."""

    def __init__(self, option: str) -> None:
        self.option = option
        super().__init__(ErrorCode.ERROR, f"unknown option {option}")

    def __str__(self) -> str:
        return f"Unknown option: '{self.option}'"


_ERROR_CLASSES: dict[ErrorCode, type[DatabaseError]] = {
    ErrorCode.NOT_CAPABLE: NotCapableError,
    ErrorCode.MISMATCH: MismatchError,
    ErrorCode.TRUNCATED: TruncatedError,
    ErrorCode.NOSUCHFIELD: NoSuchFieldError,
    ErrorCode.SYNTAX: SQLSyntaxError,
    ErrorCode.NEED_MORE_DATA: NeedMoreDataError,
    ErrorCode.POSSIBLE_UNINTENDED_CONSEQUENCES: UnintendedConsequencesError,
    ErrorCode.ACCESS_VIOLATION: AccessViolationError,
    ErrorCode.UNSUPPORTED: UnsupportedError,
    ErrorCode.CONSTRAINT: ConstraintError,
    ErrorCode.CONSTRAINT_NOT_NULL: ConstraintError,
    ErrorCode.ALREADY_EXISTS: ConstraintError,
    ErrorCode.NOT_FOUND: NotFoundError,
    ErrorCode.NOSUCHTABLE: NotFoundError,
}


def database_error(
    code: ErrorCode = ErrorCode.ERROR,
    user_info: str | None = None,
    native_code: Any = None,
) -> DatabaseError:
    """Build the ``DatabaseError`` subclass matching *code*."""
    error_class = _ERROR_CLASSES.get(ErrorCode(code), DatabaseError)
    return error_class(code, user_info, native_code)


# --- Driver features ---


class FeatureError(PortableQueryError):
    """Raised when asking for a feature the driver does not advertise."""

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"Feature '{feature}' not advertised by driver")


# --- Transaction ---


class TransactionError(PortableQueryError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(PortableQueryError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised when a driver is used without an open connection."""

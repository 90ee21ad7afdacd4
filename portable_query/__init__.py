"""portable_query - portable database abstraction with emulated prepared statements."""

from __future__ import annotations

from portable_query.adapters.protocol import Driver
from portable_query.core.common import Common, DriverFeatures
from portable_query.core.connection import ConnectionConfig, connect, factory
from portable_query.core.enums import (
    AutoQueryMode,
    DatabaseBackend,
    ErrorCode,
    FetchMode,
    ParamType,
    Portability,
)
from portable_query.core.exceptions import (
    AccessViolationError,
    AdapterError,
    ConnectionError,  # noqa: A004
    ConstraintError,
    DatabaseError,
    FeatureError,
    MismatchError,
    NeedMoreDataError,
    NoSuchFieldError,
    NotCapableError,
    NotFoundError,
    PortableQueryError,
    SQLSyntaxError,
    TransactionError,
    TransactionStateError,
    TruncatedError,
    UnintendedConsequencesError,
    UnknownOptionError,
    UnsupportedError,
    error_message,
)
from portable_query.core.options import ConnectionOptions
from portable_query.core.registry import PreparedStatement, StatementRegistry
from portable_query.core.result import Result
from portable_query.core.transaction import TransactionManager

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionOptions",
    "connect",
    "factory",
    # Drivers
    "Common",
    "Driver",
    "DriverFeatures",
    # Statements and results
    "PreparedStatement",
    "StatementRegistry",
    "Result",
    # Transaction
    "TransactionManager",
    # Enums
    "AutoQueryMode",
    "DatabaseBackend",
    "ErrorCode",
    "FetchMode",
    "ParamType",
    "Portability",
    # Exceptions
    "PortableQueryError",
    "DatabaseError",
    "NotCapableError",
    "MismatchError",
    "TruncatedError",
    "NoSuchFieldError",
    "SQLSyntaxError",
    "NeedMoreDataError",
    "UnintendedConsequencesError",
    "AccessViolationError",
    "UnsupportedError",
    "ConstraintError",
    "NotFoundError",
    "UnknownOptionError",
    "FeatureError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "error_message",
]

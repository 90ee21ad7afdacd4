"""Enumerations shared across the query core and the drivers."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    ORACLE = "oracle"


class FetchMode(IntFlag):
    """Row representation returned by the retrieval helpers.

    ``FLIPPED`` is a modifier: combined with ``ORDERED`` or ``ASSOC`` it makes
    ``get_all`` return a column-major mapping instead of a list of rows.
    """

    DEFAULT = 0
    ORDERED = 1
    ASSOC = 2
    FLIPPED = 4
    OBJECT = 8


class ParamType(Enum):
    """Kind of placeholder found by the tokenizer."""

    SCALAR = "?"
    OPAQUE = "&"
    MISC = "!"


class AutoQueryMode(Enum):
    """Statement kind produced by the auto-query builder."""

    INSERT = "insert"
    UPDATE = "update"


class Portability(IntFlag):
    """Portability flags normalizing behaviour between backends."""

    NONE = 0
    LOWERCASE = 1
    RTRIM = 2
    DELETE_COUNT = 4
    NUMROWS = 8
    ERRORS = 16
    NULL_TO_EMPTY = 32
    ALL = 63


class ErrorCode(IntEnum):
    """Portable error codes, independent of any backend's native codes."""

    ERROR = -1
    SYNTAX = -2
    CONSTRAINT = -3
    NOT_FOUND = -4
    ALREADY_EXISTS = -5
    UNSUPPORTED = -6
    MISMATCH = -7
    INVALID = -8
    NOT_CAPABLE = -9
    TRUNCATED = -10
    INVALID_NUMBER = -11
    INVALID_DATE = -12
    DIVZERO = -13
    NODBSELECTED = -14
    CANNOT_CREATE = -15
    CANNOT_DROP = -17
    NOSUCHTABLE = -18
    NOSUCHFIELD = -19
    NEED_MORE_DATA = -20
    NOT_LOCKED = -21
    VALUE_COUNT_ON_ROW = -22
    INVALID_DSN = -23
    CONNECT_FAILED = -24
    EXTENSION_NOT_FOUND = -25
    ACCESS_VIOLATION = -26
    NOSUCHDB = -27
    CONSTRAINT_NOT_NULL = -29
    POSSIBLE_UNINTENDED_CONSEQUENCES = -30

"""Type-aware literal formatting and identifier escaping.

These are the default quoting rules. Drivers override the matching methods on
``Common`` where their backend differs (MySQL escapes backslashes, PostgreSQL
has a real boolean type, and so on).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


def escape_simple(value: str) -> str:
    """Escape a string for use inside a single-quoted SQL literal."""
    return value.replace("'", "''")


def quote_identifier(name: str) -> str:
    """Quote *name* so it can be used as a table or column name."""
    return '"' + name.replace('"', '""') + '"'


def quote_boolean(value: bool) -> str:
    return "1" if value else "0"


def quote_binary(value: bytes) -> str:
    """Quote raw bytes as a hexadecimal binary string literal."""
    return "X'" + bytes(value).hex().upper() + "'"


def quote_float(value: float, escape: Callable[[str], str] = escape_simple) -> str:
    """Quote a float as a string literal with ``.`` as the decimal separator."""
    return "'" + escape(str(float(value)).replace(",", ".")) + "'"


def quote_smart(
    value: Any,
    *,
    escape: Callable[[str], str] = escape_simple,
    boolean: Callable[[bool], str] = quote_boolean,
    binary: Callable[[bytes], str] = quote_binary,
) -> str:
    """Format *value* as an SQL literal according to its Python type.

    * ``None`` -> ``NULL``
    * ``bool`` -> output of *boolean* (``1``/``0`` by default)
    * ``int`` -> the unquoted number
    * ``float`` -> quoted, ``.``-decimal text
    * ``bytes`` / ``bytearray`` -> output of *binary* (``X'..'`` by default)
    * anything else -> ``str(value)`` escaped with *escape* and single-quoted

    Args:
        value: The value to format.
        escape: String escaping function, overridable per backend.
        boolean: Boolean formatting function, overridable per backend.
        binary: Binary literal formatting function, overridable per backend.
    """
    # bool is a subclass of int, so it must be checked first
    if isinstance(value, bool):
        return boolean(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return quote_float(value, escape)
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray)):
        return binary(value)
    return "'" + escape(str(value)) + "'"

"""Bind value normalization and emulated query compilation.

Backends without usable prepared statements get a literal SQL string: the
statement's fragments interleaved with the bound values, each value
transformed according to its placeholder type.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from portable_query.core.enums import ErrorCode, ParamType
from portable_query.core.exceptions import database_error
from portable_query.core.registry import PreparedStatement


def coerce_values(values: Any) -> tuple[Any, ...]:
    """Normalize *values* to a tuple of bind values.

    * ``None`` -> empty tuple.
    * ``tuple`` / ``list`` -> ``tuple``.
    * ``dict`` -> its values, in insertion order.
    * Any other scalar -> wrapped in a single-element tuple.
    """
    if values is None:
        return ()
    if isinstance(values, Mapping):
        return tuple(values.values())
    if isinstance(values, (tuple, list)):
        return tuple(values)
    return (values,)


def read_opaque(path: Any, template: str) -> str | bytes:
    """Return the contents of the file bound to an opaque placeholder.

    UTF-8 text comes back as ``str`` and is bound as a string literal. Any
    other content comes back as the raw ``bytes`` and is bound as a binary
    literal, so no byte is lost.

    Raises:
        AccessViolationError: If the file cannot be read.
    """
    try:
        content = Path(path).read_bytes()
    except OSError as e:
        raise database_error(
            ErrorCode.ACCESS_VIOLATION, f"{template} [opaque file: {path}]"
        ) from e
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content


def emulate_query(
    statement: PreparedStatement,
    values: tuple[Any, ...],
    quote: Callable[[Any], str],
) -> str:
    """Build the literal SQL for *statement* bound to *values*.

    The caller checks the value count; *values* must hold exactly one value
    per placeholder.

    Args:
        statement: Tokenized statement.
        values: One value per placeholder, in order.
        quote: Type-aware quoting function used for scalar and opaque values.

    Returns:
        The SQL text ready to be sent to the backend.
    """
    parts = [statement.fragments[0]]
    for param_type, value, fragment in zip(
        statement.types, values, statement.fragments[1:], strict=True
    ):
        if param_type is ParamType.SCALAR:
            parts.append(quote(value))
        elif param_type is ParamType.OPAQUE:
            parts.append(quote(read_opaque(value, statement.template)))
        else:
            parts.append(str(value))
        parts.append(fragment)
    return "".join(parts)

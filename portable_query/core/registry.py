"""Prepared statement tokenizer and registry.

A template such as ``INSERT INTO t (a, b, c) VALUES (?, !, &)`` is split into
literal fragments and typed placeholder slots:

    ?  scalar   - value is quoted according to its type
    !  misc     - value is inserted verbatim
    &  opaque   - value is a file path, the file's contents are quoted

A placeholder character preceded by a backslash is literal text.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from portable_query.core.enums import ErrorCode, ParamType
from portable_query.core.exceptions import database_error

if TYPE_CHECKING:
    from portable_query.core.result import Result

# Unescaped placeholder, captured so re.split keeps it
_PLACEHOLDER_PATTERN = re.compile(r"((?<!\\)[&?!])")

_ESCAPED_PLACEHOLDER_PATTERN = re.compile(r"\\([&?!])")

_PARAM_TYPES = {param_type.value: param_type for param_type in ParamType}


@dataclass
class PreparedStatement:
    """Parsed form of a statement template.

    Invariant: ``len(fragments) == len(types) + 1``.
    """

    fragments: list[str]
    types: list[ParamType]
    template: str
    # Results produced by executing the statement that are still live
    results: list[Result] = field(default_factory=list, repr=False)

    @property
    def placeholder_count(self) -> int:
        return len(self.types)


def tokenize(query: str) -> PreparedStatement:
    """Split *query* into literal fragments and placeholder types."""
    fragments: list[str] = []
    types: list[ParamType] = []

    # re.split with a capturing group alternates text and delimiters, so the
    # result always has an odd length: text (delim text)*
    for index, token in enumerate(_PLACEHOLDER_PATTERN.split(query)):
        if index % 2:
            types.append(_PARAM_TYPES[token])
        else:
            fragments.append(_ESCAPED_PLACEHOLDER_PATTERN.sub(r"\1", token))

    return PreparedStatement(fragments=fragments, types=types, template=" ".join(fragments))


class StatementRegistry:
    """Owns every live prepared statement of one connection.

    Handles come from a monotonically increasing counter and are never reused,
    so a freed handle can never alias a newer statement.
    """

    def __init__(self) -> None:
        self._statements: dict[int, PreparedStatement] = {}
        self._handles = itertools.count()

    def add(self, query: str) -> int:
        """Tokenize *query* and store it under a new handle."""
        handle = next(self._handles)
        self._statements[handle] = tokenize(query)
        return handle

    def get(self, handle: int) -> PreparedStatement:
        """Look up a live statement.

        Raises:
            DatabaseError: With ``ErrorCode.INVALID`` if *handle* is not live.
        """
        try:
            return self._statements[handle]
        except KeyError:
            raise database_error(
                ErrorCode.INVALID, f"unknown prepared statement handle {handle}"
            ) from None

    def has(self, handle: int) -> bool:
        """Check if a handle refers to a live statement."""
        return handle in self._statements

    def remove(self, handle: int) -> PreparedStatement | None:
        """Remove and return a statement, or None if the handle is not live."""
        return self._statements.pop(handle, None)

    @property
    def handles(self) -> list[int]:
        """Live handles in issue order."""
        return sorted(self._statements)

    def __len__(self) -> int:
        """Number of live statements."""
        return len(self._statements)

"""Database driver protocol.

Every driver module MUST implement this protocol. It is the only surface
through which SQL text reaches a live backend and raw rows come back; all
query compilation, fetch-mode shaping and error translation happen in
``portable_query.core``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode


@runtime_checkable
class Driver(Protocol):
    """Synchronous database driver protocol."""

    native_error_codes: Mapping[Any, ErrorCode]

    def connect(self, config: ConnectionConfig) -> None:
        """Open the backend connection."""
        ...

    def disconnect(self) -> bool:
        """Close the backend connection."""
        ...

    def run_raw_query(self, query: str) -> Any:
        """Execute SQL and return a raw result handle, or None when there are no rows."""
        ...

    def fetch_raw(self, handle: Any) -> Sequence[Any] | None:
        """Return the next row of a result handle, or None at the end."""
        ...

    def column_names(self, handle: Any) -> list[str]:
        """Return the column names of a result handle."""
        ...

    def free_result(self, handle: Any) -> None:
        """Release a result handle."""
        ...

"""Result set wrapper returned for row-returning statements.

The driver owns the raw result handle; ``Result`` shapes raw rows into the
requested fetch mode and applies the portability transforms before rows reach
the caller.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from portable_query.core.enums import FetchMode, Portability
from portable_query.core.exceptions import NotCapableError
from portable_query.core.options import null_to_empty, rtrim_values

if TYPE_CHECKING:
    from portable_query.core.common import Common


class Result:
    """A live result set.

    Use it as a context manager (or call ``free()``) so the backend can release
    the buffers it holds for the result.
    """

    def __init__(self, db: Common, handle: Any) -> None:
        self.db = db
        self.query = db.last_query
        self._handle = handle

    def __enter__(self) -> Result:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.free()

    def __iter__(self) -> Iterator[Any]:
        return self.iter_rows()

    @property
    def freed(self) -> bool:
        return self._handle is None

    def fetch_row(self, fetchmode: FetchMode = FetchMode.DEFAULT) -> Any:
        """Fetch the next row, or None at the end of the result.

        ORDERED rows are lists, ASSOC rows are dicts keyed by column name and
        OBJECT rows are instances of the connection's fetch mode object class
        built from the column values. The FLIPPED bit is ignored here.

        Raises:
            DatabaseError: On driver errors or an invalid fetch mode.
        """
        if self._handle is None:
            return None
        mode = self.db.row_fetch_mode(fetchmode)

        raw = self.db.fetch_raw(self._handle)
        if raw is None:
            if self.db.get_option("autofree"):
                self.free()
            return None

        portability = self.db.portability
        row = list(raw)
        if portability & Portability.RTRIM:
            rtrim_values(row)
        if portability & Portability.NULL_TO_EMPTY:
            null_to_empty(row)
        if mode == FetchMode.ORDERED:
            return row

        names = self.column_names()
        if portability & Portability.LOWERCASE:
            names = [name.lower() for name in names]
        assoc = dict(zip(names, row, strict=True))
        if mode == FetchMode.OBJECT:
            return self.db.fetch_mode_object_class(**assoc)
        return assoc

    def iter_rows(self, fetchmode: FetchMode = FetchMode.DEFAULT) -> Iterator[Any]:
        """Yield the remaining rows in *fetchmode*."""
        while (row := self.fetch_row(fetchmode)) is not None:
            yield row

    def column_names(self) -> list[str]:
        """Column names of the result, as reported by the backend."""
        return list(self.db.column_names(self._handle))

    def num_cols(self) -> int:
        """Number of columns in the result."""
        return len(self.column_names())

    def num_rows(self) -> int:
        """Number of rows in the result.

        Backends that cannot count rows raise ``NotCapableError`` unless the
        NUMROWS portability flag is set, in which case the query is re-run
        wrapped in ``SELECT COUNT(*)``.
        """
        try:
            return self.db.num_rows(self._handle)
        except NotCapableError:
            if not self.db.portability & Portability.NUMROWS:
                raise
        count = self.db.get_one(f"SELECT COUNT(*) FROM ({self.query}) count_query")
        return int(count)

    def free(self) -> None:
        """Release the result. Safe to call more than once."""
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self.db.free_result(handle)

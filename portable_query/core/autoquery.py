"""Automatic INSERT/UPDATE statement builder.

The generated SQL uses ``?`` placeholders and is meant to be fed to
``Common.prepare``.
"""

from __future__ import annotations

from collections.abc import Sequence

from portable_query.core.enums import AutoQueryMode, ErrorCode
from portable_query.core.exceptions import DatabaseError, database_error, error_message


def build_manip_sql(
    table: str,
    fields: Sequence[str],
    mode: AutoQueryMode,
    where: str | None = None,
    *,
    allow_unguarded: bool = False,
) -> str:
    """Build an INSERT or UPDATE statement for *table*.

    Args:
        table: Table name, used as given.
        fields: Column names; one ``?`` placeholder is emitted per column.
        mode: ``AutoQueryMode.INSERT`` or ``AutoQueryMode.UPDATE``.
        where: Optional WHERE clause (without the keyword) for UPDATE.
        allow_unguarded: Permit an UPDATE without a WHERE clause.

    Raises:
        NeedMoreDataError: If *fields* is empty.
        UnintendedConsequencesError: If an UPDATE has no WHERE clause and
            *allow_unguarded* is false.
        SQLSyntaxError: If *mode* is not a known mode.
    """
    if not fields:
        raise _error(ErrorCode.NEED_MORE_DATA)

    if mode is AutoQueryMode.INSERT:
        names = ",".join(fields)
        values = ",".join("?" for _ in fields)
        return f"INSERT INTO {table} ({names}) VALUES ({values})"

    if mode is AutoQueryMode.UPDATE:
        guarded = where is not None and where.strip() != ""
        if not guarded and not allow_unguarded:
            raise _error(ErrorCode.POSSIBLE_UNINTENDED_CONSEQUENCES)
        assignments = ",".join(f"{name} = ?" for name in fields)
        sql = f"UPDATE {table} SET {assignments}"
        if guarded:
            sql += f" WHERE {where}"
        return sql

    raise _error(ErrorCode.SYNTAX)


def _error(code: ErrorCode) -> DatabaseError:
    return database_error(code, f"[DB Error: {error_message(code)}]")

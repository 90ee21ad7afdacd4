"""Run-time connection options and portability row transforms."""

from __future__ import annotations

import re
from collections.abc import MutableMapping, MutableSequence
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from portable_query.core.enums import Portability

_SEQUENCE_NAME_UNSAFE = re.compile(r"[^a-z0-9_.]", re.IGNORECASE)


class ConnectionOptions(BaseModel):
    """Named options of one connection, with fixed defaults.

    Unknown names are rejected and assignments are validated, so the set of
    options never grows at run time.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    result_buffering: int = 500
    persistent: bool = False
    debug: int = 0
    seqname_format: str = "%s_seq"
    autofree: bool = False
    portability: int = Portability.NONE

    @field_validator("seqname_format")
    @classmethod
    def _one_name_slot(cls, v: str) -> str:
        # %% is a literal percent sign
        pattern = v.replace("%%", "")
        if pattern.count("%s") != 1 or "%" in pattern.replace("%s", ""):
            raise ValueError("seqname_format must contain exactly one %s")
        return v


def format_sequence_name(seqname_format: str, name: str) -> str:
    """Map a public sequence name to the backend name.

    Characters outside ``[A-Za-z0-9_.]`` become ``_`` and the result is
    formatted through *seqname_format*, a ``%s`` pattern.
    """
    return seqname_format % _SEQUENCE_NAME_UNSAFE.sub("_", name)


def _items(row: MutableSequence[Any] | MutableMapping[Any, Any]) -> Any:
    if isinstance(row, MutableMapping):
        return list(row.items())
    return list(enumerate(row))


def rtrim_values(row: MutableSequence[Any] | MutableMapping[Any, Any]) -> None:
    """Strip trailing whitespace from every string field of *row*, in place."""
    for key, value in _items(row):
        if isinstance(value, str):
            row[key] = value.rstrip()


def null_to_empty(row: MutableSequence[Any] | MutableMapping[Any, Any]) -> None:
    """Replace every ``None`` field of *row* with an empty string, in place."""
    for key, value in _items(row):
        if value is None:
            row[key] = ""

"""Statement classification by leading keyword.

A statement is a *manipulation* statement when it changes data or schema
rather than returning rows. Only the leading keyword is inspected.
"""

from __future__ import annotations

import re

_MANIP_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "REPLACE",
    "CREATE",
    "DROP",
    "LOAD DATA",
    "SELECT .* INTO .* FROM",
    "COPY",
    "ALTER",
    "GRANT",
    "REVOKE",
    "LOCK",
    "UNLOCK",
)

# Optional leading double quote, keyword, then mandatory whitespace
_MANIP_PATTERN = re.compile(
    r'^\s*"?(' + "|".join(_MANIP_KEYWORDS) + r")\s+",
    re.IGNORECASE | re.DOTALL,
)


def is_manip(query: str) -> bool:
    """Return True if *query* is a data or schema manipulation statement.

    ``SELECT ... INTO ... FROM`` counts as manipulation; a plain ``SELECT``
    does not.
    """
    return _MANIP_PATTERN.match(query) is not None

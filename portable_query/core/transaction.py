"""Transaction management.

Provides a context manager for executing several statements atomically on one
connection. Auto-commits on success, auto-rolls-back on exception, and restores
the connection's previous autocommit mode on exit.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from portable_query.core.exceptions import TransactionStateError

if TYPE_CHECKING:
    from portable_query.core.common import Common
    from portable_query.core.result import Result

logger = logging.getLogger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionManager:
    """Synchronous transaction context manager.

    The driver must support ``auto_commit``, ``commit`` and ``rollback``;
    otherwise entering the context raises ``NotCapableError``.
    """

    def __init__(self, db: Common) -> None:
        self._db = db
        self._previous_autocommit = db.autocommit
        self._state = _TxState.IDLE

    def __enter__(self) -> TransactionManager:
        self._previous_autocommit = self._db.autocommit
        self._db.auto_commit(False)
        self._state = _TxState.ACTIVE
        logger.debug("Transaction started on %s", self._db)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._db.rollback()
                    self._state = _TxState.ROLLED_BACK
                    logger.debug("Transaction rolled back after %s", exc_type.__name__)
                else:
                    self._db.commit()
                    self._state = _TxState.COMMITTED
        finally:
            self._db.auto_commit(self._previous_autocommit)

    def query(self, query: str, params: Any = None) -> Result | None:
        """Run a statement within this transaction."""
        self._check_active()
        return self._db.query(query, params)

    def get_all(self, query: str, params: Any = None) -> Any:
        """Fetch all rows within transaction context."""
        self._check_active()
        return self._db.get_all(query, params)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        self._db.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        self._db.rollback()
        self._state = _TxState.ROLLED_BACK

    def _check_active(self) -> None:
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "execute")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "execute")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "execute")

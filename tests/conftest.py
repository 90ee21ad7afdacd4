"""Shared test fixtures."""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

import pytest

from portable_query.core.common import Common, DriverFeatures
from portable_query.core.connection import ConnectionConfig
from portable_query.core.enums import ErrorCode


@dataclass
class FakeHandle:
    columns: list[str]
    rows: deque[tuple[Any, ...]]
    # Raise a driver error once this many rows have been returned
    fail_after: int | None = None
    fetched: int = 0


@dataclass
class FakeScript:
    columns: list[str]
    rows: list[tuple[Any, ...]] = field(default_factory=list)
    fail_after: int | None = None


class FakeDriver(Common):
    """In-memory driver answering scripted queries.

    Queries without a script behave like statements that return no rows.
    """

    features: ClassVar[DriverFeatures] = DriverFeatures(limit="alter", transactions=True)
    native_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        1062: ErrorCode.ALREADY_EXISTS,
        1064: ErrorCode.SYNTAX,
        1146: ErrorCode.NOSUCHTABLE,
    }
    portable_error_codes: ClassVar[dict[Any, ErrorCode]] = {
        1062: ErrorCode.CONSTRAINT,
    }

    def __init__(self, options: Any = None) -> None:
        super().__init__(options)
        self.scripts: dict[str, FakeScript] = {}
        self.failures: dict[str, int] = {}
        self.executed: list[str] = []
        self.freed: list[FakeHandle] = []
        self.tx_log: list[str] = []

    def script(
        self,
        query: str,
        columns: list[str],
        rows: list[tuple[Any, ...]] | None = None,
        fail_after: int | None = None,
    ) -> None:
        self.scripts[query] = FakeScript(columns, list(rows or []), fail_after)

    def fail(self, query: str, native_code: int) -> None:
        self.failures[query] = native_code

    def connect(self, config: Any = None) -> None:
        self.connection = True

    def disconnect(self) -> bool:
        was_connected = self.connected()
        self.connection = None
        return was_connected

    def run_raw_query(self, query: str) -> FakeHandle | None:
        self.executed.append(query)
        if query in self.failures:
            native = self.failures[query]
            raise self.create_error(self.error_code(native), native_code=native)
        script = self.scripts.get(query)
        if script is None:
            return None
        return FakeHandle(list(script.columns), deque(script.rows), script.fail_after)

    def fetch_raw(self, handle: FakeHandle) -> Sequence[Any] | None:
        if handle.fail_after is not None and handle.fetched >= handle.fail_after:
            raise self.create_error(ErrorCode.ERROR, native_code=2013)
        if not handle.rows:
            return None
        handle.fetched += 1
        return handle.rows.popleft()

    def column_names(self, handle: FakeHandle) -> list[str]:
        return handle.columns

    def free_result(self, handle: FakeHandle) -> None:
        self.freed.append(handle)

    def auto_commit(self, onoff: bool = False) -> None:
        self.autocommit = bool(onoff)
        self.tx_log.append(f"autocommit={self.autocommit}")

    def commit(self) -> None:
        self.tx_log.append("commit")

    def rollback(self) -> None:
        self.tx_log.append("rollback")


@pytest.fixture
def fake_driver_cls() -> type[FakeDriver]:
    return FakeDriver


@pytest.fixture
def db() -> FakeDriver:
    """Connected scripted driver."""
    driver = FakeDriver()
    driver.connect()
    return driver


@pytest.fixture
def users_db(db: FakeDriver) -> FakeDriver:
    """Scripted driver with a small users result set."""
    db.script("SELECT id, name FROM users", ["id", "name"], [(1, "alice"), (2, "bob")])
    db.script(
        "SELECT id, name, email FROM users",
        ["id", "name", "email"],
        [(1, "alice", "a@ex.com"), (2, "bob", "b@ex.com"), (1, "alice2", "a2@ex.com")],
    )
    db.script("SELECT id FROM users", ["id"], [(1,), (2,)])
    db.script("SELECT id, name FROM nobody", ["id", "name"], [])
    return db


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:")


@pytest.fixture
def write_file(tmp_path: Path):
    """Helper to write a file into the temp directory.

    Usage:
        write_file("blob.txt", "contents")
    """

    def _write(relative_path: str, content: str | bytes) -> Path:
        file_path = tmp_path / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            file_path.write_bytes(content)
        else:
            file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write

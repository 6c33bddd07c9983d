import sqlite3
from collections.abc import Generator
from pathlib import Path
from typing import Any, Optional

import pytest

from sqlfill.core.config import FillConfig
from sqlfill.core.connection import AsyncConnectionHandle, ConnectionState, SyncConnectionHandle

here = Path(__file__).parent
root_path = here.parent

SCHEMA = """
CREATE TABLE Users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT,
    age INTEGER
);
INSERT INTO Users (name, email, age) VALUES ('John', 'john@test.com', 30);
INSERT INTO Users (name, email, age) VALUES ('Jane', 'jane@test.com', 25);
INSERT INTO Users (name, email, age) VALUES ('Bob', 'bob@test.com', 40);

CREATE TABLE Orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    userId INTEGER NOT NULL,
    product TEXT NOT NULL,
    amount REAL NOT NULL
);
INSERT INTO Orders (userId, product, amount) VALUES (1, 'Widget', 9.99);
INSERT INTO Orders (userId, product, amount) VALUES (1, 'Gadget', 24.50);
INSERT INTO Orders (userId, product, amount) VALUES (2, 'Widget', 9.99);
"""


@pytest.fixture
def sqlite_connection() -> Generator[sqlite3.Connection, None, None]:
    connection = sqlite3.connect(":memory:", isolation_level=None)
    connection.executescript(SCHEMA)
    yield connection
    connection.close()


@pytest.fixture
def fast_config() -> FillConfig:
    """Configuration with a short polling interval for guard tests."""
    return FillConfig(poll_interval=0.001, max_poll_attempts=50)


class FakeCursor:
    """DB-API cursor stub serving canned rows."""

    def __init__(
        self,
        rows: "Optional[list[tuple[Any, ...]]]" = None,
        columns: "Optional[list[str]]" = None,
        *,
        fail_on_close: bool = False,
        fail_on_execute: Optional[Exception] = None,
    ) -> None:
        self.rows = list(rows or [])
        self.description = None if columns is None else [(name, None, None, None, None, None, None) for name in columns]
        self.rowcount = -1
        self.fail_on_close = fail_on_close
        self.fail_on_execute = fail_on_execute
        self.executed: "list[tuple[str, Any]]" = []
        self.fetches = 0
        self.close_calls = 0

    def execute(self, sql: str, parameters: Any = None) -> "FakeCursor":
        if self.fail_on_execute is not None:
            raise self.fail_on_execute
        self.executed.append((sql, parameters))
        return self

    def fetchone(self) -> "Optional[tuple[Any, ...]]":
        self.fetches += 1
        if not self.rows:
            return None
        return self.rows.pop(0)

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_on_close:
            msg = "cursor close failed"
            raise RuntimeError(msg)


class FakeAsyncCursor(FakeCursor):
    async def execute(self, sql: str, parameters: Any = None) -> "FakeAsyncCursor":  # type: ignore[override]
        FakeCursor.execute(self, sql, parameters)
        return self

    async def fetchone(self) -> "Optional[tuple[Any, ...]]":  # type: ignore[override]
        return FakeCursor.fetchone(self)

    async def close(self) -> None:  # type: ignore[override]
        FakeCursor.close(self)


class FakeHandle(SyncConnectionHandle):
    """Sync handle whose state can be scripted from tests."""

    __slots__ = ("_state", "close_calls", "cursor_factory", "open_calls", "state_script")

    provider = "fake"

    def __init__(self, state: ConnectionState = ConnectionState.CLOSED, cursor: Optional[FakeCursor] = None) -> None:
        self._state = state
        self.open_calls = 0
        self.close_calls = 0
        self.state_script: "list[ConnectionState]" = []
        self.cursor_factory = cursor or FakeCursor()

    @property
    def state(self) -> ConnectionState:  # type: ignore[override]
        if self.state_script:
            self._state = self.state_script.pop(0)
        return self._state

    def open(self) -> None:
        self.open_calls += 1
        self._state = ConnectionState.OPEN

    def close(self) -> None:
        self.close_calls += 1
        self._state = ConnectionState.CLOSED

    def cursor(self) -> FakeCursor:
        return self.cursor_factory


class FakeAsyncHandle(AsyncConnectionHandle):
    __slots__ = ("_state", "close_calls", "cursor_factory", "open_calls", "state_script")

    provider = "fake-async"

    def __init__(
        self, state: ConnectionState = ConnectionState.CLOSED, cursor: Optional[FakeAsyncCursor] = None
    ) -> None:
        self._state = state
        self.open_calls = 0
        self.close_calls = 0
        self.state_script: "list[ConnectionState]" = []
        self.cursor_factory = cursor or FakeAsyncCursor()

    @property
    def state(self) -> ConnectionState:  # type: ignore[override]
        if self.state_script:
            self._state = self.state_script.pop(0)
        return self._state

    async def open(self) -> None:
        self.open_calls += 1
        self._state = ConnectionState.OPEN

    async def close(self) -> None:
        self.close_calls += 1
        self._state = ConnectionState.CLOSED

    async def cursor(self) -> FakeAsyncCursor:
        return self.cursor_factory

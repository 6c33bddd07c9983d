"""Connection handle for the standard library ``sqlite3`` driver."""

import sqlite3
from typing import Any, ClassVar, Optional, TypedDict

from typing_extensions import NotRequired, Unpack

from sqlfill.core.connection import ConnectionState, SyncConnectionHandle
from sqlfill.exceptions import ImproperUsageError
from sqlfill.parameters.types import ParameterStyle

__all__ = ("SqliteConnectionHandle", "SqliteConnectionParams")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


class SqliteConnectionHandle(SyncConnectionHandle):
    """Wraps an existing ``sqlite3.Connection`` or opens one on demand.

    Handles that open their own connection default to autocommit
    (``isolation_level=None``). A handle wrapping a caller's connection
    cannot reopen it once closed.
    """

    __slots__ = ("_connect_params", "_connection", "_state")

    provider: ClassVar[str] = "sqlite"
    parameter_style = ParameterStyle.NAMED_AT

    def __init__(
        self, connection: "Optional[sqlite3.Connection]" = None, **connect_params: "Unpack[SqliteConnectionParams]"
    ) -> None:
        if connection is None and not connect_params:
            connect_params = {"database": ":memory:"}
        self._connection = connection
        self._connect_params: "dict[str, Any]" = {"isolation_level": None, **connect_params}
        self._state = ConnectionState.CLOSED if connection is None else ConnectionState.OPEN

    @property
    def connection(self) -> "Optional[sqlite3.Connection]":
        return self._connection

    def open(self) -> None:
        if self._connection is not None:
            self._state = ConnectionState.OPEN
            return
        if "database" not in self._connect_params:
            msg = "This handle wraps a caller-owned sqlite3 connection and cannot reopen it."
            raise ImproperUsageError(msg)
        self._state = ConnectionState.CONNECTING
        try:
            self._connection = sqlite3.connect(**self._connect_params)
        except sqlite3.Error:
            self._state = ConnectionState.BROKEN
            raise
        self._state = ConnectionState.OPEN

    def close(self) -> None:
        connection, self._connection = self._connection, None
        self._state = ConnectionState.CLOSED
        if connection is not None:
            connection.close()

    def cursor(self) -> "sqlite3.Cursor":
        if self._connection is None:
            msg = "The sqlite connection is not open."
            raise ImproperUsageError(msg)
        return self._connection.cursor()

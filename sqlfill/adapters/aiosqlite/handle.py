"""Connection handle for the ``aiosqlite`` driver."""

from typing import Any, ClassVar, Optional, TypedDict

import aiosqlite
from typing_extensions import NotRequired, Unpack

from sqlfill.core.connection import AsyncConnectionHandle, ConnectionState
from sqlfill.exceptions import ImproperUsageError
from sqlfill.parameters.types import ParameterStyle

__all__ = ("AiosqliteConnectionHandle", "AiosqliteConnectionParams")


class AiosqliteConnectionParams(TypedDict, total=False):
    """aiosqlite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]
    iter_chunk_size: NotRequired[int]


class AiosqliteConnectionHandle(AsyncConnectionHandle):
    """Wraps an existing ``aiosqlite.Connection`` or opens one on demand."""

    __slots__ = ("_connect_params", "_connection", "_state")

    provider: ClassVar[str] = "aiosqlite"
    parameter_style = ParameterStyle.NAMED_AT

    def __init__(
        self, connection: "Optional[aiosqlite.Connection]" = None, **connect_params: "Unpack[AiosqliteConnectionParams]"
    ) -> None:
        if connection is None and not connect_params:
            connect_params = {"database": ":memory:"}
        self._connection = connection
        self._connect_params: "dict[str, Any]" = {"isolation_level": None, **connect_params}
        self._state = ConnectionState.CLOSED if connection is None else ConnectionState.OPEN

    @property
    def connection(self) -> "Optional[aiosqlite.Connection]":
        return self._connection

    async def open(self) -> None:
        if self._connection is not None:
            self._state = ConnectionState.OPEN
            return
        if "database" not in self._connect_params:
            msg = "This handle wraps a caller-owned aiosqlite connection and cannot reopen it."
            raise ImproperUsageError(msg)
        params = dict(self._connect_params)
        database = params.pop("database")
        self._state = ConnectionState.CONNECTING
        try:
            self._connection = await aiosqlite.connect(database, **params)
        except Exception:
            self._state = ConnectionState.BROKEN
            raise
        self._state = ConnectionState.OPEN

    async def close(self) -> None:
        connection, self._connection = self._connection, None
        self._state = ConnectionState.CLOSED
        if connection is not None:
            await connection.close()

    async def cursor(self) -> "aiosqlite.Cursor":
        if self._connection is None:
            msg = "The aiosqlite connection is not open."
            raise ImproperUsageError(msg)
        return await self._connection.cursor()

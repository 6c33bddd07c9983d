"""Streaming query results.

A result owns the open cursor of one executed query, and optionally the
connection. Rows are produced lazily, one fetch per step; nothing is
buffered. Results are single-pass.

Disposal is idempotent. It closes the cursor and then, when the result owns
it, the connection. Failures while closing are logged and suppressed so
that disposal never masks the error that triggered it.
"""

import asyncio
from collections.abc import AsyncIterator, Iterator
from typing import TYPE_CHECKING, Any, Generic, Optional

from mypy_extensions import mypyc_attr
from typing_extensions import TypeVar

from sqlfill.core.connection import ensure_closed, ensure_closed_async
from sqlfill.exceptions import ImproperUsageError, QueryCancelledError
from sqlfill.utils.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from sqlfill.core.config import FillConfig
    from sqlfill.core.connection import AsyncConnectionHandle, SyncConnectionHandle
    from sqlfill.parameters.types import BoundQuery

__all__ = ("AsyncQueryResult", "QueryResult")

logger = get_logger("result")

T = TypeVar("T", default=Any)


def _rowcount(cursor: Any) -> int:
    count = getattr(cursor, "rowcount", -1)
    return count if isinstance(count, int) else -1


@mypyc_attr(allow_interpreted_subclasses=True)
class QueryResult(Generic[T]):
    """Rows of one executed query, read on demand.

    Use as an iterator and as a context manager::

        with execute_query(conn, "SELECT * FROM users WHERE age > {{age}}", {"age": 20}) as result:
            for row in result:
                print(row.name)
    """

    __slots__ = (
        "_config",
        "_connection",
        "_cursor",
        "_cursor_closed",
        "_disposed",
        "_rows",
        "owns_connection",
        "statement",
    )

    def __init__(
        self,
        rows: "Iterator[T]",
        cursor: Any,
        connection: "Optional[SyncConnectionHandle]",
        *,
        owns_connection: bool = False,
        statement: "Optional[BoundQuery]" = None,
        config: "Optional[FillConfig]" = None,
    ) -> None:
        self._rows = rows
        self._cursor = cursor
        self._connection = connection
        self._config = config
        self._cursor_closed = cursor is None
        self._disposed = False
        self.owns_connection = owns_connection
        self.statement = statement

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def rowcount(self) -> int:
        """Rows affected as reported by the driver, or -1 when unknown."""
        return _rowcount(self._cursor)

    def __iter__(self) -> "Iterator[T]":
        return self.iterate()

    def iterate(self) -> "Iterator[T]":
        """Yield rows until the cursor is exhausted or closed.

        On cancellation the result is disposed before the error propagates.
        """
        if self._disposed:
            msg = "Cannot iterate a disposed query result."
            raise ImproperUsageError(msg)
        return self._iterate()

    def _iterate(self) -> "Iterator[T]":
        if self._cursor_closed:
            return
        try:
            for row in self._rows:
                yield row
                if self._cursor_closed:
                    return
        except QueryCancelledError:
            self.dispose()
            raise

    def first(self) -> Optional[T]:
        """Return the next row, or None when there is none."""
        return next(self.iterate(), None)

    def all(self) -> "list[T]":
        return list(self.iterate())

    def close_cursor(self) -> None:
        """Close the cursor early. Safe to call more than once."""
        if self._cursor_closed:
            return
        self._cursor_closed = True
        try:
            self._cursor.close()
        except Exception:
            logger.debug("Suppressed error while closing cursor", exc_info=True)

    def dispose(self) -> None:
        """Close the cursor and, if owned, the connection. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self.close_cursor()
        if self.owns_connection and self._connection is not None:
            try:
                ensure_closed(self._connection, config=self._config)
            except Exception:
                logger.debug("Suppressed error while closing connection", exc_info=True)

    close = dispose

    def __enter__(self) -> "QueryResult[T]":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: Optional[BaseException],
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"QueryResult(disposed={self._disposed}, owns_connection={self.owns_connection})"


@mypyc_attr(allow_interpreted_subclasses=True)
class AsyncQueryResult(Generic[T]):
    """Rows of one query executed on an asyncio driver.

    Iterate with ``async for``. :meth:`iterate_blocking` and
    :meth:`dispose_blocking` drive the same stream from synchronous code on a
    private event loop; they refuse to run inside a running loop.
    """

    __slots__ = (
        "_config",
        "_connection",
        "_cursor",
        "_cursor_closed",
        "_disposed",
        "_loop",
        "_rows",
        "owns_connection",
        "statement",
    )

    def __init__(
        self,
        rows: "AsyncIterator[T]",
        cursor: Any,
        connection: "Optional[AsyncConnectionHandle]",
        *,
        owns_connection: bool = False,
        statement: "Optional[BoundQuery]" = None,
        config: "Optional[FillConfig]" = None,
    ) -> None:
        self._rows = rows
        self._cursor = cursor
        self._connection = connection
        self._config = config
        self._cursor_closed = cursor is None
        self._disposed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.owns_connection = owns_connection
        self.statement = statement

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def rowcount(self) -> int:
        """Rows affected as reported by the driver, or -1 when unknown."""
        return _rowcount(self._cursor)

    def __aiter__(self) -> "AsyncIterator[T]":
        return self.iterate()

    def iterate(self) -> "AsyncIterator[T]":
        if self._disposed:
            msg = "Cannot iterate a disposed query result."
            raise ImproperUsageError(msg)
        return self._iterate()

    async def _iterate(self) -> "AsyncIterator[T]":
        if self._cursor_closed:
            return
        try:
            async for row in self._rows:
                yield row
                if self._cursor_closed:
                    return
        except (QueryCancelledError, asyncio.CancelledError):
            await self.dispose()
            raise

    async def first(self) -> Optional[T]:
        """Return the next row, or None when there is none."""
        async for row in self.iterate():
            return row
        return None

    async def all(self) -> "list[T]":
        return [row async for row in self.iterate()]

    async def close_cursor(self) -> None:
        if self._cursor_closed:
            return
        self._cursor_closed = True
        try:
            await self._cursor.close()
        except Exception:
            logger.debug("Suppressed error while closing cursor", exc_info=True)

    async def dispose(self) -> None:
        """Close the cursor and, if owned, the connection. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        await self.close_cursor()
        if self.owns_connection and self._connection is not None:
            try:
                await ensure_closed_async(self._connection, config=self._config)
            except Exception:
                logger.debug("Suppressed error while closing connection", exc_info=True)

    close = dispose

    def _blocking_loop(self) -> asyncio.AbstractEventLoop:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            msg = "Blocking iteration cannot be used inside a running event loop; use 'async for' instead."
            raise ImproperUsageError(msg)
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def iterate_blocking(self) -> "Iterator[T]":
        """Yield rows synchronously, driving the async stream on a private loop."""
        loop = self._blocking_loop()
        rows = self.iterate()
        while True:
            try:
                row = loop.run_until_complete(rows.__anext__())
            except StopAsyncIteration:
                return
            yield row

    def close_cursor_blocking(self) -> None:
        """Synchronous :meth:`close_cursor`."""
        self._blocking_loop().run_until_complete(self.close_cursor())

    def dispose_blocking(self) -> None:
        """Synchronous :meth:`dispose`; also shuts down the private loop."""
        loop = self._blocking_loop()
        try:
            loop.run_until_complete(self.dispose())
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            loop.close()
            self._loop = None

    async def __aenter__(self) -> "AsyncQueryResult[T]":
        return self

    async def __aexit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: Optional[BaseException],
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        await self.dispose()

    def __enter__(self) -> "AsyncQueryResult[T]":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: Optional[BaseException],
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.dispose_blocking()

    def __repr__(self) -> str:
        return f"AsyncQueryResult(disposed={self._disposed}, owns_connection={self.owns_connection})"

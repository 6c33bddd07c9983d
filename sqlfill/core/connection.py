"""Connection handles and the open/close state guard.

A handle wraps one DB-API connection and reports a :class:`ConnectionState`.
The guard helpers bring a handle to a stable open or closed state, polling
while it is busy connecting, executing or fetching.
"""

import asyncio
import time
from collections.abc import Generator
from contextlib import contextmanager
from enum import Enum
from typing import Any, ClassVar, Final, Optional

from mypy_extensions import trait

from sqlfill.core.cancellation import CancellationToken, raise_if_cancelled
from sqlfill.core.config import FillConfig, get_default_config
from sqlfill.exceptions import ConnectionBusyError
from sqlfill.parameters.types import ParameterStyle
from sqlfill.utils.logging import get_logger

__all__ = (
    "BUSY_STATES",
    "AsyncConnectionHandle",
    "ConnectionHandleBase",
    "ConnectionState",
    "SyncConnectionHandle",
    "ensure_closed",
    "ensure_closed_async",
    "ensure_open",
    "ensure_open_async",
)

logger = get_logger("connection")


class ConnectionState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    CONNECTING = "connecting"
    EXECUTING = "executing"
    FETCHING = "fetching"
    BROKEN = "broken"


BUSY_STATES: Final = frozenset({ConnectionState.CONNECTING, ConnectionState.EXECUTING, ConnectionState.FETCHING})


@trait
class ConnectionHandleBase:
    """State bookkeeping shared by sync and async handles.

    Subclasses set ``provider`` and, when the driver's placeholder syntax is
    fixed, ``parameter_style``. A None style means "use the configured one".
    """

    __slots__ = ()

    provider: ClassVar[str] = "dbapi"
    parameter_style: Optional[ParameterStyle] = None
    _state: ConnectionState

    @property
    def state(self) -> ConnectionState:
        return self._state

    @contextmanager
    def track(self, state: ConnectionState) -> Generator[None, None, None]:
        """Report ``state`` for the duration of the block."""
        previous = self._state
        self._state = state
        try:
            yield
        finally:
            if self._state is state:
                self._state = previous

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider!r}, state={self.state.value!r})"


class SyncConnectionHandle(ConnectionHandleBase):
    """A blocking DB-API connection."""

    __slots__ = ()

    def open(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def cursor(self) -> Any:
        raise NotImplementedError


class AsyncConnectionHandle(ConnectionHandleBase):
    """An asyncio connection with awaitable open, close and cursor."""

    __slots__ = ()

    async def open(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def cursor(self) -> Any:
        raise NotImplementedError


def _check_attempts(handle: ConnectionHandleBase, attempts: int, config: FillConfig) -> None:
    if config.max_poll_attempts is not None and attempts >= config.max_poll_attempts:
        raise ConnectionBusyError(handle.state.value, attempts)


def _wait_while_busy(
    handle: ConnectionHandleBase, cancellation: Optional[CancellationToken], config: FillConfig
) -> None:
    attempts = 0
    while handle.state in BUSY_STATES:
        _check_attempts(handle, attempts, config)
        attempts += 1
        if cancellation is not None:
            cancellation.wait(config.poll_interval)
        else:
            time.sleep(config.poll_interval)
        raise_if_cancelled(cancellation)
    if attempts:
        logger.debug("Connection settled as %s after %d poll(s)", handle.state.value, attempts)


async def _wait_while_busy_async(
    handle: ConnectionHandleBase, cancellation: Optional[CancellationToken], config: FillConfig
) -> None:
    attempts = 0
    while handle.state in BUSY_STATES:
        _check_attempts(handle, attempts, config)
        attempts += 1
        await asyncio.sleep(config.poll_interval)
        raise_if_cancelled(cancellation)
    if attempts:
        logger.debug("Connection settled as %s after %d poll(s)", handle.state.value, attempts)


def ensure_open(
    handle: SyncConnectionHandle,
    cancellation: Optional[CancellationToken] = None,
    *,
    config: Optional[FillConfig] = None,
) -> None:
    """Bring ``handle`` to the open state.

    An open handle is left alone. A busy one is polled until it settles; a
    closed or broken one is opened.
    """
    config = config or get_default_config()
    raise_if_cancelled(cancellation)
    if handle.state is ConnectionState.OPEN:
        return
    _wait_while_busy(handle, cancellation, config)
    if handle.state in {ConnectionState.CLOSED, ConnectionState.BROKEN}:
        logger.debug("Opening %s connection", handle.provider)
        handle.open()


def ensure_closed(
    handle: SyncConnectionHandle,
    cancellation: Optional[CancellationToken] = None,
    *,
    config: Optional[FillConfig] = None,
) -> None:
    """Bring ``handle`` to the closed state, waiting out any busy state first."""
    config = config or get_default_config()
    raise_if_cancelled(cancellation)
    if handle.state is ConnectionState.CLOSED:
        return
    _wait_while_busy(handle, cancellation, config)
    if handle.state in {ConnectionState.OPEN, ConnectionState.BROKEN}:
        logger.debug("Closing %s connection", handle.provider)
        handle.close()


async def ensure_open_async(
    handle: AsyncConnectionHandle,
    cancellation: Optional[CancellationToken] = None,
    *,
    config: Optional[FillConfig] = None,
) -> None:
    config = config or get_default_config()
    raise_if_cancelled(cancellation)
    if handle.state is ConnectionState.OPEN:
        return
    await _wait_while_busy_async(handle, cancellation, config)
    if handle.state in {ConnectionState.CLOSED, ConnectionState.BROKEN}:
        logger.debug("Opening %s connection", handle.provider)
        await handle.open()


async def ensure_closed_async(
    handle: AsyncConnectionHandle,
    cancellation: Optional[CancellationToken] = None,
    *,
    config: Optional[FillConfig] = None,
) -> None:
    config = config or get_default_config()
    raise_if_cancelled(cancellation)
    if handle.state is ConnectionState.CLOSED:
        return
    await _wait_while_busy_async(handle, cancellation, config)
    if handle.state in {ConnectionState.OPEN, ConnectionState.BROKEN}:
        logger.debug("Closing %s connection", handle.provider)
        await handle.close()

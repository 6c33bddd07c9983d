"""Handle for any PEP 249 connection without a dedicated adapter."""

from collections.abc import Callable
from typing import Any, Optional

from sqlfill.adapters.registry import parameter_style_for
from sqlfill.core.connection import ConnectionState, SyncConnectionHandle
from sqlfill.exceptions import ImproperUsageError
from sqlfill.parameters.types import ParameterStyle

__all__ = ("DBAPIConnectionHandle",)


class DBAPIConnectionHandle(SyncConnectionHandle):
    """Wraps a DB-API connection, or a factory that creates one.

    The placeholder syntax comes from ``parameter_style`` when given, else
    from the provider table for ``provider_name``, else from the configured
    default.
    """

    __slots__ = ("_connection", "_factory", "_state", "parameter_style", "provider_name")

    def __init__(
        self,
        connection: Any = None,
        *,
        factory: "Optional[Callable[[], Any]]" = None,
        provider_name: Optional[str] = None,
        parameter_style: Optional[ParameterStyle] = None,
    ) -> None:
        if connection is None and factory is None:
            msg = "Either a connection or a connection factory is required."
            raise ImproperUsageError(msg)
        self._connection = connection
        self._factory = factory
        self._state = ConnectionState.CLOSED if connection is None else ConnectionState.OPEN
        self.provider_name = provider_name
        self.parameter_style = parameter_style or parameter_style_for(provider_name)

    @property
    def provider(self) -> str:  # type: ignore[override]
        return self.provider_name or "dbapi"

    @property
    def connection(self) -> Any:
        return self._connection

    def open(self) -> None:
        if self._connection is not None:
            self._state = ConnectionState.OPEN
            return
        if self._factory is None:
            msg = "This handle wraps a caller-owned connection and cannot reopen it."
            raise ImproperUsageError(msg)
        self._state = ConnectionState.CONNECTING
        try:
            self._connection = self._factory()
        except Exception:
            self._state = ConnectionState.BROKEN
            raise
        self._state = ConnectionState.OPEN

    def close(self) -> None:
        connection, self._connection = self._connection, None
        self._state = ConnectionState.CLOSED
        if connection is not None:
            connection.close()

    def cursor(self) -> Any:
        if self._connection is None:
            msg = "The connection is not open."
            raise ImproperUsageError(msg)
        return self._connection.cursor()

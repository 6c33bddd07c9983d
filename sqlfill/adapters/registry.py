"""Provider registry and URL-based connection factory.

A provider pairs a name with a handle factory. ``connect("sqlite:///app.db")``
looks up the ``sqlite`` provider and hands it the database part of the URL.
"""

import threading
from collections.abc import Callable
from typing import Any, Final, NamedTuple, Optional, Union

from sqlfill.core.connection import AsyncConnectionHandle, SyncConnectionHandle
from sqlfill.exceptions import ImproperUsageError, MissingDependencyError, ProviderNotFoundError
from sqlfill.parameters.types import ParameterStyle
from sqlfill.utils.logging import get_logger

__all__ = (
    "PROVIDER_PARAMETER_STYLES",
    "Provider",
    "connect",
    "get_provider",
    "parameter_style_for",
    "parse_connection_url",
    "register_provider",
    "registered_providers",
)

logger = get_logger("adapters.registry")

HandleFactory = Callable[..., Union[SyncConnectionHandle, AsyncConnectionHandle]]

PROVIDER_PARAMETER_STYLES: "Final[dict[str, ParameterStyle]]" = {
    "sqlite": ParameterStyle.NAMED_AT,
    "sqlite3": ParameterStyle.NAMED_AT,
    "aiosqlite": ParameterStyle.NAMED_AT,
    "duckdb": ParameterStyle.NAMED_DOLLAR,
    "oracledb": ParameterStyle.NAMED_COLON,
    "psycopg": ParameterStyle.NAMED_PYFORMAT,
    "psycopg2": ParameterStyle.NAMED_PYFORMAT,
    "pymysql": ParameterStyle.NAMED_PYFORMAT,
    "mysql.connector": ParameterStyle.NAMED_PYFORMAT,
    "pymssql": ParameterStyle.NAMED_PYFORMAT,
}
"""Placeholder syntax of known DB-API drivers, keyed by provider name."""


class Provider(NamedTuple):
    name: str
    factory: HandleFactory
    is_async: bool = False


_registry_lock = threading.Lock()
_providers: "dict[str, Provider]" = {}


def parameter_style_for(provider: Optional[str]) -> Optional[ParameterStyle]:
    """Look up the placeholder syntax of a provider.

    Returns:
        The style, or None when the provider is unknown.
    """
    if provider is None:
        return None
    return PROVIDER_PARAMETER_STYLES.get(provider.lower())


def register_provider(
    name: str,
    factory: HandleFactory,
    *,
    is_async: bool = False,
    parameter_style: Optional[ParameterStyle] = None,
) -> None:
    """Register a handle factory under ``name``.

    The factory is called as ``factory(database, **options)``. Registering
    an existing name replaces it.
    """
    key = name.lower()
    with _registry_lock:
        _providers[key] = Provider(key, factory, is_async)
        if parameter_style is not None:
            PROVIDER_PARAMETER_STYLES[key] = parameter_style
    logger.debug("Registered provider %r", key)


def get_provider(name: str) -> Provider:
    """Get a registered provider.

    Raises:
        ProviderNotFoundError: nothing is registered under ``name``.

    Returns:
        The provider.
    """
    with _registry_lock:
        provider = _providers.get(name.lower())
    if provider is None:
        raise ProviderNotFoundError(name)
    return provider


def registered_providers() -> "tuple[str, ...]":
    with _registry_lock:
        return tuple(_providers)


def parse_connection_url(url: str) -> "tuple[str, str]":
    """Split ``provider://database`` into its parts.

    One leading slash after ``://`` is dropped, so ``sqlite:///:memory:``
    names ``:memory:`` and ``sqlite:////tmp/app.db`` names ``/tmp/app.db``.

    Returns:
        Provider name and database string.
    """
    provider, separator, database = url.partition("://")
    if not separator or not provider:
        msg = f"Invalid connection URL {url!r}; expected 'provider://database'."
        raise ImproperUsageError(msg)
    if database.startswith("/"):
        database = database[1:]
    return provider.lower(), database


def connect(url: str, **options: Any) -> "Union[SyncConnectionHandle, AsyncConnectionHandle]":
    """Create an unopened handle for a connection URL.

    Returns:
        The handle. Open it with the connection guard or let the query
        functions do so.
    """
    provider_name, database = parse_connection_url(url)
    provider = get_provider(provider_name)
    return provider.factory(database, **options)


def _sqlite_factory(database: str, **options: Any) -> SyncConnectionHandle:
    from sqlfill.adapters.sqlite import SqliteConnectionHandle

    return SqliteConnectionHandle(database=database or ":memory:", **options)


def _aiosqlite_factory(database: str, **options: Any) -> AsyncConnectionHandle:
    try:
        from sqlfill.adapters.aiosqlite import AiosqliteConnectionHandle
    except ImportError as exc:
        raise MissingDependencyError(package="aiosqlite") from exc

    return AiosqliteConnectionHandle(database=database or ":memory:", **options)


register_provider("sqlite", _sqlite_factory)
register_provider("aiosqlite", _aiosqlite_factory, is_async=True)

from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any, Optional

__all__ = (
    "ConnectionBusyError",
    "ImproperUsageError",
    "MissingDependencyError",
    "ProviderNotFoundError",
    "QueryCancelledError",
    "QueryExecutionError",
    "SQLFillError",
    "TypeHintParseError",
    "wrap_execution_errors",
)


class SQLFillError(Exception):
    """Base exception class from which all sqlfill exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLFillError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLFillError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlfill[{install_package or package}]' to install sqlfill with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperUsageError(SQLFillError, ValueError):
    """A required argument was missing or invalid.

    Raised before any database I/O takes place.
    """


class ProviderNotFoundError(ImproperUsageError):
    """No provider is registered under the requested name."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"No provider registered under {provider!r}. "
            "Register one with sqlfill.adapters.register_provider() before connecting."
        )
        self.provider = provider


class QueryExecutionError(SQLFillError):
    """Preparing or executing a rewritten command failed.

    The message embeds the bound parameters and the rewritten query text. The
    original failure is kept as ``__cause__``.
    """

    sql: Optional[str]
    parameters: "dict[str, Any]"

    def __init__(
        self, message: str, sql: Optional[str] = None, parameters: "Optional[Mapping[str, Any]]" = None
    ) -> None:
        self.message = message
        self.sql = sql
        self.parameters = dict(parameters or {})
        super().__init__(detail=format_execution_error(message, sql, self.parameters))

    def attach_statement(self, sql: str, parameters: "Optional[Mapping[str, Any]]" = None) -> None:
        """Record the statement that was running when the error surfaced."""
        self.sql = sql
        self.parameters = dict(parameters or {})
        self.detail = format_execution_error(self.message, sql, self.parameters)


class TypeHintParseError(QueryExecutionError):
    """A column hinted as JSON or XML could not be parsed."""

    def __init__(self, column: str, tag: str, message: str) -> None:
        super().__init__(f"Failed to parse column {column!r} as {tag}: {message}")
        self.column = column
        self.tag = tag


class QueryCancelledError(SQLFillError):
    """The cancellation signal fired at a suspension point."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "The operation was cancelled.")


class ConnectionBusyError(SQLFillError):
    """The connection stayed busy for longer than the configured number of polls."""

    def __init__(self, state: Any, attempts: int) -> None:
        super().__init__(f"Connection still {state} after {attempts} polling attempts.")
        self.state = state
        self.attempts = attempts


def format_execution_error(message: str, sql: Optional[str], parameters: "Mapping[str, Any]") -> str:
    """Build the diagnostic text used by :class:`QueryExecutionError`.

    Returns:
        The message followed by a parameter listing and the query text.
    """
    lines = ["Error executing query:"]
    if parameters:
        lines.extend(("-----------", "Parameters:"))
        lines.extend(f"{name} = {value!r}" for name, value in parameters.items())
    if sql is not None:
        lines.extend(("-----", "Query", sql, "-------"))
    lines.extend(("Error msg:", message))
    return "\n".join(lines)


@contextmanager
def wrap_execution_errors(
    sql: Optional[str], parameters: "Optional[Mapping[str, Any]]" = None
) -> Generator[None, None, None]:
    """Re-raise driver failures as :class:`QueryExecutionError`.

    Errors that already belong to this library pass through, though an
    execution error raised without a statement picks up this one.
    """
    try:
        yield
    except QueryExecutionError as exc:
        if exc.sql is None and sql is not None:
            exc.attach_statement(sql, parameters)
        raise
    except SQLFillError:
        raise
    except Exception as exc:
        raise QueryExecutionError(str(exc) or type(exc).__name__, sql, parameters) from exc

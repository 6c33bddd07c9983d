"""Cooperative cancellation for queries and connection polling."""

import threading
from typing import Optional

from sqlfill.exceptions import QueryCancelledError

__all__ = ("CancellationToken", "raise_if_cancelled")


class CancellationToken:
    """A thread-safe, one-way cancellation flag.

    Operations check the token at their suspension points: before opening,
    between polls, after executing and before each row fetch.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`QueryCancelledError` once :meth:`cancel` has been called."""
        if self._event.is_set():
            raise QueryCancelledError

    def wait(self, timeout: float) -> bool:
        """Sleep for up to ``timeout`` seconds, waking early on cancellation.

        Returns:
            True if the token was cancelled.
        """
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


def raise_if_cancelled(token: Optional[CancellationToken]) -> None:
    if token is not None:
        token.raise_if_cancelled()

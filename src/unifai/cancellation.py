"""Cooperative cancellation for generation calls.

The caller owns a token and triggers it; backends only observe it. A token
asks a backend to stop promptly, it never terminates anything by force.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from unifai.errors import GenerationCancelledError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe, one-shot cancellation flag with callbacks.

    Example:
        token = CancellationToken()
        settings = CallSettings(prompt=..., cancellation_token=token)
        task = asyncio.create_task(model.generate(settings))
        token.cancel("user pressed stop")
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason: object | None = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._cancelled

    @property
    def reason(self) -> object | None:
        """Reason passed to the first ``cancel()`` call."""
        return self._reason

    def cancel(self, reason: object | None = None) -> None:
        """Request cancellation. Only the first call has an effect."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._run_callback(callback)

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run *callback* on cancellation; return a function that unregisters it.

        Runs *callback* immediately when the token is already cancelled.
        """
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._remove_callback(callback)

        self._run_callback(callback)
        return lambda: None

    def raise_if_cancelled(self) -> None:
        """Raise ``GenerationCancelledError`` when cancellation was requested."""
        if self._cancelled:
            raise GenerationCancelledError(self._reason)

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @staticmethod
    def _run_callback(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            # Remaining callbacks still run.
            logger.warning("Cancellation callback failed", exc_info=True)

    def __repr__(self) -> str:
        """Return a compact state summary."""
        return f"CancellationToken(cancelled={self._cancelled}, reason={self._reason!r})"

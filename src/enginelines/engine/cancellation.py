"""Single-use cancellation subscription scoped to one engine session."""

from __future__ import annotations

import threading
from collections.abc import Callable


class CancelToken:
    """Best-effort, fire-once cancellation signal.

    The owner subscribes by passing *notify*, which is invoked at most once,
    on the first :meth:`cancel` after construction and before
    :meth:`release`. Safe to call from any thread.
    """

    __slots__ = ("_notify", "_lock", "_cancelled", "_released")

    def __init__(self, notify: Callable[[], None]) -> None:
        self._notify = notify
        self._lock = threading.Lock()
        self._cancelled = False
        self._released = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def released(self) -> bool:
        return self._released

    def cancel(self) -> bool:
        """Fire the signal; return ``False`` if it was already fired or released."""
        with self._lock:
            if self._cancelled or self._released:
                return False
            self._cancelled = True
        self._notify()
        return True

    def release(self) -> None:
        """Unsubscribe; later :meth:`cancel` calls are no-ops."""
        with self._lock:
            self._released = True

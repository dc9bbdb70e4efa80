"""Cancellation tokens for in-process tasks."""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable


class CancelToken:
    """A cancellable flag that propagates to every child token.

    Tokens form a tree rooted at the process lifetime. Cancelling a token
    cancels all of its live descendants; cancelling a child never touches
    its parent.
    """

    def __init__(self, parent: CancelToken | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: weakref.WeakSet[CancelToken] = weakref.WeakSet()
        self._callbacks: list[Callable[[], None]] = []
        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: CancelToken) -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.add(child)
                return
        child.cancel()

    def child(self) -> CancelToken:
        """Create a token that is cancelled together with this one."""
        return CancelToken(parent=self)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Call *callback* once this token is cancelled.

        Runs immediately, on the calling thread, if the token is already
        cancelled; otherwise on the thread that cancels it.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
            self._children.clear()
            callbacks, self._callbacks = self._callbacks, []
        for child in children:
            child.cancel()
        for callback in callbacks:
            callback()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses. Returns True if cancelled."""
        return self._event.wait(timeout)

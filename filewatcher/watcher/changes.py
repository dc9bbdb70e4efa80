"""Bounded FIFO of logical changes shared by the debouncer and orchestrator."""

from __future__ import annotations

import logging
import queue
import threading

from filewatcher.watcher.models import ChangeSignal

logger = logging.getLogger(__name__)

# Wakes a reader blocked in get() once the queue is closed
_CLOSED = object()

# How often a producer blocked on a full queue re-checks for close()
_PUT_POLL_INTERVAL = 0.1


class ChangeQueue:
    """Thread-safe bounded queue of ChangeSignals that can be closed.

    Producers block when the queue is full rather than dropping changes,
    until the queue is closed. After close(), puts are ignored and every
    reader, blocked or not, gets None.
    """

    def __init__(self, maxsize: int = 1024) -> None:
        self._queue: queue.Queue[object] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, signal: ChangeSignal) -> bool:
        """Enqueue *signal*. Returns False if the queue is already closed."""
        while not self._closed.is_set():
            try:
                self._queue.put(signal, timeout=_PUT_POLL_INTERVAL)
            except queue.Full:
                continue
            return True
        logger.debug("Dropping change %s, queue closed", signal.path)
        return False

    def get(self) -> ChangeSignal | None:
        """Block for the next change. Returns None once the queue is closed."""
        if self._closed.is_set():
            return None
        item = self._queue.get()
        if item is _CLOSED:
            self._wake_next_reader()
            return None
        return item  # type: ignore[return-value]

    def drain(self, current: ChangeSignal) -> ChangeSignal:
        """Consume every change already waiting and return the newest one."""
        latest = current
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return latest
            if item is _CLOSED:
                self._wake_next_reader()
                return latest
            latest = item  # type: ignore[assignment]

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self._wake_next_reader()

    def _wake_next_reader(self) -> None:
        try:
            self._queue.put_nowait(_CLOSED)
        except queue.Full:
            # A full queue has no blocked reader to wake
            pass

    def qsize(self) -> int:
        return self._queue.qsize()

"""Coalesces bursts of raw file-system events into logical changes."""

from __future__ import annotations

import logging
import queue
import time
from collections.abc import Callable

from filewatcher.cancel import CancelToken
from filewatcher.watcher.changes import ChangeQueue
from filewatcher.watcher.filter import EventFilter
from filewatcher.watcher.models import ChangeSignal, RawEvent

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 0.5

# How often the reader loop re-checks its token while idle
_POLL_INTERVAL = 0.1


class Debouncer:
    """Drops events that arrive within *window* seconds of the last change.

    The window check runs before the filter: an event inside the window is
    discarded outright, and a filtered event outside the window leaves the
    clock untouched. The clock starts at construction time, so events in
    the first window are discarded too.
    """

    def __init__(
        self,
        event_filter: EventFilter,
        changes: ChangeQueue,
        window: float = DEFAULT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._filter = event_filter
        self._changes = changes
        self._window = window
        self._clock = clock
        self._last_change = clock()

    @property
    def last_change(self) -> float:
        return self._last_change

    def feed(self, path: str) -> bool:
        """Process one raw event path. Returns True if a change was queued."""
        now = self._clock()
        # Treat multiple events at the same time as one
        if now - self._last_change < self._window:
            return False
        if not self._filter.should_handle(path):
            return False

        self._last_change = now
        self._changes.put(ChangeSignal(path=path, detected_at=now))
        return True

    def run(
        self,
        events: queue.Queue[RawEvent],
        token: CancelToken,
        on_event: Callable[[RawEvent], None] | None = None,
    ) -> None:
        """Read raw events until *token* is cancelled."""
        while not token.cancelled:
            try:
                event = events.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if on_event is not None:
                try:
                    on_event(event)
                except Exception:
                    logger.exception("Event hook failed for %s", event.path)
            self.feed(event.path)

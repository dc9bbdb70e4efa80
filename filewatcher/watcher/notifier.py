"""Adapter from watchdog observers to a stream of RawEvents."""

from __future__ import annotations

import logging
import os
import queue
from collections.abc import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from filewatcher.watcher.models import RawEvent

logger = logging.getLogger(__name__)

# Reads do not change anything; the prep command opening sources would
# otherwise retrigger itself forever.
_IGNORED_KINDS = {"opened", "closed_no_write"}


class _RawEventHandler(FileSystemEventHandler):
    """Forwards every watchdog event to a queue as a RawEvent."""

    def __init__(self, events: queue.Queue[RawEvent]) -> None:
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _IGNORED_KINDS:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        for path in paths:
            self._events.put(
                RawEvent(
                    path=os.fsdecode(path),
                    kind=event.event_type,
                    is_directory=event.is_directory,
                )
            )


class ObserverNotifier:
    """Registers individual directories with a running watchdog observer.

    The observer is started up front so that scheduling a path fails
    immediately when the platform refuses the watch.
    """

    def __init__(
        self,
        events: queue.Queue[RawEvent] | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self.events: queue.Queue[RawEvent] = events if events is not None else queue.Queue()
        self._handler = _RawEventHandler(self.events)
        self._watches: dict[str, ObservedWatch] = {}
        self._observer = observer_factory()
        self._observer.start()

    def add(self, path: str) -> None:
        """Watch *path* non-recursively. Raises OSError on refusal."""
        if path in self._watches:
            return
        self._watches[path] = self._observer.schedule(self._handler, path, recursive=False)

    def close(self) -> None:
        if not self._observer.is_alive():
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        logger.debug("Stopped observer for %d paths", len(self._watches))

"""Watcher facade tying the registry, debouncer and orchestrator together."""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Protocol

from filewatcher.cancel import CancelToken
from filewatcher.errors import ConfigError, PathError, WatchError
from filewatcher.runner import run_command
from filewatcher.watcher.changes import ChangeQueue
from filewatcher.watcher.debounce import DEFAULT_WINDOW, Debouncer
from filewatcher.watcher.filter import EventFilter
from filewatcher.watcher.models import RawEvent
from filewatcher.watcher.notifier import ObserverNotifier
from filewatcher.watcher.orchestrator import INTERRUPT_WAIT, Orchestrator, Runner
from filewatcher.watcher.registry import PathRegistry, is_hidden_path

if TYPE_CHECKING:
    from filewatcher.config.models import FileWatcherConfig

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    """A notification source: directory registration plus a raw event queue."""

    events: queue.Queue[RawEvent]

    def add(self, path: str) -> None: ...

    def close(self) -> None: ...


class Watcher:
    """Watches paths and rebuilds/restarts a command whenever they change.

    Typical use::

        watcher = Watcher("./server", prep_cmd="go build -o server .")
        watcher.set_extensions([".go", ".mod"])
        watcher.add_path("src")
        watcher.start()
        ...
        watcher.stop()

    start() launches the debouncer and orchestrator threads and starts the
    run command. stop() cancels everything, terminates the run command and
    releases the notification source.
    """

    def __init__(
        self,
        run_cmd: str,
        prep_cmd: str | None = None,
        *,
        token: CancelToken | None = None,
        extensions: Iterable[str] = (),
        debounce_seconds: float = DEFAULT_WINDOW,
        interrupt_wait_seconds: float = INTERRUPT_WAIT,
        queue_size: int = 1024,
        shell: Sequence[str] | None = None,
        env: Mapping[str, str] | None = None,
        notifier: EventSource | None = None,
        runner: Runner = run_command,
    ) -> None:
        if not run_cmd:
            raise ConfigError("a run command is required")

        self._token = token.child() if token is not None else CancelToken()
        self._notifier: EventSource = notifier if notifier is not None else ObserverNotifier()
        self._registry = PathRegistry(self._notifier)
        self._filter = EventFilter(extensions)
        self._changes = ChangeQueue(maxsize=queue_size)
        self._orchestrator = Orchestrator(
            run_cmd,
            self._changes,
            self._token,
            prep_cmd=prep_cmd,
            runner=runner,
            interrupt_wait=interrupt_wait_seconds,
            shell=shell,
            env=env,
        )
        self._debounce_seconds = debounce_seconds
        self._debouncer: Debouncer | None = None
        self._threads: list[threading.Thread] = []
        self._stopped = False

    @classmethod
    def from_config(
        cls,
        config: FileWatcherConfig,
        token: CancelToken | None = None,
        **kwargs,
    ) -> Watcher:
        """Build a watcher from a loaded configuration."""
        if not config.commands.run_cmd:
            raise ConfigError("--run-cmd is required")
        return cls(
            config.commands.run_cmd,
            prep_cmd=config.commands.prep_cmd,
            token=token,
            extensions=config.watch.extensions,
            debounce_seconds=config.timing.debounce_seconds,
            interrupt_wait_seconds=config.timing.interrupt_wait_seconds,
            queue_size=config.timing.queue_size,
            shell=config.process.shell,
            env=config.process.environ(),
            **kwargs,
        )

    # -- configuration ---------------------------------------------------------

    def set_extensions(self, extensions: Iterable[str]) -> None:
        """Replace the extension allow-list. Only valid before start()."""
        if self.running:
            raise RuntimeError("extensions cannot change while watching")
        self._filter = EventFilter(extensions)

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._filter.extensions

    def add_path(self, path: str | os.PathLike[str]) -> None:
        """Register *path* and its visible subdirectories for watching."""
        self._registry.add_path(path)

    @property
    def paths(self) -> frozenset[str]:
        return self._registry.paths

    @property
    def changes(self) -> ChangeQueue:
        return self._changes

    @property
    def orchestrator(self) -> Orchestrator:
        return self._orchestrator

    @property
    def running(self) -> bool:
        return bool(self._threads) and not self._stopped

    # -- lifecycle -------------------------------------------------------------

    def start(self) -> None:
        """Begin debouncing events and start the run command."""
        if self._threads or self._stopped:
            return
        self._debouncer = Debouncer(self._filter, self._changes, window=self._debounce_seconds)
        self._threads = [
            threading.Thread(
                target=self._debouncer.run,
                args=(self._notifier.events, self._token, self._on_raw_event),
                name="filewatcher-debounce",
                daemon=True,
            ),
            threading.Thread(
                target=self._orchestrator.run,
                name="filewatcher-orchestrator",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Watching %d directories for changes", len(self._registry))

    def stop(self, timeout: float | None = None) -> None:
        """Stop watching, terminating the run command if one is live."""
        if self._stopped:
            return
        self._stopped = True
        self._orchestrator.stop()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._notifier.close()
        logger.info("Stopped watching")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the watcher's token is cancelled."""
        return self._token.wait(timeout)

    def _on_raw_event(self, event: RawEvent) -> None:
        # New directories join the watch set as they appear
        if not (event.is_directory and event.kind == "created"):
            return
        if is_hidden_path(event.path) or event.path in self._registry:
            return
        try:
            self._registry.add_path(event.path)
        except (PathError, WatchError) as e:
            logger.warning("Could not watch new directory %s: %s", event.path, e)

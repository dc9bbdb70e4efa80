"""Change-to-action pipeline: registry, filter, debouncer and orchestrator."""

from filewatcher.errors import (
    CommandCancelled,
    CommandError,
    ConfigError,
    FileWatcherError,
    PathError,
    WatchError,
)
from filewatcher.watcher.changes import ChangeQueue
from filewatcher.watcher.debounce import Debouncer
from filewatcher.watcher.filter import EventFilter
from filewatcher.watcher.models import ChangeSignal, RawEvent
from filewatcher.watcher.notifier import ObserverNotifier
from filewatcher.watcher.orchestrator import CycleState, Orchestrator, terminate_process
from filewatcher.watcher.registry import PathRegistry, is_hidden_path
from filewatcher.watcher.watcher import Watcher

__all__ = [
    "ChangeQueue",
    "ChangeSignal",
    "CommandCancelled",
    "CommandError",
    "ConfigError",
    "CycleState",
    "Debouncer",
    "EventFilter",
    "FileWatcherError",
    "ObserverNotifier",
    "Orchestrator",
    "PathError",
    "PathRegistry",
    "RawEvent",
    "WatchError",
    "Watcher",
    "is_hidden_path",
    "terminate_process",
]

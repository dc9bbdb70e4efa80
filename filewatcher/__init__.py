"""filewatcher - rebuild and restart a command when watched files change."""

from filewatcher.cancel import CancelToken
from filewatcher.config import FileWatcherConfig, load_config
from filewatcher.runner import ProcessHandle, run_command
from filewatcher.watcher import (
    ChangeSignal,
    CommandCancelled,
    CommandError,
    ConfigError,
    EventFilter,
    FileWatcherError,
    PathError,
    PathRegistry,
    WatchError,
    Watcher,
)

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "ChangeSignal",
    "CommandCancelled",
    "CommandError",
    "ConfigError",
    "EventFilter",
    "FileWatcherConfig",
    "FileWatcherError",
    "PathError",
    "PathRegistry",
    "ProcessHandle",
    "WatchError",
    "Watcher",
    "load_config",
    "run_command",
]

from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import (
    CommandsConfig,
    FileWatcherConfig,
    ProcessConfig,
    TimingConfig,
    WatchConfig,
)

__all__ = [
    "CommandsConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "FileWatcherConfig",
    "ProcessConfig",
    "TimingConfig",
    "WatchConfig",
    "load_config",
]

"""Command execution with process-group aware handles."""

from filewatcher.runner.command import DEFAULT_SHELL, run_command
from filewatcher.runner.handle import (
    PosixProcessHandle,
    ProcessHandle,
    WindowsProcessHandle,
    spawn_process,
)

__all__ = [
    "DEFAULT_SHELL",
    "PosixProcessHandle",
    "ProcessHandle",
    "WindowsProcessHandle",
    "run_command",
    "spawn_process",
]

"""Error taxonomy for filewatcher."""

from __future__ import annotations


class FileWatcherError(Exception):
    """Base class for all filewatcher errors."""


class ConfigError(FileWatcherError):
    """Raised when the configuration cannot drive a watcher."""


class PathError(FileWatcherError):
    """A path does not exist or cannot be inspected."""

    def __init__(self, path: str, cause: Exception) -> None:
        self.path = path
        super().__init__(f"error getting path info for {path}: {cause}")
        self.__cause__ = cause


class WatchError(FileWatcherError):
    """The notification source rejected a registration."""

    def __init__(self, path: str, cause: Exception) -> None:
        self.path = path
        super().__init__(f"error adding watch entry for {path}: {cause}")
        self.__cause__ = cause


class CommandError(FileWatcherError):
    """A command failed to spawn or exited with a non-zero status."""

    def __init__(
        self,
        command: str,
        returncode: int | None = None,
        cause: Exception | None = None,
        message: str | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        if message is None:
            if cause is not None:
                message = f"{command!r} failed to start: {cause}"
            else:
                message = f"{command!r} exited with status {returncode}"
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class CommandCancelled(CommandError):
    """A blocking command was abandoned because its token was cancelled."""

    def __init__(self, command: str, returncode: int | None = None) -> None:
        super().__init__(command, returncode=returncode, message=f"{command!r} was cancelled")

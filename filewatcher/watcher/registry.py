"""Registry of watched directories with recursive discovery."""

from __future__ import annotations

import logging
import os
import stat
import threading
from pathlib import PurePath
from typing import Protocol

from filewatcher.errors import PathError, WatchError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """The file-system notification source the registry feeds."""

    def add(self, path: str) -> None: ...


def is_hidden_path(path: str) -> bool:
    """Return True if any component of *path* starts with a dot."""
    return any(part.startswith(".") for part in PurePath(path).parts)


def _raise_walk_error(err: OSError) -> None:
    raise err


class PathRegistry:
    """Tracks the set of absolute directories registered with a notifier.

    The set only grows. Adding a directory walks it and registers every
    visible descendant directory; hidden directories are pruned along with
    everything beneath them.
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._paths: set[str] = set()
        self._lock = threading.RLock()

    @property
    def paths(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._paths)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def add_path(self, path: str | os.PathLike[str]) -> None:
        """Register *path* and, for directories, all visible subdirectories.

        Raises PathError when the path cannot be inspected or walked and
        WatchError when the notifier rejects a registration. Adding a path
        that is already registered is a no-op.
        """
        try:
            st = os.stat(path)
        except OSError as e:
            raise PathError(os.fspath(path), e) from e

        abs_path = os.path.abspath(path)
        with self._lock:
            if abs_path in self._paths:
                return
            if is_hidden_path(abs_path):
                logger.warning("Skipping hidden path %s", abs_path)
                return

            self._register(abs_path)
            if stat.S_ISDIR(st.st_mode):
                self._add_recursive(abs_path)

    def _register(self, path: str) -> None:
        try:
            self._notifier.add(path)
        except OSError as e:
            raise WatchError(path, e) from e
        self._paths.add(path)
        logger.debug("Watching %s", path)

    def _add_recursive(self, root: str) -> None:
        try:
            for dirpath, dirnames, _ in os.walk(root, onerror=_raise_walk_error):
                visible = []
                for name in sorted(dirnames):
                    child = os.path.join(dirpath, name)
                    # Symlinked directories are neither registered nor walked
                    if is_hidden_path(child) or os.path.islink(child):
                        continue
                    visible.append(name)
                    if child not in self._paths:
                        self._register(child)
                # Prune hidden directories from the walk
                dirnames[:] = visible
        except OSError as e:
            raise PathError(e.filename or root, e) from e

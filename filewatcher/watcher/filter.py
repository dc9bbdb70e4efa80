"""Decides which raw file-system events are worth acting on."""

from __future__ import annotations

import os
from collections.abc import Iterable

from filewatcher.watcher.registry import is_hidden_path


class EventFilter:
    """Extension allow-list plus hidden-path exclusion.

    An empty allow-list accepts every extension. Extensions are matched
    exactly and case-sensitively, including the leading dot.
    """

    def __init__(self, extensions: Iterable[str] = ()) -> None:
        self._extensions = tuple(dict.fromkeys(extensions))

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._extensions

    def should_handle(self, path: str) -> bool:
        if is_hidden_path(path):
            return False
        if self._extensions and os.path.splitext(path)[1] not in self._extensions:
            return False
        return True

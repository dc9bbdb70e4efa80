"""Event models flowing through the watcher pipeline."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field


class RawEvent(BaseModel):
    """A single notification from the file-system observer."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: str = "modified"
    is_directory: bool = False


class ChangeSignal(BaseModel):
    """A logical, debounced change produced by the Debouncer."""

    model_config = ConfigDict(frozen=True)

    path: str
    detected_at: float = Field(default_factory=time.monotonic)

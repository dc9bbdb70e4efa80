"""Shared test fixtures for filewatcher."""

from __future__ import annotations

import itertools
import queue
import threading
import time
from pathlib import Path

import pytest

from filewatcher.cancel import CancelToken
from filewatcher.config.models import FileWatcherConfig
from filewatcher.errors import CommandCancelled, CommandError
from filewatcher.watcher.models import RawEvent

_pids = itertools.count(1000)


class FakeNotifier:
    """Records registrations instead of talking to the OS."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.added: list[str] = []
        self.events: queue.Queue[RawEvent] = queue.Queue()
        self.fail_on = fail_on or set()
        self.closed = False

    def add(self, path: str) -> None:
        if path in self.fail_on:
            raise PermissionError(13, "Permission denied", path)
        self.added.append(path)

    def close(self) -> None:
        self.closed = True


class FakeHandle:
    """A ProcessHandle double whose exit is driven by the signals it receives."""

    def __init__(self, command: str, log: list, exits_on_terminate: bool = True) -> None:
        self.command = command
        self.pid = next(_pids)
        self.log = log
        self.exits_on_terminate = exits_on_terminate
        self.terminated = 0
        self.killed = 0
        self.returncode: int | None = None

    def terminate(self) -> bool:
        self.terminated += 1
        self.log.append(("terminate", self.command, self.pid))
        if self.exits_on_terminate and self.returncode is None:
            self.returncode = -15
        return True

    def force_kill(self) -> bool:
        self.killed += 1
        self.log.append(("kill", self.command, self.pid))
        if self.returncode is None:
            self.returncode = -9
        return True

    def kill_leader(self) -> bool:
        return self.force_kill()

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int | None:
        return self.returncode


class FakeRunner:
    """Stands in for run_command; prep outcomes are scripted per call.

    Each blocking call consumes the next entry of ``prep_outcomes``:
    "ok", "fail" or "block" (wait until the token is cancelled).
    """

    def __init__(self, prep_outcomes: list[str] | None = None) -> None:
        self.prep_outcomes = list(prep_outcomes or [])
        self.log: list[tuple] = []
        self.run_handles: list[FakeHandle] = []
        self.prep_calls = 0
        self.prep_blocking = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, command, *, wait, token=None, shell=None, env=None):
        if not wait:
            handle = FakeHandle(command, self.log)
            with self._lock:
                self.run_handles.append(handle)
                self.log.append(("start", command, handle.pid))
            return handle

        with self._lock:
            self.prep_calls += 1
            outcome = self.prep_outcomes.pop(0) if self.prep_outcomes else "ok"
            self.log.append(("prep", command, outcome))
        if outcome == "fail":
            raise CommandError(command, returncode=1)
        if outcome == "block":
            self.prep_blocking.set()
            token.wait(timeout=5)
            self.prep_blocking.clear()
            if token.cancelled:
                raise CommandCancelled(command)
        return FakeHandle(command, self.log)

    @property
    def starts(self) -> int:
        with self._lock:
            return len(self.run_handles)


def wait_until(predicate, timeout: float = 3.0, interval: float = 0.02) -> bool:
    """Poll *predicate* until it is truthy or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def token():
    t = CancelToken()
    yield t
    t.cancel()


@pytest.fixture
def sample_config():
    return FileWatcherConfig()


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """A small source tree with visible and hidden directories."""
    root = tmp_path / "proj"
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "hidden" / ".git" / "objects").mkdir(parents=True)
    (root / ".cache" / "build").mkdir(parents=True)
    (root / "src" / "main.go").write_text("package main\n")
    (root / "go.mod").write_text("module example.com/proj\n")
    return root

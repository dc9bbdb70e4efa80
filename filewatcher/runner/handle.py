"""Process handles that can signal a command together with its descendants."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ProcessHandle(Protocol):
    """A started command running as the leader of its own process group.

    terminate() asks the group to exit, force_kill() makes it exit, and
    kill_leader() stops only the leader. Each returns True if a signal was
    delivered and never raises. The escalation between them belongs to
    the caller.
    """

    @property
    def pid(self) -> int: ...

    @property
    def returncode(self) -> int | None: ...

    def terminate(self) -> bool: ...

    def force_kill(self) -> bool: ...

    def kill_leader(self) -> bool: ...

    def poll(self) -> int | None: ...

    def wait(self, timeout: float | None = None) -> int | None: ...


class _PopenHandle:
    """Shared plumbing for handles backed by subprocess.Popen."""

    def __init__(self, process: subprocess.Popen) -> None:
        self._process = process

    @property
    def process(self) -> subprocess.Popen:
        return self._process

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    def poll(self) -> int | None:
        return self._process.poll()

    def wait(self, timeout: float | None = None) -> int | None:
        """Wait for the leader to exit. Returns None if *timeout* elapses."""
        try:
            return self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def kill_leader(self) -> bool:
        try:
            self._process.kill()
        except OSError as e:
            logger.debug("Could not kill pid %d: %s", self.pid, e)
            return False
        return True

    def _signal_leader(self, sig: int) -> bool:
        # send_signal is a no-op once the process has been reaped
        try:
            self._process.send_signal(sig)
        except OSError as e:
            logger.debug("Could not signal pid %d: %s", self.pid, e)
            return False
        return True


class PosixProcessHandle(_PopenHandle):
    """Signals the whole process group, then the leader directly."""

    def __init__(self, process: subprocess.Popen) -> None:
        super().__init__(process)
        # Look up the group while the leader is still unreaped
        try:
            self._pgid: int | None = os.getpgid(process.pid)
        except OSError:
            self._pgid = None

    @property
    def pgid(self) -> int | None:
        return self._pgid

    def _signal_group(self, sig: int) -> bool:
        if self._pgid is None:
            return False
        try:
            os.killpg(self._pgid, sig)
        except OSError as e:
            logger.debug("Could not signal process group %d: %s", self._pgid, e)
            return False
        return True

    def terminate(self) -> bool:
        group = self._signal_group(signal.SIGTERM)
        leader = self._signal_leader(signal.SIGTERM)
        return group or leader

    def force_kill(self) -> bool:
        group = self._signal_group(signal.SIGKILL)
        leader = self.kill_leader()
        return group or leader


class WindowsProcessHandle(_PopenHandle):
    """Uses console control events for the group, TerminateProcess to force."""

    def terminate(self) -> bool:
        return self._signal_leader(getattr(signal, "CTRL_BREAK_EVENT", signal.SIGTERM))

    def force_kill(self) -> bool:
        return self.kill_leader()


def spawn_process(
    argv: Sequence[str],
    env: Mapping[str, str] | None = None,
) -> ProcessHandle:
    """Start *argv* as the leader of a new process group with inherited stdio."""
    if os.name == "nt":
        process = subprocess.Popen(
            list(argv),
            env=env,
            creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
        )
        return WindowsProcessHandle(process)

    process = subprocess.Popen(list(argv), env=env, process_group=0)
    return PosixProcessHandle(process)

"""Cancel-and-restart state machine for the prep and run commands."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from enum import Enum

from filewatcher.cancel import CancelToken
from filewatcher.errors import CommandCancelled, CommandError
from filewatcher.runner import ProcessHandle, run_command
from filewatcher.watcher.changes import ChangeQueue

logger = logging.getLogger(__name__)

INTERRUPT_WAIT = 0.5

Runner = Callable[..., ProcessHandle]


class CycleState(str, Enum):
    """Phases of the orchestrator."""

    idle = "idle"
    running_prep = "running_prep"
    running_main = "running_main"


def terminate_process(handle: ProcessHandle, grace_seconds: float = INTERRUPT_WAIT) -> int | None:
    """Stop a command and all of its descendants, then reap it.

    Sends the termination signal to the process group and the leader,
    allows the full *grace_seconds* for a clean exit, then kills the group
    and the leader and waits for the leader. Failures along the way are logged
    and swallowed.
    """
    deadline = time.monotonic() + grace_seconds
    if not handle.terminate():
        logger.debug("No termination signal delivered to pid %d", handle.pid)

    try:
        handle.wait(timeout=grace_seconds)
    except OSError as e:
        logger.debug("Waiting on pid %d failed: %s", handle.pid, e)

    # Descendants get the whole grace period even when the leader exits early
    remaining = deadline - time.monotonic()
    if remaining > 0:
        time.sleep(remaining)

    # Unconditional: descendants may outlive a leader that exited cleanly
    handle.force_kill()

    try:
        return handle.wait()
    except OSError as e:
        logger.debug("Reaping pid %d failed: %s", handle.pid, e)
        return None


class Orchestrator:
    """Consumes the change queue and drives prep/run cycles.

    The orchestrator exclusively owns the run command's handle. On every
    logical change it runs the prep command (when configured) while a
    supersession watcher listens for the next change; a change arriving
    mid-prep cancels the cycle and is re-queued. A successful prep replaces
    the running run command with a fresh one.
    """

    def __init__(
        self,
        run_cmd: str,
        changes: ChangeQueue,
        token: CancelToken,
        prep_cmd: str | None = None,
        *,
        runner: Runner = run_command,
        interrupt_wait: float = INTERRUPT_WAIT,
        shell: Sequence[str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._run_cmd = run_cmd
        self._prep_cmd = prep_cmd
        self._changes = changes
        self._token = token
        # Cancelling the token wakes whichever thread is blocked on the queue
        token.on_cancel(changes.close)
        self._runner = runner
        self._interrupt_wait = interrupt_wait
        self._shell = shell
        self._env = env
        self._run_handle: ProcessHandle | None = None
        self._state = CycleState.idle
        self.cycles = 0
        self.supersessions = 0

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def run_handle(self) -> ProcessHandle | None:
        return self._run_handle

    def run(self) -> None:
        """Start the run command, then process changes until shut down."""
        try:
            self._restart_run_command()
            while not self._token.cancelled:
                change = self._changes.get()
                if change is None or self._token.cancelled:
                    break
                # Changes already waiting collapse into one cycle
                change = self._changes.drain(change)
                logger.info("--- Update: %s", change.path)
                self._run_cycle()
        finally:
            self._stop_run_command()
            self._changes.close()
            self._state = CycleState.idle

    def stop(self) -> None:
        """Cancel the current cycle and close the change queue."""
        self._token.cancel()
        self._changes.close()

    def _run_cycle(self) -> bool:
        """Run one prep-then-run cycle. Returns True if the run command restarted."""
        self.cycles += 1
        # Child token so we can cancel this cycle without stopping everything
        cycle = self._token.child()
        watcher = threading.Thread(
            target=self._watch_for_supersession,
            args=(cycle,),
            name="filewatcher-supersession",
            daemon=True,
        )
        watcher.start()
        try:
            return self._prepare_and_run(cycle)
        finally:
            self._state = (
                CycleState.running_main if self._run_handle is not None else CycleState.idle
            )
            if self._token.cancelled:
                self._changes.close()
            # Returns once the next change arrives or the queue closes
            watcher.join()

    def _prepare_and_run(self, cycle: CancelToken) -> bool:
        if self._prep_cmd:
            self._state = CycleState.running_prep
            try:
                self._runner(
                    self._prep_cmd, wait=True, token=cycle, shell=self._shell, env=self._env
                )
            except CommandCancelled:
                return False
            except CommandError:
                # Already reported; wait for the next change
                return False

        if cycle.cancelled:
            return False

        self._restart_run_command()
        return True

    def _watch_for_supersession(self, cycle: CancelToken) -> None:
        change = self._changes.get()
        if change is None:
            return
        if self._state is CycleState.running_prep:
            self.supersessions += 1
            logger.debug("Change to %s superseded the running cycle", change.path)
        cycle.cancel()
        # Hand the change back so the outer loop starts a fresh cycle
        self._changes.put(change)

    def _restart_run_command(self) -> None:
        self._stop_run_command()
        try:
            self._run_handle = self._runner(
                self._run_cmd, wait=False, shell=self._shell, env=self._env
            )
        except CommandError:
            self._run_handle = None
            self._state = CycleState.idle
            return
        self._state = CycleState.running_main

    def _stop_run_command(self) -> None:
        handle = self._run_handle
        if handle is None:
            return
        logger.info("--- Stopping: %s", self._run_cmd)
        terminate_process(handle, self._interrupt_wait)
        self._run_handle = None

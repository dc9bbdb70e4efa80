"""Run shell command lines as process-group leaders."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence

from filewatcher.cancel import CancelToken
from filewatcher.errors import CommandCancelled, CommandError
from filewatcher.runner.handle import ProcessHandle, spawn_process

logger = logging.getLogger(__name__)

DEFAULT_SHELL: tuple[str, ...] = ("cmd", "/c") if os.name == "nt" else ("sh", "-c")

# How often a blocking wait re-checks its cancellation token
_POLL_INTERVAL = 0.05


def run_command(
    command: str,
    *,
    wait: bool,
    token: CancelToken | None = None,
    shell: Sequence[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> ProcessHandle:
    """Run *command* through a shell in its own process group.

    With ``wait=True`` this blocks until the command exits and raises
    CommandError on a non-zero status. If *token* is cancelled first, the
    leader process is killed and reaped and CommandCancelled is raised; the
    rest of the process group is left for the caller to terminate.

    With ``wait=False`` the live handle is returned immediately and later
    failures are not observed.
    """
    logger.info("--- Running: %s", command)

    # Run through the shell to allow pipes and boolean operators
    argv = [*(shell or DEFAULT_SHELL), command]
    try:
        handle = spawn_process(argv, env=env)
    except OSError as e:
        err = CommandError(command, cause=e)
        logger.error("--- Error: %s", err)
        raise err from e

    if not wait:
        return handle

    returncode, cancelled = _wait(handle, token)
    if cancelled:
        logger.info("--- Cancelled: %s", command)
        raise CommandCancelled(command, returncode=returncode)
    if returncode != 0:
        err = CommandError(command, returncode=returncode)
        logger.error("--- Error: %s", err)
        raise err
    return handle


def _wait(handle: ProcessHandle, token: CancelToken | None) -> tuple[int | None, bool]:
    if token is None:
        return handle.wait(), False

    while True:
        returncode = handle.wait(timeout=_POLL_INTERVAL)
        if returncode is not None:
            return returncode, False
        if token.cancelled:
            handle.kill_leader()
            return handle.wait(), True

"""OS process capability for renderer workers.

The supervisor only needs two primitives:
- spawn(argv) -> pid: start one independent worker process
- wait_any() -> (pid, Outcome): block until any child terminates

LocalProcessSpawner implements them with subprocess.Popen and os.wait().
POSIX only: os.wait() and wait-status decoding have no Windows equivalent.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Protocol

from mandelmovie.core.models import Outcome, OutcomeKind

logger = logging.getLogger(__name__)


class ProcessError(Exception):
    """Error managing worker processes."""

    pass


class SpawnError(ProcessError):
    """The OS refused to start a new worker process."""

    pass


class WaitError(ProcessError):
    """Waiting for a worker failed for a reason other than no children."""

    pass


class NoChildProcessesError(ProcessError):
    """There is no child process to wait for (ECHILD)."""

    pass


def classify_wait_status(status: int) -> Outcome:
    """Decode a raw ``os.wait()`` status into an Outcome."""
    if os.WIFEXITED(status):
        return Outcome.exited(os.WEXITSTATUS(status))
    if os.WIFSIGNALED(status):
        return Outcome.signaled(os.WTERMSIG(status))
    return Outcome.unknown()


class ProcessSpawner(Protocol):
    """Launch and wait-for-any capability used by the supervisor."""

    def spawn(self, argv: list[str]) -> int:
        ...

    def wait_any(self) -> tuple[int, Outcome]:
        ...


class LocalProcessSpawner:
    """Run workers as local child processes.

    Workers inherit stdout/stderr so renderer diagnostics reach the terminal.
    """

    def __init__(self):
        self._procs: dict[int, subprocess.Popen] = {}

    def spawn(self, argv: list[str]) -> int:
        """Start ``argv`` as a new child process and return its pid.

        Raises:
            SpawnError: If the process could not be started (fork/exec failure,
                resource exhaustion, missing executable)
        """
        try:
            proc = subprocess.Popen(argv)
        except OSError as e:
            raise SpawnError(f"Failed to start {argv[0]}: {e}") from e

        self._procs[proc.pid] = proc
        logger.debug(f"Spawned pid {proc.pid}: {' '.join(argv)}")
        return proc.pid

    def wait_any(self) -> tuple[int, Outcome]:
        """Block until any child process terminates.

        Raises:
            NoChildProcessesError: If this process has no children to wait for
            WaitError: If the wait itself failed
        """
        try:
            pid, status = os.wait()
        except ChildProcessError as e:
            self._procs.clear()
            raise NoChildProcessesError("No child processes to wait for") from e
        except OSError as e:
            raise WaitError(f"wait failed: {e}") from e

        outcome = classify_wait_status(status)

        # Record the status on the Popen object so subprocess never tries to
        # wait on an already reaped pid.
        proc = self._procs.pop(pid, None)
        if proc is not None:
            if outcome.kind == OutcomeKind.EXITED:
                proc.returncode = outcome.code
            elif outcome.kind == OutcomeKind.SIGNALED:
                proc.returncode = -(outcome.code or 0)

        return pid, outcome

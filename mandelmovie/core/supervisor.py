"""Bounded-concurrency frame supervisor.

Launches one renderer process per frame while keeping at most
``num_children`` workers alive, and reaps them as they finish.

CREDIT MODEL:
- ``num_children`` is the credit pool
- launch() consumes one credit, reap_one() returns one
- Only this object reads or mutates ``running`` and ``next_frame``;
  the control loop is single-threaded so no locking is needed

FAILURE SEMANTICS:
- A worker's non-zero exit or signal is logged and otherwise ignored
  (no retry, no halt)
- A launch failure with live workers reaps one and retries the same frame
- A launch failure with zero live workers is fatal (FatalLaunchError)
- A reap that finds no children at all forces ``running`` to 0
"""

from __future__ import annotations

import logging

from mandelmovie.core.frames import plan_frame
from mandelmovie.core.models import MovieConfig, ReapRecord, RunSummary, WorkerHandle
from mandelmovie.process.spawner import (
    LocalProcessSpawner,
    NoChildProcessesError,
    ProcessSpawner,
    SpawnError,
    WaitError,
)

logger = logging.getLogger(__name__)


class SupervisorError(Exception):
    """Error in the frame supervisor."""

    pass


class LaunchError(SupervisorError):
    """A worker process could not be started."""

    def __init__(self, message: str, frame_index: int):
        super().__init__(message)
        self.frame_index = frame_index


class FatalLaunchError(LaunchError):
    """Launch failed with no running workers - no way to make progress."""

    pass


class NoChildrenError(SupervisorError):
    """Reap found no child processes; running count was resynchronized to 0."""

    pass


class ReapError(SupervisorError):
    """Waiting for a worker failed; counters are unchanged."""

    pass


class FrameSupervisor:
    """Drive a movie run with a fixed ceiling on concurrent renderers.

    USAGE:
        supervisor = FrameSupervisor(config)
        summary = supervisor.run()
        if summary.failed:
            # Some frames rendered with errors; they are not retried

    The spawner is injectable so the scheduling loop can be exercised
    without real processes.
    """

    def __init__(
        self,
        config: MovieConfig,
        spawner: ProcessSpawner | None = None,
        renderer: str | None = None,
    ):
        self.config = config
        self.spawner = spawner if spawner is not None else LocalProcessSpawner()
        self.renderer = renderer or config.renderer
        self.next_frame = 0
        self.running = 0
        self.summary = RunSummary(frames=config.frames, num_children=config.num_children)
        # Live workers by pid; identities are only used for reporting
        self._workers: dict[int, WorkerHandle] = {}

    @property
    def at_capacity(self) -> bool:
        return self.running >= self.config.num_children

    @property
    def frames_remaining(self) -> bool:
        return self.next_frame < self.config.frames

    @property
    def done(self) -> bool:
        return not self.frames_remaining and self.running == 0

    def launch(self, frame_index: int) -> WorkerHandle:
        """Start the renderer for ``frame_index``.

        On success ``running`` is incremented and ``next_frame`` advances
        past ``frame_index``. On failure neither counter changes.

        Raises:
            SupervisorError: If called at capacity or with an out-of-range frame
            LaunchError: If the OS refused to start the worker
        """
        if self.at_capacity:
            raise SupervisorError(
                f"Cannot launch frame {frame_index}: {self.running} workers already running "
                f"(limit {self.config.num_children})"
            )
        if not 0 <= frame_index < self.config.frames:
            raise SupervisorError(
                f"Frame {frame_index} outside [0, {self.config.frames})"
            )

        plan = plan_frame(self.config, frame_index, renderer=self.renderer)

        try:
            pid = self.spawner.spawn(plan.argv)
        except SpawnError as e:
            self.summary.launch_failures += 1
            logger.error(f"fork: could not start worker for frame {frame_index}: {e}")
            raise LaunchError(str(e), frame_index) from e

        handle = WorkerHandle(
            pid=pid,
            frame_index=frame_index,
            output_name=plan.output_name,
            argv=plan.argv,
        )
        self._workers[pid] = handle
        self.running += 1
        self.next_frame = max(self.next_frame, frame_index + 1)
        self.summary.launched += 1
        self.summary.peak_running = max(self.summary.peak_running, self.running)

        logger.info(f"Started child pid {pid} for frame {frame_index} (running={self.running})")
        return handle

    def reap_one(self) -> ReapRecord:
        """Block until any worker terminates and classify how it ended.

        Completion order is whatever the OS reports first, not launch order.

        Raises:
            NoChildrenError: No child exists; ``running`` has been forced to 0
            ReapError: The wait failed; counters are unchanged
        """
        try:
            pid, outcome = self.spawner.wait_any()
        except NoChildProcessesError as e:
            # Tracked count drifted from reality. Trust the OS. If the signal
            # were ever spurious this would under-count live workers.
            if self.running or self._workers:
                logger.warning(
                    f"No child processes to wait for while tracking {self.running} running; "
                    "resetting running count to 0"
                )
            self.running = 0
            self._workers.clear()
            self.summary.resyncs += 1
            raise NoChildrenError(str(e)) from e
        except WaitError as e:
            logger.error(f"wait: {e}")
            raise ReapError(str(e)) from e

        handle = self._workers.pop(pid, None)
        self.running = max(self.running - 1, 0)

        record = ReapRecord(pid=pid, outcome=outcome, handle=handle)
        self.summary.reaped.append(record)

        message = f"Child {pid} {outcome.describe()}. running={self.running}"
        if handle is None:
            logger.warning(f"{message} (not a tracked worker)")
        elif outcome.ok:
            logger.info(message)
        else:
            logger.warning(f"{message} (frame {handle.frame_index}, {handle.output_name})")
        return record

    def run(self) -> RunSummary:
        """Launch every frame and reap every worker.

        Returns once ``next_frame == frames`` and ``running == 0``.

        Raises:
            FatalLaunchError: If a worker cannot be started while none are running
        """
        cfg = self.config
        logger.info(f"mandelmovie: spawning {cfg.num_children} children to create {cfg.frames} frames")
        logger.info(
            f"center=({cfg.xcenter:g},{cfg.ycenter:g}) start_scale={cfg.start_scale:g} "
            f"zoom={cfg.zoom:g} size={cfg.width}x{cfg.height} maxiter={cfg.maxiter} "
            f"outprefix={cfg.outprefix}"
        )

        while not self.done:
            # Fill every free slot, in frame order
            while not self.at_capacity and self.frames_remaining:
                try:
                    self.launch(self.next_frame)
                except LaunchError as e:
                    if self.running == 0:
                        raise FatalLaunchError(
                            f"Cannot start a worker for frame {e.frame_index} "
                            "and none are running",
                            e.frame_index,
                        ) from e
                    # Free a slot, then retry the same frame
                    self._reap_and_absorb()

            if self.at_capacity or (not self.frames_remaining and self.running > 0):
                self._reap_and_absorb()

        logger.info("All frames spawned and children completed.")
        return self.summary

    def _reap_and_absorb(self) -> ReapRecord | None:
        """Reap one worker, absorbing resync and wait errors into the log."""
        try:
            return self.reap_one()
        except (NoChildrenError, ReapError):
            return None

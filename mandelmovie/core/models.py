"""Data models for the frame supervisor.

Configuration uses Pydantic for schema-enforced validation at startup.
Runtime records (handles, outcomes, summaries) are plain dataclasses.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MovieConfig(BaseModel):
    """Validated configuration for one movie run.

    Every value is checked before the control loop starts; an invalid
    configuration is a startup error, never a runtime one.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    num_children: int = Field(gt=0, description="Maximum concurrent renderer processes")
    frames: int = Field(default=50, gt=0, description="Number of frames to produce")
    xcenter: float = Field(default=0.0, allow_inf_nan=False)
    ycenter: float = Field(default=0.0, allow_inf_nan=False)
    start_scale: float = Field(
        default=4.0,
        gt=0,
        allow_inf_nan=False,
        description="Width of frame 0 in Mandelbrot coordinates",
    )
    zoom: float = Field(
        default=0.97,
        gt=0,
        allow_inf_nan=False,
        description="Scale multiplier applied per frame",
    )
    width: int = Field(default=1000, gt=0)
    height: int = Field(default=1000, gt=0)
    maxiter: int = Field(default=1000, gt=0)
    outprefix: str = Field(default="mandel", min_length=1, max_length=255)
    image_ext: str = Field(default="jpg", pattern=r"^[A-Za-z0-9]+$")
    renderer: str = Field(default="./mandel", min_length=1)

    @model_validator(mode="after")
    def check_last_frame_scale(self) -> "MovieConfig":
        """Ensure every frame's scale is a finite float.

        Scale is monotonic in the frame index, so checking the last frame
        covers zooming out; frame 0 is start_scale itself.
        """
        last = self.frames - 1
        try:
            scale = self.start_scale * math.pow(self.zoom, last)
        except OverflowError:
            scale = math.inf
        if not math.isfinite(scale):
            raise ValueError(
                f"start_scale * zoom**{last} overflows for frame {last}; "
                "lower zoom or frames"
            )
        return self


class OutcomeKind(str, Enum):
    """How a reaped worker terminated."""

    EXITED = "exited"
    SIGNALED = "signaled"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Outcome:
    """Classified termination status of a worker.

    ``code`` holds the exit status for EXITED and the signal number for
    SIGNALED; it is None for UNKNOWN.
    """

    kind: OutcomeKind
    code: int | None = None

    @classmethod
    def exited(cls, code: int) -> Outcome:
        return cls(OutcomeKind.EXITED, code)

    @classmethod
    def signaled(cls, signum: int) -> Outcome:
        return cls(OutcomeKind.SIGNALED, signum)

    @classmethod
    def unknown(cls) -> Outcome:
        return cls(OutcomeKind.UNKNOWN)

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.EXITED and self.code == 0

    def describe(self) -> str:
        if self.kind == OutcomeKind.EXITED:
            return f"exited with status {self.code}"
        if self.kind == OutcomeKind.SIGNALED:
            return f"killed by signal {self.code}"
        return "ended"


@dataclass
class WorkerHandle:
    """A launched renderer process and the frame it was assigned."""

    pid: int
    frame_index: int
    output_name: str
    argv: list[str]
    started_at: float = field(default_factory=time.monotonic)


@dataclass
class ReapRecord:
    """A reaped worker with its outcome.

    ``handle`` is None when the reaped pid was not launched by this
    supervisor (e.g. an unrelated child of the same process).
    """

    pid: int
    outcome: Outcome
    handle: WorkerHandle | None = None
    finished_at: float = field(default_factory=time.monotonic)

    @property
    def frame_index(self) -> int | None:
        return self.handle.frame_index if self.handle else None

    @property
    def duration_seconds(self) -> float:
        if self.handle is None:
            return 0.0
        return max(self.finished_at - self.handle.started_at, 0.0)


@dataclass
class RunSummary:
    """Accumulated results of a supervisor run."""

    frames: int
    num_children: int
    launched: int = 0
    launch_failures: int = 0
    resyncs: int = 0
    peak_running: int = 0
    reaped: list[ReapRecord] = field(default_factory=list)

    @property
    def failed(self) -> list[ReapRecord]:
        return [r for r in self.reaped if not r.outcome.ok]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.reaped if r.outcome.ok)

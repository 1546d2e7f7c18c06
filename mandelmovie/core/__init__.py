"""Core modules for the frame supervisor.

The supervisor itself lives in mandelmovie.core.supervisor; it is not
re-exported here so that mandelmovie.process can import the models
without a cycle.
"""

from mandelmovie.core.config import ConfigError, load_movie_config
from mandelmovie.core.frames import FramePlan, frame_scale, output_name, plan_frame
from mandelmovie.core.models import (
    MovieConfig,
    Outcome,
    OutcomeKind,
    ReapRecord,
    RunSummary,
    WorkerHandle,
)

__all__ = [
    "ConfigError",
    "FramePlan",
    "MovieConfig",
    "Outcome",
    "OutcomeKind",
    "ReapRecord",
    "RunSummary",
    "WorkerHandle",
    "frame_scale",
    "load_movie_config",
    "output_name",
    "plan_frame",
]

"""Frame parameter mapping.

Everything a worker needs is derived from its frame index and the movie
configuration. The mapping is pure and recomputed at launch time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from mandelmovie.core.models import MovieConfig


@dataclass(frozen=True)
class FramePlan:
    """Derived render parameters for a single frame."""

    index: int
    scale: float
    output_name: str
    argv: list[str]


def frame_scale(start_scale: float, zoom: float, frame_index: int) -> float:
    """Return ``start_scale * zoom ** frame_index``, or ``inf`` past the float range."""
    if frame_index < 0:
        raise ValueError(f"frame_index must be >= 0, got {frame_index}")
    try:
        return start_scale * math.pow(zoom, frame_index)
    except OverflowError:
        return math.inf


def format_float(value: float) -> str:
    """Format a float as the shortest decimal that round-trips."""
    return repr(float(value))


def output_name(prefix: str, frame_index: int, ext: str = "jpg") -> str:
    """Build the deterministic output filename, e.g. ``mandel0.jpg``."""
    if frame_index < 0:
        raise ValueError(f"frame_index must be >= 0, got {frame_index}")
    return f"{prefix}{frame_index}.{ext}"


def build_renderer_argv(
    renderer: str,
    xcenter: float,
    ycenter: float,
    scale: float,
    width: int,
    height: int,
    maxiter: int,
    output: str,
) -> list[str]:
    """Build the renderer invocation in the fixed flag/value order."""
    return [
        renderer,
        "-x", format_float(xcenter),
        "-y", format_float(ycenter),
        "-s", format_float(scale),
        "-W", str(width),
        "-H", str(height),
        "-m", str(maxiter),
        "-o", output,
    ]


def plan_frame(config: MovieConfig, frame_index: int, renderer: str | None = None) -> FramePlan:
    """Compute the full launch plan for one frame.

    Args:
        config: Validated movie configuration
        frame_index: Zero-based frame number, must be < config.frames
        renderer: Resolved renderer path (defaults to config.renderer)

    Raises:
        ValueError: If frame_index is outside [0, config.frames)
    """
    if not 0 <= frame_index < config.frames:
        raise ValueError(f"frame_index {frame_index} outside [0, {config.frames})")

    scale = frame_scale(config.start_scale, config.zoom, frame_index)
    name = output_name(config.outprefix, frame_index, config.image_ext)
    argv = build_renderer_argv(
        renderer or config.renderer,
        config.xcenter,
        config.ycenter,
        scale,
        config.width,
        config.height,
        config.maxiter,
        name,
    )
    return FramePlan(index=frame_index, scale=scale, output_name=name, argv=argv)

"""Configuration loading for movie runs.

Values come from three layers, lowest priority first:
1. Built-in defaults (MovieConfig field defaults)
2. YAML config file (``mandelmovie.yaml`` or ``--config``)
3. Command-line flags
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Any

import pydantic
import yaml

from mandelmovie.core.models import MovieConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "mandelmovie.yaml"

DEFAULT_CONFIG_TEMPLATE = """# mandelmovie configuration
# Command-line flags override any value set here.
movie:
  num_children: 4      # Max renderer processes alive at once (required)
  frames: 50           # Number of frames to produce
  xcenter: 0.0
  ycenter: 0.0
  start_scale: 4.0     # Frame 0 width in Mandelbrot coordinates
  zoom: 0.97           # scale_frame = start_scale * zoom ** frame
  width: 1000          # Image width in pixels
  height: 1000         # Image height in pixels
  maxiter: 1000
  outprefix: mandel    # Frames are written as <outprefix><frame>.<image_ext>
  image_ext: jpg
  renderer: ./mandel   # Single-frame renderer executable
"""


class ConfigError(Exception):
    """Invalid or unreadable configuration."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load raw config values from a YAML file.

    Values may sit under a top-level ``movie`` key or at the top level.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    section = data.get("movie", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'movie' section in {config_path} must be a mapping")

    logger.debug(f"Loaded {len(section)} config values from {config_path}")
    return dict(section)


def build_config(
    file_values: dict[str, Any] | None = None,
    overrides: dict[str, Any] | None = None,
) -> MovieConfig:
    """Merge config layers and validate.

    ``None`` overrides are ignored so unset command-line flags never mask
    values from the config file.

    Raises:
        ConfigError: With one message per invalid field
    """
    merged: dict[str, Any] = dict(file_values or {})
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    try:
        return MovieConfig(**merged)
    except pydantic.ValidationError as e:
        errors = []
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "config"
            errors.append(f"{location}: {err['msg']}")
        raise ConfigError("Invalid configuration", errors) from e


def load_movie_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    search_dir: Path | None = None,
) -> MovieConfig:
    """Load the effective configuration for a run.

    Args:
        config_path: Explicit YAML file; must exist when given
        overrides: Command-line values (None entries are skipped)
        search_dir: Where to look for the default config file (default: cwd)
    """
    file_values: dict[str, Any] = {}
    if config_path is not None:
        file_values = load_config_file(config_path)
    else:
        default_path = (search_dir or Path.cwd()) / DEFAULT_CONFIG_NAME
        if default_path.is_file():
            file_values = load_config_file(default_path)

    return build_config(file_values, overrides)


def resolve_renderer(renderer: str, cwd: Path | None = None) -> str:
    """Check that the renderer can be executed and return the path to use.

    Paths containing a separator are checked relative to ``cwd`` and
    returned unchanged; bare names are looked up on PATH.

    Raises:
        ConfigError: If the renderer is missing or not executable
    """
    base = cwd or Path.cwd()

    if os.sep in renderer or (os.altsep and os.altsep in renderer):
        candidate = Path(renderer)
        if not candidate.is_absolute():
            candidate = base / candidate
        if not candidate.is_file():
            raise ConfigError(f"Renderer not found: {renderer}")
        if not os.access(candidate, os.X_OK):
            raise ConfigError(f"Renderer is not executable: {renderer}")
        return renderer

    found = shutil.which(renderer)
    if found is None:
        raise ConfigError(f"Renderer '{renderer}' not found on PATH")
    return found

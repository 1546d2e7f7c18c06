# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the mandelmovie test suite.

This module provides:
- Movie configurations
- A scripted fake spawner that stands in for real processes
- Fake renderer scripts for integration tests

Usage:
    Import fixtures implicitly via pytest's fixture discovery.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable

import pytest

from mandelmovie.core.models import MovieConfig, Outcome
from mandelmovie.process.spawner import NoChildProcessesError, SpawnError


# =============================================================================
# Fake Process Capability
# =============================================================================


def frame_from_argv(argv: list[str]) -> int:
    """Recover the frame index from the renderer's ``-o`` argument.

    Assumes the default ``mandel`` prefix and a single extension.
    """
    output = argv[argv.index("-o") + 1]
    stem = output.rsplit(".", 1)[0]
    return int(stem[len("mandel"):])


class FakeSpawner:
    """Scripted stand-in for LocalProcessSpawner.

    - spawn() records the argv and hands out increasing fake pids
    - wait_any() "finishes" one live worker, oldest first (or newest first
      with order="lifo")
    - fail_spawns: spawn attempt numbers (0-based) that raise SpawnError
    - wait_errors: exceptions raised by the next wait_any() calls, in order
    - outcome_for: maps a frame index to the Outcome its worker reports

    ``events`` records ("spawn", pid, frame) and ("reap", pid, frame) in call
    order. When ``supervisor`` is set, its running count is sampled on every
    call.
    """

    def __init__(
        self,
        outcome_for: Callable[[int], Outcome] | None = None,
        fail_spawns: set[int] | None = None,
        wait_errors: list[Exception] | None = None,
        order: str = "fifo",
    ):
        self.outcome_for = outcome_for or (lambda frame: Outcome.exited(0))
        self.fail_spawns = set(fail_spawns or ())
        self.wait_errors = list(wait_errors or [])
        self.order = order
        self.supervisor: Any = None

        self.spawn_attempts = 0
        self.spawned: list[list[str]] = []
        self.live: list[tuple[int, int]] = []
        self.events: list[tuple[str, int, int]] = []
        self.running_samples: list[int] = []
        self.max_live = 0
        self._next_pid = 1000

    def _sample(self) -> None:
        if self.supervisor is not None:
            self.running_samples.append(self.supervisor.running)

    def spawn(self, argv: list[str]) -> int:
        self._sample()
        attempt = self.spawn_attempts
        self.spawn_attempts += 1
        if attempt in self.fail_spawns:
            raise SpawnError(f"fork: Resource temporarily unavailable (attempt {attempt})")

        pid = self._next_pid
        self._next_pid += 1
        frame = frame_from_argv(argv)
        self.spawned.append(list(argv))
        self.live.append((pid, frame))
        self.max_live = max(self.max_live, len(self.live))
        self.events.append(("spawn", pid, frame))
        return pid

    def wait_any(self) -> tuple[int, Outcome]:
        self._sample()
        if self.wait_errors:
            raise self.wait_errors.pop(0)
        if not self.live:
            raise NoChildProcessesError("No child processes to wait for")

        pid, frame = self.live.pop(0 if self.order == "fifo" else -1)
        self.events.append(("reap", pid, frame))
        return pid, self.outcome_for(frame)

    @property
    def spawned_frames(self) -> list[int]:
        return [frame_from_argv(argv) for argv in self.spawned]


@pytest.fixture
def fake_spawner_factory() -> Callable[..., FakeSpawner]:
    """Build FakeSpawner instances with custom scripts."""
    return FakeSpawner


@pytest.fixture
def fake_spawner() -> FakeSpawner:
    """A FakeSpawner where every worker exits 0."""
    return FakeSpawner()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def make_config() -> Callable[..., MovieConfig]:
    """Build a MovieConfig with small defaults suitable for tests.

    Example:
        def test_something(make_config):
            config = make_config(num_children=2, frames=5)
    """

    def _make(**overrides: Any) -> MovieConfig:
        values: dict[str, Any] = {"num_children": 2, "frames": 5, "renderer": "./mandel"}
        values.update(overrides)
        return MovieConfig(**values)

    return _make


@pytest.fixture
def movie_yaml(tmp_path: Path) -> Path:
    """Write a valid mandelmovie.yaml and return its path."""
    path = tmp_path / "mandelmovie.yaml"
    path.write_text(
        """movie:
  num_children: 3
  frames: 12
  xcenter: -0.5
  zoom: 0.9
  outprefix: zoom
"""
    )
    return path


# =============================================================================
# Renderer Script Fixtures
# =============================================================================


def _write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body)
    os.chmod(path, 0o755)
    return path


@pytest.fixture
def fake_renderer(tmp_path: Path) -> Path:
    """An executable renderer that writes its -o argument to disk and exits 0."""
    return _write_script(
        tmp_path / "mandel",
        'while [ "$#" -gt 0 ]; do\n'
        '  if [ "$1" = "-o" ]; then out="$2"; fi\n'
        "  shift\n"
        "done\n"
        'echo "$out" > "$out"\n'
        "exit 0\n",
    )


@pytest.fixture
def failing_renderer(tmp_path: Path) -> Path:
    """An executable renderer that always exits 3."""
    return _write_script(tmp_path / "mandel_fail", "exit 3\n")


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that start real child processes"
    )

"""Worker process management."""

from mandelmovie.process.spawner import (
    LocalProcessSpawner,
    NoChildProcessesError,
    ProcessError,
    ProcessSpawner,
    SpawnError,
    WaitError,
    classify_wait_status,
)

__all__ = [
    "LocalProcessSpawner",
    "NoChildProcessesError",
    "ProcessError",
    "ProcessSpawner",
    "SpawnError",
    "WaitError",
    "classify_wait_status",
]

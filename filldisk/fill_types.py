from __future__ import annotations

"""Shared dataclasses used by *filldisk* components.

Having these types in a dedicated module avoids circular imports between
``controller``, ``channel`` and ``tools``.
"""

from dataclasses import dataclass, field
from typing import List

__all__ = [
    "FillRequest",
    "FilesystemStat",
    "CommandResult",
    "FillResult",
    "StopResult",
]

FILL_DATA_FILE = "chaos_filldisk.log.dat"
DISK_FULL_MESSAGE = "No space left on device"

MIB = 1024 * 1024


@dataclass(frozen=True)
class FillRequest:
    """What the caller asked for.

    ``size`` and ``reserve`` are in MB, ``percent`` is a whole number between
    0 and 100.  ``retain_nohup`` is only set on the holder's own invocation.
    """

    directory: str
    size: int | None = None
    percent: int | None = None
    reserve: float | None = None
    retain_handle: bool = False
    retain_nohup: bool = False


@dataclass(frozen=True)
class FilesystemStat:
    total_bytes: int
    available_bytes: int
    block_size: int

    @property
    def used_bytes(self) -> int:
        return self.total_bytes - self.available_bytes


@dataclass
class CommandResult:
    """Outcome of running (or spawning) an external command.

    ``pid`` is only populated for detached spawns.
    """

    success: bool
    output: str = ""
    error: str = ""
    pid: int | None = None


@dataclass
class FillResult:
    """Result of a start call.

    Either the fill fields are set (success) or *error* is populated.
    """

    directory: str | None = None
    size_mb: int | None = None
    strategy: str | None = None
    message: str | None = None
    retained: bool = False
    error: str | None = None


@dataclass
class StopResult:
    directory: str | None = None
    killed_pids: List[int] = field(default_factory=list)
    artifact_removed: bool = False
    error: str | None = None

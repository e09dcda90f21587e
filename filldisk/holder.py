"""Keep the fill artifact open from a detached background process.

Deleting a file that some process still holds open does not give the space
back, so a holder makes the fill survive a plain ``rm`` of the artifact.  The
holder is this same program re-invoked with ``--retain-nohup``; it is found
again at stop time by that marker rather than by a stored PID.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
from collections.abc import Callable
from pathlib import Path

from .channel import Channel
from .errors import ArtifactUnreadableError
from .fill_types import FILL_DATA_FILE, CommandResult

__all__ = [
    "PROGRAM_NAME",
    "RETAIN_MARKER",
    "artifact_path",
    "holder_command",
    "spawn_retain_process",
    "retain_file_handle",
    "kill_fill_processes",
]

logger = logging.getLogger(__name__)

PROGRAM_NAME = "filldisk"
RETAIN_MARKER = "retain-nohup"


def artifact_path(directory: str) -> str:
    return os.path.join(directory, FILL_DATA_FILE)


def holder_command(directory: str, data_dir: Path | None = None) -> list[str]:
    cmd = [
        sys.executable,
        "-m",
        PROGRAM_NAME,
        "--start",
        "--retain-handle",
        f"--{RETAIN_MARKER}",
        "--directory",
        directory,
    ]
    if data_dir is not None:
        cmd += ["--data-dir", str(data_dir)]
    return cmd


def spawn_retain_process(
    channel: Channel, directory: str, log_path: Path | None = None
) -> CommandResult:
    """Launch the holder for *directory* and return immediately."""
    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.debug("event=holder_log_unavailable path=%s err=%s", log_path, exc)
            log_path = None
    data_dir = log_path.parent if log_path is not None else None
    return channel.spawn_detached(holder_command(directory, data_dir), log_path)


def _block_forever() -> None:  # noqa: D401 – helper
    while True:
        signal.pause()


def retain_file_handle(directory: str, block: Callable[[], None] = _block_forever) -> None:
    """Open the artifact and hold it until this process is killed."""
    data_file = artifact_path(directory)
    try:
        fh = open(data_file, "rb")
    except OSError as exc:
        raise ArtifactUnreadableError(f"failed to read {data_file} file, {exc}") from exc

    logger.info("Holding %s open (pid %d)", data_file, os.getpid())
    with fh:
        block()


def kill_fill_processes(channel: Channel) -> tuple[list[int], list[int]]:
    """SIGKILL background writers and holders.

    Returns ``(killed, failed)`` PID lists.  Finding nothing is fine.
    """
    killed: list[int] = []
    failed: list[int] = []
    for marker, scope in ((FILL_DATA_FILE, None), (RETAIN_MARKER, PROGRAM_NAME)):
        pids = [pid for pid in channel.find_pids(marker, scope) if pid not in killed]
        if not pids:
            continue
        not_killed = channel.kill_pids(pids)
        failed.extend(not_killed)
        killed.extend(pid for pid in pids if pid not in not_killed)

    if killed:
        logger.info("Killed fill processes: %s", killed)
        channel.wait_pids(killed)
    return killed, failed

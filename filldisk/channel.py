from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path

import psutil

from .fill_types import CommandResult

__all__ = ["Channel"]

logger = logging.getLogger(__name__)


class Channel:
    """Runs external commands and looks up processes on the local host.

    Everything the fill logic does to the outside world goes through here,
    so tests can swap in a fake.
    """

    def is_command_available(self, name: str) -> bool:
        return shutil.which(name) is not None

    def run(self, argv: list[str]) -> CommandResult:
        """Run *argv* to completion and capture its output."""
        logger.debug("event=run cmd=%s", shlex.join(argv))
        try:
            proc = subprocess.run(  # noqa: S603 – fixed argv
                argv,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            return CommandResult(success=False, error=f"Command not found: {exc.filename}")
        except PermissionError as exc:
            return CommandResult(success=False, error=f"Permission denied: {exc.filename}")

        if proc.returncode != 0:
            logger.debug(
                "event=run_failed cmd=%s code=%d stderr=%s",
                argv[0],
                proc.returncode,
                proc.stderr.strip(),
            )
            return CommandResult(
                success=False,
                output=proc.stdout,
                error=proc.stderr.strip() or f"{argv[0]} exited with code {proc.returncode}",
            )
        return CommandResult(success=True, output=proc.stdout)

    def spawn_detached(self, argv: list[str], log_path: Path | None = None) -> CommandResult:
        """Start *argv* in its own session and return without waiting.

        Output is appended to *log_path*, or discarded when it is ``None``.
        The child keeps running after this process exits; no handle is kept.
        """
        target = str(log_path) if log_path is not None else os.devnull
        logger.debug("event=spawn cmd=%s log=%s", shlex.join(argv), target)
        try:
            with open(target, "ab") as out:
                proc = subprocess.Popen(  # noqa: S603 – fixed argv
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=subprocess.STDOUT,
                    close_fds=True,
                    start_new_session=True,
                )
        except OSError as exc:
            return CommandResult(success=False, error=f"Failed to start {argv[0]}: {exc}")

        logger.debug("event=spawned pid=%d cmd=%s", proc.pid, argv[0])
        return CommandResult(success=True, pid=proc.pid)

    def find_pids(self, marker: str, scope: str | None = None) -> list[int]:
        """Return PIDs whose command line contains *marker* (and *scope*, if given).

        This process and its parent are never returned.  The lookup is a
        snapshot of the process table, so results may already be stale.
        """
        own = {os.getpid(), os.getppid()}
        pids: list[int] = []
        for proc in psutil.process_iter(["pid", "cmdline"]):
            try:
                if proc.pid in own:
                    continue
                cmdline = " ".join(proc.info.get("cmdline") or [])
                if marker not in cmdline:
                    continue
                if scope is not None and scope not in cmdline:
                    continue
                pids.append(proc.pid)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        logger.debug("event=find_pids marker=%s scope=%s pids=%s", marker, scope, pids)
        return pids

    def kill_pids(self, pids: list[int]) -> list[int]:
        """Send SIGKILL to each PID; return the ones that could not be signalled.

        A PID that has already exited counts as killed.
        """
        failed: list[int] = []
        for pid in pids:
            try:
                psutil.Process(pid).kill()
                logger.debug("event=killed pid=%d", pid)
            except psutil.NoSuchProcess:
                logger.debug("event=kill_skip pid=%d reason=gone", pid)
            except psutil.AccessDenied:
                logger.warning("Permission denied when killing pid %d", pid)
                failed.append(pid)
        return failed

    def wait_pids(self, pids: list[int], timeout: float = 3.0) -> None:
        procs = []
        for pid in pids:
            try:
                procs.append(psutil.Process(pid))
            except psutil.NoSuchProcess:
                continue
        if procs:
            _gone, alive = psutil.wait_procs(procs, timeout=timeout)
            if alive:
                logger.warning(
                    "Processes still alive after kill: %s", [p.pid for p in alive]
                )

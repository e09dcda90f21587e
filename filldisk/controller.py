from __future__ import annotations

import logging
import math
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .channel import Channel
from .errors import (
    CleanupFailedError,
    FillDiskError,
    InvalidModeError,
    InvalidSizeSpecError,
    MissingDirectoryError,
    MissingSizeSpecError,
)
from .fill_types import FilesystemStat, FillRequest, FillResult, StopResult
from .holder import (
    artifact_path,
    kill_fill_processes,
    retain_file_handle,
    spawn_retain_process,
)
from .sizing import calculate_fill_size
from .statfs import read_filesystem_stat
from .strategies import DEFAULT_STRATEGIES, FillStrategy, fill_disk

__all__ = ["FillController", "Registry"]

logger = logging.getLogger(__name__)


@dataclass
class Registry:
    """
    Contains the controller's collaborators, so swapping in fakes in tests is easy
    """

    channel: Channel = field(default_factory=Channel)
    stat_reader: Callable[[str], FilesystemStat] = read_filesystem_stat
    strategies: tuple[FillStrategy, ...] = DEFAULT_STRATEGIES
    retain: Callable[[str], None] = retain_file_handle


class FillController:  # noqa: D101
    def __init__(
        self,
        registry: Registry | None = None,
        log_path: Path | None = None,
    ) -> None:
        self._registry = registry or Registry()
        self._channel = self._registry.channel
        self.log_path = log_path

    # ------------------------------------------------------------------
    # Mode dispatch
    # ------------------------------------------------------------------

    def execute(
        self, request: FillRequest, start: bool, stop: bool
    ) -> FillResult | StopResult:
        """Run exactly one of start or stop for *request*."""
        if start == stop:
            raise InvalidModeError("must specify start or stop operation")
        if start:
            return self.start(request)
        return self.stop(request.directory)

    # ------------------------------------------------------------------
    # Core API – exposed via CLI & MCP tools
    # ------------------------------------------------------------------

    def start(self, request: FillRequest) -> FillResult:
        directory = request.directory
        if not directory:
            raise MissingDirectoryError("--directory flag value is empty")
        if request.retain_handle and request.retain_nohup:
            # We are the holder spawned by an earlier start.
            self._registry.retain(directory)
            return FillResult(
                directory=directory, message="released file handle", retained=True
            )

        if request.size is None and request.percent is None and request.reserve is None:
            raise MissingSizeSpecError("less --size or --percent or --reserve flag")
        _validate_size_spec(request)

        size_mb = calculate_fill_size(
            directory,
            request.size,
            request.percent,
            request.reserve,
            stat_reader=self._registry.stat_reader,
        )
        data_file = artifact_path(directory)
        logger.debug("event=fill_start dir=%s size=%dM", directory, size_mb)

        try:
            strategy, message = fill_disk(
                self._channel, size_mb, data_file, self._registry.strategies
            )
        except FillDiskError as exc:
            try:
                self.stop(directory)
            except FillDiskError as cleanup_exc:
                logger.warning(
                    "failed to stop fill when starting failed, %s, starting err: %s",
                    cleanup_exc,
                    exc,
                )
            raise

        retained = False
        if request.retain_handle:
            res = spawn_retain_process(self._channel, directory, self.log_path)
            if res.success:
                retained = True
                logger.debug("event=holder_spawned pid=%s dir=%s", res.pid, directory)
            else:
                logger.warning("failed to start retain process, %s", res.error)

        logger.info("Filled %s with %dM using %s", directory, size_mb, strategy)
        return FillResult(
            directory=directory,
            size_mb=size_mb,
            strategy=strategy,
            message=message,
            retained=retained,
        )

    def stop(self, directory: str) -> StopResult:
        """Kill writers and holders, then remove the artifact.  Safe to repeat."""
        if not directory:
            raise MissingDirectoryError("--directory flag value is empty")

        killed, failed = kill_fill_processes(self._channel)

        data_file = artifact_path(directory)
        removed = False
        if os.path.lexists(data_file):
            try:
                os.remove(data_file)
            except OSError as exc:
                raise CleanupFailedError(f"failed to remove {data_file}, {exc}") from exc
            removed = True
            logger.debug("event=artifact_removed path=%s", data_file)

        if failed:
            raise CleanupFailedError(f"failed to kill processes {failed}")

        logger.info("Stopped fill in %s", directory)
        return StopResult(directory=directory, killed_pids=killed, artifact_removed=removed)


def _validate_size_spec(request: FillRequest) -> None:
    if request.size is not None and request.size <= 0:
        raise InvalidSizeSpecError(f"--size must be positive, got {request.size}")
    if request.percent is not None and not 0 <= request.percent <= 100:
        raise InvalidSizeSpecError(
            f"--percent must be between 0 and 100, got {request.percent}"
        )
    if request.reserve is not None and (
        not math.isfinite(request.reserve) or request.reserve < 0
    ):
        raise InvalidSizeSpecError(
            f"--reserve must be a non-negative number, got {request.reserve}"
        )

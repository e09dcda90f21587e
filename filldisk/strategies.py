from __future__ import annotations

import abc
import logging

from .channel import Channel
from .errors import CommandFailedError, FillDiskError, ToolUnavailableError
from .fill_types import DISK_FULL_MESSAGE

__all__ = [
    "FillStrategy",
    "FallocateStrategy",
    "DdStrategy",
    "DEFAULT_STRATEGIES",
    "fill_disk",
]

logger = logging.getLogger(__name__)


class FillStrategy(abc.ABC):
    """One way of putting *size_mb* MB into the artifact file."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The strategy name reported back to callers."""
        ...

    @property
    @abc.abstractmethod
    def tool(self) -> str:
        """The executable this strategy depends on."""
        ...

    def is_available(self, channel: Channel) -> bool:
        return channel.is_command_available(self.tool)

    @abc.abstractmethod
    def fill(self, channel: Channel, size_mb: int, data_file: str) -> str:
        """Fill *data_file*; return a short description or raise ``CommandFailedError``."""
        ...


class FallocateStrategy(FillStrategy):
    """Preallocate the whole file in one call.

    Quick on filesystems with extent support (ext4, xfs, btrfs, ocfs2).
    """

    name = "fallocate"
    tool = "fallocate"

    def fill(self, channel: Channel, size_mb: int, data_file: str) -> str:
        res = channel.run(["fallocate", "-l", f"{size_mb}M", data_file])
        if res.success:
            return f"allocated {size_mb}M for {data_file}"
        # A full disk is exactly what we were asked for.
        if DISK_FULL_MESSAGE in res.error:
            logger.info("fallocate filled the disk before reaching %dM", size_mb)
            return f"success because of {DISK_FULL_MESSAGE}"
        logger.warning("execute fallocate err, %s", res.error)
        raise CommandFailedError(f"execute fallocate err, {res.error}", stderr=res.error)


class DdStrategy(FillStrategy):
    """Stream zeros with ``dd`` from a detached background process.

    A one byte write runs first in the foreground so permission or path
    problems surface immediately instead of inside the detached writer.
    """

    name = "dd"
    tool = "dd"

    def fill(self, channel: Channel, size_mb: int, data_file: str) -> str:
        res = channel.run(["dd", "if=/dev/zero", f"of={data_file}", "bs=1", "count=1"])
        if not res.success:
            raise CommandFailedError(f"execute dd err, {res.error}", stderr=res.error)

        res = channel.spawn_detached(
            [
                "dd",
                "if=/dev/zero",
                f"of={data_file}",
                "bs=1M",
                f"count={size_mb}",
                "iflag=fullblock",
            ]
        )
        if not res.success:
            raise CommandFailedError(
                f"start background dd err, {res.error}", stderr=res.error
            )
        return f"writing {size_mb}M to {data_file} in background (pid {res.pid})"


DEFAULT_STRATEGIES: tuple[FillStrategy, ...] = (FallocateStrategy(), DdStrategy())


def fill_disk(
    channel: Channel,
    size_mb: int,
    data_file: str,
    strategies: tuple[FillStrategy, ...] | list[FillStrategy] = DEFAULT_STRATEGIES,
) -> tuple[str, str]:
    """Try each strategy in order; return ``(strategy name, message)`` of the first success.

    Missing tools and ``CommandFailedError`` fall through to the next
    strategy.  When all of them fail the last command failure is raised, or
    the last missing tool when no command ran.
    """
    last_error: FillDiskError | None = None
    for strategy in strategies:
        if not strategy.is_available(channel):
            logger.debug("event=strategy_skip name=%s reason=no_tool", strategy.name)
            if not isinstance(last_error, CommandFailedError):
                last_error = ToolUnavailableError(f"{strategy.tool} command not found")
            continue
        try:
            message = strategy.fill(channel, size_mb, data_file)
        except CommandFailedError as exc:
            logger.debug("event=strategy_failed name=%s err=%s", strategy.name, exc)
            last_error = exc
            continue
        logger.debug("event=strategy_ok name=%s size=%d", strategy.name, size_mb)
        return strategy.name, message

    if last_error is None:
        raise ToolUnavailableError("no fill strategy configured")
    raise last_error

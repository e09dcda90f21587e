from __future__ import annotations

import logging
import math
from collections.abc import Callable

from .errors import (
    AlreadyExceededError,
    FillDiskError,
    InsufficientSpaceError,
    MissingSizeSpecError,
)
from .fill_types import MIB, FilesystemStat
from .statfs import read_filesystem_stat

__all__ = ["calculate_fill_size"]

logger = logging.getLogger(__name__)


def calculate_fill_size(
    directory: str,
    size: int | None = None,
    percent: int | None = None,
    reserve: float | None = None,
    stat_reader: Callable[[str], FilesystemStat] = read_filesystem_stat,
) -> int:
    """Return how many MB should be written into *directory*.

    An explicit *size* is returned as-is unless *percent* or *reserve* is also
    given.  *percent* wins over *reserve* when both are present.

    Percent mode rounds both the current and the target usage ratio to two
    decimals before comparing them, then floors the resulting MB value.
    """
    if percent is None and reserve is None:
        if size is None:
            raise MissingSizeSpecError("less --size or --percent or --reserve flag")
        return size

    try:
        stat = stat_reader(directory)
    except OSError as exc:
        raise FillDiskError(f"failed to stat {directory}, {exc}") from exc

    if percent is not None:
        if stat.total_bytes <= 0:
            raise InsufficientSpaceError(
                f"the filesystem of {directory} reports no capacity"
            )
        used_percentage = round(stat.used_bytes / stat.total_bytes, 2)
        expected_percentage = round(percent / 100.0, 2)
        if used_percentage >= expected_percentage:
            raise AlreadyExceededError(
                f"the disk has been used {used_percentage:.2f}, large than expected"
            )
        remainder_percentage = expected_percentage - used_percentage
        logger.debug("remainder_percentage: %f", remainder_percentage)
        return _checked(directory, math.floor(remainder_percentage * stat.total_bytes / MIB))

    available_mb = stat.available_bytes / MIB
    if available_mb <= reserve:
        raise InsufficientSpaceError(
            f"the disk has available size {available_mb:.2f}, less than expected"
        )
    return _checked(directory, math.floor(available_mb - reserve))


def _checked(directory: str, size_mb: int) -> int:
    if size_mb == 0:
        logger.warning("less than 1M can be filled in %s, nothing will be written", directory)
    return size_mb

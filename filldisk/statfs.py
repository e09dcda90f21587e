from __future__ import annotations

import logging
import os

from .fill_types import FilesystemStat

__all__ = ["read_filesystem_stat"]

logger = logging.getLogger(__name__)


def read_filesystem_stat(directory: str | os.PathLike) -> FilesystemStat:
    """Return block totals for the filesystem holding *directory*.

    Always queries the OS; disk usage changes underneath us so nothing is
    cached.  Raises ``OSError`` when *directory* cannot be stat'ed.
    """
    st = os.statvfs(directory)
    stat = FilesystemStat(
        total_bytes=st.f_blocks * st.f_frsize,
        available_bytes=st.f_bavail * st.f_frsize,
        block_size=st.f_frsize,
    )
    logger.debug(
        "event=statfs dir=%s total=%d available=%d bsize=%d",
        directory,
        stat.total_bytes,
        stat.available_bytes,
        stat.block_size,
    )
    return stat

"""
filldisk: consume (and give back) free disk space for chaos experiments.

This package sizes a fill from an absolute size, a target usage percentage or a
free-space reserve, writes it with ``fallocate`` (falling back to ``dd``),
optionally keeps the file held open from a background process, and undoes all
of it on stop.
"""

from .controller import FillController, Registry
from .errors import FillDiskError
from .fill_types import FillRequest, FillResult, FilesystemStat, StopResult
from .sizing import calculate_fill_size
from .statfs import read_filesystem_stat

# Package metadata
__version__ = "0.1.0"
__author__ = "filldisk Contributors"

# Public API
__all__ = [
    "FillController",
    "Registry",
    "FillDiskError",
    "FillRequest",
    "FillResult",
    "FilesystemStat",
    "StopResult",
    "calculate_fill_size",
    "read_filesystem_stat",
]

"""Exception hierarchy for filldisk."""

from __future__ import annotations


class FillDiskError(Exception):
    """Base exception for all filldisk errors."""

    pass


class InvalidModeError(FillDiskError):
    """Neither or both of start and stop were requested."""

    pass


class MissingDirectoryError(FillDiskError):
    """The target directory is empty."""

    pass


class MissingSizeSpecError(FillDiskError):
    """None of size, percent or reserve was given."""

    pass


class InvalidSizeSpecError(FillDiskError):
    """A size, percent or reserve value is out of range."""

    pass


class AlreadyExceededError(FillDiskError):
    """Disk usage is already at or above the requested percentage."""

    pass


class InsufficientSpaceError(FillDiskError):
    """Available space is already at or below the requested reserve."""

    pass


class ToolUnavailableError(FillDiskError):
    """A required command line tool is not installed."""

    pass


class CommandFailedError(FillDiskError):
    """An external command exited unsuccessfully.

    ``stderr`` keeps the tool's own error text for diagnostics.
    """

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ArtifactUnreadableError(FillDiskError):
    """The holder process could not open the fill artifact."""

    pass


class CleanupFailedError(FillDiskError):
    """Killing fill processes or removing the artifact failed."""

    pass

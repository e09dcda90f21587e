from __future__ import annotations

import abc
import logging

from fastmcp import FastMCP
from fastmcp.tools import FunctionTool

from .controller import FillController
from .errors import FillDiskError
from .fill_types import FillRequest, FillResult, StopResult

logger = logging.getLogger(__name__)


class ITool(abc.ABC):
    """Abstract base class for a filldisk tool."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The name of the tool."""
        ...

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """The description of the tool."""
        ...

    @abc.abstractmethod
    def register_tool(self, controller: FillController, mcp: FastMCP) -> None:
        """Register the tool with the MCP server."""
        ...


class StartFillTool(ITool):
    """Tool to fill a directory's filesystem."""

    name = "start_fill"
    description = (
        "Consume disk space in a directory by writing chaos_filldisk.log.dat. "
        "Give exactly one of size (MB), percent (target disk usage) or reserve "
        "(MB to leave free). Undo with stop_fill."
    )

    @staticmethod
    def _apply(
        controller: FillController,
        directory: str,
        size: int | None = None,
        percent: int | None = None,
        reserve: float | None = None,
        retain_handle: bool = False,
    ) -> FillResult:
        logger.info(
            "start_fill called – dir=%s size=%s percent=%s reserve=%s",
            directory,
            size,
            percent,
            reserve,
        )
        request = FillRequest(
            directory=directory,
            size=size,
            percent=percent,
            reserve=reserve,
            retain_handle=retain_handle,
        )
        try:
            return controller.start(request)
        except FillDiskError as exc:
            return FillResult(error=str(exc))

    def register_tool(self, controller: FillController, mcp: FastMCP) -> None:
        def start_fill(
            directory: str,
            size: int | None = None,
            percent: int | None = None,
            reserve: float | None = None,
            retain_handle: bool = False,
        ) -> FillResult:
            return self._apply(controller, directory, size, percent, reserve, retain_handle)

        mcp.add_tool(
            FunctionTool.from_function(
                start_fill, name=self.name, description=self.description
            )
        )


class StopFillTool(ITool):
    """Tool to undo a fill."""

    name = "stop_fill"
    description = (
        "Kill background fill and holder processes and delete the fill file "
        "from a directory. Safe to call when nothing is running."
    )

    @staticmethod
    def _apply(controller: FillController, directory: str) -> StopResult:
        logger.info("stop_fill called – dir=%s", directory)
        try:
            return controller.stop(directory)
        except FillDiskError as exc:
            return StopResult(error=str(exc))

    def register_tool(self, controller: FillController, mcp: FastMCP) -> None:
        def stop_fill(directory: str) -> StopResult:
            return self._apply(controller, directory)

        mcp.add_tool(
            FunctionTool.from_function(
                stop_fill, name=self.name, description=self.description
            )
        )


ALL_TOOL_CLASSES = [StartFillTool, StopFillTool]

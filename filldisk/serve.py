from __future__ import annotations

import logging

from fastmcp import FastMCP

from .controller import FillController
from .logging_utils import CLI_LOGGER
from .tools import ALL_TOOL_CLASSES

logger = logging.getLogger(__name__)

__all__ = ["serve", "build_app"]


def build_app(controller: FillController) -> FastMCP:  # noqa: D401 – helper
    """Return a *FastMCP* application with all *filldisk* tools registered."""

    app = FastMCP(
        "filldisk",
        instructions="Fill and release disk space on this host for chaos experiments.",
    )

    for tool_cls in ALL_TOOL_CLASSES:
        tool = tool_cls()
        tool.register_tool(controller, app)

    return app


def serve(port: int, controller: FillController) -> None:  # noqa: D401
    """Run the *filldisk* MCP server in the foreground until interrupted."""

    app = build_app(controller)

    CLI_LOGGER.info("Starting MCP server on http://127.0.0.1:%d", port)

    try:
        app.run(transport="http", host="127.0.0.1", port=port, path="/mcp/")
    except KeyboardInterrupt:
        logger.info("Server shutdown requested (Ctrl+C)")
    finally:
        logger.info("Server process exiting")

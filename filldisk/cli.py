from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from .console import print_result
from .controller import FillController
from .errors import FillDiskError
from .fill_types import FillRequest
from .logging_utils import CLI_LOGGER_NAME, setup_logging
from .serve import serve

ENV_PORT = "FILLDISK_PORT"
ENV_DATA_DIR = "FILLDISK_DATA_DIR"


def get_default_data_dir() -> Path:
    """Return default data directory, honouring *FILLDISK_DATA_DIR*."""

    if ENV_DATA_DIR in os.environ and os.environ[ENV_DATA_DIR]:
        return Path(os.environ[ENV_DATA_DIR]).expanduser().resolve()

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "filldisk"
    elif sys.platform.startswith("linux"):
        return (
            Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
            / "filldisk"
        )
    return Path.home() / ".filldisk"


def get_default_port() -> int:
    """Return default port, honouring *FILLDISK_PORT*."""

    if ENV_PORT in os.environ:
        try:
            return int(os.environ[ENV_PORT])
        except ValueError:
            pass  # fall through to hard-coded default

    return 8948


@dataclass
class FillAction:
    request: FillRequest
    start: bool
    stop: bool
    as_json: bool = False


@dataclass
class ServeAction:
    port: int


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--data-dir", type=Path, default=get_default_data_dir())
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; you can use -vv for more",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print warnings and errors",
    )


def build_fill_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filldisk",
        description="Fill the disk holding a directory, or undo a previous fill. "
        "Run 'filldisk serve' to expose the same operations over MCP.",
    )
    parser.add_argument(
        "--directory", default="", help="the directory where the disk is populated"
    )
    parser.add_argument("--size", type=int, help="fill size, unit is M")
    parser.add_argument(
        "--percent", type=int, help="percentage of disk, positive integer without %%"
    )
    parser.add_argument("--reserve", type=float, help="reserve size, unit is M")
    parser.add_argument("--start", action="store_true", help="start fill or not")
    parser.add_argument("--stop", action="store_true", help="stop fill or not")
    parser.add_argument(
        "--retain-handle",
        action="store_true",
        help="whether to retain the big file handle",
    )
    parser.add_argument(
        "--retain-nohup",
        action="store_true",
        help="whether to read the big file in the background",
    )
    parser.add_argument(
        "--json", action="store_true", help="print the result as JSON"
    )
    _add_common_args(parser)
    return parser


def build_serve_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filldisk serve", description="Start the filldisk MCP server"
    )
    parser.add_argument("--port", type=int, default=get_default_port())
    _add_common_args(parser)
    return parser


def parse_cli(argv: list[str]) -> tuple[FillAction | ServeAction, Path | None]:
    """Parse *argv* into an action and configure logging.

    Returns the action together with the run log path (``None`` when the data
    directory is not writable).
    """
    if argv and argv[0] == "serve":
        args = build_serve_parser().parse_args(argv[1:])
        action: FillAction | ServeAction = ServeAction(port=args.port)
    else:
        args = build_fill_parser().parse_args(argv)
        action = FillAction(
            request=FillRequest(
                directory=args.directory,
                size=args.size,
                percent=args.percent,
                reserve=args.reserve,
                retain_handle=args.retain_handle,
                retain_nohup=args.retain_nohup,
            ),
            start=args.start,
            stop=args.stop,
            as_json=args.json,
        )

    verbosity = -1 if args.quiet else args.verbose
    log_path = setup_logging(verbosity, args.data_dir)
    return action, log_path


def run_action(
    action: FillAction | ServeAction,
    log_path: Path | None,
    controller: FillController | None = None,
) -> int:
    """Execute *action* and return the process exit status."""
    cli_logger = logging.getLogger(CLI_LOGGER_NAME)
    if log_path is not None:
        cli_logger.debug("Verbose log written to %s", log_path)

    controller = controller or FillController(log_path=log_path)

    if isinstance(action, ServeAction):
        serve(action.port, controller)
        return 0

    try:
        result = controller.execute(action.request, action.start, action.stop)
    except FillDiskError as exc:
        cli_logger.error(str(exc))
        return 1

    print_result(result, as_json=action.as_json)
    return 0


def cli() -> None:
    action, log_path = parse_cli(sys.argv[1:])
    sys.exit(run_action(action, log_path))

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

CLI_LOGGER_NAME = "filldisk.cli"


def get_log_path(data_dir: Path, timestamp: str | None = None) -> Path:
    """Construct the log file path for a given data directory and optional timestamp.

    If timestamp is None, uses the current timestamp.
    """
    if timestamp is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return data_dir / f"filldisk.run.{timestamp}.log"


class CustomFormatter(logging.Formatter):
    regular = "\x1b[37;20m"
    grey = "\x1b[90;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    format = "%(message)s"

    FORMATS = {
        logging.DEBUG: grey + format + reset,
        logging.INFO: grey + format + reset,
        logging.WARNING: yellow + format + reset,
        logging.ERROR: red + format + reset,
        logging.CRITICAL: bold_red + format + reset,
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


class _CliOnlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 – simple predicate
        return record.name.startswith(CLI_LOGGER_NAME)


def setup_logging(verbosity: int, data_dir: Path) -> Path | None:
    """Configure logging for the current *filldisk* invocation.

    A console handler is configured according to *verbosity* and a file handler
    capturing *all* logs at DEBUG level is written to
    ``data_dir/filldisk.run.<timestamp>.log``.

    Returns the log file path, or ``None`` when *data_dir* is not writable, in
    which case only the console handler is installed.
    """
    root_logger = logging.getLogger()

    # Avoid adding handlers multiple times if this function is called repeatedly,
    # which can happen during tests.
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.setLevel(logging.DEBUG)

    # ----------------------------------------------------------------------------
    # File handler (always DEBUG)
    # ----------------------------------------------------------------------------
    log_path: Path | None = get_log_path(data_dir)
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        log_path = None
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)

    # ----------------------------------------------------------------------------
    # Console handler – behaviour depends on *verbosity*
    # ----------------------------------------------------------------------------
    console_handler = logging.StreamHandler()

    if verbosity <= -1:
        # Quiet: only warnings and errors from the CLI logger.
        console_handler.setLevel(logging.WARNING)
        console_handler.addFilter(_CliOnlyFilter())
    elif verbosity == 0:
        # Default: only show the dedicated CLI logger at INFO level.
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(_CliOnlyFilter())
    elif verbosity == 1:
        # Show INFO+ from *all* loggers.
        console_handler.setLevel(logging.INFO)
    else:
        # Show DEBUG from *all* loggers.
        console_handler.setLevel(logging.DEBUG)

    if sys.stderr.isatty():
        console_handler.setFormatter(CustomFormatter())
    else:
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    # Keep the MCP stack's own chatter out of the console unless asked for.
    if verbosity < 2:
        logging.getLogger("fastmcp").setLevel(logging.WARNING)
        logging.getLogger("uvicorn").setLevel(logging.WARNING)

    return log_path


CLI_LOGGER = logging.getLogger(CLI_LOGGER_NAME)

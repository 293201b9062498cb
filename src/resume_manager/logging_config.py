"""
Logging setup for the resume-manager command.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where those records go and at what level:

- the level comes from -q / -v / --debug, else from ``[logging] level``
- records are written to stderr, and also to ``[logging] log_file`` if set

stdout is never used. The ``mcp`` command speaks JSON-RPC on it.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

PACKAGE_LOGGER = "resume_manager"

CONSOLE_FORMAT = "%(message)s"
DETAILED_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    format_str: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Threshold for both handlers and the package logger.
        log_file: Also append to this file; its directory is created.
            An unusable path is reported and otherwise ignored.
        format_str: Console format. Defaults to the detailed format at
            DEBUG and to bare messages otherwise.
        stream: Console stream (default: sys.stderr).
    """
    console_format = format_str or (DETAILED_FORMAT if level <= logging.DEBUG else CONSOLE_FORMAT)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(level)
    root.addHandler(_handler(logging.StreamHandler(stream or sys.stderr), level, console_format))

    if log_file is not None:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        except OSError as e:
            root.warning(f"Log file {log_file} unavailable, logging to stderr only: {e}")
        else:
            root.addHandler(_handler(file_handler, level, DETAILED_FORMAT))

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def get_log_level_from_flags(
    quiet: bool = False,
    verbose: bool = False,
    debug: bool = False,
    default: int = logging.WARNING,
) -> int:
    """
    Pick a level from the verbosity flags.

    --debug wins over everything, --quiet wins over --verbose, and with no
    flag the ``default`` (usually taken from the config file) applies.
    """
    if debug:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.INFO if verbose else default


def level_from_name(name: Optional[str], fallback: int = logging.WARNING) -> int:
    """Translate a level name such as "info" into a logging constant."""
    if not name:
        return fallback
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else fallback


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
    default_level: int = logging.WARNING,
) -> None:
    """Configure logging once per CLI invocation from flags and config values."""
    configure_logging(
        level=get_log_level_from_flags(quiet=quiet, verbose=verbose, debug=debug, default=default_level),
        log_file=log_file,
    )

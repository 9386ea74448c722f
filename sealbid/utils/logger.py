"""
Logging for sealbid.

Every subsystem logs under the ``sealbid`` namespace (``sealbid.auction``,
``sealbid.registry``, ...). Handlers live on the namespace logger only:
a colored console stream, plus a plain-text file when the configuration
asks for one. Modules call ``get_logger`` at import time, which installs
the console default; the CLI replaces it with ``configure_from_config``.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

NAMESPACE = "sealbid"
LOG_FILE_NAME = "sealbid.log"

DATE_FORMAT = "%H:%M:%S"
CONSOLE_FORMAT = "%(log_color)s%(levelname).1s %(asctime)s %(name)s%(reset)s  %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LEVEL_COLORS = {
    "DEBUG": "blue",
    "INFO": "white",
    "WARNING": "bold_yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red,bg_white",
}

_configured = False


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(
        CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS,
    ))
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    log_to_file: bool = False,
) -> logging.Logger:
    """
    (Re)configure the ``sealbid`` namespace logger.

    Previous handlers are closed, so calling this twice never duplicates
    output.

    Args:
        level: Threshold for the namespace and its handlers
        log_dir: Directory for ``sealbid.log`` (``./logs`` if None)
        log_to_file: Also write plain records to the log file

    Returns:
        The namespace logger
    """
    global _configured

    namespace = logging.getLogger(NAMESPACE)
    _drop_handlers(namespace)
    namespace.setLevel(level)
    namespace.addHandler(_console_handler(level))
    if log_to_file:
        namespace.addHandler(_file_handler(Path(log_dir or "logs"), level))

    _configured = True
    return namespace


def configure_from_config(config, debug: bool = False) -> logging.Logger:
    """Apply an AuctionConfig's logging settings; ``debug`` forces DEBUG."""
    level = logging.DEBUG if debug else config.log_level_value
    return setup_logging(level=level, log_dir=config.log_dir, log_to_file=config.log_to_file)


def log_file_path() -> Optional[Path]:
    """Path of the active log file, if file logging is on."""
    for handler in logging.getLogger(NAMESPACE).handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def get_logger(name: str) -> logging.Logger:
    """
    Logger for one subsystem.

    ``get_logger("auction")`` and ``get_logger("sealbid.auction")`` return
    the same logger.
    """
    if not _configured:
        setup_logging()
    if name != NAMESPACE and not name.startswith(NAMESPACE + "."):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)

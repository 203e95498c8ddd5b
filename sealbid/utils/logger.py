"""
Logging for sealbid.

Every module logs through `get_logger("<subsystem>")`, a child of the
"sealbid" logger. Console output is colored with colorlog and goes to
stderr so CLI results on stdout stay machine-readable.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_LOGGER = "sealbid"
CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class SealbidLogger:
    """Configures the "sealbid" logger tree once per process (or per reset)."""

    _initialized = False

    @classmethod
    def setup(
        cls,
        level: Union[int, str] = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
    ):
        """
        Attach the console handler and, optionally, a file handler.

        Args:
            level: Level number or name ("DEBUG", "INFO", ...)
            log_dir: Directory for sealbid.log (./logs if None)
            log_to_file: Also write to sealbid.log
        """
        if cls._initialized:
            return

        if isinstance(level, str):
            level = logging.getLevelName(level.upper())

        root_logger = logging.getLogger(ROOT_LOGGER)
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = colorlog.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
        )
        root_logger.addHandler(console_handler)

        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(directory / "sealbid.log")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def reset(cls):
        """Close and drop handlers so setup() can run again."""
        root_logger = logging.getLogger(ROOT_LOGGER)
        for handler in list(root_logger.handlers):
            handler.close()
        root_logger.handlers.clear()
        cls._initialized = False


def get_logger(name: str) -> logging.Logger:
    """Logger for one subsystem, e.g. get_logger("auction") -> sealbid.auction"""
    SealbidLogger.setup()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """(Re)configure logging, replacing any earlier setup."""
    SealbidLogger.reset()
    SealbidLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)

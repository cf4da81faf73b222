"""
Logging helpers

Modules call get_logger(__name__); entry points call setup_logging() once.
"""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the togo namespace"""
    if name != "togo" and not name.startswith("togo."):
        name = f"togo.{name}"
    return logging.getLogger(name)


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure the togo logger with a single stderr handler

    Safe to call more than once; existing togo handlers are replaced.
    Third-party loggers are left alone except SQLAlchemy's engine logger,
    which is kept at WARNING unless SQL echo is requested explicitly.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("togo")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.captureWarnings(True)

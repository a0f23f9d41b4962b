"""Logging setup for the point set normals application."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "pointset_normals"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
NOISY_LOGGERS = ("vtkmodules", "pyvista", "matplotlib", "PIL")


def setup_logging(level: int = logging.INFO, log_file: str | Path | None = None) -> logging.Logger:
    """Attach stdout (and optionally file) handlers to the package logger.

    Parameters
    ----------
    level:
        Threshold applied to the package logger and its handlers.
    log_file:
        Optional path; when given, records are also written there.

    Returns
    -------
    logging.Logger
        The configured ``pointset_normals`` logger.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(logging.FileHandler(Path(log_file), mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging configured at %s", logging.getLevelName(level))
    return logger

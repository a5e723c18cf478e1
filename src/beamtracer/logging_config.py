"""Logging configuration for beamtracer.

The library only creates module loggers (``logging.getLogger(__name__)``);
applications call :func:`setup_logging` once to attach handlers.
"""

import logging
from pathlib import Path

from beamtracer.config import LOG_FORMAT, LOG_LEVEL


def setup_logging(
    name: str = "beamtracer",
    level: str | None = None,
    log_file: Path | None = None,
) -> logging.Logger:
    """Set up logging for the renderer.

    Args:
        name: Logger name, "beamtracer" covers every package module.
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults
            to BEAMTRACER_LOG_LEVEL.
        log_file: Optional path of a file to mirror the console output to.

    Returns:
        Configured logger instance.
    """
    if level is None:
        level = LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    formatter = logging.Formatter(LOG_FORMAT)

    # Repeated calls replace handlers instead of duplicating output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

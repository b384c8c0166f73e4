"""
Logging Module

Console + file logging for report runs, and the banner used to mark
pipeline stages in the run log.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
BANNER_WIDTH = 60

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ('matplotlib', 'PIL', 'shap', 'numba')


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Route report logs to stdout and, optionally, a log file.

    Existing root handlers are replaced so repeated runs in one process
    do not duplicate output. Plotting and SHAP internals are held at
    WARNING or above.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR); unknown names fall back to INFO
        log_file: Optional path; parent directories are created
        format_string: Custom record format

    Returns:
        Root logger
    """
    log_level = _resolve_level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return root_logger


def log_stage(logger: logging.Logger, title: str):
    """Write a banner line marking the start of a pipeline stage."""
    logger.info("=" * BANNER_WIDTH)
    logger.info(title)
    logger.info("=" * BANNER_WIDTH)

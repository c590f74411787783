"""
AssetGC Logging Configuration

Two consumers with different needs share the `assetgc` logger tree:
- the HTTP server logs to a file and keeps stderr for warnings
- the sweep CLI is watched by an operator, so phase progress (mark, scan,
  diff, persist) also goes to stderr in a short console format

Environment variables:
- ASSETGC_DEBUG: Enable debug logging (default: false)
- ASSETGC_LOG_FILE: Log file path (default: $ASSETGC_DATA_PATH/assetgc.log);
  "-" disables the file
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from assetgc.configs.paths import get_data_path

FILE_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
CONSOLE_FORMAT = "%(asctime)s %(levelname)-5s %(message)s"

NO_LOG_FILE = "-"

# Client libraries that are chatty at INFO during listing and storage calls
QUIET_LOGGERS = ("chromadb", "urllib3", "httpx")


def _resolve_log_file(log_file: Optional[str]) -> Optional[str]:
    if log_file is None:
        log_file = os.environ.get("ASSETGC_LOG_FILE") or str(get_data_path() / "assetgc.log")
    if log_file == NO_LOG_FILE:
        return None
    return log_file


def setup_logging(
    debug: Optional[bool] = None,
    log_file: Optional[str] = None,
    console_level: Optional[int] = None,
) -> logging.Logger:
    """
    Configure logging for AssetGC.

    Args:
        debug: Enable debug level. Defaults to ASSETGC_DEBUG env var.
        log_file: Log file path, or "-" for none. Defaults to ASSETGC_LOG_FILE,
                  or $ASSETGC_DATA_PATH/assetgc.log if not set.
        console_level: Minimum level shown on stderr. Defaults to WARNING when
                       a log file is written, else the overall level.

    Returns:
        Root logger for assetgc
    """
    if debug is None:
        debug = os.environ.get("ASSETGC_DEBUG", "").lower() in ("true", "1", "yes")
    level = logging.DEBUG if debug else logging.INFO
    log_file = _resolve_log_file(log_file)

    logger = logging.getLogger("assetgc")
    logger.setLevel(level)
    logger.handlers.clear()

    if console_level is None:
        console_level = logging.WARNING if log_file else level
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    stderr_handler.setLevel(console_level)
    logger.addHandler(stderr_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
        logger.debug(f"Logging to file: {log_file}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., "sweep", "cleanup.queue", "storage.registry")

    Returns:
        Logger instance for the component
    """
    return logging.getLogger(f"assetgc.{component}")

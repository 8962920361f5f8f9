#!/usr/bin/env python3

import logging
import sys
from pathlib import Path
from typing import Optional, Union

# --- Logging Configuration ---
LOGGER_NAME = "vpnbridge"
DEFAULT_FORMAT = '%(asctime)s - %(levelname)s: %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_LEVELS = {
    5: logging.DEBUG,      # DEBUG
    4: logging.DEBUG,      # VARIABLES (Mapped to DEBUG)
    3: logging.INFO,       # INFO
    2: logging.INFO,       # SUCCESS (Mapped to INFO)
    1: logging.ERROR,      # ERROR
    0: logging.INFO,       # STATUS (Mapped to INFO)
}

logger = logging.getLogger(LOGGER_NAME)


def log_message(level, message):
    """Logs a message using the numeric verbosity levels (0=STATUS ... 5=DEBUG)."""
    actual_level = LOG_LEVELS.get(level)
    if actual_level is None:
        # Unknown levels are treated as STATUS
        logger.info(f"(STATUS) {message}")
    elif level == 4:
        logger.debug(f"(VARIABLES) {message}")
    elif level == 2:
        logger.info(f"(SUCCESS) {message}")
    elif level == 0:
        logger.info(f"(STATUS) {message}")
    else:
        logger.log(actual_level, message)


def setup_logging(verbosity_level, log_file: Optional[Union[str, Path]] = None,
                  log_format: str = DEFAULT_FORMAT, date_format: str = DEFAULT_DATE_FORMAT):
    """Configures logging based on the provided verbosity level."""
    log_level = LOG_LEVELS.get(verbosity_level, logging.ERROR) # Default to ERROR

    logger.setLevel(log_level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format, datefmt=date_format)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='a')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # Also log DEBUG messages to console if verbosity is 5 (DEBUG)
    if log_file and verbosity_level >= 5:
        debug_handler = logging.StreamHandler(sys.stdout)
        debug_handler.setLevel(logging.DEBUG)
        debug_handler.setFormatter(logging.Formatter('DEBUG: %(message)s'))
        logger.addHandler(debug_handler)

    log_message(3, f"Logging initialized with verbosity level {verbosity_level} ({logging.getLevelName(log_level)}).")

    return log_message

"""
Logging setup for the fixture builder CLI

One stdout handler plus an optional file handler on the root logger.
Modules log through a module-level LOG = logging.getLogger(__name__).
"""

import logging
import sys
from pathlib import Path


def setup_logging(log_level: str = "INFO", log_file: str = None):
    """Configure root logger with a stdout handler and an optional file handler"""

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper()))

    # Repeated calls must not stack handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # docker and urllib3 are chatty at DEBUG
    for noisy in ("urllib3", "docker"):
        logging.getLogger(noisy).setLevel(max(logger.level, logging.INFO))

    return logger

import logging
import sys
from logging.handlers import RotatingFileHandler

from app.core.logging import LOG_DIR, LOG_FORMAT


def setup_logger(name: str, log_file: str = None) -> logging.Logger:
    """Logger with its own rotating file next to the shared app logs.

    Calling it again for the same name reuses the configured handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        LOG_DIR.mkdir(exist_ok=True)
        file_handler = RotatingFileHandler(LOG_DIR / log_file, maxBytes=10485760, backupCount=5)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # handlers above already print; the root logger would print again
    logger.propagate = False
    return logger

# revshare/common/logger.py

import logging
from logging.handlers import RotatingFileHandler
import os

from revshare.logger_config import formatter


def setup_file_logging(logger: logging.Logger, log_file: str) -> RotatingFileHandler:
    """Attach a rotating file handler (5 MB x 3) to ``logger``."""
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == os.path.abspath(log_file):
            return handler

    file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.INFO)

    logger.addHandler(file_handler)
    return file_handler

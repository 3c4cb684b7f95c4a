import logging
import os

# Logger name
LOG_NAME = os.getenv("APP_LOGGER_NAME", "revshare")

# Log format with ISO-like timestamp including milliseconds
LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(filename)s - %(funcName)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def _console_level() -> int:
    """LOG_LEVEL wins; otherwise INFO in production and DEBUG everywhere else."""
    explicit = os.getenv("LOG_LEVEL")
    if explicit:
        level = logging.getLevelName(explicit.upper())
        return level if isinstance(level, int) else logging.INFO
    environment = (os.getenv("APP_ENV") or os.getenv("ENVIRONMENT") or "").lower()
    return logging.INFO if environment in ("prod", "production") else logging.DEBUG


logger = logging.getLogger(LOG_NAME)
logger.setLevel(logging.DEBUG)

if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(_console_level())
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Settlement logs stay out of the root logger
logger.propagate = False

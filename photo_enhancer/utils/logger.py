import logging
import sys
from photo_enhancer.config import settings

# Map string level names to logging constants
LOG_LEVEL_MAP = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Level from settings, INFO if missing or unknown
log_level_str = getattr(settings, 'LOGGING_LEVEL', 'INFO').upper()
log_level = LOG_LEVEL_MAP.get(log_level_str, logging.INFO)

log_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

# Console Handler
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)


def get_logger(name):
    """
    Gets a logger instance configured with the engine's settings.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # get_logger may be called repeatedly for the same name
    if not logger.handlers:
        logger.addHandler(console_handler)

    logger.propagate = False

    return logger

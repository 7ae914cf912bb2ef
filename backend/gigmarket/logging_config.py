import logging

from .config import settings


def setup_logging():
    logger = logging.getLogger()
    if not logger.handlers:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(settings.LOG_LEVEL.upper())
    return logger

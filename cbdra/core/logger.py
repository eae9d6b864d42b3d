import logging
from typing import Optional

from cbdra.core.config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console and file handlers to the ``cbdra`` logger.

    Safe to call more than once: handlers are only added the first time.
    """
    logger = logging.getLogger("cbdra")
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        path = log_file if log_file is not None else settings.LOG_FILE
        if path:
            file_handler = logging.FileHandler(path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger

# menu_analyzer/utils/logging.py
# Logging configuration

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "{extra[request_id]} | <cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", log_file: str = "") -> None:
    """Replace loguru's default sink; optionally add a rotating file."""
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    if log_file:
        logger.add(log_file, level=level.upper(), format=LOG_FORMAT, rotation="10 MB")

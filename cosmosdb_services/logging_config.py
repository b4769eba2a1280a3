import logging
import sys
from typing import Optional, TextIO, Union

LOGGER_NAME = "cosmosdb_services"
LOG_FORMAT = "%(asctime)s - %(name)s - %(filename)-14s - %(funcName)-16s - %(levelname)-7s - %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO,
                      log_file: Optional[str] = None,
                      stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Sets up the project logger with a console handler and, if log_file is
    given, a file handler. Calling it again replaces the handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # Create console handler and set level
    c_handler = logging.StreamHandler(stream or sys.stdout)
    c_handler.setLevel(level)
    c_handler.setFormatter(formatter)
    logger.addHandler(c_handler)

    if log_file:
        f_handler = logging.FileHandler(log_file)
        f_handler.setLevel(level)
        f_handler.setFormatter(formatter)
        logger.addHandler(f_handler)

    return logger

"""
Logging Configuration
Sets up the 'lithophane' logger used by the generator and the web app.
"""
import logging
import sys

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level=logging.INFO, log_file=None):
    """
    Configures the logger for the 'lithophane' namespace.

    Args:
        level: Logging level (name or number, e.g. "DEBUG" or logging.DEBUG)
        log_file: Optional path to also write logs to.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger = logging.getLogger('lithophane')
    logger.setLevel(level)

    # Flask's reloader imports the app twice
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(FORMAT, datefmt='%H:%M:%S')
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s", logging.getLevelName(level))
    return logger

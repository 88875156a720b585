"""
Logging Utilities Module
-----------------------
Provides helpers for setting up and managing logging.
Config-driven, robust, and maintainable.
"""
import logging
from typing import Optional

from tqdm import tqdm

LOGGER_NAME = 'AttributionAnalysis'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """
    Sets up and returns the toolbox logger with the specified log level.
    A console handler is always attached; a file handler only if log_file is given.
    Calling it again replaces the handlers instead of stacking them.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    logger.info("LoggingUtils: Logger setup complete.")
    return logger


def log_progress_bar(logger: logging.Logger, total_steps: int, desc: str = "Pipeline"):
    """
    Logs a progress bar using tqdm, writing progress to the logger.
    Returns (update, close) functions.
    """
    bar = tqdm(total=total_steps, desc=desc, ncols=70, bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]', leave=False)

    def update(step=1):
        bar.update(step)
        logger.debug(bar.format_meter(bar.n, bar.total, bar.format_dict['elapsed']))

    def close():
        bar.close()
    return update, close

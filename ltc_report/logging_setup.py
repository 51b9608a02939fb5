"""Logging for the report pipeline: one named logger, a rotating file and the console."""

import logging
import logging.handlers
from pathlib import Path

LOGGER_NAME = 'ltc_report'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _level(name):
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {name!r}")
    return level


def _file_handler(log_config, level):
    log_path = Path(log_config.get('log_file', 'storage/report.log'))
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=int(log_config.get('max_log_size', 10485760)),
        backupCount=int(log_config.get('backup_count', 5)),
        encoding='utf-8',
    )
    handler.setLevel(level)
    return handler


def setup_logging(config):
    """Attach a rotating file handler and a WARNING console handler to the pipeline logger.

    Calling it again replaces (and closes) the handlers from the previous call,
    so a long-lived process can reload its config.

    Args:
        config: Configuration dictionary from config.yaml
    """
    log_config = config.get('logging', {})
    level = _level(log_config.get('level', 'INFO'))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in (_file_handler(log_config, level), console_handler):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name=LOGGER_NAME):
    return logging.getLogger(name)

import os
import logging

# ---------------------------------------------------------------------

LOGGER_NAME = "dl_modeling"
LOG_LEVEL_ENV = "DL_MODELING_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-4s %(filename)s:%(funcName)s:%(lineno)s] %(message)s"

# ---------------------------------------------------------------------


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Create or access the package logger with a pre-set stream handler.

    The level is read from the ``DL_MODELING_LOG_LEVEL`` environment
    variable (``INFO`` when unset).

    Args:
        name: Name of the logger.

    Returns:
        The configured ``logging.Logger``.
    """
    _logger = logging.getLogger(name)
    level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    _logger.setLevel(getattr(logging, level, logging.INFO))
    if not any(isinstance(h, logging.StreamHandler) for h in _logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _logger.addHandler(handler)
    _logger.propagate = False
    return _logger

# ---------------------------------------------------------------------


logger = get_logger()

# ---------------------------------------------------------------------

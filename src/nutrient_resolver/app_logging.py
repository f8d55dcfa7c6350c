"""Logging configuration helpers."""

import logging

LOGGER_NAME = "nutrient_resolver"

# httpx logs every upstream request at INFO; searches fan out to several stores.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure application logging with a single stream handler.

    ``level`` may be a number or a level name such as ``"debug"``; unknown
    names fall back to INFO.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

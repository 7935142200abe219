import logging
import sys
from app.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging() -> logging.Logger:
    """
    Configure the "app" logger hierarchy once (idempotent).
    Level comes from LOG_LEVEL; output goes to stdout.
    """
    global _configured

    logger = logging.getLogger("app")
    if _configured:
        return logger

    settings = get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Clear any existing handlers to avoid duplication
    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    _configured = True
    return logger

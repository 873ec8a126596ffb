import logging

from tourney_wallet.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Return a module-scoped logger. The level comes from the caller or from
    ``settings.log_level``; the root handler is installed only once.
    """
    resolved = (level or settings.log_level).upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logger = logging.getLogger(name)
    logger.setLevel(resolved)
    return logger

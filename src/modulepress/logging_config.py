import logging
from typing import Optional

from modulepress.config import AppSettings

_HANDLER_NAME = "modulepress"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(settings: Optional[AppSettings] = None) -> logging.Logger:
    """Configure the ``modulepress`` logger hierarchy.

    Sets the level from ``settings.log_level`` and attaches one stream
    handler. Calling it again only updates the level.

    Args:
        settings: Application settings; defaults are read from the environment.

    Returns:
        The ``modulepress`` root logger.
    """
    settings = settings or AppSettings()
    logger = logging.getLogger("modulepress")
    logger.setLevel(settings.log_level)

    if not any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)

    return logger

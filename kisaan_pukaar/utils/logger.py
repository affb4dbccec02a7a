import sys
import logging

from kisaan_pukaar.config import LOG_LEVEL

# --------------------------------------------------------
# One logger shared by every kisaan_pukaar module
# --------------------------------------------------------
LOGGER_NAME = "kisaan_pukaar"
logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

# Only attach a handler once (module may be re-imported under reload)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

logger.propagate = False  # uvicorn installs its own root handlers


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. get_logger(__name__) -> kisaan_pukaar.services.airtable."""
    if name.startswith(LOGGER_NAME + ".") or name == LOGGER_NAME:
        return logging.getLogger(name)
    return logger.getChild(name)

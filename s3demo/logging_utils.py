import logging
import sys
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = None, level: int = logging.INFO) -> logging.Logger:
    """
    Return the logger used by the s3demo modules.

    - Defaults to INFO level, so that endpoint substitutions are reported.
    - Writes to stdout, which is where the tool puts everything it has to say.
    - Under pytest no handler is attached, pytest captures the records itself.
    - Always propagates.
    """
    logger = logging.getLogger(name or "s3demo")
    logger.setLevel(level)

    under_pytest = "PYTEST_CURRENT_TEST" in os.environ

    if not under_pytest and len(logger.handlers) == 0:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)

    logger.propagate = True

    return logger

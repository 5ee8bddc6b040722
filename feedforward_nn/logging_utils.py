"""Console logging setup for training runs."""
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Attach a stderr handler to the package logger.

    Args:
        level: Logging level for the package logger

    Returns:
        The configured "feedforward_nn" logger
    """
    logger = logging.getLogger("feedforward_nn")
    logger.setLevel(level)

    for handler in logger.handlers:
        if getattr(handler, "_feedforward_nn", False):
            return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._feedforward_nn = True
    logger.addHandler(handler)
    return logger

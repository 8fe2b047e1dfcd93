"""
Diagnostics sink and logging setup.
"""

import logging
import sys
from typing import Optional

LOGGER_NAME = "pageview"


class Diagnostics:
    """
    Destination for viewer warnings and errors.

    The default implementation forwards to a standard logger. Hosts and
    tests can pass their own sink to observe reports directly.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(f"{LOGGER_NAME}.viewer")

    def info(self, message: str, **context) -> None:
        self.logger.info(self._format(message, context))

    def warning(self, message: str, **context) -> None:
        self.logger.warning(self._format(message, context))

    def error(self, message: str, **context) -> None:
        self.logger.error(self._format(message, context))

    @staticmethod
    def _format(message: str, context: dict) -> str:
        if not context:
            return message
        details = ", ".join(f"{key}={value!r}" for key, value in context.items())
        return f"{message} ({details})"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger

"""
Utilities for configuring the pywham logger
"""
import logging


class PerLevelFormatter(logging.Formatter):
    """
    Formatter with one message template per logging level.

    Adapted from https://stackoverflow.com/a/14859558
    """

    FORMATS = {
        logging.ERROR: "ERROR! %(message)s",
        logging.WARNING: "WARNING: %(message)s",
        logging.INFO: "%(message)s",
        logging.DEBUG: "Debug: %(message)s",
    }

    def __init__(self, fmt="%(levelno)d: %(message)s", datefmt=None, style="%", **kwargs):
        super().__init__(fmt=fmt, datefmt=datefmt, style=style, **kwargs)

    def format(self, record):

        # Save the original format configured by the user
        # when the logger formatter was instantiated
        format_orig = self._style._fmt
        self._style._fmt = self.FORMATS.get(record.levelno, self._style._fmt)
        result = super().format(record)
        self._style._fmt = format_orig

        return result


def setup_logging(level=logging.WARNING, stream=None):
    """
    Attach a stream handler with the per-level formatter to the package logger.

    Calling this more than once replaces the previously installed handler.
    """
    logger = logging.getLogger(__name__.split(".", 1)[0])
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, PerLevelFormatter):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(PerLevelFormatter())
    logger.addHandler(handler)
    configure_logging_level(level)
    return logger


def configure_logging_level(level):
    logger = logging.getLogger(__name__.split(".", 1)[0])
    logger.setLevel(level)

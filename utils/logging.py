"""Structured logging for the alert engine and its helpers."""

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# asset cycles run on pool threads, so the thread name is part of every line
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(threadName)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a pre-configured logger for the given module name."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))
        logger.propagate = False
    return logger

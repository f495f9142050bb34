"""
logger.py
---------

Shared logger factory for the Feedback Co-Pilot service.

Every module obtains its logger through `get_logger(__name__)`. The
`feedback_copilot` root logger is configured once, on first use, with a
single stream handler and the level from `settings.log_level`.
"""

import logging
import sys

from .config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER = "feedback_copilot"

_configured = False


def _configure_root(level: str) -> None:
    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    root.propagate = True
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the service root logger."""
    if not _configured:
        _configure_root(settings.log_level)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)

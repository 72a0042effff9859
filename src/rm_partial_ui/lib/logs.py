"""
Logging utilities for the RM Partial Picking UI.

Every module obtains its logger through logger(__file__) so that log lines
share one format and one level switch (LOG_LEVEL).
"""

import logging
import os
from pathlib import Path

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_ROOT_NAME = "rm_partial_ui"


def logger(name: str) -> logging.Logger:
    """
    Return the configured logger for a module.

    File paths (e.g. __file__) are reduced to their stem and nested under
    the package logger, so "store.py" logs as "rm_partial_ui.store".

    Args:
        name: Logger name or __file__ path.

    Returns:
        Configured logging.Logger instance.
    """
    if "/" in name or "\\" in name:
        name = Path(name).stem
    if not name.startswith(_ROOT_NAME):
        name = f"{_ROOT_NAME}.{name}"

    _configure_root()
    return logging.getLogger(name)


def _configure_root() -> None:
    """Attach the stream handler to the package logger once."""
    root = logging.getLogger(_ROOT_NAME)
    if root.handlers:
        return
    root.setLevel(getattr(logging, _LOG_LEVEL, logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

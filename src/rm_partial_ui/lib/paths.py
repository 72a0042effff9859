"""
Path utilities for the RM Partial Picking UI.
"""

import os
import tempfile
from pathlib import Path


def temp_dir() -> Path:
    """Return the system temporary directory as a Path."""
    return Path(tempfile.gettempdir())


def session_dir() -> Path:
    """
    Return the directory holding the persisted login session.

    RM_UI_SESSION_DIR overrides the default location under the system
    temporary directory.
    """
    override = os.getenv("RM_UI_SESSION_DIR")
    if override:
        return Path(override)
    return temp_dir() / "rm_partial_ui_session"

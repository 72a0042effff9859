"""
Local support modules for the RM Partial Picking UI.

Modules:
    logs: Logging utilities
    paths: Path utilities
    caches: Disk-based storage with TTL support
"""

from rm_partial_ui.lib import caches, logs, paths

__all__ = ["caches", "logs", "paths"]

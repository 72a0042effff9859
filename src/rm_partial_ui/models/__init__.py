"""
Data models for the RM Partial Picking UI.

This package provides:
- RM line models and the composite row key
- The eligibility predicate used for selection
- Tagged gateway results (Ok / Err) and the removal outcome
- The authenticated user identity
"""

from rm_partial_ui.models.auth import LoginGrant, UserIdentity
from rm_partial_ui.models.common import ErrorKind, Err, Ok, RemoveResult, Result
from rm_partial_ui.models.rm import (
    RMLine,
    RowKey,
    is_selectable,
    parse_line,
    selectable_keys,
    serialize_line,
)

__all__ = [
    "ErrorKind",
    "Err",
    "LoginGrant",
    "Ok",
    "RMLine",
    "RemoveResult",
    "Result",
    "RowKey",
    "UserIdentity",
    "is_selectable",
    "parse_line",
    "selectable_keys",
    "serialize_line",
]

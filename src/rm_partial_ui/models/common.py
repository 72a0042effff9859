"""
Shared result models.

Gateway calls return a tagged result: Ok carries the payload, Err carries a
failure classification. Callers branch on the type only and never inspect
raw backend fields.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from rm_partial_ui.errors import (
    AuthenticationError,
    BackendError,
    ConnectivityError,
    RMError,
    SessionExpiredError,
    ValidationError,
)

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure classification produced at the gateway boundary."""

    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    SESSION_EXPIRED = "session_expired"
    CONNECTIVITY = "connectivity"
    BACKEND = "backend"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful gateway result."""

    data: T


@dataclass(frozen=True, slots=True)
class Err:
    """
    Failed gateway result.

    Attributes:
        kind: Failure classification.
        message: User-facing message.
        details: Optional backend detail text.
        status_code: HTTP status when the backend answered.
    """

    kind: ErrorKind
    message: str
    details: str | None = None
    status_code: int | None = None

    def to_exception(self) -> RMError:
        """Return the exception matching this failure kind."""
        if self.kind is ErrorKind.BACKEND:
            return BackendError(self.message, self.details, self.status_code)
        return _EXCEPTIONS[self.kind](self.message, self.details)


_EXCEPTIONS: dict[ErrorKind, type[RMError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.UNAUTHENTICATED: AuthenticationError,
    ErrorKind.SESSION_EXPIRED: SessionExpiredError,
    ErrorKind.CONNECTIVITY: ConnectivityError,
}

Result = Ok[T] | Err


@dataclass(frozen=True, slots=True)
class RemoveResult:
    """
    Outcome of a confirmed removal.

    Attributes:
        affected_count: Rows the backend reports as mutated.
        requested_count: Keys the client asked to remove.
    """

    affected_count: int
    requested_count: int

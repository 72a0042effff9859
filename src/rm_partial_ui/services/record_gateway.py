"""
Abstract base classes defining the backend access contract.

RecordGateway turns record-store intents (search a run, remove lines) into
backend calls. Authenticator performs the login exchange that yields the
bearer token the gateway attaches to every request.

Both return tagged results (Ok / Err) instead of raising, so callers branch
on a single discriminant.

Implementations:
- HttpRecordGateway / HttpAuthenticator: live backend over HTTP
- DemoRecordGateway / DemoAuthenticator: in-memory data for development
"""

from abc import ABC, abstractmethod
from typing import Callable, Sequence

from rm_partial_ui.models.auth import LoginGrant
from rm_partial_ui.models.common import Err, ErrorKind, Result
from rm_partial_ui.models.rm import RMLine, RowKey

TokenProvider = Callable[[], str | None]


class RecordGateway(ABC):
    """
    Stateless adapter between the record store and the backend.

    Subclasses must implement search_records() and remove_records().
    """

    @abstractmethod
    async def search_records(self, run_no: int) -> Result[list[RMLine]]:
        """
        Return every partial-picking line of a run.

        Args:
            run_no: Positive run number.
        """

    @abstractmethod
    async def remove_records(
        self, run_no: int, items: Sequence[RowKey], acting_user: str
    ) -> Result[int]:
        """
        Remove partial-picking entries and return the affected row count.

        Never retried automatically: repeating a removal is not assumed to
        be harmless.

        Args:
            run_no: Run the items belong to.
            items: Composite keys of the lines to remove, in request order.
            acting_user: Username recorded in the audit trail.
        """

    async def check_health(self) -> bool:
        """
        Return True when the backend is reachable.

        Default implementation always reports healthy.
        """
        return True

    async def aclose(self) -> None:
        """Release any network resources held by the gateway."""


class Authenticator(ABC):
    """Exchanges operator credentials for a bearer token."""

    @abstractmethod
    async def login(self, username: str, password: str) -> Result[LoginGrant]:
        """
        Authenticate an operator.

        Args:
            username: Login name.
            password: Plain-text password, sent once and never stored.
        """

    async def aclose(self) -> None:
        """Release any network resources held by the authenticator."""


def validate_run_no(run_no: object) -> Err | None:
    """
    Check that a run number can be sent to the backend.

    Returns:
        An Err of kind VALIDATION, or None when the run number is usable.
    """
    if isinstance(run_no, bool) or not isinstance(run_no, int):
        return Err(ErrorKind.VALIDATION, f"RunNo must be a number, got {run_no!r}")
    if run_no <= 0:
        return Err(ErrorKind.VALIDATION, f"RunNo must be positive, got {run_no}")
    return None

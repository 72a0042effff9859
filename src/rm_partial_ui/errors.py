"""
Error taxonomy for RM partial picking operations.

ValidationError is raised locally and never reaches the network. The other
classes describe how a gateway call failed and are produced from the
gateway's Err results (see models.common.Err.to_exception).
"""


class RMError(Exception):
    """
    Base class for all RM errors.

    Attributes:
        message: User-facing message.
        details: Optional backend-supplied detail text.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(RMError):
    """Bad input or unmet precondition, resolved locally."""


class AuthenticationError(RMError):
    """No credential is present, or the login was rejected."""


class SessionExpiredError(RMError):
    """The backend rejected the credential; the user must log in again."""


class ConnectivityError(RMError):
    """The backend could not be reached or did not answer in time."""


class BackendError(RMError):
    """The backend answered but reported a failure."""

    def __init__(
        self,
        message: str,
        details: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code

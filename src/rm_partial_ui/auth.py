"""
Authentication session (identity provider) for the RM Partial Picking UI.

AuthSession holds the bearer token and the acting user. The gateway reads
the token through current_token(); the record store reads the acting user
through current_user().

The session is persisted to a disk cache so that it survives application
reloads. Only the token, username and display name are stored, and reading
them back never raises: missing or corrupt storage leaves the session
logged out.
"""

from typing import Protocol

from rm_partial_ui.lib import logs
from rm_partial_ui.lib.caches import DiskCache
from rm_partial_ui.models.auth import LoginGrant, UserIdentity
from rm_partial_ui.models.common import Err
from rm_partial_ui.services.record_gateway import Authenticator

LOG = logs.logger(__file__)

_SESSION_KEY = "auth_session"
# Persisted sessions expire after one working shift
_SESSION_TTL = 60 * 60 * 12


class IdentityProvider(Protocol):
    """Source of the acting user attached to mutations."""

    def current_user(self) -> UserIdentity | None: ...


class AuthSession:
    """
    Authenticated operator session.

    Attributes:
        token: Bearer token, or None when logged out.
        user: Acting user, or None when logged out.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        storage: DiskCache | None = None,
        key: str = _SESSION_KEY,
    ) -> None:
        """
        Initialize a logged-out session.

        Args:
            authenticator: Performs the login exchange.
            storage: Where the session is persisted; None disables persistence.
            key: Storage key, one per browser client.
        """
        self._authenticator = authenticator
        self._storage = storage
        self._key = key
        self.token: str | None = None
        self.user: UserIdentity | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    def current_token(self) -> str | None:
        return self.token if self.is_authenticated else None

    def current_user(self) -> UserIdentity | None:
        return self.user if self.is_authenticated else None

    async def login(self, username: str, password: str) -> UserIdentity:
        """
        Log an operator in and persist the session.

        Raises:
            AuthenticationError: Credentials rejected or missing.
            ConnectivityError: Backend unreachable.
        """
        result = await self._authenticator.login(username, password)
        if isinstance(result, Err):
            LOG.info("Login failed - username:%s kind:%s", username, result.kind.value)
            raise result.to_exception()
        self._apply(result.data)
        self._persist()
        LOG.info("Login succeeded - username:%s", self.user.username)
        return self.user

    def logout(self) -> None:
        """Forget the identity and the persisted session."""
        if self.user is not None:
            LOG.info("Logout - username:%s", self.user.username)
        self.token = None
        self.user = None
        self._forget()

    def expire(self) -> None:
        """Drop a session the backend no longer accepts."""
        LOG.warning("Session expired - forcing re-authentication")
        self.logout()

    def restore(self) -> bool:
        """
        Load the persisted session.

        Returns:
            True when a valid session was restored.
        """
        if self._storage is None:
            return False
        try:
            entry = self._storage.get(self._key)
        except Exception:
            LOG.warning("Persisted session unreadable; starting logged out", exc_info=True)
            self._forget()
            return False
        if entry is None:
            return False

        data = entry.value if isinstance(entry.value, dict) else {}
        token = data.get("token")
        user = UserIdentity.from_dict(data.get("user"))
        if not isinstance(token, str) or not token or user is None:
            LOG.warning("Persisted session malformed; starting logged out")
            self._forget()
            return False

        self._apply(LoginGrant(token=token, user=user))
        self._refresh()
        LOG.info("Session restored - username:%s", user.username)
        return True

    def _apply(self, grant: LoginGrant) -> None:
        self.token = grant.token
        self.user = grant.user

    def _persist(self) -> None:
        if self._storage is None or not self.is_authenticated:
            return
        try:
            self._storage.set(
                self._key,
                {"token": self.token, "user": self.user.to_dict()},
                expire=_SESSION_TTL,
            )
        except Exception:
            LOG.warning("Could not persist session", exc_info=True)

    def _refresh(self) -> None:
        # A restored session gets a full TTL again
        try:
            self._storage.touch(self._key, expire=_SESSION_TTL)
        except Exception:
            LOG.warning("Could not refresh persisted session", exc_info=True)

    def _forget(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.delete(self._key)
        except Exception:
            LOG.warning("Could not clear persisted session", exc_info=True)

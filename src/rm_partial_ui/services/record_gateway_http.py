"""
HTTP implementation of RecordGateway and Authenticator.

Talks to the RM backend:
- GET  /api/rm/search?runno=N      (bearer token)
- POST /api/rm/remove               (bearer token)
- GET  /api/health                  (no token)
- POST /api/auth/login

Every backend envelope has the shape {success, data?, error?, details?}.
Responses are normalized into Ok / Err here so that nothing above this
module looks at raw response fields.

Environment Variables:
    RM_UI_API_URL: Backend base URL (default http://localhost:8080)
    RM_UI_TIMEOUT: Request timeout in seconds (default 30)
"""

import os
from typing import Any, Sequence

import httpx
from benedict import benedict

from rm_partial_ui.lib import logs
from rm_partial_ui.models.auth import LoginGrant, UserIdentity
from rm_partial_ui.models.common import Err, ErrorKind, Ok, Result
from rm_partial_ui.models.rm import RMLine, RowKey, parse_line
from rm_partial_ui.services.record_gateway import (
    Authenticator,
    RecordGateway,
    TokenProvider,
    validate_run_no,
)

LOG = logs.logger(__file__)

API_URL = os.getenv("RM_UI_API_URL", "http://localhost:8080")
REQUEST_TIMEOUT = float(os.getenv("RM_UI_TIMEOUT", "30"))
HEALTH_TIMEOUT = 5.0

_CONNECTIVITY_MESSAGE = "Unable to connect to server. Please check your connection."
_TIMEOUT_MESSAGE = "The server did not respond in time. Please try again."
_SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."
_UNAUTHENTICATED_MESSAGE = "Not authenticated. Please log in."


class _HttpBackend:
    """Owns the shared httpx client and the transport-level error mapping."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or API_URL).rstrip("/")
        self.timeout = REQUEST_TIMEOUT if timeout is None else timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http

    async def _send(
        self, method: str, path: str, **kwargs: Any
    ) -> httpx.Response | Err:
        """Send a request, mapping transport failures to CONNECTIVITY errors."""
        try:
            return await self._client().request(method, path, **kwargs)
        except httpx.TimeoutException:
            LOG.warning("%s %s timed out", method, path)
            return Err(ErrorKind.CONNECTIVITY, _TIMEOUT_MESSAGE)
        except httpx.TransportError as e:
            LOG.warning("%s %s failed: %s", method, path, e)
            return Err(ErrorKind.CONNECTIVITY, _CONNECTIVITY_MESSAGE)

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None


class HttpRecordGateway(_HttpBackend, RecordGateway):
    """
    Record gateway backed by the RM HTTP API.

    Attributes:
        base_url: Backend base URL.
        timeout: Request timeout in seconds; timeouts are connectivity failures.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            token_provider: Returns the current bearer token, or None.
            base_url: Backend URL; defaults to RM_UI_API_URL.
            timeout: Request timeout; defaults to RM_UI_TIMEOUT.
            transport: Optional httpx transport (used by tests).
        """
        super().__init__(base_url, timeout, transport)
        self._token_provider = token_provider

    async def search_records(self, run_no: int) -> Result[list[RMLine]]:
        if invalid := validate_run_no(run_no):
            return invalid
        headers = self._auth_headers()
        if isinstance(headers, Err):
            return headers

        LOG.info("Searching RM lines - run_no:%s", run_no)
        response = await self._send(
            "GET", "/api/rm/search", params={"runno": run_no}, headers=headers
        )
        if isinstance(response, Err):
            return response

        envelope = _parse_envelope(response, "Search failed")
        if isinstance(envelope, Err):
            return envelope

        lines = _parse_lines(envelope.data.get("data"))
        if lines is None:
            LOG.warning("Search returned malformed records - run_no:%s", run_no)
            return Err(
                ErrorKind.BACKEND,
                "Search failed: invalid response from server",
                status_code=response.status_code,
            )
        LOG.info("Search complete - run_no:%s lines:%s", run_no, len(lines))
        return Ok(lines)

    async def remove_records(
        self, run_no: int, items: Sequence[RowKey], acting_user: str
    ) -> Result[int]:
        if invalid := validate_run_no(run_no):
            return invalid
        if not items:
            return Err(ErrorKind.VALIDATION, "No rows selected")
        headers = self._auth_headers()
        if isinstance(headers, Err):
            return headers

        payload = {
            "run_no": run_no,
            "items": [key.to_item() for key in items],
            "user_logon": acting_user,
        }
        LOG.info(
            "Removing RM lines - run_no:%s items:%s user:%s",
            run_no,
            len(items),
            acting_user,
        )
        response = await self._send(
            "POST", "/api/rm/remove", json=payload, headers=headers
        )
        if isinstance(response, Err):
            return response

        envelope = _parse_envelope(response, "Remove operation failed")
        if isinstance(envelope, Err):
            return envelope

        affected = _affected_count(envelope.data, len(items))
        LOG.info("Remove complete - run_no:%s affected:%s", run_no, affected)
        return Ok(affected)

    async def check_health(self) -> bool:
        try:
            response = await self._client().get("/api/health", timeout=HEALTH_TIMEOUT)
        except httpx.TransportError as e:
            LOG.warning("Health check failed: %s", e)
            return False
        return response.status_code == 200

    def _auth_headers(self) -> dict[str, str] | Err:
        token = self._token_provider()
        if not token:
            return Err(ErrorKind.UNAUTHENTICATED, _UNAUTHENTICATED_MESSAGE)
        return {"Authorization": f"Bearer {token}"}


class HttpAuthenticator(_HttpBackend, Authenticator):
    """Logs operators in against POST /api/auth/login."""

    async def login(self, username: str, password: str) -> Result[LoginGrant]:
        LOG.info("Login attempt - username:%s", username)
        response = await self._send(
            "POST",
            "/api/auth/login",
            json={"username": username, "password": password},
        )
        if isinstance(response, Err):
            return response

        body = _json_body(response)
        if (
            not response.is_success
            or body is None
            or not body.get("success")
            or not body.get("token")
        ):
            message = _message(body) or f"Authentication failed ({response.status_code})"
            LOG.info("Login rejected - username:%s", username)
            return Err(
                ErrorKind.UNAUTHENTICATED, message, status_code=response.status_code
            )

        user = UserIdentity(
            username=body.get("user.username") or username.lower(),
            display_name=body.get("user.display_name") or username,
        )
        return Ok(LoginGrant(token=body["token"], user=user))


def _parse_envelope(response: httpx.Response, fallback: str) -> Ok[benedict] | Err:
    """
    Normalize a backend response into Ok(body) or Err.

    Args:
        response: Raw HTTP response.
        fallback: Message used when the backend supplies none.
    """
    if response.status_code == 401:
        return Err(ErrorKind.SESSION_EXPIRED, _SESSION_EXPIRED_MESSAGE, status_code=401)

    body = _json_body(response)
    if not response.is_success:
        return Err(
            ErrorKind.BACKEND,
            _message(body) or f"{fallback} ({response.status_code})",
            details=_details(body),
            status_code=response.status_code,
        )
    if body is None:
        return Err(
            ErrorKind.BACKEND,
            f"{fallback}: invalid response from server",
            status_code=response.status_code,
        )
    if not body.get("success"):
        return Err(
            ErrorKind.BACKEND,
            _message(body) or fallback,
            details=_details(body),
            status_code=response.status_code,
        )
    return Ok(body)


def _json_body(response: httpx.Response) -> benedict | None:
    """Return the JSON object body, or None when it is absent or not an object."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return benedict(data, keyattr_dynamic=True)


def _message(body: benedict | None) -> str | None:
    if body is None:
        return None
    return body.get("error") or body.get("message") or None


def _details(body: benedict | None) -> str | None:
    if body is None:
        return None
    details = body.get("details")
    return str(details) if details else None


def _parse_lines(data: Any) -> list[RMLine] | None:
    """Parse the search records, or return None when any record is malformed."""
    if data is None:
        return []
    if not isinstance(data, list):
        return None
    try:
        return [parse_line(item) for item in data]
    except (TypeError, ValueError):
        return None


def _affected_count(body: benedict, requested: int) -> int:
    """
    Return the backend-reported affected count.

    Older backends name the field affected_rows. When neither field holds
    an integer the requested count is reported instead: the backend has
    already confirmed the removal.
    """
    for field in ("affected_count", "affected_rows"):
        value = body.get(field)
        if value is None:
            continue
        if not isinstance(value, bool):
            try:
                return int(value)
            except (TypeError, ValueError):
                pass
        LOG.warning("Ignoring non-integer %s: %r", field, value)
    LOG.info("Backend omitted affected_count; reporting requested count %s", requested)
    return requested

"""
Demo implementation of RecordGateway and Authenticator.

Keeps RM lines in memory so the UI can be exercised without a backend:
- Local development
- Demonstrations and UI walkthroughs

Removals mutate the in-memory copy, so a removed line stays gone for the
lifetime of the gateway. The reported affected count is the number of lines
actually found, which can be lower than the number requested.
"""

import asyncio
from typing import Mapping, Sequence

from rm_partial_ui.data.demo_lines import DEMO_LINES
from rm_partial_ui.lib import logs
from rm_partial_ui.models.auth import LoginGrant, UserIdentity
from rm_partial_ui.models.common import Err, ErrorKind, Ok, Result
from rm_partial_ui.models.rm import RMLine, RowKey
from rm_partial_ui.services.record_gateway import (
    Authenticator,
    RecordGateway,
    TokenProvider,
    validate_run_no,
)

LOG = logs.logger(__file__)


class DemoRecordGateway(RecordGateway):
    """
    In-memory record gateway backed by static demo data.

    Attributes:
        latency: Simulated round-trip delay in seconds.
    """

    def __init__(
        self,
        token_provider: TokenProvider | None = None,
        lines: Mapping[int, Sequence[RMLine]] | None = None,
        latency: float = 0.0,
    ) -> None:
        """
        Initialize with demo data.

        Args:
            token_provider: When given, calls fail without a token like the
                live gateway does.
            lines: Lines keyed by run number, or None to use DEMO_LINES.
            latency: Simulated delay applied to every call.
        """
        source = DEMO_LINES if lines is None else lines
        self._lines: dict[int, list[RMLine]] = {
            run_no: list(run_lines) for run_no, run_lines in source.items()
        }
        self._token_provider = token_provider
        self.latency = latency

    async def search_records(self, run_no: int) -> Result[list[RMLine]]:
        if invalid := validate_run_no(run_no) or self._check_token():
            return invalid
        await self._simulate_latency()
        return Ok(list(self._lines.get(run_no, [])))

    async def remove_records(
        self, run_no: int, items: Sequence[RowKey], acting_user: str
    ) -> Result[int]:
        if invalid := validate_run_no(run_no) or self._check_token():
            return invalid
        await self._simulate_latency()

        keys = set(items)
        current = self._lines.get(run_no, [])
        remaining = [line for line in current if line.key not in keys]
        self._lines[run_no] = remaining
        affected = len(current) - len(remaining)
        LOG.info(
            "Demo remove - run_no:%s requested:%s affected:%s user:%s",
            run_no,
            len(keys),
            affected,
            acting_user,
        )
        return Ok(affected)

    def _check_token(self) -> Err | None:
        if self._token_provider is not None and not self._token_provider():
            return Err(ErrorKind.UNAUTHENTICATED, "Not authenticated. Please log in.")
        return None

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)


class DemoAuthenticator(Authenticator):
    """Accepts any non-empty credentials."""

    async def login(self, username: str, password: str) -> Result[LoginGrant]:
        username = (username or "").strip()
        if not username or not password:
            return Err(ErrorKind.UNAUTHENTICATED, "Username and password are required")
        return Ok(
            LoginGrant(
                token=f"demo-token-{username.lower()}",
                user=UserIdentity(username=username.lower(), display_name=username),
            )
        )

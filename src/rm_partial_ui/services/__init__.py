"""
Service factory for the RM Partial Picking UI.

Provides get_record_gateway() and get_authenticator(), which return the
implementation selected by name or by the RM_UI_SERVICE environment
variable.

Available Implementations:
- demo: In-memory lines, any non-empty credentials log in
- http: Live RM backend at RM_UI_API_URL
"""

import os
from functools import cache
from typing import Callable, Dict

from rm_partial_ui.lib import logs
from rm_partial_ui.services.record_gateway import (
    Authenticator,
    RecordGateway,
    TokenProvider,
)
from rm_partial_ui.services.record_gateway_demo import (
    DemoAuthenticator,
    DemoRecordGateway,
)
from rm_partial_ui.services.record_gateway_http import (
    HttpAuthenticator,
    HttpRecordGateway,
)

LOG = logs.logger(__file__)

_GATEWAY_REGISTRY: Dict[str, Callable[[TokenProvider], RecordGateway]] = {
    "demo": lambda token_provider: DemoRecordGateway(token_provider, latency=0.3),
    "http": lambda token_provider: HttpRecordGateway(token_provider),
}

_AUTHENTICATOR_REGISTRY: Dict[str, Callable[[], Authenticator]] = {
    "demo": lambda: DemoAuthenticator(),
    "http": lambda: HttpAuthenticator(),
}


def resolve_kind(kind: str | None = None) -> str:
    """Return the service kind to use, defaulting to RM_UI_SERVICE or "http"."""
    return (kind or os.getenv("RM_UI_SERVICE", "http")).strip().lower()


def get_record_gateway(
    token_provider: TokenProvider, kind: str | None = None
) -> RecordGateway:
    """
    Return a new record gateway of the configured kind.

    Raises:
        ValueError: If the kind is not registered.
    """
    resolved_kind = resolve_kind(kind)
    LOG.info("get_record_gateway - kind:%s resolved_kind:%s", kind, resolved_kind)
    try:
        factory = _GATEWAY_REGISTRY[resolved_kind]
    except KeyError as exc:
        msg = f"Unknown record gateway kind: {resolved_kind}"
        raise ValueError(msg) from exc
    return factory(token_provider)


def get_authenticator(kind: str | None = None) -> Authenticator:
    """
    Return the configured authenticator (one instance per kind).

    Raises:
        ValueError: If the kind is not registered.
    """
    return _authenticator(resolve_kind(kind))


@cache
def _authenticator(resolved_kind: str) -> Authenticator:
    LOG.info("get_authenticator - resolved_kind:%s", resolved_kind)
    try:
        factory = _AUTHENTICATOR_REGISTRY[resolved_kind]
    except KeyError as exc:
        msg = f"Unknown authenticator kind: {resolved_kind}"
        raise ValueError(msg) from exc
    return factory()


__all__ = [
    "Authenticator",
    "DemoAuthenticator",
    "DemoRecordGateway",
    "HttpAuthenticator",
    "HttpRecordGateway",
    "RecordGateway",
    "TokenProvider",
    "get_authenticator",
    "get_record_gateway",
    "resolve_kind",
]

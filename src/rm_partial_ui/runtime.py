"""
Per-client runtime objects behind the Reflex state.

Reflex state must stay serializable, so the live objects (authentication
session, record store, notification channel and gateway) are kept here,
keyed by the browser's client token. Runtimes are created on first use,
released when the client logs out or its session expires, and closed
together at application shutdown. At most RM_UI_MAX_CLIENTS runtimes are
kept; the least recently used one is closed when the limit is exceeded.
"""

import asyncio
import contextlib
import os
from collections import OrderedDict
from dataclasses import dataclass, field

from rm_partial_ui.auth import AuthSession
from rm_partial_ui.lib import logs, paths
from rm_partial_ui.lib.caches import DiskCache
from rm_partial_ui.notifications import Notification, NotificationChannel
from rm_partial_ui.services import get_authenticator, get_record_gateway
from rm_partial_ui.services.record_gateway import RecordGateway
from rm_partial_ui.store import RecordStore

LOG = logs.logger(__file__)

MAX_CLIENTS = int(os.getenv("RM_UI_MAX_CLIENTS", "500"))

_RUNTIMES: OrderedDict[str, "ClientRuntime"] = OrderedDict()
_CLOSING: set[asyncio.Task] = set()
_STORAGE: DiskCache | None = None


@dataclass
class ClientRuntime:
    """
    Live objects for one browser client.

    Attributes:
        auth: Authentication session for the client.
        store: Record store bound to the client's session.
        notifications: Channel the store publishes toasts to.
        pending: Notifications not yet shown in the browser.
    """

    auth: AuthSession
    gateway: RecordGateway
    store: RecordStore
    notifications: NotificationChannel
    pending: list[Notification] = field(default_factory=list)

    @classmethod
    def create(cls, client_token: str, kind: str | None = None) -> "ClientRuntime":
        """Build and wire the runtime for a client, restoring its login."""
        auth = AuthSession(
            get_authenticator(kind), _storage(), key=f"auth_session:{client_token}"
        )
        auth.restore()
        gateway = get_record_gateway(auth.current_token, kind)
        notifications = NotificationChannel()
        notifications.open()
        runtime = cls(
            auth=auth,
            gateway=gateway,
            store=RecordStore(gateway, auth, notifications),
            notifications=notifications,
        )
        notifications.subscribe(runtime.pending.append)
        return runtime

    def drain(self) -> list[Notification]:
        """Return and forget the notifications published since the last call."""
        drained = list(self.pending)
        self.pending.clear()
        return drained

    async def aclose(self) -> None:
        self.notifications.close()
        await self.gateway.aclose()


def get_runtime(client_token: str) -> ClientRuntime:
    """Return the runtime for a client, creating it on first use."""
    runtime = _RUNTIMES.get(client_token)
    if runtime is not None:
        _RUNTIMES.move_to_end(client_token)
        return runtime

    LOG.info("Creating client runtime - clients:%s", len(_RUNTIMES) + 1)
    runtime = ClientRuntime.create(client_token)
    _RUNTIMES[client_token] = runtime
    while len(_RUNTIMES) > MAX_CLIENTS:
        _, evicted = _RUNTIMES.popitem(last=False)
        LOG.info("Evicting least recently used client runtime")
        _schedule_close(evicted)
    return runtime


async def release_runtime(client_token: str) -> None:
    """Close and forget a client's runtime; unknown clients are ignored."""
    runtime = _RUNTIMES.pop(client_token, None)
    if runtime is None:
        return
    LOG.info("Releasing client runtime - clients:%s", len(_RUNTIMES))
    await runtime.aclose()


async def close_runtimes() -> None:
    """Close every client runtime and the shared session storage."""
    global _STORAGE
    LOG.info("Closing %s client runtimes", len(_RUNTIMES))
    while _RUNTIMES:
        _, runtime = _RUNTIMES.popitem()
        await runtime.aclose()
    if _CLOSING:
        await asyncio.gather(*_CLOSING)
    await get_authenticator().aclose()
    if _STORAGE is not None:
        _STORAGE.close()
        _STORAGE = None


@contextlib.asynccontextmanager
async def lifespan():
    """Application lifespan: runtimes live until the server shuts down."""
    try:
        yield
    finally:
        await close_runtimes()


def _storage() -> DiskCache:
    global _STORAGE
    if _STORAGE is None:
        _STORAGE = DiskCache(paths.session_dir())
    return _STORAGE


def _schedule_close(runtime: ClientRuntime) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # Outside an event loop only the channel can be closed
        runtime.notifications.close()
        return
    task = loop.create_task(runtime.aclose())
    _CLOSING.add(task)
    task.add_done_callback(_CLOSING.discard)

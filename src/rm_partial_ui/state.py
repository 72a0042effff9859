"""
Reflex state management for the RM Partial Picking UI.

RMState mirrors the client's RecordStore into serializable vars and turns
UI events into store operations. It never edits rows or selection itself:
every change goes through the store and is copied back by _sync().
"""

import os
from typing import Any

import reflex as rx

from rm_partial_ui.errors import RMError, SessionExpiredError
from rm_partial_ui.lib import logs
from rm_partial_ui.models.auth import UserIdentity
from rm_partial_ui.models.common import ErrorKind
from rm_partial_ui.models.rm import (
    RowKey,
    is_selectable,
    selectable_keys,
    serialize_line,
)
from rm_partial_ui.notifications import Notification, NotificationKind
from rm_partial_ui.runtime import ClientRuntime, get_runtime, release_runtime
from rm_partial_ui.store import SearchSession, StoreStatus

LOG = logs.logger(__file__)

USE_DEMO = os.getenv("RM_UI_SERVICE", "http").lower() == "demo"

APP_TITLE = "RM Partial Picking"
APP_SUBTITLE = (
    "Search a production run and remove partial picks that were never picked."
)
SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."

_TOASTS = {
    NotificationKind.SUCCESS: rx.toast.success,
    NotificationKind.ERROR: rx.toast.error,
    NotificationKind.INFO: rx.toast.info,
    NotificationKind.WARNING: rx.toast.warning,
}


class RMState(rx.State):
    """
    Main application state for the RM Partial Picking UI.

    Handles login, run search, row selection and the remove dialog.
    """

    # Identity
    is_authenticated: bool = False
    display_name: str = ""
    login_error: str = ""
    login_pending: bool = False

    # Search
    run_no_input: str = ""
    input_error: str = ""
    run_no: int = 0
    rows: list[dict[str, Any]] = []
    status: str = StoreStatus.IDLE.value
    error: str = ""
    notice: str = ""
    has_searched: bool = False
    selectable_count: int = 0
    selected_count: int = 0
    all_selected: bool = False

    # Remove dialog
    dialog_open: bool = False
    dialog_error: str = ""

    backend_healthy: bool = True

    @rx.var
    def is_loading(self) -> bool:
        return self.status == StoreStatus.LOADING.value

    @rx.var
    def is_removing(self) -> bool:
        return self.status == StoreStatus.REMOVING.value

    @rx.var
    def can_remove(self) -> bool:
        return self.selected_count > 0 and self.status == StoreStatus.IDLE.value

    @rx.var
    def result_summary(self) -> str:
        """Generate summary text for the loaded run."""
        noun = "line" if len(self.rows) == 1 else "lines"
        return (
            f"{len(self.rows)} {noun} for RunNo {self.run_no}, "
            f"{self.selectable_count} removable, {self.selected_count} selected"
        )

    # ------------------------------------------------------------------
    # Page and login events
    # ------------------------------------------------------------------

    @rx.event
    async def on_load(self):
        """Restore the session; anonymous visitors go to the login page."""
        runtime = _runtime(self)
        _sync(self, runtime)
        if not self.is_authenticated:
            return rx.redirect("/login")
        self.backend_healthy = await runtime.gateway.check_health()
        if not self.backend_healthy:
            LOG.warning("Backend health check failed")

    @rx.event
    async def login(self, form_data: dict):
        """Log in with the submitted username and password."""
        self.login_pending = True
        self.login_error = ""
        yield

        runtime = _runtime(self)
        try:
            await runtime.auth.login(
                str(form_data.get("username", "")).strip(),
                str(form_data.get("password", "")),
            )
        except RMError as e:
            self.login_error = e.message
            return
        finally:
            self.login_pending = False

        _sync(self, runtime)
        yield rx.redirect("/")

    @rx.event
    async def logout(self):
        """Log out and release the client's runtime."""
        runtime = _runtime(self)
        runtime.auth.logout()
        await _release(self)
        self.run_no_input = ""
        self.dialog_open = False
        return rx.redirect("/login")

    # ------------------------------------------------------------------
    # Search events
    # ------------------------------------------------------------------

    @rx.event
    def set_run_no_input(self, value: str):
        self.run_no_input = value
        self.input_error = ""

    @rx.event
    async def search(self, form_data: dict | None = None):
        """
        Validate the run number and load its lines.

        Yields an intermediate state so the loading indicator shows while
        the request is in flight.
        """
        if form_data and "run_no" in form_data:
            self.run_no_input = str(form_data["run_no"])
        run_no = _parse_run_no(self.run_no_input)
        if run_no is None:
            self.input_error = "Enter a positive whole RunNo."
            return
        self.input_error = ""

        runtime = _runtime(self)
        if runtime.store.status is StoreStatus.REMOVING:
            return
        self.status = StoreStatus.LOADING.value
        self.rows = []
        yield

        try:
            await runtime.store.search(run_no)
        finally:
            _sync(self, runtime)
        if runtime.store.error_kind is ErrorKind.SESSION_EXPIRED:
            yield await _expire_session(self, runtime)
            return
        yield _toasts(runtime)

    @rx.event
    def reset_search(self):
        runtime = _runtime(self)
        runtime.store.reset()
        self.run_no_input = ""
        _sync(self, runtime)

    @rx.event
    def dismiss_error(self):
        runtime = _runtime(self)
        runtime.store.clear_error()
        _sync(self, runtime)

    # ------------------------------------------------------------------
    # Selection events
    # ------------------------------------------------------------------

    @rx.event
    def toggle_row(self, token: str):
        runtime = _runtime(self)
        key = RowKey.parse(token)
        runtime.store.toggle_selection(key.row_num, key.line_id)
        _sync(self, runtime)

    @rx.event
    def toggle_all(self, checked: bool):
        runtime = _runtime(self)
        if checked:
            runtime.store.select_all()
        else:
            runtime.store.clear_selection()
        _sync(self, runtime)

    # ------------------------------------------------------------------
    # Remove dialog events
    # ------------------------------------------------------------------

    @rx.event
    def open_remove_dialog(self):
        store = _runtime(self).store
        if store.is_busy or store.selected_count == 0:
            return
        self.dialog_error = ""
        self.dialog_open = True

    @rx.event
    def set_dialog_open(self, is_open: bool):
        # The dialog cannot be dismissed while the removal is running
        if not is_open and _runtime(self).store.status is StoreStatus.REMOVING:
            return
        self.dialog_open = is_open
        if not is_open:
            self.dialog_error = ""

    @rx.event
    async def confirm_remove(self):
        """
        Remove the selected lines.

        The dialog closes on success and stays open with the error message
        on failure.
        """
        runtime = _runtime(self)
        if runtime.store.is_busy:
            return
        self.dialog_error = ""
        self.status = StoreStatus.REMOVING.value
        yield

        try:
            await runtime.store.remove()
        except SessionExpiredError:
            self.dialog_open = False
            yield await _expire_session(self, runtime)
            return
        except RMError as e:
            self.dialog_error = e.message
            _sync(self, runtime)
            yield _toasts(runtime)
            return

        self.dialog_open = False
        _sync(self, runtime)
        yield _toasts(runtime)


def _runtime(state: RMState) -> ClientRuntime:
    return get_runtime(state.router.session.client_token)


async def _release(state: RMState) -> None:
    """Close the client's runtime and show the logged-out, empty state."""
    await release_runtime(state.router.session.client_token)
    _apply(state, SearchSession(), None)


def _sync(state: RMState, runtime: ClientRuntime) -> None:
    """Copy the store and identity into state vars."""
    _apply(state, runtime.store.snapshot(), runtime.auth.current_user())


def _apply(state: RMState, session: SearchSession, user: UserIdentity | None) -> None:
    state.is_authenticated = user is not None
    state.display_name = user.label if user else ""

    state.run_no = session.run_no or 0
    state.status = session.status.value
    state.error = session.error or ""
    state.notice = session.notice or ""
    state.has_searched = session.has_searched
    state.rows = [
        {
            **serialize_line(line),
            "key": line.key.token,
            "selectable": is_selectable(line),
            "selected": line.key in session.selection,
        }
        for line in session.lines
    ]
    eligible = selectable_keys(session.lines)
    state.selectable_count = len(eligible)
    state.selected_count = len(session.selection)
    state.all_selected = bool(eligible) and session.selection == eligible


async def _expire_session(state: RMState, runtime: ClientRuntime):
    runtime.auth.expire()
    await _release(state)
    state.login_error = SESSION_EXPIRED_MESSAGE
    return rx.redirect("/login")


def _toasts(runtime: ClientRuntime) -> list:
    return [_toast(notification) for notification in runtime.drain()]


def _toast(notification: Notification):
    show = _TOASTS[notification.kind]
    return show(notification.title, description=notification.message or None)


def _parse_run_no(value: str | None) -> int | None:
    """Return the run number typed by the operator, or None when invalid."""
    value = (value or "").strip()
    if not value.isdecimal():
        return None
    run_no = int(value)
    return run_no if run_no > 0 else None

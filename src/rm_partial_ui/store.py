"""
Record store: the client-side lifecycle controller for RM partial picks.

RecordStore owns one SearchSession (the run being viewed, its lines, the
selection and the status) and is the only code that changes it. Consumers
read the session through properties or snapshot() and act on it through
the operations below:

- search(run_no): load a run, replacing the session
- set_selection / toggle_selection / select_all / clear_selection
- remove(): remove the selected lines, mutating the session only after the
  backend confirms
- reset(): return to the pre-search state

Selection is tracked by RowKey (RowNum, LineId) and is always a subset of
the eligible lines in the current result set.

Status transitions:

    idle(no search) --search--> loading --> idle | error
    idle | error | loading --search--> loading      (older search discarded)
    idle --remove--> removing --> idle | error
    any --reset--> idle(no search)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

from rm_partial_ui.auth import IdentityProvider
from rm_partial_ui.errors import ValidationError
from rm_partial_ui.lib import logs
from rm_partial_ui.models.auth import UserIdentity
from rm_partial_ui.models.common import Err, ErrorKind, RemoveResult
from rm_partial_ui.models.rm import RMLine, RowKey, is_selectable, selectable_keys
from rm_partial_ui.notifications import Notification, NotificationChannel
from rm_partial_ui.services.record_gateway import RecordGateway

LOG = logs.logger(__file__)

NO_RECORDS_MESSAGE = "No records found for RunNo: {run_no}"


class StoreStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    REMOVING = "removing"
    ERROR = "error"


@dataclass(frozen=True)
class SearchSession:
    """
    Immutable view of the store's state.

    Attributes:
        run_no: Run being viewed, or None before the first search.
        lines: Current result set.
        selection: Selected composite keys.
        status: Lifecycle status.
        error: User-facing error message of the last failed operation.
        error_kind: Classification of that failure.
        notice: Informational message, e.g. a search with no results.
        has_searched: False until the first search starts.
    """

    run_no: int | None = None
    lines: tuple[RMLine, ...] = ()
    selection: frozenset[RowKey] = frozenset()
    status: StoreStatus = StoreStatus.IDLE
    error: str | None = None
    error_kind: ErrorKind | None = None
    notice: str | None = None
    has_searched: bool = False


class RecordStore:
    """
    Owns the search session for one operator.

    Operations run on a single asyncio loop and only change state after the
    awaited gateway call resolves.
    """

    def __init__(
        self,
        gateway: RecordGateway,
        identity: IdentityProvider,
        notifications: NotificationChannel | None = None,
    ) -> None:
        """
        Args:
            gateway: Backend adapter used for search and remove.
            identity: Supplies the acting user for removals.
            notifications: Optional channel receiving toast messages.
        """
        self._gateway = gateway
        self._identity = identity
        self._notifications = notifications
        self._session = SearchSession()
        # Bumped by search() and reset(); results from older generations are dropped
        self._generation = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def snapshot(self) -> SearchSession:
        return self._session

    @property
    def lines(self) -> tuple[RMLine, ...]:
        return self._session.lines

    @property
    def selection(self) -> frozenset[RowKey]:
        return self._session.selection

    @property
    def status(self) -> StoreStatus:
        return self._session.status

    @property
    def error(self) -> str | None:
        return self._session.error

    @property
    def error_kind(self) -> ErrorKind | None:
        return self._session.error_kind

    @property
    def notice(self) -> str | None:
        return self._session.notice

    @property
    def run_no(self) -> int | None:
        return self._session.run_no

    @property
    def has_searched(self) -> bool:
        return self._session.has_searched

    @property
    def is_busy(self) -> bool:
        return self._session.status in (StoreStatus.LOADING, StoreStatus.REMOVING)

    @property
    def selectable_count(self) -> int:
        return sum(1 for line in self._session.lines if is_selectable(line))

    @property
    def selected_count(self) -> int:
        return len(self._session.selection)

    @property
    def is_all_selected(self) -> bool:
        eligible = selectable_keys(self._session.lines)
        return bool(eligible) and self._session.selection == eligible

    def is_selected(self, row_num: int, line_id: int) -> bool:
        return RowKey(row_num, line_id) in self._session.selection

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, run_no: int) -> None:
        """
        Load the lines of a run, replacing the current session.

        Failures are recorded on the session (status ERROR) rather than
        raised. A search with no results is not a failure: it sets the
        notice "No records found for RunNo: N".

        Raises:
            ValidationError: A removal is in progress.
        """
        if self._session.status is StoreStatus.REMOVING:
            raise ValidationError("Cannot search while a removal is in progress")

        self._generation += 1
        generation = self._generation
        self._session = SearchSession(
            run_no=run_no, status=StoreStatus.LOADING, has_searched=True
        )
        LOG.info("Search started - run_no:%s generation:%s", run_no, generation)

        try:
            result = await self._gateway.search_records(run_no)
        except Exception:
            LOG.error("Search failed - run_no:%s", run_no, exc_info=True)
            if generation == self._generation:
                self._fail(Err(ErrorKind.BACKEND, "Failed to load data"), clear_lines=True)
            raise

        if generation != self._generation:
            LOG.info("Discarding superseded search - run_no:%s", run_no)
            return

        if isinstance(result, Err):
            LOG.warning("Search failed - run_no:%s error:%s", run_no, result.message)
            self._fail(result, clear_lines=True)
            self._notify(Notification.error("Search failed", result.message))
            return

        lines = _unique_lines(result.data)
        notice = None if lines else NO_RECORDS_MESSAGE.format(run_no=run_no)
        self._session = replace(
            self._session, lines=lines, status=StoreStatus.IDLE, notice=notice
        )
        LOG.info(
            "Search complete - run_no:%s lines:%s selectable:%s",
            run_no,
            len(lines),
            self.selectable_count,
        )
        if notice:
            self._notify(Notification.info("No records", notice))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def set_selection(self, keys: Iterable[RowKey]) -> None:
        """Replace the selection, keeping only keys of eligible lines present now."""
        requested = frozenset(keys)
        selection = requested & selectable_keys(self._session.lines)
        if len(selection) != len(requested):
            LOG.debug(
                "Dropped %s ineligible or unknown keys from selection",
                len(requested) - len(selection),
            )
        self._session = replace(self._session, selection=selection)

    def toggle_selection(self, row_num: int, line_id: int) -> None:
        """Flip one key; ignored when the line is absent or ineligible."""
        key = RowKey(row_num, line_id)
        if key not in selectable_keys(self._session.lines):
            LOG.debug("Ignoring toggle of unselectable row %s", key.token)
            return
        self._session = replace(self._session, selection=self._session.selection ^ {key})

    def select_all(self) -> None:
        self._session = replace(
            self._session, selection=selectable_keys(self._session.lines)
        )

    def clear_selection(self) -> None:
        self._session = replace(self._session, selection=frozenset())

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    async def remove(self) -> RemoveResult:
        """
        Remove the selected lines.

        Local state changes only after the backend confirms. On failure the
        lines and selection are left untouched, the error is recorded on the
        session and then raised.

        Returns:
            RemoveResult with the backend-reported affected count.

        Raises:
            ValidationError: A precondition is unmet (nothing selected, no run
                loaded, no acting user, or another operation in progress).
                No request is sent.
            RMError: The gateway call failed.
        """
        session = self._session
        user = self._check_remove_preconditions(session)

        items = tuple(sorted(session.selection))
        generation = self._generation
        self._session = replace(
            session,
            status=StoreStatus.REMOVING,
            error=None,
            error_kind=None,
            notice=None,
        )
        LOG.info(
            "Remove started - run_no:%s items:%s user:%s",
            session.run_no,
            len(items),
            user.username,
        )

        try:
            result = await self._gateway.remove_records(
                session.run_no, items, user.username
            )
        except Exception:
            LOG.error("Remove failed - run_no:%s", session.run_no, exc_info=True)
            if generation == self._generation:
                self._fail(Err(ErrorKind.BACKEND, "Failed to remove records"))
            raise

        if isinstance(result, Err):
            LOG.warning(
                "Remove failed - run_no:%s error:%s", session.run_no, result.message
            )
            if generation == self._generation:
                self._fail(result)
            self._notify(Notification.error("Remove failed", result.message))
            raise result.to_exception()

        outcome = RemoveResult(affected_count=result.data, requested_count=len(items))
        if generation == self._generation:
            removed = set(items)
            self._session = replace(
                self._session,
                lines=tuple(
                    line for line in self._session.lines if line.key not in removed
                ),
                selection=frozenset(),
                status=StoreStatus.IDLE,
            )
        else:
            LOG.info("Session reset during remove; local lines left as they are")

        LOG.info(
            "Remove complete - run_no:%s requested:%s affected:%s",
            session.run_no,
            outcome.requested_count,
            outcome.affected_count,
        )
        self._notify(
            Notification.success(
                "Removal successful",
                f"Removed {outcome.affected_count} record(s) from RunNo {session.run_no}.",
            )
        )
        return outcome

    def _check_remove_preconditions(self, session: SearchSession) -> UserIdentity:
        if session.status is StoreStatus.LOADING:
            raise ValidationError("Cannot remove while a search is in progress")
        if session.status is StoreStatus.REMOVING:
            raise ValidationError("A removal is already in progress")
        if not session.selection:
            raise ValidationError("No rows selected")
        if session.run_no is None:
            raise ValidationError("No RunNo selected")
        user = self._identity.current_user()
        if user is None:
            raise ValidationError("Not authenticated")
        return user

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def clear_error(self) -> None:
        status = self._session.status
        if status is StoreStatus.ERROR:
            status = StoreStatus.IDLE
        self._session = replace(
            self._session, status=status, error=None, error_kind=None
        )

    def reset(self) -> None:
        """Discard the session and return to the pre-search state."""
        self._generation += 1
        self._session = SearchSession()
        LOG.info("Store reset")

    def _fail(self, err: Err, clear_lines: bool = False) -> None:
        changes = {
            "status": StoreStatus.ERROR,
            "error": err.message,
            "error_kind": err.kind,
        }
        if clear_lines:
            changes.update(lines=(), selection=frozenset())
        self._session = replace(self._session, **changes)

    def _notify(self, notification: Notification) -> None:
        if self._notifications is not None:
            self._notifications.publish(notification)


def _unique_lines(lines: Iterable[RMLine]) -> tuple[RMLine, ...]:
    """Drop repeated composite keys, keeping the first occurrence."""
    seen: set[RowKey] = set()
    unique: list[RMLine] = []
    for line in lines:
        if line.key in seen:
            LOG.warning("Duplicate row key %s in result set", line.key.token)
            continue
        seen.add(line.key)
        unique.append(line)
    return tuple(unique)

"""
Tests for the record store: search, selection and removal lifecycle.
"""

import asyncio

import pytest

from rm_partial_ui.errors import (
    BackendError,
    ConnectivityError,
    SessionExpiredError,
    ValidationError,
)
from rm_partial_ui.models import Err, ErrorKind, Ok, RowKey, selectable_keys
from rm_partial_ui.notifications import NotificationKind
from rm_partial_ui.store import RecordStore, SearchSession, StoreStatus


class TestSearch:
    """RecordStore.search"""

    @pytest.mark.asyncio
    async def test_initial_state(self, store):
        assert store.snapshot() == SearchSession()
        assert store.status is StoreStatus.IDLE
        assert not store.has_searched

    @pytest.mark.asyncio
    async def test_search_loads_lines(self, store, gateway, line_factory):
        gateway.queue_search(Ok(line_factory.run_1001()))

        await store.search(1001)

        assert gateway.search_calls == [1001]
        assert store.run_no == 1001
        assert len(store.lines) == 10
        assert store.status is StoreStatus.IDLE
        assert store.error is None
        assert store.notice is None
        assert store.selectable_count == 8

    @pytest.mark.asyncio
    async def test_search_clears_selection(self, loaded_store, gateway, line_factory):
        loaded_store.select_all()
        gateway.queue_search(Ok(line_factory.run_1001()))

        await loaded_store.search(1001)

        assert loaded_store.selection == frozenset()

    @pytest.mark.asyncio
    async def test_empty_result_is_a_notice(self, store, gateway, received):
        gateway.queue_search(Ok([]))

        await store.search(999999)

        assert store.status is StoreStatus.IDLE
        assert store.error is None
        assert store.notice == "No records found for RunNo: 999999"
        assert store.lines == ()
        assert [n.kind for n in received] == [NotificationKind.INFO]

    @pytest.mark.asyncio
    async def test_gateway_error_is_recorded(self, loaded_store, gateway, received):
        gateway.queue_search(Err(ErrorKind.CONNECTIVITY, "Unable to connect"))

        await loaded_store.search(1002)

        assert loaded_store.status is StoreStatus.ERROR
        assert loaded_store.error == "Unable to connect"
        assert loaded_store.error_kind is ErrorKind.CONNECTIVITY
        assert loaded_store.lines == ()
        assert loaded_store.run_no == 1002
        assert received[-1].kind is NotificationKind.ERROR

    @pytest.mark.asyncio
    async def test_validation_err_is_recorded_like_any_other(self, store, gateway):
        gateway.queue_search(Err(ErrorKind.VALIDATION, "RunNo must be positive, got 0"))

        await store.search(0)

        assert store.status is StoreStatus.ERROR
        assert store.error_kind is ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_unexpected_exception_sets_error_and_propagates(self, store, gateway):
        gateway.queue_search(RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await store.search(1001)

        assert store.status is StoreStatus.ERROR
        assert store.error == "Failed to load data"

    @pytest.mark.asyncio
    async def test_duplicate_keys_keep_first(self, store, gateway, line_factory):
        first = line_factory.line(1, item_key="FIRST")
        duplicate = line_factory.line(1, item_key="SECOND")
        gateway.queue_search(Ok([first, duplicate, line_factory.line(1, line_id=2)]))

        await store.search(1001)

        assert [line.item_key for line in store.lines] == ["FIRST", "ITEM-1"]

    @pytest.mark.asyncio
    async def test_superseded_search_is_discarded(self, store, gateway, line_factory):
        gate = asyncio.Event()
        gateway.queue_search(Ok([line_factory.line(1, run_no=1001)]), gate)
        gateway.queue_search(Ok([line_factory.line(9, run_no=1002)]))

        first = asyncio.create_task(store.search(1001))
        await asyncio.sleep(0)
        assert store.status is StoreStatus.LOADING

        await store.search(1002)
        gate.set()
        await first

        assert store.run_no == 1002
        assert [line.key for line in store.lines] == [RowKey(9, 1)]
        assert store.status is StoreStatus.IDLE

    @pytest.mark.asyncio
    async def test_search_while_removing_is_rejected(self, loaded_store, gateway):
        gate = asyncio.Event()
        gateway.queue_remove(Ok(1), gate)
        loaded_store.toggle_selection(1, 1)

        removal = asyncio.create_task(loaded_store.remove())
        await asyncio.sleep(0)
        assert loaded_store.status is StoreStatus.REMOVING

        with pytest.raises(ValidationError):
            await loaded_store.search(1002)
        assert gateway.search_calls == [1001]

        gate.set()
        await removal

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_search(self, store, gateway, line_factory):
        gate = asyncio.Event()
        gateway.queue_search(Ok(line_factory.run_1001()), gate)

        pending = asyncio.create_task(store.search(1001))
        await asyncio.sleep(0)
        store.reset()
        gate.set()
        await pending

        assert store.snapshot() == SearchSession()

    @pytest.mark.asyncio
    async def test_is_busy_while_a_request_is_in_flight(
        self, store, gateway, line_factory
    ):
        assert not store.is_busy
        search_gate, remove_gate = asyncio.Event(), asyncio.Event()
        gateway.queue_search(Ok(line_factory.run_1001()), search_gate)
        gateway.queue_remove(Ok(1), remove_gate)

        searching = asyncio.create_task(store.search(1001))
        await asyncio.sleep(0)
        assert store.is_busy
        search_gate.set()
        await searching
        assert not store.is_busy

        store.toggle_selection(1, 1)
        removal = asyncio.create_task(store.remove())
        await asyncio.sleep(0)
        assert store.is_busy
        remove_gate.set()
        await removal
        assert not store.is_busy


class TestSelection:
    """Selection operations."""

    @pytest.mark.asyncio
    async def test_select_all_selects_exactly_eligible(self, loaded_store):
        loaded_store.select_all()

        assert loaded_store.selection == selectable_keys(loaded_store.lines)
        assert loaded_store.selected_count == 8
        assert loaded_store.is_all_selected
        assert not loaded_store.is_selected(4, 1)
        assert not loaded_store.is_selected(5, 1)

    @pytest.mark.asyncio
    async def test_set_selection_filters_unknown_and_ineligible(self, loaded_store):
        loaded_store.set_selection([RowKey(1, 1), RowKey(4, 1), RowKey(5, 1), RowKey(99, 1)])

        assert loaded_store.selection == frozenset({RowKey(1, 1)})

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_membership(self, loaded_store):
        loaded_store.toggle_selection(2, 1)
        assert loaded_store.is_selected(2, 1)

        loaded_store.toggle_selection(2, 1)
        assert not loaded_store.is_selected(2, 1)
        assert loaded_store.selection == frozenset()

    @pytest.mark.asyncio
    async def test_toggle_ignores_ineligible_and_absent(self, loaded_store):
        loaded_store.toggle_selection(4, 1)
        loaded_store.toggle_selection(42, 1)

        assert loaded_store.selection == frozenset()

    @pytest.mark.asyncio
    async def test_keys_sharing_row_num_are_independent(self, store, gateway, line_factory):
        gateway.queue_search(
            Ok([line_factory.line(1, line_id=1), line_factory.line(1, line_id=2)])
        )
        await store.search(1002)

        store.toggle_selection(1, 2)

        assert store.selection == frozenset({RowKey(1, 2)})

    @pytest.mark.asyncio
    async def test_clear_selection(self, loaded_store):
        loaded_store.select_all()
        loaded_store.clear_selection()

        assert loaded_store.selected_count == 0
        assert not loaded_store.is_all_selected

    def test_is_all_selected_false_without_eligible_lines(self, store):
        store.select_all()
        assert not store.is_all_selected


class TestRemove:
    """RecordStore.remove"""

    @pytest.mark.asyncio
    async def test_remove_drops_selected_lines(self, loaded_store, gateway, received):
        loaded_store.set_selection([RowKey(3, 1), RowKey(1, 1)])
        gateway.queue_remove(Ok(2))

        result = await loaded_store.remove()

        assert result.affected_count == 2
        assert result.requested_count == 2
        assert gateway.remove_calls == [(1001, (RowKey(1, 1), RowKey(3, 1)), "jdoe")]
        keys = {line.key for line in loaded_store.lines}
        assert RowKey(1, 1) not in keys
        assert RowKey(3, 1) not in keys
        assert len(loaded_store.lines) == 8
        assert loaded_store.selection == frozenset()
        assert loaded_store.status is StoreStatus.IDLE
        assert received[-1].kind is NotificationKind.SUCCESS

    @pytest.mark.asyncio
    async def test_affected_count_may_differ_from_requested(self, loaded_store, gateway):
        loaded_store.select_all()
        gateway.queue_remove(Ok(5))

        result = await loaded_store.remove()

        assert result.requested_count == 8
        assert result.affected_count == 5

    @pytest.mark.asyncio
    async def test_empty_selection_fails_without_request(self, loaded_store, gateway):
        with pytest.raises(ValidationError):
            await loaded_store.remove()

        assert gateway.remove_calls == []
        assert loaded_store.status is StoreStatus.IDLE

    @pytest.mark.asyncio
    async def test_missing_user_fails_without_request(
        self, loaded_store, gateway, identity
    ):
        identity.user = None
        loaded_store.toggle_selection(1, 1)

        with pytest.raises(ValidationError):
            await loaded_store.remove()

        assert gateway.remove_calls == []
        assert loaded_store.is_selected(1, 1)

    @pytest.mark.asyncio
    async def test_remove_while_loading_is_rejected(self, loaded_store, gateway, line_factory):
        loaded_store.toggle_selection(1, 1)
        gate = asyncio.Event()
        gateway.queue_search(Ok(line_factory.run_1001()), gate)

        pending = asyncio.create_task(loaded_store.search(1001))
        await asyncio.sleep(0)

        with pytest.raises(ValidationError):
            await loaded_store.remove()
        assert gateway.remove_calls == []

        gate.set()
        await pending

    @pytest.mark.asyncio
    async def test_session_expired_leaves_state_unchanged(self, loaded_store, gateway):
        loaded_store.set_selection([RowKey(1, 1), RowKey(2, 1)])
        before_lines = loaded_store.lines
        before_selection = loaded_store.selection
        gateway.queue_remove(
            Err(ErrorKind.SESSION_EXPIRED, "Session expired. Please log in again.")
        )

        with pytest.raises(SessionExpiredError):
            await loaded_store.remove()

        assert loaded_store.lines == before_lines
        assert loaded_store.selection == before_selection
        assert loaded_store.status is StoreStatus.ERROR
        assert loaded_store.error_kind is ErrorKind.SESSION_EXPIRED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("err", "exception"),
        [
            (Err(ErrorKind.CONNECTIVITY, "Unable to connect"), ConnectivityError),
            (Err(ErrorKind.BACKEND, "Remove operation failed", "db locked"), BackendError),
        ],
    )
    async def test_failed_remove_raises_typed_error(
        self, loaded_store, gateway, received, err, exception
    ):
        loaded_store.toggle_selection(1, 1)
        gateway.queue_remove(err)

        with pytest.raises(exception) as excinfo:
            await loaded_store.remove()

        assert excinfo.value.message == err.message
        assert loaded_store.error == err.message
        assert len(loaded_store.lines) == 10
        assert loaded_store.is_selected(1, 1)
        assert received[-1].kind is NotificationKind.ERROR

    @pytest.mark.asyncio
    async def test_remove_after_error_is_allowed(self, loaded_store, gateway):
        loaded_store.toggle_selection(1, 1)
        gateway.queue_remove(Err(ErrorKind.CONNECTIVITY, "Unable to connect"))
        with pytest.raises(ConnectivityError):
            await loaded_store.remove()

        gateway.queue_remove(Ok(1))
        result = await loaded_store.remove()

        assert result.affected_count == 1
        assert loaded_store.status is StoreStatus.IDLE
        assert loaded_store.error is None

    @pytest.mark.asyncio
    async def test_reset_during_remove_keeps_reset_state(self, loaded_store, gateway):
        gate = asyncio.Event()
        gateway.queue_remove(Ok(1), gate)
        loaded_store.toggle_selection(1, 1)

        removal = asyncio.create_task(loaded_store.remove())
        await asyncio.sleep(0)
        loaded_store.reset()
        gate.set()
        result = await removal

        assert result.affected_count == 1
        assert loaded_store.snapshot() == SearchSession()


class TestHousekeeping:
    @pytest.mark.asyncio
    async def test_clear_error_returns_to_idle(self, store, gateway):
        gateway.queue_search(Err(ErrorKind.BACKEND, "Search failed"))
        await store.search(1001)

        store.clear_error()

        assert store.status is StoreStatus.IDLE
        assert store.error is None
        assert store.error_kind is None

    @pytest.mark.asyncio
    async def test_reset(self, loaded_store):
        loaded_store.select_all()

        loaded_store.reset()

        assert loaded_store.snapshot() == SearchSession()
        assert not loaded_store.has_searched

    def test_store_without_channel(self, gateway, identity):
        store = RecordStore(gateway, identity)
        assert store.snapshot().status is StoreStatus.IDLE

    @pytest.mark.asyncio
    async def test_views_are_immutable(self, loaded_store):
        assert isinstance(loaded_store.lines, tuple)
        assert isinstance(loaded_store.selection, frozenset)

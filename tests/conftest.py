"""
Shared fixtures and test doubles for the RM Partial Picking UI tests.
"""

import asyncio
from typing import Any, Sequence

import pytest
import pytest_asyncio

from rm_partial_ui.models import Ok, RMLine, RowKey, UserIdentity
from rm_partial_ui.notifications import Notification, NotificationChannel
from rm_partial_ui.services.record_gateway import RecordGateway
from rm_partial_ui.store import RecordStore


class LineFactory:
    """Builds RM lines and their wire payloads."""

    @staticmethod
    def line(
        row_num: int,
        line_id: int = 1,
        to_pick: float = 5.0,
        picked: float | None = 0.0,
        run_no: int = 1001,
        **overrides: Any,
    ) -> RMLine:
        values = {
            "run_no": run_no,
            "row_num": row_num,
            "line_id": line_id,
            "batch_no": f"B{row_num:03d}",
            "line_type": "RM",
            "item_key": f"ITEM-{row_num}",
            "location": "WH-01",
            "unit": "KG",
            "standard_qty": 25.0,
            "pack_size": 25.0,
            "to_picked_partial_qty": to_pick,
            "picked_partial_qty": picked,
            "rec_user_id": "planner",
            "modified_by": "planner",
        }
        values.update(overrides)
        return RMLine(**values)

    @staticmethod
    def payload(
        row_num: int,
        line_id: int = 1,
        to_pick: float | None = 5.0,
        picked: float | None = 0.0,
        run_no: int = 1001,
    ) -> dict[str, Any]:
        return {
            "RunNo": run_no,
            "RowNum": row_num,
            "BatchNo": f"B{row_num:03d}",
            "LineTyp": "RM",
            "LineId": line_id,
            "ItemKey": f"ITEM-{row_num}",
            "Location": "WH-01",
            "Unit": "KG",
            "StandardQty": 25,
            "PackSize": 25,
            "ToPickedPartialQty": to_pick,
            "PickedPartialQty": picked,
            "RecUserId": "planner",
            "ModifiedBy": "planner",
        }

    @classmethod
    def run_1001(cls) -> list[RMLine]:
        """Ten lines: row 4 already picked, row 5 has nothing to pick."""
        lines = [cls.line(row_num) for row_num in range(1, 11)]
        lines[3] = cls.line(4, to_pick=5.0, picked=5.0)
        lines[4] = cls.line(5, to_pick=0.0, picked=0.0)
        return lines


class FakeIdentity:
    """Identity provider returning a fixed user."""

    def __init__(self, user: UserIdentity | None = None) -> None:
        self.user = user

    def current_user(self) -> UserIdentity | None:
        return self.user


class ScriptedGateway(RecordGateway):
    """
    Gateway returning queued results.

    Each queued entry may carry an asyncio.Event; the call waits for it
    before answering, which lets tests hold a request in flight. Entries
    that are exceptions are raised instead of returned.
    """

    def __init__(self) -> None:
        self.search_calls: list[int] = []
        self.remove_calls: list[tuple[int, tuple[RowKey, ...], str]] = []
        self._search_script: list[tuple[Any, asyncio.Event | None]] = []
        self._remove_script: list[tuple[Any, asyncio.Event | None]] = []

    def queue_search(self, result: Any, gate: asyncio.Event | None = None) -> None:
        self._search_script.append((result, gate))

    def queue_remove(self, result: Any, gate: asyncio.Event | None = None) -> None:
        self._remove_script.append((result, gate))

    async def search_records(self, run_no: int):
        self.search_calls.append(run_no)
        return await self._answer(self._search_script)

    async def remove_records(
        self, run_no: int, items: Sequence[RowKey], acting_user: str
    ):
        self.remove_calls.append((run_no, tuple(items), acting_user))
        return await self._answer(self._remove_script)

    @staticmethod
    async def _answer(script: list[tuple[Any, asyncio.Event | None]]):
        result, gate = script.pop(0)
        if gate is not None:
            await gate.wait()
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def line_factory() -> type[LineFactory]:
    return LineFactory


@pytest.fixture
def operator() -> UserIdentity:
    return UserIdentity(username="jdoe", display_name="J. Doe")


@pytest.fixture
def identity(operator: UserIdentity) -> FakeIdentity:
    return FakeIdentity(operator)


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def channel():
    channel = NotificationChannel()
    channel.open()
    yield channel
    channel.close()


@pytest.fixture
def received(channel: NotificationChannel) -> list[Notification]:
    """Notifications published on the channel fixture."""
    notifications: list[Notification] = []
    channel.subscribe(notifications.append)
    return notifications


@pytest.fixture
def store(gateway, identity, channel) -> RecordStore:
    return RecordStore(gateway, identity, channel)


@pytest_asyncio.fixture
async def loaded_store(store, gateway, line_factory):
    """Store holding run 1001 (ten lines, eight eligible)."""
    gateway.queue_search(Ok(line_factory.run_1001()))
    await store.search(1001)
    return store

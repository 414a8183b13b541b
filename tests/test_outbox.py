"""Tests for Outbox delivery and the asyncio timer scheduler."""

import asyncio

import pytest

from werewolf_host.engine import AsyncioTimerScheduler, Delivery, Outbox
from werewolf_host.events import Audience, Notification, RoomReset, RolesComplete


class RecordingTransport:
    def __init__(self) -> None:
        self.sent: list[tuple] = []

    def to_participant(self, room_id: str, participant_id: str, notification: Notification) -> None:
        self.sent.append(("participant", room_id, participant_id, notification.kind))

    def to_room(self, room_id: str, notification: Notification) -> None:
        self.sent.append(("room", room_id, notification.kind))

    def broadcast(self, notification: Notification) -> None:
        self.sent.append(("broadcast", notification.kind))


class TestOutbox:
    """Tests for recording and forwarding notifications."""

    def test_forwards_to_transport(self) -> None:
        transport = RecordingTransport()
        outbox = Outbox(transport=transport)

        outbox.to_participant("R1", "p1", RolesComplete())
        outbox.to_room("R1", RoomReset())
        outbox.broadcast(RoomReset())

        assert transport.sent == [
            ("participant", "R1", "p1", "roles_complete"),
            ("room", "R1", "room_reset"),
            ("broadcast", "room_reset"),
        ]
        assert [d.audience for d in outbox.deliveries] == [
            Audience.PARTICIPANT,
            Audience.ROOM,
            Audience.BROADCAST,
        ]

    def test_subclass_is_kept_on_delivery(self) -> None:
        outbox = Outbox()
        outbox.to_room("R1", RoomReset())

        delivery = outbox.deliveries[0]
        assert isinstance(delivery.notification, RoomReset)
        assert delivery.kind == "room_reset"

    def test_filters_and_callback(self) -> None:
        seen: list[Delivery] = []
        outbox = Outbox(on_delivery=seen.append)
        outbox.to_participant("R1", "p1", RolesComplete())
        outbox.to_room("R1", RoomReset())

        assert [d.kind for d in outbox.for_participant("p1")] == ["roles_complete"]
        assert len(outbox.of_kind("room_reset")) == 1
        assert len(seen) == 2

        outbox.clear()
        assert outbox.deliveries == []


class TestAsyncioTimerScheduler:

    @pytest.mark.asyncio
    async def test_call_later_runs_on_loop(self) -> None:
        fired = asyncio.Event()
        AsyncioTimerScheduler().call_later(0.01, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancelled_handle_never_fires(self) -> None:
        fired: list[int] = []
        handle = AsyncioTimerScheduler().call_later(0.01, lambda: fired.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)
        assert fired == []

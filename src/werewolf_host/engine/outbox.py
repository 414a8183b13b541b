"""Outbox - records outbound notifications and hands them to the transport."""

from typing import Callable, Optional, Protocol

from pydantic import BaseModel

from werewolf_host.events.game_events import Audience, Notification


class Transport(Protocol):
    """Real-time delivery collaborator. Best effort, at most once per send."""

    def to_participant(self, room_id: str, participant_id: str, notification: Notification) -> None:
        ...

    def to_room(self, room_id: str, notification: Notification) -> None:
        ...

    def broadcast(self, notification: Notification) -> None:
        ...


class Delivery(BaseModel):
    """One notification and who it was addressed to."""

    audience: Audience
    notification: Notification
    room_id: Optional[str] = None
    participant_id: Optional[str] = None

    @property
    def kind(self) -> str:
        return self.notification.kind


class Outbox:
    """Collects every delivery and forwards it to an optional transport.

    Usage:
        outbox = Outbox(transport=socket_adapter)
        outbox.to_room(room_id, SeatsSnapshot(seats=...))
        outbox.deliveries  # everything sent so far

    An optional callback fires after each delivery:
        outbox = Outbox(on_delivery=my_callback)
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        on_delivery: Optional[Callable[[Delivery], None]] = None,
    ):
        self._transport = transport
        self._on_delivery = on_delivery
        self._deliveries: list[Delivery] = []

    @property
    def deliveries(self) -> list[Delivery]:
        return list(self._deliveries)

    def to_participant(self, room_id: str, participant_id: str, notification: Notification) -> None:
        self._record(Delivery(
            audience=Audience.PARTICIPANT,
            room_id=room_id,
            participant_id=participant_id,
            notification=notification,
        ))
        if self._transport is not None:
            self._transport.to_participant(room_id, participant_id, notification)

    def to_room(self, room_id: str, notification: Notification) -> None:
        self._record(Delivery(audience=Audience.ROOM, room_id=room_id, notification=notification))
        if self._transport is not None:
            self._transport.to_room(room_id, notification)

    def broadcast(self, notification: Notification) -> None:
        self._record(Delivery(audience=Audience.BROADCAST, notification=notification))
        if self._transport is not None:
            self._transport.broadcast(notification)

    def for_participant(self, participant_id: str) -> list[Delivery]:
        """Deliveries addressed privately to one participant."""
        return [d for d in self._deliveries if d.participant_id == participant_id]

    def of_kind(self, kind: str) -> list[Delivery]:
        return [d for d in self._deliveries if d.kind == kind]

    def clear(self) -> None:
        self._deliveries.clear()

    def _record(self, delivery: Delivery) -> None:
        self._deliveries.append(delivery)
        if self._on_delivery is not None:
            self._on_delivery(delivery)

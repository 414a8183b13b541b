"""Session and seat management: joining, reconnecting, seating and stand-ins."""

import secrets
from typing import Optional

import structlog

from werewolf_host.config import ServerSettings
from werewolf_host.engine.orphan_tracker import OrphanTracker
from werewolf_host.engine.outbox import Outbox
from werewolf_host.engine.role_pool import RolePool
from werewolf_host.engine.room_registry import Room, RoomRegistry
from werewolf_host.errors import InvalidParticipant, InvalidTarget, PhaseViolation, RoomFull
from werewolf_host.events.game_events import (
    GameConfigNotice,
    HostDisconnected,
    ParticipantsSnapshot,
    Phase,
    RoleAssigned,
    RolesComplete,
    SeatsSnapshot,
    SeatsStatus,
)
from werewolf_host.models.player import Participant, Role

LOGGER = structlog.get_logger(__name__)


class SessionManager:
    """Join, reconnect, seat selection and stand-in filling for a Room.

    Responsibilities:
    1. Create participants, or rebind a disconnected one by reconnect token
    2. One-shot seat selection, dealing a role the moment a seat is taken
    3. Keep seat and role on disconnect; tear the room down if the host leaves
    4. Fill empty seats with synthetic stand-ins before the game starts
    """

    def __init__(
        self,
        registry: RoomRegistry,
        role_pool: RolePool,
        outbox: Outbox,
        tracker: OrphanTracker,
        settings: Optional[ServerSettings] = None,
    ):
        self._registry = registry
        self._role_pool = role_pool
        self._outbox = outbox
        self._tracker = tracker
        self._settings = settings or ServerSettings()

    # ------------------------------------------------------------------
    # Join / reconnect
    # ------------------------------------------------------------------

    def join(
        self,
        room: Room,
        name: str,
        connection_id: str,
        reconnect_token: Optional[str] = None,
    ) -> tuple[Participant, bool]:
        """Add a participant to the room, or rebind one that dropped.

        Args:
            room: Room to join.
            name: Display name for a fresh participant.
            connection_id: Transport connection making the request.
            reconnect_token: Token handed out on a previous join.

        Returns:
            Tuple of (participant, reconnected).

        Raises:
            RoomFull: The room already holds total_seats participants.
            InvalidParticipant: No display name for a fresh join.
        """
        if reconnect_token:
            known = room.find_by_token(reconnect_token)
            if known is not None and not known.is_connected:
                known.connection_id = connection_id
                known.is_connected = True
                LOGGER.info(
                    "participant.reconnected",
                    room_id=room.room_id,
                    participant_id=known.participant_id,
                    seat=known.seat,
                )
                self.send_room_state(room, known.participant_id)
                self._outbox.to_room(room.room_id, ParticipantsSnapshot(participants=room.participants_snapshot()))
                return known, True

        name = (name or "").strip()
        if not name:
            raise InvalidParticipant("A display name is required")
        if len(room.participants) >= room.config.total_seats:
            raise RoomFull("Room is full")

        participant_id = connection_id
        if participant_id in room.participants:
            participant_id = f"{connection_id}-{secrets.token_hex(3)}"

        participant = Participant(
            participant_id=participant_id,
            name=name,
            connection_id=connection_id,
            is_host=participant_id == room.host_id,
            reconnect_token=secrets.token_urlsafe(16),
        )
        room.participants[participant_id] = participant
        LOGGER.info(
            "participant.joined",
            room_id=room.room_id,
            participant_id=participant_id,
            is_host=participant.is_host,
        )

        self.send_room_state(room, participant_id)
        self._outbox.to_room(room.room_id, ParticipantsSnapshot(participants=room.participants_snapshot()))
        return participant, False

    def send_room_state(self, room: Room, participant_id: str) -> None:
        """Bring one participant up to date: config, seats, players, own role."""
        participant = room.get_participant(participant_id)
        self._outbox.to_participant(
            room.room_id, participant_id, GameConfigNotice(config=room.config.model_dump(mode="json"))
        )
        self._outbox.to_participant(room.room_id, participant_id, SeatsSnapshot(seats=room.seats_snapshot()))
        self._outbox.to_participant(
            room.room_id, participant_id, ParticipantsSnapshot(participants=room.participants_snapshot())
        )
        if participant.role is not None:
            self._outbox.to_participant(room.room_id, participant_id, RoleAssigned(role=participant.role))

    # ------------------------------------------------------------------
    # Seats
    # ------------------------------------------------------------------

    def take_seat(self, room: Room, participant_id: str, seat_number: int) -> Role:
        """Seat a participant and deal them a role immediately.

        Seat choice is one-shot: choosing the seat already held returns the
        same role, choosing any other seat afterwards fails.

        Raises:
            InvalidParticipant: Unknown participant.
            InvalidTarget: Seat missing, taken, or participant already seated.
            PhaseViolation: The game has already started.
        """
        participant = room.get_participant(participant_id)
        if room.phase != Phase.LOBBY:
            raise PhaseViolation("Seats are locked once the game has started")
        seat = room.get_seat(seat_number)

        if participant.seat == seat_number and participant.role is not None:
            return participant.role
        if participant.seat is not None:
            raise InvalidTarget("You already have a seat")
        if not seat.is_empty:
            raise InvalidTarget("Seat is already taken")

        seat.occupant_id = participant_id
        participant.seat = seat_number
        role = self._role_pool.deal(room, participant_id)
        LOGGER.info("seat.taken", room_id=room.room_id, participant_id=participant_id, seat=seat_number)

        self._outbox.to_room(room.room_id, SeatsSnapshot(seats=room.seats_snapshot()))
        self._outbox.to_participant(room.room_id, participant_id, RoleAssigned(role=role))
        if room.all_seats_filled:
            self._outbox.to_room(room.room_id, RolesComplete())
        self.send_seats_status(room)
        return role

    def send_seats_status(self, room: Room) -> None:
        filled = room.filled_seat_count()
        self._outbox.to_room(room.room_id, SeatsStatus(
            filled=filled,
            total=room.config.total_seats,
            all_filled=filled == room.config.total_seats,
            roles_assigned=bool(room.role_assignment),
        ))

    def fill_remaining_seats_with_standins(self, room: Room) -> list[Participant]:
        """Put a synthetic participant in every empty seat, in seat order.

        Each stand-in draws a role exactly like a human taking the seat.
        """
        names = self._settings.standin_names
        created: list[Participant] = []
        for seat in room.seats:
            if not seat.is_empty:
                continue
            index = len(created)
            name = names[index] if index < len(names) else f"Bot {seat.seat_number}"
            standin = Participant(
                participant_id=f"standin-{room.room_id}-{seat.seat_number}",
                name=name,
                seat=seat.seat_number,
                is_synthetic=True,
            )
            room.participants[standin.participant_id] = standin
            seat.occupant_id = standin.participant_id
            self._role_pool.deal(room, standin.participant_id)
            created.append(standin)
        if created:
            LOGGER.info("seat.standins_filled", room_id=room.room_id, count=len(created))
        return created

    def shuffle_roles(self, room: Room) -> dict[str, Role]:
        """Reshuffle the pool and redeal to everyone seated."""
        if room.phase != Phase.LOBBY:
            raise PhaseViolation("Roles can only be shuffled in the lobby")
        dealt = self._role_pool.rebuild(room)
        for participant_id, role in dealt.items():
            if not room.participants[participant_id].is_synthetic:
                self._outbox.to_participant(room.room_id, participant_id, RoleAssigned(role=role))
        self.send_seats_status(room)
        return dealt

    # ------------------------------------------------------------------
    # Disconnect
    # ------------------------------------------------------------------

    def mark_disconnected(self, room: Room, participant_id: str) -> bool:
        """Handle a lost connection.

        The host leaving destroys the room. Anyone else keeps their seat
        and role; a participant who never sat down is dropped.

        Returns:
            True if the room was torn down.
        """
        if participant_id == room.host_id:
            self._outbox.to_room(room.room_id, HostDisconnected())
            self._registry.destroy(room.room_id)
            self._tracker.clear_room(room.room_id)
            return True

        participant = room.participants.get(participant_id)
        if participant is None:
            return False

        participant.is_connected = False
        if participant.seat is None:
            del room.participants[participant_id]
            LOGGER.info("participant.left", room_id=room.room_id, participant_id=participant_id)
        else:
            LOGGER.info(
                "participant.disconnected",
                room_id=room.room_id,
                participant_id=participant_id,
                seat=participant.seat,
            )

        self._outbox.to_room(room.room_id, SeatsSnapshot(seats=room.seats_snapshot()))
        self._outbox.to_room(room.room_id, ParticipantsSnapshot(participants=room.participants_snapshot()))
        self.send_seats_status(room)
        return False

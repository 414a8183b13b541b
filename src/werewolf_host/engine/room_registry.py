"""Room state and the registry that owns every active room."""

import random
import string
from typing import Any, Iterator, Optional

import structlog
from pydantic import BaseModel, Field, PrivateAttr

from werewolf_host.engine.night_action_store import DayResult, NightActionStore
from werewolf_host.errors import InvalidParticipant, InvalidRoom, InvalidTarget
from werewolf_host.events.game_events import NightStep, Phase
from werewolf_host.models.player import (
    SPECIAL_ROLES,
    Participant,
    ParticipantState,
    Role,
    RoomConfig,
)

LOGGER = structlog.get_logger(__name__)


class Seat(BaseModel):
    """A fixed slot; seat_number starts at 1."""

    seat_number: int
    occupant_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.occupant_id is None


class Room(BaseModel):
    """One isolated game: seats, participants, roles and night progress.

    role_holders is a secondary index over role_assignment so "who holds
    role R" never scans every participant. Keep both in sync through
    assign_role() and clear_roles().
    """

    room_id: str
    host_id: str
    config: RoomConfig
    phase: Phase = Phase.LOBBY
    seats: list[Seat] = Field(default_factory=list)
    participants: dict[str, Participant] = Field(default_factory=dict)
    role_assignment: dict[str, Role] = Field(default_factory=dict)
    role_holders: dict[Role, set[str]] = Field(default_factory=dict)
    role_pool: Optional[list[Role]] = None  # None until the first draw
    night_number: int = 0
    night_step: Optional[NightStep] = None
    night_actions: NightActionStore = Field(default_factory=NightActionStore)
    night_progress: dict[Role, bool] = Field(default_factory=dict)
    lover_pair: Optional[tuple[str, str]] = None
    participant_states: dict[str, ParticipantState] = Field(default_factory=dict)
    day_result: DayResult = Field(default_factory=DayResult)
    epoch: int = 0  # Bumped on reset/close; pending timers compare against it
    closed: bool = False

    _timers: set[Any] = PrivateAttr(default_factory=set)

    @classmethod
    def create(cls, room_id: str, host_id: str, config: RoomConfig) -> "Room":
        seats = [Seat(seat_number=n) for n in range(1, config.total_seats + 1)]
        return cls(room_id=room_id, host_id=host_id, config=config, seats=seats)

    # ------------------------------------------------------------------
    # Participants and seats
    # ------------------------------------------------------------------

    def get_participant(self, participant_id: str) -> Participant:
        participant = self.participants.get(participant_id)
        if participant is None:
            raise InvalidParticipant("Invalid game or player")
        return participant

    def find_by_token(self, token: str) -> Optional[Participant]:
        for participant in self.participants.values():
            if participant.reconnect_token == token:
                return participant
        return None

    def get_seat(self, seat_number: int) -> Seat:
        if not 1 <= seat_number <= len(self.seats):
            raise InvalidTarget("Invalid seat")
        return self.seats[seat_number - 1]

    def seated_participants(self) -> list[Participant]:
        """Occupants in seat order."""
        return [
            self.participants[seat.occupant_id]
            for seat in self.seats
            if seat.occupant_id is not None
        ]

    def filled_seat_count(self) -> int:
        return sum(1 for seat in self.seats if not seat.is_empty)

    @property
    def all_seats_filled(self) -> bool:
        return self.filled_seat_count() == len(self.seats)

    def require_target(self, target_id: str) -> Participant:
        """Return a seated, living participant or raise InvalidTarget."""
        target = self.participants.get(target_id)
        if target is None or target.seat is None:
            raise InvalidTarget("Unknown target")
        if not target.is_alive:
            raise InvalidTarget(f"{target.name} is already dead")
        return target

    def candidates(self, exclude: Optional[str] = None) -> list[dict]:
        """Living seated participants as public dicts, in seat order."""
        return [
            {"id": p.participant_id, "name": p.name, "seat": p.seat}
            for p in self.seated_participants()
            if p.is_alive and p.participant_id != exclude
        ]

    def seats_snapshot(self) -> list[dict]:
        snapshot = []
        for seat in self.seats:
            occupant = None
            if seat.occupant_id is not None:
                p = self.participants[seat.occupant_id]
                occupant = {"id": p.participant_id, "name": p.name, "is_synthetic": p.is_synthetic}
            snapshot.append({"id": seat.seat_number, "player": occupant})
        return snapshot

    def participants_snapshot(self) -> list[dict]:
        return [p.to_public_dict() for p in self.participants.values()]

    def state_of(self, participant_id: str) -> ParticipantState:
        if participant_id not in self.participant_states:
            self.participant_states[participant_id] = ParticipantState()
        return self.participant_states[participant_id]

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def assign_role(self, participant_id: str, role: Role) -> None:
        participant = self.get_participant(participant_id)
        previous = self.role_assignment.get(participant_id)
        if previous is not None:
            self.role_holders.get(previous, set()).discard(participant_id)
        participant.role = role
        self.role_assignment[participant_id] = role
        self.role_holders.setdefault(role, set()).add(participant_id)

    def clear_roles(self) -> None:
        """Forget every assignment and the pool."""
        for participant in self.participants.values():
            participant.role = None
        self.role_assignment.clear()
        self.role_holders.clear()
        self.role_pool = None

    def holders(self, role: Role) -> frozenset[str]:
        return frozenset(self.role_holders.get(role, ()))

    def living_holders(self, role: Role) -> list[str]:
        """Living holders of a role, in seat order."""
        ids = self.role_holders.get(role, set())
        found = [
            self.participants[pid]
            for pid in ids
            if self.participants[pid].is_alive
        ]
        found.sort(key=lambda p: (p.seat is None, p.seat or 0))
        return [p.participant_id for p in found]

    def real_holders(self, role: Role) -> list[str]:
        """Living human holders of a role."""
        return [
            pid for pid in self.living_holders(role)
            if not self.participants[pid].is_synthetic
        ]

    def present_special_roles(self) -> list[Role]:
        """Night-acting roles with at least one living holder, canonical order."""
        return [role for role in SPECIAL_ROLES if self.living_holders(role)]

    # ------------------------------------------------------------------
    # Night lifecycle
    # ------------------------------------------------------------------

    def begin_night(self) -> None:
        """Fresh action bag, progress flags and day result for a new night."""
        self.night_number += 1
        self.phase = Phase.NIGHT
        self.night_step = NightStep.ANNOUNCE
        self.night_actions.reset_for_new_night()
        self.night_progress = {role: False for role in SPECIAL_ROLES}
        self.day_result = DayResult()

    def reset_to_lobby(self) -> None:
        """Back to the lobby keeping seats and participants."""
        self.cancel_timers()
        self.epoch += 1
        self.clear_roles()
        self.phase = Phase.LOBBY
        self.night_number = 0
        self.night_step = None
        self.night_actions.reset_for_new_night()
        self.night_progress = {}
        self.lover_pair = None
        self.participant_states = {}
        self.day_result = DayResult()
        for participant in self.participants.values():
            participant.is_alive = True

    def freshness_token(self) -> tuple:
        """Identifies the exact point in the state machine."""
        return (self.epoch, self.phase, self.night_number, self.night_step)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def track_timer(self, handle: Any) -> None:
        self._timers.add(handle)

    def discard_timer(self, handle: Any) -> None:
        self._timers.discard(handle)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def cancel_timers(self) -> None:
        for handle in list(self._timers):
            handle.cancel()
        if self._timers:
            LOGGER.debug("room.timers_cancelled", room_id=self.room_id, count=len(self._timers))
        self._timers.clear()

    def close(self) -> None:
        self.cancel_timers()
        self.epoch += 1
        self.closed = True


class RoomRegistry:
    """Owns every active room for the lifetime of the process.

    Room ids are never reused, even after the room is destroyed. The set of
    issued ids therefore grows by one id per room created and is only
    released with the process; at the default length of 6 the id space
    holds 36**6 (about 2.2 billion) ids.
    """

    _ALPHABET = string.ascii_uppercase + string.digits

    def __init__(self, rng: Optional[random.Random] = None, id_length: int = 6):
        self._rooms: dict[str, Room] = {}
        self._issued: set[str] = set()
        self._rng = rng or random.Random()
        self._id_length = id_length

    def create(self, host_id: str, config: RoomConfig) -> Room:
        room_id = self._generate_room_id()
        room = Room.create(room_id, host_id, config)
        self._rooms[room_id] = room
        LOGGER.info("room.created", room_id=room_id, host_id=host_id, seats=config.total_seats)
        return room

    def get(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise InvalidRoom("Room not found")
        return room

    def find(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def destroy(self, room_id: str) -> Optional[Room]:
        """Remove a room and invalidate all of its pending timers."""
        room = self._rooms.pop(room_id, None)
        if room is not None:
            room.close()
            LOGGER.info("room.destroyed", room_id=room_id)
        return room

    def rooms(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def _generate_room_id(self) -> str:
        while True:
            candidate = "".join(
                self._rng.choice(self._ALPHABET) for _ in range(self._id_length)
            )
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

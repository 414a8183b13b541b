"""GameServer - entry point for every inbound event, one method per event.

Each method takes the caller's transport connection id, resolves it to a
stable participant id, applies the request and returns an ActionResult.
RoomError never escapes: it becomes a failed result and the room is left
untouched.
"""

import functools
import random
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import ValidationError

from werewolf_host.config import ServerSettings
from werewolf_host.engine.night_scheduler import NightScheduler
from werewolf_host.engine.orphan_tracker import OrphanTracker
from werewolf_host.engine.outbox import Outbox, Transport
from werewolf_host.engine.role_pool import RolePool
from werewolf_host.engine.room_registry import Room, RoomRegistry
from werewolf_host.engine.session_manager import SessionManager
from werewolf_host.engine.timers import AsyncioTimerScheduler, TimerScheduler
from werewolf_host.errors import (
    ActionResult,
    InvalidConfig,
    InvalidParticipant,
    NotHost,
    PhaseViolation,
    RoomError,
)
from werewolf_host.events.game_events import (
    NarrationKey,
    Phase,
    RoomReset,
    SeatsSnapshot,
)
from werewolf_host.models.player import Participant, Role, RoomConfig

LOGGER = structlog.get_logger(__name__)


def _reports_errors(method: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
    """Turn a RoomError raised by the handler into a failed ActionResult."""

    @functools.wraps(method)
    def wrapper(self: "GameServer", *args: Any, **kwargs: Any) -> ActionResult:
        try:
            return method(self, *args, **kwargs)
        except RoomError as exc:
            LOGGER.warning(
                "request.rejected",
                operation=method.__name__,
                kind=exc.kind.value,
                reason=exc.reason,
            )
            return ActionResult.fail(exc)

    return wrapper


class GameServer:
    """Owns the registry and wires the components together.

    Constructed once per process and shared by every transport handler.
    """

    def __init__(
        self,
        settings: Optional[ServerSettings] = None,
        transport: Optional[Transport] = None,
        timers: Optional[TimerScheduler] = None,
        rng: Optional[random.Random] = None,
        outbox: Optional[Outbox] = None,
    ):
        """Initialize the server.

        Args:
            settings: Pacing, stand-in names and defaults.
            transport: Delivery collaborator for outbound notifications.
            timers: Delayed-continuation scheduler. Defaults to the running
                    asyncio loop.
            rng: random.Random for room ids and role shuffles. Same seed,
                 same deals.
            outbox: Pre-built outbox (tests pass one to inspect deliveries).
        """
        self.settings = settings or ServerSettings()
        self.outbox = outbox or Outbox(transport=transport)
        rng = rng or random.Random()
        self.registry = RoomRegistry(rng=rng, id_length=self.settings.room_id_length)
        self.tracker = OrphanTracker()
        self.role_pool = RolePool(rng=rng)
        self.sessions = SessionManager(
            self.registry, self.role_pool, self.outbox, self.tracker, self.settings,
        )
        self.night = NightScheduler(
            self.registry,
            self.outbox,
            timers or AsyncioTimerScheduler(),
            self.tracker,
            pacing=self.settings.pacing,
        )
        self._pending_configs: dict[str, RoomConfig] = {}
        # connection id -> (room id, participant id)
        self._connections: dict[str, tuple[str, str]] = {}

    # ------------------------------------------------------------------
    # Room lifecycle
    # ------------------------------------------------------------------

    @_reports_errors
    def configure_room(self, connection_id: str, config: Union[RoomConfig, dict]) -> ActionResult:
        if isinstance(config, dict):
            data = dict(config)
            data.setdefault("language", self.settings.default_language)
            try:
                config = RoomConfig.model_validate(data)
            except ValidationError as exc:
                raise InvalidConfig(f"Invalid configuration: {exc.errors()[0]['msg']}") from exc
        self._pending_configs[connection_id] = config
        LOGGER.info("room.configured", host_id=connection_id, seats=config.total_seats)
        return ActionResult.ok("Configuration saved!")

    @_reports_errors
    def create_room(self, connection_id: str) -> ActionResult:
        config = self._pending_configs.pop(connection_id, None)
        if config is None:
            raise InvalidConfig("Please configure the game first")
        room = self.registry.create(connection_id, config)
        return ActionResult.ok(room_id=room.room_id)

    @_reports_errors
    def join_room(
        self,
        connection_id: str,
        room_id: str,
        name: str,
        reconnect_token: Optional[str] = None,
    ) -> ActionResult:
        """Join a room, or rebind a participant after a dropped connection.

        A connection belongs to at most one room. Joining the room it is
        already in returns the participant it is bound to; joining any other
        live room is rejected.
        """
        room = self.registry.get(room_id)
        current = self._current_room(connection_id)
        if current is not None and current != room.room_id:
            raise InvalidParticipant("You are already in another room")

        binding = self._connections.get(connection_id)
        if binding is not None and binding[0] == room.room_id and binding[1] in room.participants:
            participant = room.participants[binding[1]]
            self.sessions.send_room_state(room, participant.participant_id)
            self.night.resend_ui(room, participant.participant_id)
            return self._joined(participant, reconnected=True)

        participant, reconnected = self.sessions.join(room, name, connection_id, reconnect_token)
        self._connections[connection_id] = (room.room_id, participant.participant_id)
        if reconnected:
            self.night.resend_ui(room, participant.participant_id)
        return self._joined(participant, reconnected)

    @_reports_errors
    def choose_seat(self, connection_id: str, room_id: str, seat_number: int) -> ActionResult:
        room = self.registry.get(room_id)
        role = self.sessions.take_seat(room, self._identity(connection_id, room), seat_number)
        return ActionResult.ok("Seated successfully!", role=role.value)

    @_reports_errors
    def start_game(self, connection_id: str, room_id: str) -> ActionResult:
        room = self._host_room(connection_id, room_id)
        if room.phase != Phase.LOBBY:
            raise PhaseViolation("The game has already started")
        if room.filled_seat_count() < 1:
            raise PhaseViolation("At least 1 player is required to start")

        self.sessions.fill_remaining_seats_with_standins(room)
        self._outbox_seats(room)
        LOGGER.info("game.started", room_id=room.room_id, seats=len(room.seats))
        self.night.begin_game(room)
        return ActionResult.ok("Game started!")

    @_reports_errors
    def shuffle_roles(self, connection_id: str, room_id: str) -> ActionResult:
        room = self._host_room(connection_id, room_id)
        dealt = self.sessions.shuffle_roles(room)
        return ActionResult.ok("Roles reshuffled", dealt=len(dealt))

    @_reports_errors
    def next_night(self, connection_id: str, room_id: str) -> ActionResult:
        room = self._host_room(connection_id, room_id)
        self.night.next_night(room)
        return ActionResult.ok(night=room.night_number)

    @_reports_errors
    def reset_room(self, connection_id: str, room_id: str) -> ActionResult:
        """Return to the lobby, keeping seats, and redeal roles."""
        room = self._host_room(connection_id, room_id)
        room.reset_to_lobby()
        self.tracker.clear_room(room.room_id)
        self.outbox.to_room(room.room_id, RoomReset())
        self.sessions.shuffle_roles(room)
        LOGGER.info("room.reset", room_id=room.room_id)
        return ActionResult.ok("Room reset")

    @_reports_errors
    def disconnect(self, connection_id: str) -> ActionResult:
        self._pending_configs.pop(connection_id, None)
        binding = self._connections.pop(connection_id, None)

        if binding is not None:
            room_id, participant_id = binding
            room = self.registry.find(room_id)
            if room is not None:
                LOGGER.info("connection.lost", room_id=room_id, participant_id=participant_id)
                if self.sessions.mark_disconnected(room, participant_id):
                    self._forget_room(room_id)

        # Rooms this connection hosts, whether or not it joined them
        for room in self.registry.rooms():
            if room.host_id == connection_id:
                self.sessions.mark_disconnected(room, connection_id)
                self._forget_room(room.room_id)
        return ActionResult.ok()

    # ------------------------------------------------------------------
    # Role actions
    # ------------------------------------------------------------------

    @_reports_errors
    def select_protector(self, connection_id: str, room_id: str, target_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.select_protector(room, self._identity(connection_id, room), target_id)
        return ActionResult.ok("Protector chosen")

    @_reports_errors
    def cupid_link(self, connection_id: str, room_id: str, first_id: str, second_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.cupid_link(room, self._identity(connection_id, room), first_id, second_id)
        return ActionResult.ok("Lovers linked")

    @_reports_errors
    def guard_protect(self, connection_id: str, room_id: str, target_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.guard_protect(room, self._identity(connection_id, room), target_id)
        return ActionResult.ok("Player protected")

    @_reports_errors
    def werewolf_kill(self, connection_id: str, room_id: str, target_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.werewolf_kill(room, self._identity(connection_id, room), target_id)
        return ActionResult.ok("Target selected")

    @_reports_errors
    def witch_save(self, connection_id: str, room_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.witch_save(room, self._identity(connection_id, room))
        return ActionResult.ok("Player saved")

    @_reports_errors
    def witch_poison(self, connection_id: str, room_id: str, target_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.witch_poison(room, self._identity(connection_id, room), target_id)
        return ActionResult.ok("Player poisoned")

    @_reports_errors
    def witch_skip(self, connection_id: str, room_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        self.night.witch_skip(room, self._identity(connection_id, room))
        return ActionResult.ok()

    @_reports_errors
    def seer_check(self, connection_id: str, room_id: str, target_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        faction = self.night.seer_check(room, self._identity(connection_id, room), target_id)
        return ActionResult.ok("Check complete", faction=faction.value)

    @_reports_errors
    def acknowledge(self, connection_id: str, room_id: str, role: Union[Role, str]) -> ActionResult:
        room = self.registry.get(room_id)
        try:
            role = Role(role)
        except ValueError as exc:
            raise InvalidParticipant(f"Unknown role {role!r}") from exc
        self.night.acknowledge(room, self._identity(connection_id, room), role)
        return ActionResult.ok()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @_reports_errors
    def get_my_role(self, connection_id: str, room_id: str) -> ActionResult:
        room = self.registry.get(room_id)
        participant = room.get_participant(self._identity(connection_id, room))
        if participant.role is None:
            raise InvalidParticipant("Role not assigned yet")
        return ActionResult.ok(role=participant.role.value)

    @_reports_errors
    def check_last_night(self, connection_id: str, room_id: str) -> ActionResult:
        """Host-only summary of the last resolved night."""
        room = self._host_room(connection_id, room_id)
        deaths = room.day_result.deaths
        if not deaths:
            return ActionResult.ok(NarrationKey.PEACEFUL_NIGHT.value, narration=NarrationKey.PEACEFUL_NIGHT.value, deaths=[])
        names = [room.participants[pid].name for pid in deaths]
        return ActionResult.ok(
            f"{NarrationKey.DEATH_ANNOUNCEMENT.value}: {', '.join(names)}",
            narration=NarrationKey.DEATH_ANNOUNCEMENT.value,
            deaths=names,
        )

    @_reports_errors
    def inspect_orphans(self, connection_id: str, room_id: str) -> ActionResult:
        room = self._host_room(connection_id, room_id)
        chains = self.tracker.describe(room)
        return ActionResult.ok(
            "\n".join(chain.text for chain in chains),
            chains=[chain.model_dump() for chain in chains],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _identity(self, connection_id: str, room: Room) -> str:
        """Participant id for a connection; the host may act before joining."""
        binding = self._connections.get(connection_id)
        if binding is not None and binding[0] == room.room_id:
            return binding[1]
        if connection_id == room.host_id:
            return connection_id
        raise InvalidParticipant("Join the room first")

    def _current_room(self, connection_id: str) -> Optional[str]:
        """Live room the connection is bound to or hosts, if any."""
        binding = self._connections.get(connection_id)
        if binding is not None and binding[0] in self.registry:
            return binding[0]
        for room in self.registry.rooms():
            if room.host_id == connection_id:
                return room.room_id
        return None

    def _joined(self, participant: Participant, reconnected: bool) -> ActionResult:
        return ActionResult.ok(
            "Reconnected!" if reconnected else "Joined successfully!",
            participant_id=participant.participant_id,
            reconnect_token=participant.reconnect_token,
            is_host=participant.is_host,
            reconnected=reconnected,
        )

    def _host_room(self, connection_id: str, room_id: str) -> Room:
        room = self.registry.get(room_id)
        if self._identity(connection_id, room) != room.host_id:
            raise NotHost("Only the host can do that")
        return room

    def _outbox_seats(self, room: Room) -> None:
        self.outbox.to_room(room.room_id, SeatsSnapshot(seats=room.seats_snapshot()))

    def _forget_room(self, room_id: str) -> None:
        for connection_id, (bound_room, _) in list(self._connections.items()):
            if bound_room == room_id:
                del self._connections[connection_id]

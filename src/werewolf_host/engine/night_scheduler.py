"""NightScheduler - drives a room through orphan selection, the night and into day.

Night order:
1. Announce (pacing only)
2. Cupid -> Guard -> Werewolf (opening roles, fixed order)
3. Convergence, re-entered after every sub-phase: once Werewolf is done,
   either every present role has acted (go to day) or the first pending
   role among Witch -> Seer -> Hunter starts
4. Resolve deaths via NightActionResolver

Every transition after the first is a delayed continuation. Each one
captures the room's freshness token when scheduled and no-ops if the room
has moved on, been reset, or been destroyed by the time it fires.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from werewolf_host.config import PacingConfig
from werewolf_host.engine.night_action_resolver import NightActionResolver
from werewolf_host.engine.night_action_store import DayResult
from werewolf_host.engine.orphan_tracker import OrphanTracker
from werewolf_host.engine.outbox import Outbox
from werewolf_host.engine.room_registry import Room, RoomRegistry
from werewolf_host.engine.timers import TimerScheduler
from werewolf_host.errors import InvalidParticipant, InvalidTarget, PhaseViolation
from werewolf_host.events.game_events import (
    DayStarted,
    GameStarted,
    HunterPoisoned,
    LoversRevealed,
    NarrationKey,
    NightStep,
    OrphanSelectUI,
    Phase,
    PhaseComplete,
    PhaseStarted,
    RoleUI,
    RoleUIClosed,
    SeerResult,
)
from werewolf_host.models.player import Faction, Participant, Role, faction_of

LOGGER = structlog.get_logger(__name__)


# ============================================================================
# Night step table
# ============================================================================


def _has_living_holder(room: Room, role: Role) -> bool:
    return bool(room.living_holders(role))


def _cupid_present(room: Room, role: Role) -> bool:
    # Cupid wakes on the first night only, even if a stand-in linked nobody
    return room.night_number == 1 and _has_living_holder(room, role)


def _always(room: Room, role: Role) -> bool:
    return True


@dataclass(frozen=True)
class NightStepSpec:
    """One role's sub-phase.

    opening roles run in table order before Convergence is consulted;
    the rest are picked by Convergence in table order.
    """

    role: Role
    step: NightStep
    open_key: NarrationKey
    close_key: NarrationKey
    is_present: Callable[[Room, Role], bool] = _has_living_holder
    opening: bool = False


NIGHT_SEQUENCE: tuple[NightStepSpec, ...] = (
    NightStepSpec(Role.CUPID, NightStep.CUPID, NarrationKey.CUPID_OPEN, NarrationKey.CUPID_CLOSE,
                  is_present=_cupid_present, opening=True),
    NightStepSpec(Role.GUARD, NightStep.GUARD, NarrationKey.GUARD_OPEN, NarrationKey.GUARD_CLOSE,
                  opening=True),
    # Werewolf always runs: it is the pivot Convergence waits on
    NightStepSpec(Role.WEREWOLF, NightStep.WEREWOLF, NarrationKey.WEREWOLF_OPEN, NarrationKey.WEREWOLF_CLOSE,
                  is_present=_always, opening=True),
    NightStepSpec(Role.WITCH, NightStep.WITCH, NarrationKey.WITCH_OPEN, NarrationKey.WITCH_CLOSE),
    NightStepSpec(Role.SEER, NightStep.SEER, NarrationKey.SEER_OPEN, NarrationKey.SEER_CLOSE),
    NightStepSpec(Role.HUNTER, NightStep.HUNTER, NarrationKey.HUNTER_OPEN, NarrationKey.HUNTER_CLOSE),
)

STEP_BY_ROLE: dict[Role, NightStepSpec] = {spec.role: spec for spec in NIGHT_SEQUENCE}

CONVERGENCE_PRIORITY: tuple[Role, ...] = tuple(
    spec.role for spec in NIGHT_SEQUENCE if not spec.opening
)


# ============================================================================
# Scheduler
# ============================================================================


class NightScheduler:
    """Table-driven night state machine for every room in the registry.

    Player actions arrive through the public methods below; each validates
    ownership and sub-phase before touching state, records the action and,
    when it ends the sub-phase, schedules Convergence.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        outbox: Outbox,
        timers: TimerScheduler,
        tracker: OrphanTracker,
        pacing: Optional[PacingConfig] = None,
        resolver: Optional[NightActionResolver] = None,
    ):
        self._registry = registry
        self._outbox = outbox
        self._timers = timers
        self._tracker = tracker
        self._pacing = pacing or PacingConfig()
        self._resolver = resolver or NightActionResolver()

    # ------------------------------------------------------------------
    # Game start and orphan selection
    # ------------------------------------------------------------------

    def begin_game(self, room: Room) -> None:
        """Leave the lobby: orphan selection if any orphan is seated, else night."""
        self._tracker.initialize_room(room.room_id)
        orphans = room.living_holders(Role.ORPHAN)
        first_phase = Phase.ORPHAN_SELECT if orphans else Phase.NIGHT
        self._outbox.to_room(room.room_id, GameStarted(phase=first_phase))

        if not orphans:
            self.start_night(room)
            return

        room.phase = Phase.ORPHAN_SELECT
        room.night_step = NightStep.PRE_NIGHT
        self._outbox.to_room(room.room_id, PhaseStarted(
            step=NightStep.PRE_NIGHT, narration=NarrationKey.ORPHAN_SELECT,
        ))
        LOGGER.info("orphans.selecting", room_id=room.room_id, orphans=len(orphans))

        real_orphans = room.real_holders(Role.ORPHAN)
        if self._tracker.all_chosen(room.room_id, real_orphans):
            # Only stand-ins hold the role; they never choose
            self.start_night(room)
            return

        for orphan_id in real_orphans:
            self._outbox.to_participant(
                room.room_id, orphan_id, OrphanSelectUI(candidates=room.candidates(exclude=orphan_id)),
            )

    def select_protector(self, room: Room, participant_id: str, protector_id: str) -> None:
        """Record an orphan's protector; start the night once every human orphan chose."""
        orphan = room.get_participant(participant_id)
        if orphan.role != Role.ORPHAN:
            raise InvalidParticipant("Only an orphan can choose a protector")
        if room.phase != Phase.ORPHAN_SELECT:
            raise PhaseViolation("Protectors are chosen before the first night")
        if self._tracker.has_chosen(room.room_id, participant_id):
            raise PhaseViolation("You have already chosen a protector")
        if protector_id == participant_id:
            raise InvalidTarget("You cannot choose yourself")
        room.require_target(protector_id)

        self._tracker.set_protector(room.room_id, participant_id, protector_id)
        LOGGER.info("orphans.chosen", room_id=room.room_id, orphan_id=participant_id)

        if self._tracker.all_chosen(room.room_id, room.real_holders(Role.ORPHAN)):
            self._schedule(room, self._pacing.inter_phase_delay, self.start_night)

    # ------------------------------------------------------------------
    # Night lifecycle
    # ------------------------------------------------------------------

    def start_night(self, room: Room) -> None:
        """Reset the night state, pre-complete absent roles and announce."""
        room.begin_night()
        for spec in NIGHT_SEQUENCE:
            if not spec.is_present(room, spec.role):
                room.night_progress[spec.role] = True

        LOGGER.info(
            "night.started",
            room_id=room.room_id,
            night=room.night_number,
            roles=[role.value for role in room.present_special_roles()],
        )
        self._outbox.to_room(room.room_id, PhaseStarted(
            step=NightStep.ANNOUNCE, narration=NarrationKey.NIGHT_START,
        ))
        self._schedule(room, self._pacing.announce_delay, self._converge)

    def _converge(self, room: Room) -> None:
        """Decide whether the night is over or which role acts next."""
        progress = room.night_progress

        if not progress.get(Role.WEREWOLF, False):
            for spec in NIGHT_SEQUENCE:
                if spec.opening and not progress.get(spec.role, False):
                    self._start_subphase(room, spec)
                    return

        room.night_step = NightStep.CONVERGENCE
        present = room.present_special_roles()
        if all(progress.get(role, False) for role in present):
            self._finish_night(room)
            return

        for role in CONVERGENCE_PRIORITY:
            if not progress.get(role, False):
                self._start_subphase(room, STEP_BY_ROLE[role])
                return

        LOGGER.warning(
            "night.unexpected_pending",
            room_id=room.room_id,
            pending=[role.value for role in present if not progress.get(role, False)],
        )
        self._finish_night(room)

    def _start_subphase(self, room: Room, spec: NightStepSpec) -> None:
        room.night_step = spec.step
        holders = room.living_holders(spec.role)

        if not holders:
            room.night_progress[spec.role] = True
            self._outbox.to_room(room.room_id, PhaseComplete(step=spec.step, narration=spec.close_key))
            LOGGER.info("subphase.skipped", room_id=room.room_id, role=spec.role.value)
            self._schedule(room, self._pacing.inter_phase_delay, self._converge)
            return

        LOGGER.info("subphase.started", room_id=room.room_id, role=spec.role.value)
        self._outbox.to_room(room.room_id, PhaseStarted(step=spec.step, narration=spec.open_key))

        if spec.role == Role.HUNTER:
            self._flag_poisoned_hunters(room, holders)

        real_holders = room.real_holders(spec.role)
        if not real_holders:
            role = spec.role
            self._schedule(
                room,
                self._pacing.synthetic_delay,
                lambda r: self._complete_subphase(r, role),
            )
            return

        for participant_id in real_holders:
            self._outbox.to_participant(room.room_id, participant_id, self._build_role_ui(room, spec.role, participant_id))

    def _complete_subphase(self, room: Room, role: Role) -> None:
        spec = STEP_BY_ROLE[role]
        room.night_progress[role] = True
        for participant_id in room.real_holders(role):
            self._outbox.to_participant(room.room_id, participant_id, RoleUIClosed(role=role))
        self._outbox.to_room(room.room_id, PhaseComplete(step=spec.step, narration=spec.close_key))
        LOGGER.info("subphase.completed", room_id=room.room_id, role=role.value)
        self._schedule(room, self._pacing.inter_phase_delay, self._converge)

    def _finish_night(self, room: Room) -> None:
        room.night_step = NightStep.DAY_TRANSITION
        room.day_result = self.resolve(room)
        self._schedule(room, self._pacing.inter_phase_delay, self._start_day)

    def _start_day(self, room: Room) -> None:
        # Resolved again at end of night; the bag cannot change in between
        result = self.resolve(room)
        room.day_result = result
        for participant_id in result.deaths:
            room.participants[participant_id].is_alive = False
        room.phase = Phase.DAY
        room.night_step = None

        deaths = []
        for participant_id in result.deaths:
            participant = room.participants[participant_id]
            deaths.append({
                "id": participant_id,
                "name": participant.name,
                "seat": participant.seat,
                "cause": result.causes[participant_id].value,
            })
        LOGGER.info("day.started", room_id=room.room_id, night=room.night_number, deaths=result.deaths)
        self._outbox.to_room(room.room_id, DayStarted(deaths=deaths))

    def resolve(self, room: Room) -> DayResult:
        """Compute tonight's deaths from the room's action bag."""
        living = [p.participant_id for p in room.participants.values() if p.is_alive]
        deaths = self._resolver.resolve(room.night_actions, room.lover_pair, living)
        return DayResult.from_deaths(deaths)

    def next_night(self, room: Room) -> None:
        if room.phase != Phase.DAY:
            raise PhaseViolation("The next night can only start from the day phase")
        self.start_night(room)

    # ------------------------------------------------------------------
    # Role actions
    # ------------------------------------------------------------------

    def werewolf_kill(self, room: Room, participant_id: str, target_id: str) -> None:
        self._require_actor(room, participant_id, Role.WEREWOLF)
        target = room.require_target(target_id)
        room.night_actions.kill_target = target.participant_id
        LOGGER.info("action.werewolf_kill", room_id=room.room_id, actor=participant_id)
        self._complete_subphase(room, Role.WEREWOLF)

    def guard_protect(self, room: Room, participant_id: str, target_id: str) -> None:
        self._require_actor(room, participant_id, Role.GUARD)
        target = room.require_target(target_id)
        room.night_actions.protect_target = target.participant_id
        LOGGER.info("action.guard_protect", room_id=room.room_id, actor=participant_id)
        self._complete_subphase(room, Role.GUARD)

    def cupid_link(self, room: Room, participant_id: str, first_id: str, second_id: str) -> None:
        """Link two distinct participants as lovers, then reveal them to each other."""
        self._require_actor(room, participant_id, Role.CUPID)
        if first_id == second_id:
            raise InvalidTarget("Choose two different players")
        first = room.require_target(first_id)
        second = room.require_target(second_id)

        room.lover_pair = (first.participant_id, second.participant_id)
        room.night_step = NightStep.LOVERS_REVEAL
        LOGGER.info("action.cupid_link", room_id=room.room_id, actor=participant_id)

        self._outbox.to_room(room.room_id, PhaseStarted(
            step=NightStep.LOVERS_REVEAL, narration=NarrationKey.LOVERS_REVEAL,
        ))
        for lover, partner in ((first, second), (second, first)):
            if lover.is_synthetic:
                continue
            self._outbox.to_participant(room.room_id, lover.participant_id, LoversRevealed(
                partner_id=partner.participant_id, partner_name=partner.name,
            ))
        self._schedule(
            room,
            self._pacing.reveal_delay,
            lambda r: self._complete_subphase(r, Role.CUPID),
        )

    def witch_save(self, room: Room, participant_id: str) -> None:
        """Use the antidote on tonight's werewolf target."""
        self._require_actor(room, participant_id, Role.WITCH)
        kill_target = room.night_actions.kill_target
        if kill_target is None:
            raise InvalidTarget("Nobody was attacked tonight")
        if kill_target == participant_id:
            raise InvalidTarget("You cannot save yourself!")
        room.night_actions.witch_save = True
        LOGGER.info("action.witch_save", room_id=room.room_id, actor=participant_id)
        self._complete_subphase(room, Role.WITCH)

    def witch_poison(self, room: Room, participant_id: str, target_id: str) -> None:
        self._require_actor(room, participant_id, Role.WITCH)
        target = room.require_target(target_id)
        room.night_actions.poison_target = target.participant_id
        LOGGER.info("action.witch_poison", room_id=room.room_id, actor=participant_id)
        self._complete_subphase(room, Role.WITCH)

    def witch_skip(self, room: Room, participant_id: str) -> None:
        self._require_actor(room, participant_id, Role.WITCH)
        LOGGER.info("action.witch_skip", room_id=room.room_id, actor=participant_id)
        self._complete_subphase(room, Role.WITCH)

    def seer_check(self, room: Room, participant_id: str, target_id: str) -> Faction:
        """Reveal a target's faction to the seer. Does not end the sub-phase."""
        self._require_actor(room, participant_id, Role.SEER)
        if room.night_actions.seer_target is not None:
            raise PhaseViolation("You have already checked a player tonight")
        if target_id == participant_id:
            raise InvalidTarget("You cannot check yourself")
        target = room.require_target(target_id)

        faction = faction_of(target.role)
        room.night_actions.seer_target = target.participant_id
        room.night_actions.seer_result = faction
        self._outbox.to_participant(room.room_id, participant_id, SeerResult(
            target_id=target.participant_id, target_name=target.name, faction=faction,
        ))
        LOGGER.info("action.seer_check", room_id=room.room_id, actor=participant_id)
        return faction

    def acknowledge(self, room: Room, participant_id: str, role: Role) -> None:
        """Explicit "done" from the seer or hunter; the witch's equals a skip."""
        if role == Role.WITCH:
            self.witch_skip(room, participant_id)
            return
        if role not in (Role.SEER, Role.HUNTER):
            raise InvalidParticipant(f"The {role.value} has nothing to acknowledge")
        self._require_actor(room, participant_id, role)
        LOGGER.info("action.acknowledge", room_id=room.room_id, actor=participant_id, role=role.value)
        self._complete_subphase(room, role)

    def resend_ui(self, room: Room, participant_id: str) -> None:
        """Re-send the active prompt to a participant who reconnected."""
        participant = room.get_participant(participant_id)
        if participant.role is None or not participant.is_alive:
            return
        if room.phase == Phase.ORPHAN_SELECT and participant.role == Role.ORPHAN:
            if not self._tracker.has_chosen(room.room_id, participant_id):
                self._outbox.to_participant(room.room_id, participant_id, OrphanSelectUI(
                    candidates=room.candidates(exclude=participant_id),
                ))
            return
        spec = STEP_BY_ROLE.get(participant.role)
        if (
            room.phase == Phase.NIGHT
            and spec is not None
            and room.night_step == spec.step
            and not room.night_progress.get(spec.role, False)
        ):
            self._outbox.to_participant(room.room_id, participant_id, self._build_role_ui(room, spec.role, participant_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_actor(self, room: Room, participant_id: str, role: Role) -> Participant:
        """Check the actor owns the role and the role's sub-phase is open."""
        actor = room.get_participant(participant_id)
        if actor.role != role:
            raise InvalidParticipant("Invalid action")
        if not actor.is_alive:
            raise InvalidParticipant("Dead players cannot act")
        spec = STEP_BY_ROLE[role]
        if room.phase != Phase.NIGHT or room.night_step != spec.step:
            raise PhaseViolation(f"It is not the {role.value}'s turn")
        if room.night_progress.get(role, False):
            raise PhaseViolation(f"The {role.value} has already acted tonight")
        return actor

    def _build_role_ui(self, room: Room, role: Role, participant_id: str) -> RoleUI:
        if role == Role.WITCH:
            return RoleUI(
                role=role,
                candidates=room.candidates(exclude=participant_id),
                kill_target=room.night_actions.kill_target,
            )
        if role == Role.HUNTER:
            return RoleUI(
                role=role,
                candidates=[],
                poisoned=room.state_of(participant_id).poisoned,
            )
        if role == Role.SEER:
            return RoleUI(role=role, candidates=room.candidates(exclude=participant_id))
        return RoleUI(role=role, candidates=room.candidates())

    def _flag_poisoned_hunters(self, room: Room, hunters: list[str]) -> None:
        poison_target = room.night_actions.poison_target
        for hunter_id in hunters:
            if hunter_id != poison_target:
                continue
            state = room.state_of(hunter_id)
            state.poisoned = True
            state.gun_disabled = True
            if not room.participants[hunter_id].is_synthetic:
                self._outbox.to_participant(room.room_id, hunter_id, HunterPoisoned())

    def _schedule(self, room: Room, delay: float, continuation: Callable[[Room], None]) -> None:
        """Run continuation after delay unless the room has moved on."""
        room_id = room.room_id
        token = room.freshness_token()
        handle = None

        def fire() -> None:
            room.discard_timer(handle)
            if self._registry.find(room_id) is not room or room.closed:
                LOGGER.debug("timer.stale", room_id=room_id, reason="room gone")
                return
            if room.freshness_token() != token:
                LOGGER.debug("timer.stale", room_id=room_id, reason="state advanced")
                return
            continuation(room)

        handle = self._timers.call_later(delay, fire)
        room.track_timer(handle)

"""Phase enums and the notifications a room sends to its participants."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from werewolf_host.models.player import Faction, Role


class Phase(str, Enum):
    """Macro phases of a room."""

    LOBBY = "lobby"
    ORPHAN_SELECT = "orphan_select"
    NIGHT = "night"
    DAY = "day"


class NightStep(str, Enum):
    """Sub-phases within one night."""

    PRE_NIGHT = "pre_night"  # Orphans choosing a protector
    ANNOUNCE = "announce"
    CUPID = "cupid"
    LOVERS_REVEAL = "lovers_reveal"
    GUARD = "guard"
    WEREWOLF = "werewolf"
    WITCH = "witch"
    SEER = "seer"
    HUNTER = "hunter"
    CONVERGENCE = "convergence"
    DAY_TRANSITION = "day_transition"


class DeathCause(str, Enum):
    """Why someone died during the night."""

    WEREWOLF_KILL = "werewolf_kill"
    POISON = "poison"
    HEARTBREAK = "heartbreak"


class NarrationKey(str, Enum):
    """Narration cues. Localization happens outside the core."""

    NIGHT_START = "night_start"
    ORPHAN_SELECT = "orphan_select"
    CUPID_OPEN = "cupid_open"
    CUPID_CLOSE = "cupid_close"
    LOVERS_REVEAL = "lovers_reveal"
    GUARD_OPEN = "guard_open"
    GUARD_CLOSE = "guard_close"
    WEREWOLF_OPEN = "werewolf_open"
    WEREWOLF_CLOSE = "werewolf_close"
    WITCH_OPEN = "witch_open"
    WITCH_CLOSE = "witch_close"
    SEER_OPEN = "seer_open"
    SEER_CLOSE = "seer_close"
    HUNTER_OPEN = "hunter_open"
    HUNTER_CLOSE = "hunter_close"
    DAY_START = "day_start"
    PEACEFUL_NIGHT = "peaceful_night"
    DEATH_ANNOUNCEMENT = "death_announcement"


class Audience(str, Enum):
    """Who a notification is delivered to."""

    PARTICIPANT = "participant"
    ROOM = "room"
    BROADCAST = "broadcast"


class Notification(BaseModel):
    """Base class for all outbound notifications."""

    kind: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind})"


# ============================================================================
# Lobby notifications
# ============================================================================


class GameConfigNotice(Notification):
    kind: Literal["game_config"] = "game_config"
    config: dict


class SeatsSnapshot(Notification):
    """Every seat and its public occupant (or None)."""

    kind: Literal["seats"] = "seats"
    seats: list[dict]


class ParticipantsSnapshot(Notification):
    kind: Literal["participants"] = "participants"
    participants: list[dict]


class RoleAssigned(Notification):
    """Sent privately to the participant who drew the role."""

    kind: Literal["role_assigned"] = "role_assigned"
    role: Role


class RolesComplete(Notification):
    kind: Literal["roles_complete"] = "roles_complete"


class SeatsStatus(Notification):
    kind: Literal["seats_status"] = "seats_status"
    filled: int
    total: int
    all_filled: bool
    roles_assigned: bool


class GameStarted(Notification):
    kind: Literal["game_started"] = "game_started"
    phase: Phase


class RoomReset(Notification):
    kind: Literal["room_reset"] = "room_reset"


class HostDisconnected(Notification):
    kind: Literal["host_disconnected"] = "host_disconnected"


# ============================================================================
# Night notifications
# ============================================================================


class OrphanSelectUI(Notification):
    """Protector candidates sent privately to a human orphan."""

    kind: Literal["orphan_select_ui"] = "orphan_select_ui"
    candidates: list[dict]


class PhaseStarted(Notification):
    kind: Literal["phase_started"] = "phase_started"
    step: NightStep
    narration: NarrationKey


class PhaseComplete(Notification):
    kind: Literal["phase_complete"] = "phase_complete"
    step: NightStep
    narration: NarrationKey


class RoleUI(Notification):
    """Role-scoped action payload sent privately to each human holder.

    kill_target is filled for the witch, poisoned for the hunter.
    """

    kind: Literal["role_ui"] = "role_ui"
    role: Role
    candidates: list[dict]
    kill_target: Optional[str] = None
    poisoned: Optional[bool] = None


class RoleUIClosed(Notification):
    kind: Literal["role_ui_closed"] = "role_ui_closed"
    role: Role


class LoversRevealed(Notification):
    kind: Literal["lovers_revealed"] = "lovers_revealed"
    partner_id: str
    partner_name: str


class SeerResult(Notification):
    kind: Literal["seer_result"] = "seer_result"
    target_id: str
    target_name: str
    faction: Faction


class HunterPoisoned(Notification):
    """Tells a hunter their gun is disabled for the coming day."""

    kind: Literal["hunter_poisoned"] = "hunter_poisoned"


class DayStarted(Notification):
    kind: Literal["day_started"] = "day_started"
    narration: NarrationKey = NarrationKey.DAY_START
    deaths: list[dict] = Field(default_factory=list)

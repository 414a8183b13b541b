"""Events package."""

from werewolf_host.events.game_events import (
    # Enums
    Phase,
    NightStep,
    DeathCause,
    NarrationKey,
    Audience,
    # Base
    Notification,
    # Lobby
    GameConfigNotice,
    SeatsSnapshot,
    ParticipantsSnapshot,
    RoleAssigned,
    RolesComplete,
    SeatsStatus,
    GameStarted,
    RoomReset,
    HostDisconnected,
    # Night
    OrphanSelectUI,
    PhaseStarted,
    PhaseComplete,
    RoleUI,
    RoleUIClosed,
    LoversRevealed,
    SeerResult,
    HunterPoisoned,
    DayStarted,
)

__all__ = [
    # Enums
    "Phase",
    "NightStep",
    "DeathCause",
    "NarrationKey",
    "Audience",
    # Base
    "Notification",
    # Lobby
    "GameConfigNotice",
    "SeatsSnapshot",
    "ParticipantsSnapshot",
    "RoleAssigned",
    "RolesComplete",
    "SeatsStatus",
    "GameStarted",
    "RoomReset",
    "HostDisconnected",
    # Night
    "OrphanSelectUI",
    "PhaseStarted",
    "PhaseComplete",
    "RoleUI",
    "RoleUIClosed",
    "LoversRevealed",
    "SeerResult",
    "HunterPoisoned",
    "DayStarted",
]

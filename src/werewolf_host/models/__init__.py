"""Models package."""

from werewolf_host.models.player import (
    Role,
    Faction,
    SPECIAL_ROLES,
    CONFIGURABLE_SPECIAL_ROLES,
    DEFAULT_ROLE,
    faction_of,
    RoomConfig,
    Participant,
    ParticipantState,
)

__all__ = [
    "Role",
    "Faction",
    "SPECIAL_ROLES",
    "CONFIGURABLE_SPECIAL_ROLES",
    "DEFAULT_ROLE",
    "faction_of",
    "RoomConfig",
    "Participant",
    "ParticipantState",
]

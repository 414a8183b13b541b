"""Role and participant models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Role(str, Enum):
    """Role tokens that can be dealt from a room's role pool."""

    WEREWOLF = "werewolf"
    VILLAGER = "villager"
    ORPHAN = "orphan"  # Dependent role: picks a protector before night one
    CUPID = "cupid"
    GUARD = "guard"
    WITCH = "witch"
    SEER = "seer"
    HUNTER = "hunter"


class Faction(str, Enum):
    """What the seer learns about a checked player."""

    WEREWOLF = "werewolf"
    GOOD = "good"


# Roles that act during the night, in canonical order
SPECIAL_ROLES: tuple[Role, ...] = (
    Role.CUPID,
    Role.GUARD,
    Role.WEREWOLF,
    Role.WITCH,
    Role.SEER,
    Role.HUNTER,
)

# Roles a host may add on top of werewolves, orphans and villagers
CONFIGURABLE_SPECIAL_ROLES = frozenset(
    {Role.CUPID, Role.GUARD, Role.WITCH, Role.SEER, Role.HUNTER}
)

DEFAULT_ROLE = Role.VILLAGER


def faction_of(role: Optional[Role]) -> Faction:
    """Return the faction the seer sees for a role."""
    return Faction.WEREWOLF if role == Role.WEREWOLF else Faction.GOOD


class RoomConfig(BaseModel):
    """Host-provided configuration for a room.

    Frozen once the room is created. Role counts must not exceed the seat
    count; any seats left over are dealt as villagers.
    """

    model_config = ConfigDict(frozen=True)

    total_seats: int = Field(ge=1, le=30)
    num_werewolves: int = Field(default=0, ge=0)
    num_orphans: int = Field(default=0, ge=0)
    num_villagers: Optional[int] = Field(default=None, ge=0)
    special_roles: tuple[Role, ...] = ()
    language: str = "en"

    @field_validator("special_roles")
    @classmethod
    def _check_special_roles(cls, roles: tuple[Role, ...]) -> tuple[Role, ...]:
        seen = set()
        for role in roles:
            if role not in CONFIGURABLE_SPECIAL_ROLES:
                raise ValueError(f"{role.value} cannot be configured as a special role")
            if role in seen:
                raise ValueError(f"special role {role.value} listed more than once")
            seen.add(role)
        return roles

    @model_validator(mode="after")
    def _check_counts(self) -> "RoomConfig":
        if self.assigned_role_count > self.total_seats:
            raise ValueError(
                f"role counts add up to {self.assigned_role_count} "
                f"but the room only has {self.total_seats} seats"
            )
        return self

    @property
    def assigned_role_count(self) -> int:
        """Number of tokens claimed by explicit role counts."""
        return (
            self.num_werewolves
            + self.num_orphans
            + len(self.special_roles)
            + (self.num_villagers or 0)
        )


class Participant(BaseModel):
    """Someone connected to a room, human or synthetic stand-in.

    participant_id is stable for the whole game; connection_id changes when
    the participant reconnects with its token.
    """

    participant_id: str
    name: str
    connection_id: Optional[str] = None
    seat: Optional[int] = None
    role: Optional[Role] = None
    is_host: bool = False
    is_connected: bool = True
    is_synthetic: bool = False
    is_alive: bool = True
    reconnect_token: Optional[str] = None

    def to_public_dict(self) -> dict:
        """Convert to dictionary, hiding role and token."""
        return {
            "id": self.participant_id,
            "name": self.name,
            "seat": self.seat,
            "is_host": self.is_host,
            "is_connected": self.is_connected,
            "is_synthetic": self.is_synthetic,
            "is_alive": self.is_alive,
        }


class ParticipantState(BaseModel):
    """Flags that outlive a single night."""

    poisoned: bool = False
    gun_disabled: bool = False

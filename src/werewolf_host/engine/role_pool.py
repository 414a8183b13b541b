"""Role pool: the shuffled tokens dealt to participants as they sit down."""

import random
from typing import Optional

import structlog

from werewolf_host.engine.room_registry import Room
from werewolf_host.models.player import DEFAULT_ROLE, Role, RoomConfig

LOGGER = structlog.get_logger(__name__)


class RolePool:
    """Builds, draws from and rebuilds a room's role pool.

    Draws never fail: an exhausted pool deals DEFAULT_ROLE so seating a
    participant always yields a role.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the pool.

        Args:
            rng: random.Random instance for reproducible shuffling.
        """
        self._rng = rng or random.Random()

    def build(self, config: RoomConfig) -> list[Role]:
        """Create a shuffled pool with exactly config.total_seats tokens.

        Werewolves, orphans, each special role, then villagers. Seats left
        uncovered by the configured counts are padded with villagers and
        reported.
        """
        roles: list[Role] = []
        roles.extend([Role.WEREWOLF] * config.num_werewolves)
        roles.extend([Role.ORPHAN] * config.num_orphans)
        roles.extend(config.special_roles)
        if config.num_villagers is not None:
            roles.extend([Role.VILLAGER] * config.num_villagers)
        else:
            roles.extend([Role.VILLAGER] * (config.total_seats - len(roles)))

        if len(roles) < config.total_seats:
            missing = config.total_seats - len(roles)
            LOGGER.warning(
                "role_pool.padded",
                configured=len(roles),
                seats=config.total_seats,
                padding=missing,
            )
            roles.extend([DEFAULT_ROLE] * missing)

        # random.shuffle is Fisher-Yates: every permutation equally likely
        self._rng.shuffle(roles)
        return roles

    def draw(self, pool: list[Role]) -> tuple[list[Role], Role]:
        """Take the head of the pool.

        Returns:
            Tuple of (remaining pool, drawn role). An empty pool yields
            (empty pool, DEFAULT_ROLE).
        """
        if not pool:
            LOGGER.warning("role_pool.exhausted", fallback=DEFAULT_ROLE.value)
            return [], DEFAULT_ROLE
        return pool[1:], pool[0]

    def deal(self, room: Room, participant_id: str) -> Role:
        """Draw the next token for a participant, building the pool lazily."""
        if room.role_pool is None:
            room.role_pool = self.build(room.config)
        room.role_pool, role = self.draw(room.role_pool)
        room.assign_role(participant_id, role)
        return role

    def rebuild(self, room: Room) -> dict[str, Role]:
        """Discard every assignment, reshuffle and redeal to seated participants.

        Seated participants are dealt in seat order; unseated participants
        get nothing.

        Returns:
            Mapping of participant id to new role.
        """
        room.clear_roles()
        room.role_pool = self.build(room.config)
        dealt: dict[str, Role] = {}
        for participant in room.seated_participants():
            dealt[participant.participant_id] = self.deal(room, participant.participant_id)
        LOGGER.info("role_pool.rebuilt", room_id=room.room_id, dealt=len(dealt))
        return dealt

"""Tests for RolePool: building, drawing, dealing and rebuilding."""

import random
from collections import Counter

import pytest
from pydantic import ValidationError

from werewolf_host.engine import RolePool, Room
from werewolf_host.models import DEFAULT_ROLE, Participant, Role, RoomConfig


def make_room(config: RoomConfig) -> Room:
    return Room.create("ROOM01", "host", config)


def seat(room: Room, participant_id: str, seat_number: int) -> None:
    room.participants[participant_id] = Participant(
        participant_id=participant_id, name=participant_id, seat=seat_number,
    )
    room.get_seat(seat_number).occupant_id = participant_id


class TestBuild:
    """Tests for RolePool.build."""

    def test_six_seat_scenario(self) -> None:
        """2 werewolves, 3 villagers and a seer fill six seats exactly."""
        config = RoomConfig(total_seats=6, num_werewolves=2, num_villagers=3, special_roles=(Role.SEER,))
        pool = RolePool(random.Random(1)).build(config)

        assert len(pool) == 6
        assert Counter(pool) == {Role.WEREWOLF: 2, Role.SEER: 1, Role.VILLAGER: 3}

    def test_every_configured_role_appears_its_count(self) -> None:
        """Orphans and each special role are dealt exactly as configured."""
        config = RoomConfig(
            total_seats=10,
            num_werewolves=3,
            num_orphans=2,
            special_roles=(Role.CUPID, Role.GUARD, Role.WITCH, Role.SEER, Role.HUNTER),
        )
        pool = RolePool(random.Random(2)).build(config)

        assert len(pool) == config.total_seats
        assert Counter(pool) == {
            Role.WEREWOLF: 3,
            Role.ORPHAN: 2,
            Role.CUPID: 1,
            Role.GUARD: 1,
            Role.WITCH: 1,
            Role.SEER: 1,
            Role.HUNTER: 1,
        }

    def test_villagers_fill_remaining_seats_when_unspecified(self) -> None:
        config = RoomConfig(total_seats=7, num_werewolves=2, special_roles=(Role.WITCH,))
        pool = RolePool().build(config)

        assert Counter(pool)[Role.VILLAGER] == 4
        assert len(pool) == 7

    def test_short_configuration_is_padded_with_default_role(self) -> None:
        """Counts below the seat count are padded rather than rejected."""
        config = RoomConfig(total_seats=6, num_werewolves=1, num_villagers=2, special_roles=(Role.SEER,))
        pool = RolePool().build(config)

        assert len(pool) == 6
        assert Counter(pool)[DEFAULT_ROLE] == 4

    def test_counts_above_seat_count_are_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RoomConfig(total_seats=4, num_werewolves=3, num_villagers=2)

    def test_duplicate_special_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RoomConfig(total_seats=4, special_roles=(Role.SEER, Role.SEER))

    def test_werewolf_is_not_a_special_role(self) -> None:
        with pytest.raises(ValidationError):
            RoomConfig(total_seats=4, special_roles=(Role.WEREWOLF,))

    def test_same_seed_same_shuffle(self) -> None:
        config = RoomConfig(total_seats=12, num_werewolves=4, special_roles=(Role.SEER, Role.WITCH))
        first = RolePool(random.Random(42)).build(config)
        second = RolePool(random.Random(42)).build(config)

        assert first == second


class TestDraw:
    """Tests for RolePool.draw."""

    def test_draw_takes_head(self) -> None:
        pool = [Role.SEER, Role.WEREWOLF]
        remaining, role = RolePool().draw(pool)

        assert role == Role.SEER
        assert remaining == [Role.WEREWOLF]
        assert pool == [Role.SEER, Role.WEREWOLF]

    def test_empty_pool_falls_back_to_default(self) -> None:
        remaining, role = RolePool().draw([])

        assert role == DEFAULT_ROLE
        assert remaining == []

    def test_drawing_past_exhaustion_never_raises(self) -> None:
        """N draws empty the pool; extra draws deal the default role."""
        role_pool = RolePool(random.Random(3))
        config = RoomConfig(total_seats=4, num_werewolves=1, special_roles=(Role.SEER,))
        pool = role_pool.build(config)

        drawn = []
        for _ in range(4):
            pool, role = role_pool.draw(pool)
            drawn.append(role)
        pool, extra = role_pool.draw(pool)

        assert Counter(drawn) == {Role.WEREWOLF: 1, Role.SEER: 1, Role.VILLAGER: 2}
        assert extra == DEFAULT_ROLE


class TestDealAndRebuild:
    """Tests for dealing into a Room and rebuilding its pool."""

    def test_deal_builds_pool_lazily(self) -> None:
        room = make_room(RoomConfig(total_seats=3, num_werewolves=1))
        seat(room, "a", 1)
        assert room.role_pool is None

        role = RolePool(random.Random(5)).deal(room, "a")

        assert room.role_pool is not None
        assert len(room.role_pool) == 2
        assert room.participants["a"].role == role
        assert room.role_assignment == {"a": role}
        assert room.holders(role) == {"a"}

    def test_rebuild_redeals_only_seated_in_seat_order(self) -> None:
        room = make_room(RoomConfig(total_seats=4, num_werewolves=1, special_roles=(Role.SEER,)))
        seat(room, "b", 3)
        seat(room, "a", 1)
        room.participants["lurker"] = Participant(participant_id="lurker", name="lurker")

        role_pool = RolePool(random.Random(9))
        role_pool.deal(room, "a")
        dealt = role_pool.rebuild(room)

        assert list(dealt) == ["a", "b"]
        assert room.participants["lurker"].role is None
        assert set(room.role_assignment) == {"a", "b"}
        assert len(room.role_pool) == 2

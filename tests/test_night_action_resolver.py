"""Tests for NightActionResolver."""

import pytest

from werewolf_host.engine import NightActionResolver, NightActionStore
from werewolf_host.events import DeathCause


@pytest.fixture
def resolver() -> NightActionResolver:
    return NightActionResolver()


# ============================================================================
# Werewolf kill
# ============================================================================


class TestWerewolfKill:
    """Tests for the werewolf kill and what can negate it."""

    def test_unprotected_kill_stands(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="x"))
        assert deaths == {"x": DeathCause.WEREWOLF_KILL}

    def test_witch_save_negates_kill(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="x", witch_save=True))
        assert deaths == {}

    def test_guard_protecting_target_negates_kill(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="x", protect_target="x"))
        assert deaths == {}

    def test_guard_protecting_someone_else_does_not_help(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="x", protect_target="y"))
        assert deaths == {"x": DeathCause.WEREWOLF_KILL}

    def test_save_and_protect_together_still_one_survivor(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(
            NightActionStore(kill_target="x", witch_save=True, protect_target="x")
        )
        assert deaths == {}

    def test_no_kill_no_deaths(self, resolver: NightActionResolver) -> None:
        assert resolver.resolve(NightActionStore()) == {}


# ============================================================================
# Poison
# ============================================================================


class TestPoison:
    """Tests for the witch's poison."""

    def test_poison_ignores_guard(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(poison_target="y", protect_target="y"))
        assert deaths == {"y": DeathCause.POISON}

    def test_kill_and_poison_listed_in_order(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="x", poison_target="y"))
        assert list(deaths.items()) == [
            ("x", DeathCause.WEREWOLF_KILL),
            ("y", DeathCause.POISON),
        ]

    def test_poisoning_the_kill_target_keeps_first_cause(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="x", poison_target="x"))
        assert deaths == {"x": DeathCause.WEREWOLF_KILL}

    def test_poison_after_save_still_kills(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(
            NightActionStore(kill_target="x", witch_save=True, poison_target="x")
        )
        assert deaths == {"x": DeathCause.POISON}


# ============================================================================
# Heartbreak
# ============================================================================


class TestHeartbreak:
    """Tests for lovers dying together."""

    def test_partner_dies_of_heartbreak(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="a"), lover_pair=("a", "b"))
        assert list(deaths.items()) == [
            ("a", DeathCause.WEREWOLF_KILL),
            ("b", DeathCause.HEARTBREAK),
        ]

    def test_second_lover_dying_takes_the_first(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(poison_target="b"), lover_pair=("a", "b"))
        assert deaths == {"b": DeathCause.POISON, "a": DeathCause.HEARTBREAK}

    def test_both_lovers_already_dead_no_duplicate(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(
            NightActionStore(kill_target="a", poison_target="b"), lover_pair=("a", "b")
        )
        assert deaths == {"a": DeathCause.WEREWOLF_KILL, "b": DeathCause.POISON}

    def test_saved_lover_spares_partner(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(
            NightActionStore(kill_target="a", witch_save=True), lover_pair=("a", "b")
        )
        assert deaths == {}

    def test_unrelated_death_leaves_lovers_alone(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(NightActionStore(kill_target="c"), lover_pair=("a", "b"))
        assert deaths == {"c": DeathCause.WEREWOLF_KILL}


class TestLivingFilter:
    """Tests for the living-participant filter."""

    def test_dead_targets_are_not_listed(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(
            NightActionStore(kill_target="x", poison_target="y"), living={"y"}
        )
        assert deaths == {"y": DeathCause.POISON}

    def test_dead_partner_is_not_listed_again(self, resolver: NightActionResolver) -> None:
        deaths = resolver.resolve(
            NightActionStore(kill_target="a"), lover_pair=("a", "b"), living={"a", "c"}
        )
        assert deaths == {"a": DeathCause.WEREWOLF_KILL}

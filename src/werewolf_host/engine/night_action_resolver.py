"""Night action resolution - computes final deaths from accumulated night actions."""

from typing import Iterable, Optional

from werewolf_host.engine.night_action_store import NightActionStore
from werewolf_host.events.game_events import DeathCause


class NightActionResolver:
    """Computes final deaths from accumulated night actions.

    Resolution order:
    1. Werewolf kill (negated by a witch save OR a matching guard protect)
    2. Poison (kills regardless of guard)
    3. Heartbreak (lone surviving lover follows their partner)
    """

    def resolve(
        self,
        actions: NightActionStore,
        lover_pair: Optional[tuple[str, str]] = None,
        living: Optional[Iterable[str]] = None,
    ) -> dict[str, DeathCause]:
        """Compute final deaths from accumulated night actions.

        Args:
            actions: Tonight's kill, save, poison and protect targets.
            lover_pair: The two linked participants, if cupid linked any.
            living: Participants alive at nightfall. None treats every
                    target as alive.

        Returns:
            Ordered mapping of participant id to DeathCause. Insertion order
            is the announcement order and each id appears once.
        """
        alive = set(living) if living is not None else None
        deaths: dict[str, DeathCause] = {}

        def _add(target: str, cause: DeathCause) -> None:
            if target in deaths:
                return
            if alive is not None and target not in alive:
                return
            deaths[target] = cause

        if actions.kill_target is not None:
            kill_target = actions.kill_target
            is_saved = actions.witch_save
            is_protected = actions.protect_target == kill_target
            if not is_saved and not is_protected:
                _add(kill_target, DeathCause.WEREWOLF_KILL)

        # Poison is not a werewolf attack, so the guard cannot block it
        if actions.poison_target is not None:
            _add(actions.poison_target, DeathCause.POISON)

        if lover_pair is not None:
            first, second = lover_pair
            if first in deaths and second not in deaths:
                _add(second, DeathCause.HEARTBREAK)
            elif second in deaths and first not in deaths:
                _add(first, DeathCause.HEARTBREAK)

        return deaths

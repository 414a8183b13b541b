"""Night action storage: what each role did tonight and what came of it."""

from typing import Optional

from pydantic import BaseModel, Field

from werewolf_host.events.game_events import DeathCause
from werewolf_host.models.player import Faction


class NightActionStore(BaseModel):
    """Actions recorded during one night.

    Cleared in place at the start of every night; nothing here carries over.
    The lover pair lives on the Room because it persists across nights.
    """

    kill_target: Optional[str] = None  # Werewolves' chosen target
    witch_save: bool = False  # Witch used the antidote on kill_target
    poison_target: Optional[str] = None
    protect_target: Optional[str] = None  # Guard's protected participant
    seer_target: Optional[str] = None
    seer_result: Optional[Faction] = None

    def reset_for_new_night(self) -> None:
        """Clear every recorded action."""
        self.kill_target = None
        self.witch_save = False
        self.poison_target = None
        self.protect_target = None
        self.seer_target = None
        self.seer_result = None


class DayResult(BaseModel):
    """Outcome of the last resolved night.

    deaths is ordered: first computed, first listed, no duplicates.
    """

    deaths: list[str] = Field(default_factory=list)
    causes: dict[str, DeathCause] = Field(default_factory=dict)

    @classmethod
    def from_deaths(cls, deaths: dict[str, DeathCause]) -> "DayResult":
        return cls(deaths=list(deaths.keys()), causes=dict(deaths))

    @property
    def is_peaceful(self) -> bool:
        return not self.deaths

"""Room host and night-phase engine for a Werewolves party game."""

__version__ = "0.1.0"

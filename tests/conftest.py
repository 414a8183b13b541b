"""Shared fixtures."""

import random

import pytest

from helpers import ManualTimers
from werewolf_host.engine import GameServer, Outbox


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture
def server(timers: ManualTimers, outbox: Outbox) -> GameServer:
    """GameServer on manual timers with a seeded rng."""
    return GameServer(timers=timers, outbox=outbox, rng=random.Random(7))

"""Test helpers: a hand-cranked timer scheduler and room builders."""

from typing import Callable, Optional

from werewolf_host.engine import GameServer, Outbox, Room
from werewolf_host.models import CONFIGURABLE_SPECIAL_ROLES, Role, RoomConfig


# ============================================================================
# Manual timers
# ============================================================================


class ManualTimerHandle:
    def __init__(self, when: float, seq: int, callback: Callable[[], None]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """TimerScheduler whose clock only moves when a test says so."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._pending: list[ManualTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimerHandle:
        self._seq += 1
        handle = ManualTimerHandle(self.now + delay, self._seq, callback)
        self._pending.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._pending if not h.cancelled)

    def _pop_next(self, until: Optional[float]) -> Optional[ManualTimerHandle]:
        live = [h for h in self._pending if not h.cancelled]
        self._pending = live
        if not live:
            return None
        handle = min(live, key=lambda h: (h.when, h.seq))
        if until is not None and handle.when > until:
            return None
        self._pending.remove(handle)
        return handle

    def advance(self, seconds: float) -> None:
        """Fire every timer due within the next `seconds`."""
        target = self.now + seconds
        while True:
            handle = self._pop_next(target)
            if handle is None:
                break
            self.now = handle.when
            handle.callback()
        self.now = target

    def run_until_idle(self, limit: int = 500) -> None:
        """Fire timers in order until none are left."""
        for _ in range(limit):
            handle = self._pop_next(None)
            if handle is None:
                return
            self.now = max(self.now, handle.when)
            handle.callback()
        raise AssertionError("timers never went idle")


class NonCancellingTimers(ManualTimers):
    """Timers that ignore cancel(), to exercise the freshness check."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = super().call_later(delay, callback)
        handle.cancel = lambda: None  # type: ignore[method-assign]
        return handle


# ============================================================================
# Builders
# ============================================================================


def config_for(pool: list[Role]) -> RoomConfig:
    """RoomConfig whose counts match the given pool."""
    return RoomConfig(
        total_seats=len(pool),
        num_werewolves=pool.count(Role.WEREWOLF),
        num_orphans=pool.count(Role.ORPHAN),
        special_roles=tuple(r for r in pool if r in CONFIGURABLE_SPECIAL_ROLES),
    )


def open_room(server: GameServer, pool: list[Role], humans: list[str]) -> Room:
    """Create a room whose pool deals `pool` in order.

    humans[0] is the host. Humans take seats 1..n in order, so they draw the
    first n tokens; stand-ins get the rest when the game starts.
    """
    host = humans[0]
    assert server.configure_room(host, config_for(pool))
    room_id = server.create_room(host).data["room_id"]
    room = server.registry.get(room_id)
    room.role_pool = list(pool)
    for seat, connection_id in enumerate(humans, start=1):
        assert server.join_room(connection_id, room_id, connection_id.title())
        assert server.choose_seat(connection_id, room_id, seat)
    return room


def standin_id(room: Room, seat: int) -> str:
    return f"standin-{room.room_id}-{seat}"


def started_steps(outbox: Outbox) -> list:
    return [d.notification.step for d in outbox.of_kind("phase_started")]


def completed_steps(outbox: Outbox) -> list:
    return [d.notification.step for d in outbox.of_kind("phase_complete")]

